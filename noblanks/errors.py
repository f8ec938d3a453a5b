"""
noblanks/errors.py
══════════════════

Exception hierarchy.

    NoBlanksError
    ├── SourceReadError   (also an OSError) — a source file is unreadable
    └── DumpLoadError                       — a .dump file is unreadable

Neither is fatal to a run: the runner records the failure for the file
concerned and moves on to the next one.

License: MIT
"""

from __future__ import annotations

from typing import Optional


class NoBlanksError(Exception):
    """Base exception for all noblanks errors."""

    def __init__(self, message: str, path: str = "",
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.path = path
        self.cause = cause


class SourceReadError(NoBlanksError, OSError):
    """A source file named by the dump could not be read."""

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        reason = f": {cause}" if cause else ""
        super().__init__(f"cannot read source file '{path}'{reason}",
                         path=path, cause=cause)


class DumpLoadError(NoBlanksError):
    """A Cppcheck dump file could not be read or parsed."""

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        reason = f": {cause}" if cause else ""
        super().__init__(f"cannot load dump file '{path}'{reason}",
                         path=path, cause=cause)
