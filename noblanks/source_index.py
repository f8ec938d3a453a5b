"""
noblanks/source_index.py
════════════════════════

Raw-text access to the source files named by Cppcheck tokens.

Cppcheck dump files carry tokens, not text: comments, blank lines and
preprocessor directives are gone by the time an addon sees the token
list.  Deciding whether a line is blank therefore needs the original
file, which this module loads once per run and indexes by line.

    index = SourceIndex()
    text = index.line_text("src/main.c", 12)
    blank = text is None or is_blank(text)

A ``SourceIndex`` is scoped to the caller (one per analysis run); it is
never shared through module globals.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from noblanks.errors import SourceReadError

_log = logging.getLogger(__name__)

PathLike = Union[str, Path]

_BLANK_BYTES = frozenset(b" \t")


# ═════════════════════════════════════════════════════════════════════════
#  SOURCE FILE
# ═════════════════════════════════════════════════════════════════════════

def _line_starts(content: bytes) -> Tuple[int, ...]:
    starts = [0]
    pos = content.find(b"\n")
    while pos != -1:
        starts.append(pos + 1)
        pos = content.find(b"\n", pos + 1)
    return tuple(starts)


@dataclass(frozen=True)
class SourceFile:
    """
    An immutable, line-indexed view of one source file.

    Attributes
    ----------
    path        : The path as it appears in the dump (token ``file``)
    content     : Raw file bytes
    line_starts : Byte offset of the first character of each line
    """
    path: str
    content: bytes
    line_starts: Tuple[int, ...] = field(repr=False, default=())

    @classmethod
    def from_bytes(cls, path: str, content: bytes) -> "SourceFile":
        return cls(path=path, content=content, line_starts=_line_starts(content))

    @property
    def line_count(self) -> int:
        return len(self.line_starts)

    def line_offset(self, line: int) -> Optional[int]:
        """Byte offset where 1-based ``line`` starts, or None if out of range."""
        if line < 1 or line > len(self.line_starts):
            return None
        offset = self.line_starts[line - 1]
        # A trailing newline opens no further line of text.
        if offset >= len(self.content) and line > 1:
            return None
        return offset

    def line_text(self, line: int) -> Optional[bytes]:
        """
        Return the raw bytes of 1-based ``line`` without its terminator.

        The line stops at the first ``\\n`` or ``\\r``.  Lines outside the
        file resolve to ``None``; this never raises.
        """
        start = self.line_offset(line)
        if start is None:
            return None
        end = start
        content = self.content
        size = len(content)
        while end < size and content[end] not in (0x0A, 0x0D):
            end += 1
        return content[start:end]


def is_blank(text: bytes) -> bool:
    """True iff ``text`` is empty or holds only spaces and horizontal tabs."""
    return all(b in _BLANK_BYTES for b in text)


# ═════════════════════════════════════════════════════════════════════════
#  SOURCE INDEX
# ═════════════════════════════════════════════════════════════════════════

class SourceIndex:
    """
    Per-run cache of ``SourceFile`` objects keyed by path.

    Parameters
    ----------
    root : Directory relative paths are resolved against (default: cwd)
    """

    def __init__(self, root: Optional[PathLike] = None) -> None:
        self.root = Path(root) if root is not None else None
        self._files: Dict[str, SourceFile] = {}
        self._failures: Dict[str, SourceReadError] = {}

    def _resolve(self, path: str) -> Path:
        p = Path(path)
        if self.root is not None and not p.is_absolute():
            return self.root / p
        return p

    def load(self, path: str) -> SourceFile:
        """
        Load ``path`` (cached).

        Raises
        ------
        SourceReadError
            If the file cannot be read.  The failure is cached as well, so
            every later call for the same path raises the same error
            without touching the filesystem again.
        """
        cached = self._files.get(path)
        if cached is not None:
            return cached
        failure = self._failures.get(path)
        if failure is not None:
            raise failure

        try:
            content = self._resolve(path).read_bytes()
        except OSError as exc:
            err = SourceReadError(path, exc)
            self._failures[path] = err
            _log.debug("Failed to load %s: %s", path, exc)
            raise err from exc

        source = SourceFile.from_bytes(path, content)
        self._files[path] = source
        _log.debug("Indexed %s (%d lines)", path, source.line_count)
        return source

    def line_text(self, path: str, line: int) -> Optional[bytes]:
        """Raw text of ``line`` in ``path``; ``None`` when out of range."""
        return self.load(path).line_text(line)

    def is_line_blank(self, path: str, line: int) -> bool:
        """
        Whether ``line`` of ``path`` is blank.

        A line that cannot be resolved counts as blank.
        """
        text = self.line_text(path, line)
        if text is None:
            return True
        return is_blank(text)

    @property
    def failures(self) -> Dict[str, SourceReadError]:
        return dict(self._failures)
