"""
noblanks/detector.py
════════════════════

The blank-line gap detector.

For each pair of adjacent top-level statements in a ``FunctionBody`` the
detector looks at the lines strictly between the end of the first and the
start of the second.  If any of those lines is blank (or cannot be
resolved at all) a ``BlankLineGap`` is produced, anchored at the start of
the second statement::

    void f(void) {
        a();
                    ← blank: reported at b()
        b();
        // note     ← comment text: not blank, nothing reported
        c();
    }

One gap is reported per statement pair, however many blank lines it
spans.  The detector holds no state besides the ``SourceIndex`` it reads
from, so the same body always yields the same gaps.

License: MIT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List

from noblanks.bodies import FunctionBody, Statement
from noblanks.source_index import SourceIndex

_log = logging.getLogger(__name__)

MESSAGE_TEMPLATE = "blank lines inside function body ({name})"


@dataclass(frozen=True)
class BlankLineGap:
    """One finding: blank lines right before the statement at this position."""
    file: str
    line: int
    column: int
    function: str

    @property
    def message(self) -> str:
        return MESSAGE_TEMPLATE.format(name=self.function)


class GapDetector:
    """
    Scans function bodies for blank lines between adjacent statements.

    Parameters
    ----------
    index : SourceIndex used to read the lines between statements.  A
            ``SourceReadError`` raised by the index is not caught here;
            callers decide how an unreadable file is accounted for.
    """

    def __init__(self, index: SourceIndex) -> None:
        self.index = index

    def has_blank_line(self, path: str, first_line: int, last_line: int) -> bool:
        """True if any line in ``first_line..last_line`` (inclusive) is blank."""
        for line in range(first_line, last_line + 1):
            if self.index.is_line_blank(path, line):
                return True
        return False

    def check_pair(
        self, current: Statement, following: Statement, function: str
    ) -> List[BlankLineGap]:
        end = current.end
        start = following.start
        if end.file != start.file:
            return []
        if start.line - end.line <= 1:
            return []
        if not self.has_blank_line(start.file, end.line + 1, start.line - 1):
            return []
        return [BlankLineGap(
            file=start.file,
            line=start.line,
            column=start.column,
            function=function,
        )]

    def check_body(self, body: FunctionBody) -> List[BlankLineGap]:
        """Return the gaps found in one body, in statement order."""
        statements = body.statements
        if len(statements) < 2:
            return []
        gaps: List[BlankLineGap] = []
        for current, following in zip(statements, statements[1:]):
            gaps.extend(self.check_pair(current, following, body.display_name))
        if gaps:
            _log.debug("%d gap(s) in %s at %s", len(gaps),
                       body.display_name, body.location)
        return gaps

    def check_bodies(self, bodies: Iterable[FunctionBody]) -> List[BlankLineGap]:
        gaps: List[BlankLineGap] = []
        for body in bodies:
            gaps.extend(self.check_body(body))
        return gaps
