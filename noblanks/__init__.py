"""
noblanks — blank lines inside C/C++ function bodies
===================================================

A Cppcheck addon that reports every blank (spaces/tabs only) line lying
between two consecutive top-level statements of a function or lambda
body.

Modules
-------
source_index
    Line-indexed raw source text and the blank-line predicate.
bodies
    Function and lambda bodies extracted from a Cppcheck configuration.
detector
    The gap detector walking adjacent statement pairs.
checkers
    Diagnostic model, suppressions, checker runner, addon entry point.
main
    Command-line interface.

Quick start
-----------
    from noblanks import SourceIndex, GapDetector, extract_function_bodies
    detector = GapDetector(SourceIndex())
    for cfg in data.configurations:
        for gap in detector.check_bodies(extract_function_bodies(cfg)):
            print(gap.file, gap.line, gap.message)
"""

from __future__ import annotations

import logging

__version__ = "0.1.0"
__license__ = "MIT"

from noblanks.bodies import (  # noqa: E402
    FunctionBody,
    Position,
    Statement,
    extract_function_bodies,
)
from noblanks.checkers import (  # noqa: E402
    BlankLinesChecker,
    CheckerRunner,
    CheckerRunResults,
    Diagnostic,
    run_addon,
)
from noblanks.detector import BlankLineGap, GapDetector  # noqa: E402
from noblanks.errors import DumpLoadError, NoBlanksError, SourceReadError  # noqa: E402
from noblanks.source_index import SourceFile, SourceIndex, is_blank  # noqa: E402

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BlankLineGap",
    "BlankLinesChecker",
    "CheckerRunResults",
    "CheckerRunner",
    "Diagnostic",
    "DumpLoadError",
    "FunctionBody",
    "GapDetector",
    "NoBlanksError",
    "Position",
    "SourceFile",
    "SourceIndex",
    "SourceReadError",
    "Statement",
    "extract_function_bodies",
    "is_blank",
    "run_addon",
]
