"""
noblanks/checkers.py
════════════════════

Checker framework and the blank-lines checker, packaged as a Cppcheck
addon.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌───────────────────────────────────────────────────┐  │
  │  │              BlankLinesChecker                    │  │
  │  │   bodies.extract_function_bodies(cfg)             │  │
  │  │   detector.GapDetector ── source_index.SourceIndex│  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  // cppcheck-suppress  │  file-level  │  global   │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │        Diagnostic Formatter (JSON / text)         │  │
  │  └──────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — read options
  2. **collect_evidence()** — extract bodies, find gaps
  3. **diagnose()**         — turn gaps into Diagnostics
  4. **report()**           — emit Diagnostics (filtered by suppressions)

License: MIT
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from fnmatch import fnmatch
from pathlib import Path
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    TextIO,
    Tuple,
    Type,
)

from noblanks.bodies import extract_function_bodies
from noblanks.detector import BlankLineGap, GapDetector
from noblanks.errors import DumpLoadError, SourceReadError
from noblanks.source_index import SourceIndex

_log = logging.getLogger(__name__)

ADDON_NAME = "noblanks"

# Exit codes
EXIT_OK: int = 0
EXIT_FINDINGS: int = 1
EXIT_INFRA: int = 2


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    """cppcheck-compatible severity levels."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    PERFORMANCE = "performance"
    PORTABILITY = "portability"
    INFORMATION = "information"


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Designed for direct serialization to cppcheck's JSON addon protocol.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "blankLinesInFunctionBody")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    checker_name : Name of the checker that produced this
    addon        : Addon name for cppcheck protocol
    extra        : Additional context string (the function name)
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    checker_name: str = ""
    addon: str = ADDON_NAME
    extra: str = ""

    @property
    def key(self) -> Tuple[str, int, int, str, str]:
        loc = self.location
        return (loc.file, loc.line, loc.column, self.error_id, self.message)

    def to_cppcheck_json(self) -> Dict[str, Any]:
        """Serialize to cppcheck's JSON addon output format."""
        return {
            "file": self.location.file,
            "linenr": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "addon": self.addon,
            "errorId": self.error_id,
            "extra": self.extra,
        }

    def to_json_str(self) -> str:
        """Single-line JSON string for cppcheck addon stdout."""
        return json.dumps(self.to_cppcheck_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        return f"{self.location}: {sev}: {self.message} [{self.error_id}]"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments:  ``// cppcheck-suppress errorId`` (as parsed by
         cppcheck into ``cfg.suppressions``)
      2. File-level suppressions (passed programmatically)
      3. Global suppressions (command-line)
    """

    def __init__(self) -> None:
        # {(file, line)} → set of error_ids suppressed at that location
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file pattern → set of error_ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        # globally suppressed error_ids
        self._global: Set[str] = set()

    def load_inline_suppressions(self, cfg: Any) -> None:
        """Import the suppressions cppcheck recorded for a configuration."""
        for supp in getattr(cfg, "suppressions", None) or []:
            error_id = getattr(supp, "errorId", None)
            file = getattr(supp, "fileName", "") or ""
            line = int(getattr(supp, "lineNumber", 0) or 0)
            if not error_id:
                continue
            if file and line:
                self._inline[(file, line)].add(error_id)
            elif file:
                self._file_level[file].add(error_id)
            else:
                self._global.add(error_id)

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        eid = diag.error_id

        if eid in self._global or "*" in self._global:
            return True

        loc = diag.location

        # Inline (exact line match, or line-1 for preceding-line suppress)
        for line_offset in (0, 1):
            suppressed_ids = self._inline.get((loc.file, loc.line - line_offset), set())
            if eid in suppressed_ids or "*" in suppressed_ids:
                return True

        for pattern, ids in self._file_level.items():
            if eid in ids or "*" in ids:
                if pattern == loc.file or loc.file.endswith(pattern):
                    return True
                if fnmatch(loc.file, pattern):
                    return True

        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during execution.

    Attributes
    ----------
    cfg          : cppcheckdata.Configuration
    suppressions : SuppressionManager
    index        : SourceIndex shared by every configuration of the run
    options      : user-provided options dict
    failures     : file → error message, for files that could not be read
    stats        : mutable dict for timing / counting statistics
    """
    cfg: Any  # cppcheckdata.Configuration
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    index: SourceIndex = field(default_factory=SourceIndex)
    options: Dict[str, Any] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def record_failure(self, path: str, message: str) -> None:
        """Record an unreadable file; only the first failure per file is kept."""
        if path in self.failures:
            return
        _log.warning("%s", message)
        self.failures[path] = message


class Checker(ABC):
    """
    Abstract base class for all checkers.

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.STYLE

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    def configure(self, ctx: CheckerContext) -> None:
        """Called before evidence collection.  Default does nothing."""
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """Append diagnostics to ``self._diagnostics``."""
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        file: str,
        line: int,
        column: int = 0,
        extra: str = "",
    ) -> None:
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=self.default_severity,
            location=SourceLocation(file=file, line=line, column=column),
            checker_name=self.name,
            extra=extra,
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — PATH HELPERS
# ═════════════════════════════════════════════════════════════════════════

def is_in_base_dir(filename: str, base_dir: str) -> bool:
    """Whether ``filename`` lies under ``base_dir`` (both made absolute)."""
    try:
        return Path(os.path.abspath(filename)).is_relative_to(
            os.path.abspath(base_dir))
    except (OSError, ValueError):
        return False


def make_relative(filename: str, base_dir: str) -> str:
    try:
        return os.path.relpath(os.path.abspath(filename), os.path.abspath(base_dir))
    except ValueError:
        return filename


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — BLANK LINES CHECKER
# ═════════════════════════════════════════════════════════════════════════

class BlankLinesChecker(Checker):
    """
    Reports blank lines between adjacent top-level statements of function
    and lambda bodies.

    Options
    ───────
      base_dir : only files under this directory are checked, and reported
                 paths are made relative to it (default: no filtering)
    """

    name = "blank-lines"
    description = "Blank lines inside function bodies"
    error_ids = frozenset({"blankLinesInFunctionBody"})
    default_severity = DiagnosticSeverity.STYLE

    ERROR_ID = "blankLinesInFunctionBody"

    def __init__(self) -> None:
        super().__init__()
        self._gaps: List[BlankLineGap] = []
        self._base_dir: Optional[str] = None

    def configure(self, ctx: CheckerContext) -> None:
        self._base_dir = ctx.get_option("base_dir")

    def _wanted(self, path: str) -> bool:
        if self._base_dir is None:
            return True
        return is_in_base_dir(path, self._base_dir)

    def collect_evidence(self, ctx: CheckerContext) -> None:
        detector = GapDetector(ctx.index)
        bodies = extract_function_bodies(ctx.cfg)
        ctx.stats["bodies"] = ctx.stats.get("bodies", 0) + len(bodies)
        for body in bodies:
            if body.file in ctx.failures or not self._wanted(body.file):
                continue
            try:
                gaps = detector.check_body(body)
            except SourceReadError as exc:
                ctx.record_failure(exc.path, str(exc))
                continue
            self._gaps.extend(g for g in gaps if self._wanted(g.file))

    def diagnose(self, ctx: CheckerContext) -> None:
        for gap in self._gaps:
            self._emit(
                self.ERROR_ID,
                gap.message,
                file=gap.file,
                line=gap.line,
                column=gap.column,
                extra=gap.function,
            )

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        diags = super().report(ctx)
        if self._base_dir is None:
            return diags
        return [
            replace(d, location=replace(
                d.location, file=make_relative(d.location.file, self._base_dir)))
            for d in diags
        ]


# ═════════════════════════════════════════════════════════════════════════
#  PART 6 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

DEFAULT_CHECKERS: Tuple[Type[Checker], ...] = (BlankLinesChecker,)


def _sort_key(diag: Diagnostic) -> Tuple[str, int, int, str]:
    loc = diag.location
    return (loc.file, loc.line, loc.column, diag.error_id)


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    failures               : Unreadable files (source or dump) → message
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    failures: Dict[str, str] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def merge(self, other: CheckerRunResults) -> None:
        """Fold ``other`` into these results, dropping duplicate findings."""
        seen = {d.key for d in self.diagnostics}
        for diag in other.diagnostics:
            if diag.key not in seen:
                seen.add(diag.key)
                self.diagnostics.append(diag)
                self.diagnostics_by_checker[diag.checker_name].append(diag)
        for path, message in other.failures.items():
            self.failures.setdefault(path, message)
        for key, val in other.stats.items():
            self.stats[key] = self.stats.get(key, 0) + val
        for name in other.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)
        self.diagnostics.sort(key=_sort_key)

    def to_json_lines(self) -> str:
        """Format all diagnostics as cppcheck JSON addon output."""
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        """Format all diagnostics in GCC-style."""
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        files = {d.location.file for d in self.diagnostics}
        lines = [
            f"Checker run complete: {self.total_count} diagnostics "
            f"in {len(files)} files",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        for path in sorted(self.failures):
            lines.append(f"  unreadable: {self.failures[path]}")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers against cppcheck Configurations.

    Usage
    -----
    runner = CheckerRunner(options={"base_dir": "."})
    results = runner.run_all_configurations(data)
    print(results.summary())

    One runner is one analysis run: it owns the ``SourceIndex`` shared by
    every configuration and dump file it is given.
    """

    def __init__(
        self,
        checkers: Optional[Sequence[Type[Checker]]] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
        index: Optional[SourceIndex] = None,
    ) -> None:
        self.checkers = list(checkers) if checkers is not None else list(DEFAULT_CHECKERS)
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}
        self.index = index if index is not None else SourceIndex()
        self.failures: Dict[str, str] = {}

    def run(self, cfg: Any) -> CheckerRunResults:
        """Run every checker against a single Configuration."""
        results = CheckerRunResults()

        self.suppressions.load_inline_suppressions(cfg)

        ctx = CheckerContext(
            cfg=cfg,
            suppressions=self.suppressions,
            index=self.index,
            options=self.options,
            failures=self.failures,
        )

        for cls in self.checkers:
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except Exception as exc:
                # Graceful degradation: report the failure, don't crash
                _log.error("Checker '%s' failed: %s", checker_name, exc,
                           exc_info=True)
                diags = [Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        for key, val in ctx.stats.items():
            results.stats[key] = results.stats.get(key, 0) + val
        results.failures.update(self.failures)
        results.diagnostics.sort(key=_sort_key)
        return results

    def run_all_configurations(self, data: Any) -> CheckerRunResults:
        """
        Run checkers across all configurations in a CppcheckData dump.

        A finding produced by several preprocessor configurations is
        reported once.
        """
        combined = CheckerRunResults()
        for cfg in getattr(data, "configurations", None) or []:
            combined.merge(self.run(cfg))
        return combined


# ═════════════════════════════════════════════════════════════════════════
#  PART 7 — CONVENIENCE ENTRY POINT FOR CPPCHECK ADDONS
# ═════════════════════════════════════════════════════════════════════════

def write_results(results: CheckerRunResults, output: str, stream: TextIO) -> None:
    """Write ``results`` as "json", "gcc" or "summary" (gcc plus summary)."""
    if output == "json":
        text = results.to_json_lines()
    else:
        text = results.to_gcc_format()
    if text:
        stream.write(text + "\n")
    if output == "summary":
        stream.write(results.summary() + "\n")


def analyze_dumps(
    dump_files: Sequence[str],
    runner: CheckerRunner,
    parsedump: Any,
) -> CheckerRunResults:
    """
    Run ``runner`` over each dump file independently.

    A dump that cannot be loaded is recorded in ``failures`` and skipped.
    """
    combined = CheckerRunResults()
    for dump_file in dump_files:
        _log.info("Parsing dump file: %s", dump_file)
        try:
            data = parsedump(dump_file)
        except Exception as exc:
            err = DumpLoadError(dump_file, exc)
            _log.error("%s", err)
            combined.failures.setdefault(dump_file, str(err))
            continue
        combined.merge(runner.run_all_configurations(data))
    return combined


def run_addon(
    dump_files: Sequence[str],
    output: str = "json",
    suppress: Optional[Sequence[str]] = None,
    base_dir: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """
    Run the checker suite as a cppcheck addon entry point.

    Parameters
    ----------
    dump_files : Paths to .dump files from ``cppcheck --dump``
    output     : "json" for cppcheck protocol, "gcc" for GCC-style,
                 "summary" for GCC-style plus a summary
    suppress   : Error IDs to globally suppress
    base_dir   : Only report files under this directory, relative to it

    Returns
    -------
    Exit code (0 = clean, 1 = findings, 2 = nothing found but some file
    could not be processed)
    """
    try:
        from cppcheckdata import parsedump  # type: ignore[import-untyped]
    except ImportError:
        _log.error(
            "cppcheckdata is not installed.  "
            "Install cppcheck or add its Python path."
        )
        return EXIT_INFRA

    sm = SuppressionManager()
    for eid in suppress or []:
        sm.add_global_suppression(eid)

    options: Dict[str, Any] = {}
    if base_dir is not None:
        options["base_dir"] = base_dir

    runner = CheckerRunner(suppressions=sm, options=options)
    results = analyze_dumps(dump_files, runner, parsedump)
    write_results(results, output, stream or sys.stdout)

    if results.total_count:
        return EXIT_FINDINGS
    return EXIT_INFRA if results.failures else EXIT_OK


__all__ = [
    "Diagnostic",
    "DiagnosticSeverity",
    "SourceLocation",
    "SuppressionManager",
    "Checker",
    "CheckerContext",
    "BlankLinesChecker",
    "CheckerRunner",
    "CheckerRunResults",
    "analyze_dumps",
    "run_addon",
    "write_results",
]
