#!/usr/bin/env python3
"""noblanks/main.py — CLI entry-point for the noblanks addon.

Usage examples
--------------
    # Standalone: dump, then check
    cppcheck --dump src/main.c
    noblanks src/main.c.dump

    # Several dumps, GCC-style output, reported relative to the project
    noblanks --output gcc --base-dir . build/*.dump

    # Addon protocol: cppcheck passes --cli and reads JSON from stdout
    noblanks --cli src/main.c.dump

Exit codes
----------
    0   No findings.
    1   At least one blank line inside a function body was reported.
    2   Infrastructure failure (missing cppcheckdata, unreadable dump or
        source file) and nothing was reported.

The module doubles as ``python -m noblanks`` via the companion
``noblanks/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import textwrap
from typing import Optional, Sequence

from noblanks import __version__
from noblanks.checkers import EXIT_INFRA, run_addon

_log = logging.getLogger("noblanks")


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``noblanks`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("noblanks")
    root.setLevel(level)
    root.addHandler(handler)


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="noblanks",
        description=(
            "Report blank lines between statements inside C/C++ function\n"
            "and lambda bodies, from cppcheck dump files."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              noblanks main.c.dump
              noblanks --output gcc --base-dir src build/*.dump
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "dump_files",
        nargs="+",
        metavar="DUMP",
        help="Path(s) to .dump files produced by 'cppcheck --dump'.",
    )
    parser.add_argument(
        "--output",
        choices=["json", "gcc", "summary"],
        default="gcc",
        help="Output format (default: gcc).",
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Cppcheck addon mode: emit JSON on stdout.",
    )
    base = parser.add_mutually_exclusive_group()
    base.add_argument(
        "--base-dir",
        default=None,
        metavar="DIR",
        help="Only report files under DIR, relative to it "
             "(default: current directory).",
    )
    base.add_argument(
        "--no-base-dir",
        action="store_true",
        help="Report every file, with paths as they appear in the dump.",
    )
    parser.add_argument(
        "--suppress",
        action="append",
        default=None,
        metavar="ID",
        help="Error ID to suppress (repeatable).",
    )
    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the noblanks CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if args.no_base_dir:
        base_dir = None
    else:
        base_dir = args.base_dir if args.base_dir is not None else os.getcwd()

    output = "json" if args.cli else args.output

    try:
        return run_addon(
            dump_files=args.dump_files,
            output=output,
            suppress=args.suppress,
            base_dir=base_dir,
        )
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
