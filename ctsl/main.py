#!/usr/bin/env python3
"""ctsl/main.py — CLI entry-point for the CTSL tool-suite.

Usage examples
--------------
    # Run maximal typing, verification and conversion extraction
    python -m ctsl extract unit.ctsl

    # Same, JSON report, conversion ledger written for instrumentation
    python -m ctsl extract unit.ctsl --format json --ledger ledger.json

    # Only load and validate a unit file
    python -m ctsl check unit.ctsl

    # Show the qualifier hierarchy a unit uses (default: JCrypt lattice)
    python -m ctsl hierarchy [unit.ctsl]

Exit codes
----------
    0   Success (no subtype violations).
    1   One or more ERROR-severity subtype violations.
    2   Infrastructure failure (missing file, malformed unit, etc.).

Environment
-----------
    CTSL_LOG_LEVEL   overrides the level derived from ``-v`` (e.g. DEBUG).
"""

from __future__ import annotations

import argparse
import io
import logging
import os
import sys
import textwrap
from pathlib import Path
from typing import Optional, Sequence, TextIO

from cryptotype_shims import (
    ReportFormat,
    __version__,
    format_ledger_json,
    format_report,
    jcrypt_hierarchy,
)

from .errors import CtslError
from .loader import load_unit

_log = logging.getLogger("ctsl")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2

_LOGGER_NAMES = ("ctsl", "cryptotype_shims")


class CtslLogHandler(logging.StreamHandler):
    """stderr handler installed once per logger by :func:`_configure_logging`."""


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``ctsl`` and ``cryptotype_shims`` loggers.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.  ``$CTSL_LOG_LEVEL`` wins
        when set to a valid level name.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    env_level = os.environ.get("CTSL_LOG_LEVEL", "").upper()
    if env_level:
        resolved = logging.getLevelName(env_level)
        if isinstance(resolved, int):
            level = resolved
        else:
            _log.warning("Ignoring invalid CTSL_LOG_LEVEL=%s", env_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    for name in _LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if not any(isinstance(h, CtslLogHandler) for h in logger.handlers):
            handler = CtslLogHandler(sys.stderr)
            handler.setFormatter(formatter)
            logger.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _load(raw: str):
    path = _resolve_path(raw, "unit file")
    _log.info("Loading analysis unit: %s", path)
    try:
        return load_unit(path)
    except CtslError as exc:
        _log.error("%s", exc)
        raise SystemExit(EXIT_INFRA)


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_extract(args: argparse.Namespace) -> int:
    """Run the typing extraction pass over a unit file."""
    unit = _load(args.unit)

    out = _open_output(args.output)
    try:
        diag_stream = io.StringIO() if args.quiet_diagnostics else out
        result = unit.run(out=diag_stream)
        fmt = ReportFormat[args.format.upper()]
        out.write(format_report(result, fmt, unit.store))
    finally:
        if out is not sys.stdout:
            out.close()

    if args.ledger:
        ledger_path = Path(args.ledger).expanduser().resolve()
        ledger_path.parent.mkdir(parents=True, exist_ok=True)
        ledger_path.write_text(format_ledger_json(result) + "\n",
                               encoding="utf-8")
        _log.info("Wrote %d conversion(s) to %s", result.ledger.total,
                  ledger_path)

    return EXIT_ERROR if result.violations else EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Load and validate a unit file without running the pass."""
    unit = _load(args.unit)
    unresolvable = sum(1 for r in unit.store if not r.candidates)
    print(f"{unit.source}: OK, {len(unit.store)} reference(s), "
          f"{len(unit.constraints)} constraint(s), "
          f"{unresolvable} without candidates")
    return EXIT_OK


def cmd_hierarchy(args: argparse.Namespace) -> int:
    """Print the qualifier hierarchy of a unit (or the default one)."""
    hierarchy = _load(args.unit).hierarchy if args.unit else jcrypt_hierarchy()
    for line in hierarchy.describe():
        print(line)
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="ctsl",
        description=(
            "CTSL — typing extraction for encryption-scheme qualifier "
            "inference.\n\n"
            "Resolves maximal qualifiers, verifies subtyping constraints and\n"
            "extracts the scheme conversions an analysis unit requires."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              ctsl extract unit.ctsl
              ctsl extract unit.ctsl -f json --ledger ledger.json
              ctsl check unit.ctsl
              ctsl hierarchy
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

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # --- extract -----------------------------------------------------------
    p_extract = subparsers.add_parser(
        "extract",
        help="Run maximal typing, verification and conversion extraction.",
    )
    p_extract.add_argument("unit", help="Path to a .ctsl unit file.")
    p_extract.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    p_extract.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text).",
    )
    p_extract.add_argument(
        "--ledger",
        default=None,
        metavar="FILE",
        help="Write the conversion ledger as JSON to FILE.",
    )
    p_extract.add_argument(
        "--quiet-diagnostics",
        action="store_true",
        help="Do not print per-conversion diagnostic lines.",
    )
    p_extract.set_defaults(func=cmd_extract)

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Load and validate a unit file.",
    )
    p_check.add_argument("unit", help="Path to a .ctsl unit file.")
    p_check.set_defaults(func=cmd_check)

    # --- hierarchy ---------------------------------------------------------
    p_hier = subparsers.add_parser(
        "hierarchy",
        help="Print the qualifier hierarchy.",
    )
    p_hier.add_argument("unit", nargs="?", default=None,
                        help="Unit file (default: the JCrypt lattice).")
    p_hier.set_defaults(func=cmd_hierarchy)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CTSL CLI.

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

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
