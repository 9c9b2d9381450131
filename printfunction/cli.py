"""CLI entrypoint for printfunction."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ConfigError, load_config
from .imports import IMPORT_ALL, IMPORT_MODES, IMPORT_NONE
from .logging import configure_logging
from .matcher import CriterionError
from .models import MatchCriterion
from .outcome import EXIT_FATAL, Outcome
from .pipeline import Pipeline, SearchRequest
from .roots import TYPE_FILTERS, TYPE_PY, has_glob_magic
from .snippets import (
    FILE_RANGE_PATTERN,
    MAX_CONTEXT,
    LineSpecError,
    is_line_spec,
    parse_line_spec,
)

_EXAMPLES = """\
Targets:
  foo                 function name
  ClassName.method    method name
  lines START-END     line range
  ~START-END          smallest enclosing definition or class
  file.py:100-200     file with a line range (file.py:~100-200 for smart)

Examples:
  printfunction foo a.py b.py
  printfunction foo .
  printfunction foo "**/*.py"
  printfunction --regex 'test_.*' tests/
  printfunction lines 10-20 file1.py file2.py
  printfunction ~10-20 file1.py
  printfunction --at 'cached_preview' app.py
"""


class UsageError(ValueError):
    """Raised when the positional arguments do not describe a runnable search."""


class _UsageFormatter(argparse.RawDescriptionHelpFormatter):
    def add_usage(self, usage, actions, groups, prefix=None):  # type: ignore[override]
        if prefix is None:
            prefix = "Usage: "
        return super().add_usage(usage, actions, groups, prefix)


@dataclass
class _Positionals:
    target: Optional[str] = None
    line_spec: Optional[str] = None
    roots: List[str] = field(default_factory=list)


def _context_value(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError("--context requires an integer") from None
    if value < 0:
        raise argparse.ArgumentTypeError("--context requires an integer >= 0")
    return min(value, MAX_CONTEXT)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="printfunction",
        usage="%(prog)s [OPTIONS] [QUERY] [FILES...]",
        description=(
            "Print Python function and method definitions by name, "
            "searching files, directories and globs."
        ),
        epilog=_EXAMPLES,
        formatter_class=_UsageFormatter,
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List available functions and methods instead of printing them.",
    )
    parser.add_argument(
        "--regex",
        action="store_true",
        help="Treat QUERY as a regular expression matched against the full name.",
    )
    parser.add_argument(
        "--at",
        metavar="PATTERN",
        dest="at_pattern",
        help=(
            "Print the definitions containing lines matching PATTERN "
            "(a padded snippet for other files). Replaces QUERY."
        ),
    )
    parser.add_argument(
        "--type",
        dest="type_filter",
        choices=TYPE_FILTERS,
        default=TYPE_PY,
        help="File filter: 'py' (default, .py/.pyw) or 'all' (no filter, rg disabled).",
    )
    parser.add_argument(
        "--first",
        action="store_true",
        help="Print only the first match per file.",
    )
    parser.add_argument(
        "--context",
        type=_context_value,
        default=0,
        metavar="N",
        help=f"Add N lines of context around line-range output (max {MAX_CONTEXT}).",
    )
    parser.add_argument(
        "--import",
        "--imports",
        dest="import_mode",
        choices=IMPORT_MODES,
        default=IMPORT_NONE,
        metavar="MODE",
        help="Print module/class imports too: 'all' (bare --import), 'used' or 'none'.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "positionals",
        nargs="*",
        metavar="ARG",
        help="Function name, pattern or line range, followed by files, directories or globs.",
    )
    return parser


def _normalize_argv(argv: Sequence[str]) -> List[str]:
    """Spell a bare ``--import`` as ``--import=all`` so it never eats a QUERY."""
    return [
        f"{arg}={IMPORT_ALL}" if arg in ("--import", "--imports") else arg
        for arg in argv
    ]


def _classify_positionals(
    args: Sequence[str], *, regex: bool, at_pattern: Optional[str], list_mode: bool
) -> _Positionals:
    result = _Positionals()
    skipped: set[int] = set()

    for index, arg in enumerate(args[:-1]):
        if arg == "lines" and is_line_spec(args[index + 1]):
            result.line_spec = args[index + 1]
            skipped.update({index, index + 1})
            break

    for index, arg in enumerate(args):
        if index in skipped:
            continue

        file_range = FILE_RANGE_PATTERN.fullmatch(arg)
        if file_range and not os.path.exists(arg):
            filename, spec = file_range.group(1), file_range.group(2)
            if not os.path.exists(filename):
                raise UsageError(f"file not found in 'file:range' syntax: {filename}")
            if result.line_spec is not None:
                raise UsageError("multiple line ranges specified")
            result.line_spec = spec
            result.roots.append(filename)
            continue

        if os.path.exists(arg):
            result.roots.append(arg)
            continue

        if regex and result.target is None and at_pattern is None:
            result.target = arg
            continue

        has_mode = (
            result.target is not None
            or at_pattern is not None
            or list_mode
            or regex
            or result.line_spec is not None
        )
        if is_line_spec(arg):
            if has_mode:
                raise UsageError(
                    f"line range '{arg}' must be preceded by 'lines' (or be the first arg)."
                )
            result.line_spec = arg
            continue

        if has_mode or has_glob_magic(arg):
            result.roots.append(arg)
        else:
            result.target = arg

    return result


def _build_request(args: argparse.Namespace) -> SearchRequest:
    at_pattern: Optional[str] = args.at_pattern
    positionals = _classify_positionals(
        args.positionals,
        regex=args.regex,
        at_pattern=at_pattern,
        list_mode=args.list,
    )

    if at_pattern is not None:
        if args.regex:
            raise UsageError("--at and --regex cannot be used together")
        if args.list:
            raise UsageError("--at and --list cannot be used together")
        if positionals.line_spec is not None:
            raise UsageError("--at and explicit line ranges cannot be used together")
    if args.regex:
        if positionals.target is None:
            raise UsageError("--regex requires a PATTERN")
        if positionals.line_spec is not None:
            raise UsageError("--regex and line ranges cannot be used together")

    list_mode = args.list or (
        bool(positionals.roots)
        and positionals.target is None
        and at_pattern is None
        and positionals.line_spec is None
    )
    if (
        not list_mode
        and positionals.target is None
        and at_pattern is None
        and positionals.line_spec is None
    ):
        raise UsageError("Missing FUNCTION_NAME (or use --at / --regex / --list / lines START-END)")
    if not positionals.roots:
        raise UsageError("Missing FILES/ROOTS\nRun with --help for usage information.")

    request = SearchRequest(
        roots=positionals.roots,
        type_filter=args.type_filter,
        first_only=args.first,
        context=args.context,
        import_mode=args.import_mode,
    )
    if positionals.line_spec is not None:
        request.line_spec = parse_line_spec(positionals.line_spec)
    elif at_pattern is not None:
        request.criterion = MatchCriterion(MatchCriterion.ANCHOR, at_pattern)
    elif list_mode:
        request.criterion = MatchCriterion(
            MatchCriterion.LIST, positionals.target, list_filter_is_regex=args.regex
        )
    elif args.regex:
        request.criterion = MatchCriterion(MatchCriterion.REGEX, positionals.target)
    else:
        request.criterion = MatchCriterion(MatchCriterion.EXACT, positionals.target)
    return request


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    raw_args = list(sys.argv[1:] if argv is None else argv)
    if not raw_args:
        parser.print_help()
        return 0

    args = parser.parse_intermixed_args(_normalize_argv(raw_args))
    configure_logging(verbose=args.verbose)

    try:
        request = _build_request(args)
    except (UsageError, LineSpecError) as exc:
        parser.exit(EXIT_FATAL, f"Error: {exc}\n")

    try:
        config = load_config(Path.cwd())
    except ConfigError as exc:
        parser.exit(EXIT_FATAL, f"Error: {exc}\n")

    pipeline = Pipeline(config, Outcome())
    try:
        return pipeline.run(request)
    except CriterionError as exc:
        parser.exit(EXIT_FATAL, f"Error: {exc}\n")


__all__ = ["main"]
