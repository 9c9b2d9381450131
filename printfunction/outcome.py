"""Warning aggregation, fatal-error tracking and exit-code decisions."""

from __future__ import annotations

import sys
from typing import Dict, Iterable, List, TextIO, Tuple

from .extractor import ParseError
from .logging import get_logger
from .models import RunWarning

EXIT_MATCHED = 0
EXIT_NO_MATCH = 1
EXIT_FATAL = 2

RG_USED_MESSAGE = "DEBUG: RG USED"
TIP_MESSAGE = "Tip: run with --list to see available definitions."

logger = get_logger("outcome")


class Outcome:
    """Sole owner of stderr diagnostics and the process exit code."""

    def __init__(self, stdout: TextIO | None = None, stderr: TextIO | None = None) -> None:
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self._warnings: Dict[Tuple[str, str], RunWarning] = {}
        self._pending: List[RunWarning] = []
        self.rendered = 0
        self.fatal_errors: List[ParseError] = []

    @property
    def warnings(self) -> List[RunWarning]:
        return list(self._warnings.values())

    def warn(self, warning: RunWarning) -> bool:
        """Queue ``warning`` unless one with the same kind and argument was seen."""
        if warning.key in self._warnings:
            return False
        self._warnings[warning.key] = warning
        self._pending.append(warning)
        return True

    def warn_all(self, warnings: Iterable[RunWarning]) -> None:
        for warning in warnings:
            self.warn(warning)

    def flush_warnings(self) -> None:
        for warning in self._pending:
            self.stderr.write(warning.render() + "\n")
        self._pending.clear()
        self.stderr.flush()

    def note_accelerant_used(self) -> None:
        self.stderr.write(RG_USED_MESSAGE + "\n")

    def record_fatal(self, error: ParseError) -> None:
        """Report a required file that could not be parsed; processing continues."""
        logger.debug("Fatal parse error recorded for %s", error.path)
        self.fatal_errors.append(error)
        self.stderr.write(f"{error}\n")
        self.stderr.flush()

    def emit(self, text: str, *, results: int = 1) -> None:
        """Write rendered output and count the results it contains."""
        if not text:
            return
        self.stdout.write(text)
        self.rendered += results

    def suggest_listing(self) -> None:
        if self.rendered == 0 and _is_terminal(self.stderr):
            self.stderr.write(TIP_MESSAGE + "\n")

    def exit_code(self) -> int:
        self.flush_warnings()
        self.stdout.flush()
        if self.fatal_errors:
            return EXIT_FATAL
        if self.rendered:
            return EXIT_MATCHED
        return EXIT_NO_MATCH


def _is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


__all__ = [
    "EXIT_FATAL",
    "EXIT_MATCHED",
    "EXIT_NO_MATCH",
    "Outcome",
    "RG_USED_MESSAGE",
]
