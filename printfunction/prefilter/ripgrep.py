"""Candidate prefilter backed by ripgrep (``rg``)."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Set

from ..logging import get_logger
from ..models import CandidateFile, RunWarning, WarningKind
from .base import CandidateFilter, PrefilterOutcome

logger = get_logger("prefilter.ripgrep")

_RG_MATCHED = 0
_RG_NO_MATCH = 1


@dataclass(frozen=True)
class RgInvocation:
    """Completed ``rg`` process output."""

    returncode: int
    stdout: bytes
    stderr: bytes


class RipgrepFilter(CandidateFilter):
    """Keeps candidates in which ``rg`` finds the literal.

    The candidate files are passed to ``rg`` explicitly, so the search never
    reaches beyond what the root resolver selected and ``rg``'s own ignore
    handling never comes into play.
    """

    name = "ripgrep"

    def __init__(
        self,
        executable: str = "rg",
        *,
        timeout: Optional[float] = None,
        batch_size: int = 512,
        runner: Callable[[Sequence[str], Optional[float]], RgInvocation] | None = None,
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.batch_size = max(1, batch_size)
        self._runner = runner or self._default_runner

    def narrow(self, literal: str, candidates: Sequence[CandidateFile]) -> PrefilterOutcome:
        kept: List[CandidateFile] = []
        for batch in _batches(candidates, self.batch_size):
            command = self._command(literal, batch)
            logger.debug("Running %s over %d file(s)", self.executable, len(batch))
            try:
                result = self._runner(command, self.timeout)
            except subprocess.TimeoutExpired:
                warning = RunWarning(
                    WarningKind.ACCELERANT_FAILED,
                    "timeout",
                    f"timed out after {self.timeout:g}s",
                )
                return PrefilterOutcome(candidates=list(candidates), warnings=[warning])
            except OSError as exc:
                logger.debug("Unable to run %s: %s", self.executable, exc)
                return PrefilterOutcome(candidates=list(candidates))

            if result.returncode == _RG_MATCHED:
                hits = _parse_hits(result.stdout)
                if not hits:
                    # Success without a file list cannot be trusted to narrow.
                    logger.debug("rg reported success without output; keeping batch")
                    kept.extend(batch)
                    continue
                kept.extend(
                    candidate for candidate in batch if _normalise(candidate.path) in hits
                )
            elif result.returncode == _RG_NO_MATCH:
                continue
            else:
                warning = RunWarning(
                    WarningKind.ACCELERANT_FAILED,
                    str(result.returncode),
                    _one_line(result.stderr),
                )
                return PrefilterOutcome(candidates=list(candidates), warnings=[warning])

        logger.debug("rg kept %d of %d candidate(s)", len(kept), len(candidates))
        return PrefilterOutcome(candidates=kept, used=True)

    def _command(self, literal: str, batch: Sequence[CandidateFile]) -> List[str]:
        return [
            self.executable,
            "--files-with-matches",
            "--fixed-strings",
            "--text",
            "--no-config",
            "--no-ignore",
            "--hidden",
            "--null",
            "--",
            literal,
            *(candidate.path for candidate in batch),
        ]

    @staticmethod
    def _default_runner(args: Sequence[str], timeout: Optional[float]) -> RgInvocation:
        completed = subprocess.run(
            list(args),
            check=False,
            capture_output=True,
            stdin=subprocess.DEVNULL,
            timeout=timeout,
        )
        return RgInvocation(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


def _batches(
    candidates: Sequence[CandidateFile], size: int
) -> Iterator[Sequence[CandidateFile]]:
    for start in range(0, len(candidates), size):
        yield candidates[start : start + size]


def _parse_hits(stdout: bytes) -> Set[str]:
    separator = b"\0" if b"\0" in stdout else b"\n"
    return {
        _normalise(os.fsdecode(raw))
        for raw in stdout.split(separator)
        if raw.strip()
    }


def _normalise(path: str) -> str:
    return os.path.normpath(path)


def _one_line(stderr: bytes) -> str:
    text = " ".join(stderr.decode("utf-8", errors="replace").split())
    return text or "no error output"


__all__ = ["RgInvocation", "RipgrepFilter"]
