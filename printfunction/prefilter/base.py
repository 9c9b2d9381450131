"""Base classes for candidate prefilters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Sequence

from ..models import CandidateFile, RunWarning


@dataclass
class PrefilterOutcome:
    """Candidates kept by a prefilter plus any warnings it raised."""

    candidates: List[CandidateFile]
    warnings: List[RunWarning] = field(default_factory=list)
    used: bool = False


class CandidateFilter(ABC):
    """Contract for engines that narrow candidates before structural parsing.

    Implementations may only drop files that cannot contain ``literal``; the
    relative order of the kept candidates must be preserved.
    """

    name = "base"

    @abstractmethod
    def narrow(self, literal: str, candidates: Sequence[CandidateFile]) -> PrefilterOutcome:
        """Return the subset of ``candidates`` worth parsing."""


class IdentityFilter(CandidateFilter):
    """Keeps every candidate; the full-scan engine."""

    name = "identity"

    def narrow(self, literal: str, candidates: Sequence[CandidateFile]) -> PrefilterOutcome:
        return PrefilterOutcome(candidates=list(candidates))
