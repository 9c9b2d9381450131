"""Candidate prefilter engines and selection."""

from __future__ import annotations

import shutil
from typing import Callable, Optional

from ..config import PrefilterConfig
from ..logging import get_logger
from ..roots import TYPE_PY
from .base import CandidateFilter, IdentityFilter, PrefilterOutcome
from .ripgrep import RgInvocation, RipgrepFilter

logger = get_logger("prefilter")


def select_prefilter(
    config: PrefilterConfig,
    *,
    type_filter: str,
    literal: Optional[str],
    which: Callable[[str], Optional[str]] = shutil.which,
) -> CandidateFilter:
    """Return the engine to narrow candidates with for this run.

    Falls back to :class:`IdentityFilter` whenever ripgrep cannot give the
    same answer as the structural scan, or is simply unavailable.
    """
    if type_filter != TYPE_PY:
        logger.debug("Prefilter off: --type %s", type_filter)
        return IdentityFilter()
    if not config.enabled:
        logger.debug("Prefilter off: disabled by configuration or environment")
        return IdentityFilter()
    if not literal:
        logger.debug("Prefilter off: no literal can be required of matching files")
        return IdentityFilter()
    if not literal.isascii():
        # rg compares bytes; non-ASCII text depends on each file's declared encoding.
        logger.debug("Prefilter off: literal %r is not ASCII", literal)
        return IdentityFilter()
    executable = which(config.executable)
    if executable is None:
        logger.debug("Prefilter off: %s not found on PATH", config.executable)
        return IdentityFilter()
    return RipgrepFilter(
        executable,
        timeout=config.timeout,
        batch_size=config.batch_size,
    )


__all__ = [
    "CandidateFilter",
    "IdentityFilter",
    "PrefilterOutcome",
    "RgInvocation",
    "RipgrepFilter",
    "select_prefilter",
]
