"""Root argument resolution into an ordered candidate file list."""

from __future__ import annotations

import glob
import os
from dataclasses import dataclass, field
from typing import AbstractSet, Iterator, List, Sequence, Set

from .config import DEFAULT_IGNORE_DIRS
from .logging import get_logger
from .models import CandidateFile, RootKind, RootSpec, RunWarning, WarningKind

SOURCE_SUFFIXES = (".py", ".pyw")

TYPE_PY = "py"
TYPE_ALL = "all"
TYPE_FILTERS = (TYPE_PY, TYPE_ALL)

logger = get_logger("roots")


def is_source_file(path: str) -> bool:
    return path.endswith(SOURCE_SUFFIXES)


def has_glob_magic(text: str) -> bool:
    return glob.has_magic(text)


@dataclass
class Resolution:
    """Resolved candidates plus the warnings raised while resolving them."""

    roots: List[RootSpec] = field(default_factory=list)
    candidates: List[CandidateFile] = field(default_factory=list)
    warnings: List[RunWarning] = field(default_factory=list)


class RootResolver:
    """Turns path, directory and glob arguments into candidate files."""

    def __init__(
        self,
        type_filter: str = TYPE_PY,
        ignore_dirs: AbstractSet[str] = DEFAULT_IGNORE_DIRS,
    ) -> None:
        if type_filter not in TYPE_FILTERS:
            raise ValueError(
                f"unknown --type {type_filter!r} (expected 'py' or 'all')"
            )
        self.type_filter = type_filter
        self.ignore_dirs = frozenset(ignore_dirs)

    def resolve(self, raw_roots: Sequence[str]) -> Resolution:
        """Return candidates in argument order, then discovery order."""
        resolution = Resolution()
        seen: Set[str] = set()

        for index, raw in enumerate(raw_roots):
            kind, paths = self._expand(raw)
            resolution.roots.append(RootSpec(raw=raw, kind=kind))
            if kind == RootKind.LITERAL_MISSING:
                resolution.warnings.append(RunWarning(WarningKind.ROOT_NOT_FOUND, raw))
                continue
            if kind == RootKind.GLOB_UNMATCHED:
                resolution.warnings.append(
                    RunWarning(WarningKind.GLOB_MATCHED_NOTHING, raw)
                )
                continue

            added = 0
            for path in paths:
                key = os.path.realpath(path)
                if key in seen:
                    continue
                seen.add(key)
                resolution.candidates.append(
                    CandidateFile(path=path, recognized=is_source_file(path), root_index=index)
                )
                added += 1
            logger.debug("Root %r resolved as %s with %d new file(s)", raw, kind, added)

        return resolution

    # ------------------------------------------------------------------
    # Internals

    def _expand(self, raw: str) -> tuple[str, List[str]]:
        if os.path.isfile(raw):
            return RootKind.LITERAL_FOUND, [raw]
        if os.path.isdir(raw):
            return RootKind.DIRECTORY, list(self._walk(raw))
        if has_glob_magic(raw):
            matches = sorted(glob.glob(raw, recursive=True))
            if not matches:
                return RootKind.GLOB_UNMATCHED, []
            return RootKind.GLOB_MATCHED, list(self._expand_glob(raw, matches))
        return RootKind.LITERAL_MISSING, []

    def _expand_glob(self, pattern: str, matches: Sequence[str]) -> Iterator[str]:
        # Directories the pattern spells out literally stay reachable.
        ignored = self.ignore_dirs - _literal_parts(pattern)
        for match in matches:
            parts = _split_parts(match)
            if os.path.isdir(match):
                if any(part in ignored for part in parts):
                    continue
                yield from self._walk(match)
            elif os.path.isfile(match):
                # The file name itself is never an ignored directory segment.
                if any(part in ignored for part in parts[:-1]):
                    continue
                if self._accepts(match):
                    yield match

    def _walk(self, directory: str) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(directory):
            dirnames[:] = sorted(name for name in dirnames if name not in self.ignore_dirs)
            for filename in sorted(filenames):
                path = os.path.join(dirpath, filename)
                if self._accepts(path):
                    yield path

    def _accepts(self, path: str) -> bool:
        return self.type_filter == TYPE_ALL or is_source_file(path)


def _split_parts(path: str) -> List[str]:
    normalized = path.replace(os.sep, "/") if os.sep != "/" else path
    return [part for part in normalized.split("/") if part and part != "."]


def _literal_parts(pattern: str) -> Set[str]:
    """Return the path segments of a glob that contain no wildcards."""
    return {part for part in _split_parts(pattern) if not has_glob_magic(part)}


__all__ = [
    "Resolution",
    "RootResolver",
    "SOURCE_SUFFIXES",
    "TYPE_ALL",
    "TYPE_FILTERS",
    "TYPE_PY",
    "is_source_file",
]
