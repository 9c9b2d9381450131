"""Core data models shared across printfunction components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class RootKind:
    """How a root argument resolved against the filesystem."""

    LITERAL_MISSING = "literal-file-missing"
    LITERAL_FOUND = "literal-file-found"
    DIRECTORY = "directory"
    GLOB_MATCHED = "glob-matched"
    GLOB_UNMATCHED = "glob-unmatched"


class WarningKind:
    """Recoverable conditions reported on stderr."""

    ROOT_NOT_FOUND = "root-not-found"
    GLOB_MATCHED_NOTHING = "glob-matched-nothing"
    ACCELERANT_FAILED = "accelerant-failed"


@dataclass(frozen=True)
class RootSpec:
    """A user-supplied root argument and how it resolved."""

    raw: str
    kind: str


@dataclass(frozen=True)
class CandidateFile:
    """An existing file selected for searching."""

    path: str
    recognized: bool
    root_index: int = 0


@dataclass(frozen=True)
class Definition:
    """A located function or method and its block line range."""

    name: str
    qualname: str
    lineno: int
    end_lineno: int
    is_async: bool = False
    path: str = ""

    def contains(self, lineno: int) -> bool:
        return self.lineno <= lineno <= self.end_lineno


@dataclass(frozen=True)
class ClassScope:
    """A class block; used to widen smart line-range lookups."""

    name: str
    lineno: int
    end_lineno: int


@dataclass(frozen=True)
class CompoundBlock:
    """An ``if``/``for``/``while``/``with``/``try``/``match`` statement and its clauses."""

    keyword: str
    lineno: int
    end_lineno: int


@dataclass(frozen=True)
class ImportStatement:
    """A module- or class-level import and the names it binds."""

    lineno: int
    end_lineno: int
    bound_names: Tuple[str, ...]


@dataclass
class FileOutline:
    """Everything the structural extractor derives from one file."""

    path: str
    lines: List[str]
    definitions: List[Definition] = field(default_factory=list)
    classes: List[ClassScope] = field(default_factory=list)
    imports: List[ImportStatement] = field(default_factory=list)
    blocks: List[CompoundBlock] = field(default_factory=list)


@dataclass(frozen=True)
class MatchCriterion:
    """How definitions are selected for the run."""

    EXACT = "exact"
    REGEX = "regex"
    ANCHOR = "anchor"
    LIST = "list"

    mode: str
    pattern: Optional[str] = None
    # --list may narrow the listing with an exact name or a regex.
    list_filter_is_regex: bool = False


@dataclass(frozen=True)
class MatchResult:
    """A definition selected for rendering, with its canonical order key."""

    definition: Definition
    order: Tuple[int, int, int]


@dataclass(frozen=True)
class RunWarning:
    """A deduplicated warning keyed by kind and the original argument text."""

    kind: str
    argument: str
    detail: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return (self.kind, self.argument)

    def render(self) -> str:
        if self.kind == WarningKind.ROOT_NOT_FOUND:
            return f"Warning: file not found: {self.argument}"
        if self.kind == WarningKind.GLOB_MATCHED_NOTHING:
            return f"Warning: glob matched no files: {self.argument}"
        if self.kind == WarningKind.ACCELERANT_FAILED:
            return (
                f"Warning: rg failed (exit {self.argument}): {self.detail}; "
                "falling back to full scan."
            )
        return f"Warning: {self.argument}"
