"""Line-range extraction: literal slices, enclosing blocks and padded context."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import FileOutline

LINE_SPEC_PATTERN = re.compile(r"~?\d+[-–]\d+")
FILE_RANGE_PATTERN = re.compile(r"(.+):(~?\d+[-–]\d+)")

MAX_CONTEXT = 5000
DEFAULT_PADDING = 25


class LineSpecError(ValueError):
    """Raised when a line range cannot be parsed."""


@dataclass(frozen=True)
class LineSpec:
    """A requested line range; ``smart`` widens it to the enclosing block."""

    start: int
    end: int
    smart: bool = False


def is_line_spec(text: str) -> bool:
    return LINE_SPEC_PATTERN.fullmatch(text) is not None


def parse_line_spec(spec: str) -> LineSpec:
    text = spec.strip()
    smart = text.startswith("~")
    if smart:
        text = text[1:].strip()
    text = text.replace("–", "-")
    match = re.fullmatch(r"(\d+)-(\d+)", text)
    if not match:
        raise LineSpecError(f"Invalid range: {spec}")
    first, second = int(match.group(1)), int(match.group(2))
    if first <= 0 or second <= 0:
        raise LineSpecError("Line numbers must be >= 1")
    return LineSpec(start=min(first, second), end=max(first, second), smart=smart)


@dataclass(frozen=True)
class Snippet:
    """A block of file content selected by a line range or a content match."""

    path: str
    header: str
    body: str


class SnippetBuilder:
    """Builds line-range snippets with the shared ``--context`` setting."""

    def __init__(self, context: int = 0) -> None:
        self.context = max(0, min(context, MAX_CONTEXT))

    def plain(self, path: str, lines: List[str], spec: LineSpec) -> Snippet:
        first = max(1, spec.start - self.context)
        last = min(len(lines), spec.end + self.context)
        context_info = f" (+{self.context} context)" if self.context > 0 else ""
        header = f"==> {path}:lines {spec.start}-{spec.end}{context_info} <=="
        return Snippet(path, header, _join(lines, first, last))

    def padded(
        self,
        path: str,
        lines: List[str],
        start: int,
        end: int,
        *,
        match_line: Optional[int] = None,
    ) -> Snippet:
        padding = self.context or DEFAULT_PADDING
        first = max(1, start - padding)
        last = min(len(lines), end + padding)
        match_info = f" (match line {match_line})" if match_line else ""
        header = (
            f"==> {path}:lines {start}-{end} (+{padding} context){match_info} (padded) <=="
        )
        return Snippet(path, header, _join(lines, first, last))

    def enclosing(
        self,
        outline: FileOutline,
        spec: LineSpec,
        *,
        match_line: Optional[int] = None,
    ) -> Snippet:
        """Return the smallest block around ``spec``, else a padded slice."""
        block = smallest_enclosing(outline, spec.start, spec.end)
        if block is None:
            return self.padded(
                outline.path, outline.lines, spec.start, spec.end, match_line=match_line
            )

        name, lineno, end_lineno = block
        match_info = f"; match line {match_line}" if match_line else ""
        if self.context > 0:
            first = max(1, lineno - self.context)
            last = min(len(outline.lines), end_lineno + self.context)
            context_info = f" (+{self.context} context)"
        else:
            first, last = lineno, end_lineno
            context_info = ""
        header = f"==> {outline.path}:{name} (line {lineno}{match_info}){context_info} <=="
        return Snippet(outline.path, header, _join(outline.lines, first, last))


def smallest_enclosing(
    outline: FileOutline, start: int, end: int
) -> Optional[Tuple[str, int, int]]:
    """Return ``(name, lineno, end_lineno)`` of the tightest block around the range.

    Ties on span go to definitions and classes over compound statements, then
    to the earlier block.
    """
    blocks = [
        (definition.qualname, definition.lineno, definition.end_lineno, 0)
        for definition in outline.definitions
    ]
    blocks.extend((scope.name, scope.lineno, scope.end_lineno, 0) for scope in outline.classes)
    blocks.extend((block.keyword, block.lineno, block.end_lineno, 1) for block in outline.blocks)
    containing = [block for block in blocks if block[1] <= start and block[2] >= end]
    if not containing:
        return None
    name, lineno, end_lineno, _ = min(
        containing, key=lambda block: (block[2] - block[1], block[3], block[1])
    )
    return name, lineno, end_lineno


def _join(lines: List[str], first: int, last: int) -> str:
    return "".join(lines[first - 1 : last]).rstrip("\n")


__all__ = [
    "FILE_RANGE_PATTERN",
    "LineSpec",
    "LineSpecError",
    "Snippet",
    "SnippetBuilder",
    "is_line_spec",
    "parse_line_spec",
    "smallest_enclosing",
]
