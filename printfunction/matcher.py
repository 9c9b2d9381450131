"""Match criteria evaluated against a file's extracted definitions."""

from __future__ import annotations

import re
from typing import List, Optional, Pattern

from .models import Definition, FileOutline, MatchCriterion


class CriterionError(ValueError):
    """Raised when a user-supplied pattern is not a valid regular expression."""


class Matcher:
    """Selects definitions from a :class:`FileOutline` for one criterion."""

    def __init__(self, criterion: MatchCriterion, *, first_only: bool = False) -> None:
        self.criterion = criterion
        self.first_only = first_only
        self._regex: Optional[Pattern[str]] = None
        if criterion.mode in (MatchCriterion.REGEX, MatchCriterion.ANCHOR) or (
            criterion.mode == MatchCriterion.LIST and criterion.list_filter_is_regex
        ):
            self._regex = _compile(criterion.pattern or "", criterion.mode)

    def select(self, outline: FileOutline) -> List[Definition]:
        """Return matching definitions in declaration order."""
        mode = self.criterion.mode
        if mode == MatchCriterion.EXACT:
            matches = [d for d in outline.definitions if self._names_equal(d)]
        elif mode == MatchCriterion.REGEX:
            matches = [d for d in outline.definitions if self._names_fullmatch(d)]
        elif mode == MatchCriterion.ANCHOR:
            matches = self._anchored(outline)
        elif mode == MatchCriterion.LIST:
            matches = self._listed(outline)
        else:  # pragma: no cover - criteria are built by the CLI
            raise ValueError(f"Unknown match mode: {mode}")

        if self.first_only and matches:
            return matches[:1]
        return matches

    def anchor_lines(self, lines: List[str]) -> List[int]:
        """Return the 1-based numbers of lines matched by the anchor pattern."""
        regex = self._pattern()
        return [
            number
            for number, line in enumerate(lines, start=1)
            if regex.search(line.rstrip("\n"))
        ]

    # ------------------------------------------------------------------
    # Internals

    def _pattern(self) -> Pattern[str]:
        if self._regex is None:
            raise ValueError(f"{self.criterion.mode} criteria carry no regular expression")
        return self._regex

    def _names_equal(self, definition: Definition) -> bool:
        target = self.criterion.pattern
        return definition.name == target or definition.qualname == target

    def _names_fullmatch(self, definition: Definition) -> bool:
        regex = self._pattern()
        return bool(regex.fullmatch(definition.name) or regex.fullmatch(definition.qualname))

    def _anchored(self, outline: FileOutline) -> List[Definition]:
        selected: List[Definition] = []
        seen = set()
        for number in self.anchor_lines(outline.lines):
            owner = innermost_definition(outline.definitions, number)
            if owner is None or owner.lineno in seen:
                continue
            seen.add(owner.lineno)
            selected.append(owner)
        selected.sort(key=lambda definition: definition.lineno)
        return selected

    def _listed(self, outline: FileOutline) -> List[Definition]:
        target = self.criterion.pattern
        if not target:
            return list(outline.definitions)
        if self._regex is not None:
            return [d for d in outline.definitions if self._names_fullmatch(d)]
        if "." in target:
            return [d for d in outline.definitions if d.qualname == target]
        return [d for d in outline.definitions if d.name == target]


def innermost_definition(
    definitions: List[Definition], lineno: int
) -> Optional[Definition]:
    """Return the most deeply nested definition whose block contains ``lineno``."""
    owner: Optional[Definition] = None
    for definition in definitions:
        if definition.lineno > lineno:
            break
        if definition.contains(lineno):
            owner = definition
    return owner


def _compile(pattern: str, mode: str) -> Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        label = "--at regex" if mode == MatchCriterion.ANCHOR else "regex"
        raise CriterionError(f"invalid {label}: {pattern}\n  {exc}") from exc


__all__ = ["CriterionError", "Matcher", "innermost_definition"]
