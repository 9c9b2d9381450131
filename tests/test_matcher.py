"""Tests for printfunction.matcher."""

from __future__ import annotations

import textwrap
from typing import List, Sequence

import pytest

from printfunction.extractor import StructuralExtractor
from printfunction.matcher import CriterionError, Matcher, innermost_definition
from printfunction.models import Definition, FileOutline, MatchCriterion

SOURCE = textwrap.dedent(
    """
    def method():
        return "top"

    class MyClass:
        def method(self):
            def helper():
                return "nested"
            return helper()

        async def fetch(self):
            return await self.method()

    def handler():
        pass
    """
).lstrip("\n")


@pytest.fixture
def outline() -> FileOutline:
    return StructuralExtractor().extract("mod.py", SOURCE)


def _names(definitions: Sequence[Definition]) -> List[tuple[str, int]]:
    return [(d.qualname, d.lineno) for d in definitions]


def test_exact_matches_bare_and_qualified_names(outline: FileOutline) -> None:
    bare = Matcher(MatchCriterion(MatchCriterion.EXACT, "method")).select(outline)
    assert _names(bare) == [("method", 1), ("MyClass.method", 5)]

    qualified = Matcher(MatchCriterion(MatchCriterion.EXACT, "MyClass.method")).select(outline)
    assert _names(qualified) == [("MyClass.method", 5)]


def test_first_only_keeps_one_match(outline: FileOutline) -> None:
    matcher = Matcher(MatchCriterion(MatchCriterion.EXACT, "method"), first_only=True)
    assert _names(matcher.select(outline)) == [("method", 1)]


def test_regex_is_a_full_match(outline: FileOutline) -> None:
    assert _names(Matcher(MatchCriterion(MatchCriterion.REGEX, "h.*")).select(outline)) == [
        ("helper", 6),
        ("handler", 13),
    ]
    assert Matcher(MatchCriterion(MatchCriterion.REGEX, "hel")).select(outline) == []
    assert _names(
        Matcher(MatchCriterion(MatchCriterion.REGEX, r"MyClass\.\w+")).select(outline)
    ) == [("MyClass.method", 5), ("MyClass.fetch", 10)]


def test_anchor_reports_innermost_definition(outline: FileOutline) -> None:
    matcher = Matcher(MatchCriterion(MatchCriterion.ANCHOR, "return"))
    assert _names(matcher.select(outline)) == [
        ("method", 1),
        ("MyClass.method", 5),
        ("helper", 6),
        ("MyClass.fetch", 10),
    ]
    assert matcher.anchor_lines(outline.lines) == [2, 7, 8, 11]


def test_list_mode_with_and_without_filter(outline: FileOutline) -> None:
    everything = Matcher(MatchCriterion(MatchCriterion.LIST)).select(outline)
    assert len(everything) == 5

    by_qualname = Matcher(MatchCriterion(MatchCriterion.LIST, "MyClass.method")).select(outline)
    assert _names(by_qualname) == [("MyClass.method", 5)]

    by_regex = Matcher(
        MatchCriterion(MatchCriterion.LIST, ".*fetch", list_filter_is_regex=True)
    ).select(outline)
    assert _names(by_regex) == [("MyClass.fetch", 10)]


def test_invalid_patterns_raise_criterion_error() -> None:
    with pytest.raises(CriterionError, match="invalid regex"):
        Matcher(MatchCriterion(MatchCriterion.REGEX, "(oops"))
    with pytest.raises(CriterionError, match="invalid --at regex"):
        Matcher(MatchCriterion(MatchCriterion.ANCHOR, "[oops"))


def test_innermost_definition(outline: FileOutline) -> None:
    assert innermost_definition(outline.definitions, 7).qualname == "helper"
    assert innermost_definition(outline.definitions, 8).qualname == "MyClass.method"
    assert innermost_definition(outline.definitions, 4) is None
