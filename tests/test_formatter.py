"""Tests for printfunction.formatter."""

from __future__ import annotations

from typing import List

from printfunction.extractor import StructuralExtractor
from printfunction.formatter import OutputFormatter
from printfunction.models import FileOutline, MatchResult
from printfunction.snippets import Snippet

SOURCE = (
    "class Greeter:\n"
    "    @staticmethod\n"
    "    def hello():\n"
    "        return 'hi'\n"
    "\n"
    "\n"
    "def a_function_with_a_rather_long_descriptive_name():\n"
    "    pass\n"
)


def _results(outline: FileOutline) -> List[MatchResult]:
    return [
        MatchResult(definition=definition, order=(0, 0, definition.lineno))
        for definition in outline.definitions
    ]


def test_render_matches_uses_exact_source_lines() -> None:
    outline = StructuralExtractor().extract("pkg/greet.py", SOURCE)
    rendered = OutputFormatter().render_matches(outline, _results(outline)[:1])

    assert rendered == (
        "==> pkg/greet.py:Greeter.hello (line 3) <==\n"
        "    def hello():\n"
        "        return 'hi'\n"
        "\n"
    )


def test_render_matches_prefixes_first_block_only() -> None:
    outline = StructuralExtractor().extract("greet.py", SOURCE)
    rendered = OutputFormatter().render_matches(outline, _results(outline), prefix="import os\n\n")

    blocks = rendered.split("==> ")[1:]
    assert blocks[0].startswith("greet.py:Greeter.hello (line 3) <==\nimport os\n\n    def hello():")
    assert "import os" not in blocks[1]


def test_render_listing_pads_names() -> None:
    outline = StructuralExtractor().extract("greet.py", SOURCE)
    formatter = OutputFormatter()
    listing = formatter.render_listing("greet.py", _results(outline))

    long_name = "a_function_with_a_rather_long_descriptive_name"
    width = len(long_name) + 4
    assert listing == (
        "==> greet.py <==\n"
        f"{'Greeter.hello':<{width}} line 3\n"
        f"{long_name:<{width}} line 7\n"
        "\n"
    )
    assert formatter.render_listing("greet.py", []) == ""


def test_render_snippets() -> None:
    snippets = [Snippet("a.txt", "==> a.txt:lines 1-1 <==", "alpha")]
    assert OutputFormatter().render_snippets(snippets) == "==> a.txt:lines 1-1 <==\nalpha\n\n"
