"""Tests for printfunction.extractor."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List

import pytest

from printfunction.extractor import (
    ParseError,
    SourceReadError,
    StructuralExtractor,
    iter_block_names,
    read_source,
    regex_literal_prefix,
    required_literal,
    source_block,
)
from printfunction.models import FileOutline, MatchCriterion


def _extract(source: str) -> FileOutline:
    return StructuralExtractor().extract("mod.py", textwrap.dedent(source).lstrip("\n"))


def _spans(outline: FileOutline) -> List[tuple[str, int, int]]:
    return [(d.qualname, d.lineno, d.end_lineno) for d in outline.definitions]


def test_blocks_exclude_decorators_and_trailing_blank_lines() -> None:
    outline = _extract(
        """
        import functools


        @functools.cache
        def cached(value):
            # interior comment

            return value


        async def fetch(
            url,
            timeout=3,
        ):
            return url
        """
    )

    assert _spans(outline) == [("cached", 5, 8), ("fetch", 11, 15)]
    assert outline.definitions[1].is_async is True
    assert source_block(outline, 5, 8).startswith("def cached(value):\n    # interior comment\n\n")


def test_method_qualification_and_nested_functions() -> None:
    outline = _extract(
        """
        def method():
            return 1

        class MyClass:
            def method(self):
                def helper():
                    return 2
                return helper()

            class Inner:
                def deep(self):
                    pass

            @property
            def value(self):
                return 3
        """
    )

    assert _spans(outline) == [
        ("method", 1, 2),
        ("MyClass.method", 5, 8),
        ("helper", 6, 7),
        ("MyClass.Inner.deep", 11, 12),
        ("MyClass.value", 15, 16),
    ]
    assert [(c.name, c.lineno, c.end_lineno) for c in outline.classes] == [
        ("MyClass", 4, 16),
        ("Inner", 10, 12),
    ]


def test_one_line_definitions_and_strings_that_look_like_code() -> None:
    outline = _extract(
        '''
        def first(): return 1
        def second():
            """
        def not_a_function():
            """
            return 2
        '''
    )

    assert _spans(outline) == [("first", 1, 1), ("second", 2, 6)]


def test_imports_are_collected_outside_functions() -> None:
    outline = _extract(
        """
        import os.path
        from typing import (
            List,
            Optional as Opt,
        )

        class Model:
            import json

            def run(self):
                import re
                return re
        """
    )

    assert [(i.lineno, i.end_lineno, i.bound_names) for i in outline.imports] == [
        (1, 1, ("os",)),
        (2, 5, ("List", "Opt")),
        (8, 8, ("json",)),
    ]


@pytest.mark.parametrize(
    "source, message",
    [
        ("def broken(\n    return 1\n", "Error parsing mod.py"),
        ("x = 1\n    y = 2\n", "unexpected indent"),
        ("def empty():\nreturn 1\n", "expected an indented block"),
        ("def (x):\n    pass\n", "expected a name after 'def'"),
        ("def f(x)\nx = 1\n", "expected ':'"),
        ("if True:\n        a = 1\n    b = 2\n", "Error parsing mod.py"),
        ("total = 1 $ 2\n", "Error parsing mod.py"),
    ],
)
def test_structural_errors_raise_parse_error(source: str, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        StructuralExtractor().extract("mod.py", source)


def test_identifiers_with_combining_marks_are_not_errors() -> None:
    outline = _extract(
        """
        def target():
            עִברִית = 1
            return עִברִית

        def नमस्ते():
            pass
        """
    )

    assert _spans(outline) == [("target", 1, 3), ("नमस्ते", 5, 6)]
    assert "עִברִית" in iter_block_names(source_block(outline, 1, 3))


def test_compound_statements_fold_their_clauses() -> None:
    outline = _extract(
        """
        def total(items):
            result = 0
            for item in items:
                if item:
                    result += item
                elif item is None:
                    continue
                else:
                    break
            else:
                result = -1
            try:
                return result
            except ValueError:
                pass

        def dispatch(command):
            match = command
            match command:
                case "go":
                    return match
            with open(command) as handle: return handle
        """
    )

    assert _spans(outline) == [("total", 1, 15), ("dispatch", 17, 22)]
    assert [(b.keyword, b.lineno, b.end_lineno) for b in outline.blocks] == [
        ("for", 3, 11),
        ("if", 4, 9),
        ("try", 12, 15),
        ("match", 19, 21),
        ("with", 22, 22),
    ]


def test_methods_inside_compound_statements_keep_their_class() -> None:
    outline = _extract(
        """
        class Service:
            if True:
                def start(self):
                    pass
            else:
                def stop(self):
                    pass
        """
    )

    assert _spans(outline) == [("Service.start", 3, 4), ("Service.stop", 6, 7)]


def test_read_source_fast_path_skips_without_decoding(tmp_path: Path) -> None:
    path = tmp_path / "latin.py"
    path.write_bytes(b"def f():\n    return '\xff'\n")

    assert read_source(str(path), "missing") is None
    with pytest.raises(SourceReadError, match="Error reading"):
        read_source(str(path), "f")


def test_read_source_honours_coding_cookie_and_newlines(tmp_path: Path) -> None:
    path = tmp_path / "latin.py"
    path.write_bytes(b"# -*- coding: latin-1 -*-\r\ndef caf\xe9():\r\n    pass\r\n")

    text = read_source(str(path), "café")
    assert text == "# -*- coding: latin-1 -*-\ndef café():\n    pass\n"


def test_read_source_missing_file_is_a_read_error(tmp_path: Path) -> None:
    with pytest.raises(SourceReadError):
        read_source(str(tmp_path / "gone.py"))


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("hello", "hello"),
        ("^test_.*", "test_"),
        ("handlers?", "handler"),
        ("ab*c", "a"),
        (r"print\(", "print"),
        ("get|set", None),
        (".*", None),
    ],
)
def test_regex_literal_prefix(pattern: str, expected: str | None) -> None:
    assert regex_literal_prefix(pattern) == expected


def test_required_literal_per_mode() -> None:
    assert required_literal(MatchCriterion(MatchCriterion.EXACT, "MyClass.method")) == "method"
    assert required_literal(MatchCriterion(MatchCriterion.REGEX, "h.*")) == "h"
    assert required_literal(MatchCriterion(MatchCriterion.ANCHOR, r"print\(")) == "print"
    assert required_literal(MatchCriterion(MatchCriterion.LIST)) is None


def test_iter_block_names_skips_attributes() -> None:
    names = iter_block_names("def run():\n    return os.path.join(base, name)\n")
    assert "os" in names
    assert "base" in names
    assert "path" not in names
    assert "join" not in names
