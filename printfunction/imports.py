"""Selection of import statements printed ahead of extracted definitions."""

from __future__ import annotations

from typing import List, Sequence, Set

from .extractor import iter_block_names, source_block
from .models import Definition, FileOutline, ImportStatement

IMPORT_NONE = "none"
IMPORT_ALL = "all"
IMPORT_USED = "used"
IMPORT_MODES = (IMPORT_NONE, IMPORT_ALL, IMPORT_USED)

_SEPARATOR = "#" * 20


def select_imports(
    outline: FileOutline, definitions: Sequence[Definition], mode: str
) -> List[ImportStatement]:
    """Return module- and class-level imports relevant to ``definitions``."""
    if mode == IMPORT_NONE or not definitions:
        return []
    if mode == IMPORT_ALL:
        return list(outline.imports)

    used: Set[str] = set()
    for definition in definitions:
        text = source_block(outline, definition.lineno, definition.end_lineno)
        used.update(iter_block_names(text))
    return [
        statement
        for statement in outline.imports
        if "*" in statement.bound_names or used.intersection(statement.bound_names)
    ]


def import_prefix(outline: FileOutline, statements: Sequence[ImportStatement]) -> str:
    """Render ``statements`` followed by the separator used before the first block."""
    if not statements:
        return ""
    rendered = "\n".join(
        source_block(outline, statement.lineno, statement.end_lineno).rstrip()
        for statement in statements
    )
    return f"{rendered}\n\n{_SEPARATOR}\n\n"


__all__ = [
    "IMPORT_ALL",
    "IMPORT_MODES",
    "IMPORT_NONE",
    "IMPORT_USED",
    "import_prefix",
    "select_imports",
]
