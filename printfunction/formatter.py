"""Rendering of match results as labelled text blocks."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .extractor import source_block
from .models import FileOutline, MatchResult
from .snippets import Snippet

_MIN_LIST_WIDTH = 40


class OutputFormatter:
    """Turns match results and snippets into the exact bytes written to stdout.

    Rendering depends only on the results and the file text, never on which
    engine produced the candidate list.
    """

    def definition_header(self, path: str, qualname: str, lineno: int) -> str:
        return f"==> {path}:{qualname} (line {lineno}) <=="

    def render_matches(
        self,
        outline: FileOutline,
        results: Sequence[MatchResult],
        *,
        prefix: str = "",
    ) -> str:
        """Render each result as header, source block and a blank separator."""
        chunks: List[str] = []
        for index, result in enumerate(results):
            definition = result.definition
            code = source_block(outline, definition.lineno, definition.end_lineno)
            if index == 0 and prefix:
                code = prefix + code
            header = self.definition_header(outline.path, definition.qualname, definition.lineno)
            chunks.append(f"{header}\n{code}\n\n")
        return "".join(chunks)

    def render_listing(self, path: str, results: Sequence[MatchResult]) -> str:
        """Render a per-file table of qualified names and declaration lines."""
        if not results:
            return ""
        names = [result.definition.qualname for result in results]
        width = max(max(len(name) for name in names) + 4, _MIN_LIST_WIDTH)
        rows = [
            f"{result.definition.qualname:<{width}} line {result.definition.lineno}"
            for result in results
        ]
        return f"==> {path} <==\n" + "\n".join(rows) + "\n\n"

    def render_snippets(self, snippets: Iterable[Snippet]) -> str:
        return "".join(f"{snippet.header}\n{snippet.body}\n\n" for snippet in snippets)


__all__ = ["OutputFormatter"]
