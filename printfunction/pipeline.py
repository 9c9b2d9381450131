"""Search pipeline: resolve roots, prefilter, extract, match and render."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .config import PrintFunctionConfig
from .extractor import (
    ParseError,
    StructuralExtractor,
    read_source,
    read_text,
    required_literal,
    split_lines,
)
from .formatter import OutputFormatter
from .imports import IMPORT_NONE, import_prefix, select_imports
from .logging import get_logger
from .matcher import Matcher
from .models import CandidateFile, FileOutline, MatchCriterion, MatchResult
from .outcome import Outcome
from .prefilter import CandidateFilter, select_prefilter
from .roots import TYPE_PY, RootResolver
from .snippets import LineSpec, Snippet, SnippetBuilder


@dataclass
class SearchRequest:
    """Everything the CLI decided about one run."""

    roots: List[str]
    criterion: Optional[MatchCriterion] = None
    line_spec: Optional[LineSpec] = None
    type_filter: str = TYPE_PY
    first_only: bool = False
    context: int = 0
    import_mode: str = IMPORT_NONE


class Pipeline:
    """Runs a :class:`SearchRequest` and reports through an :class:`Outcome`."""

    def __init__(
        self,
        config: PrintFunctionConfig,
        outcome: Outcome,
        *,
        extractor: StructuralExtractor | None = None,
        formatter: OutputFormatter | None = None,
        prefilter: CandidateFilter | None = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ) -> None:
        self.config = config
        self.outcome = outcome
        self.extractor = extractor or StructuralExtractor()
        self.formatter = formatter or OutputFormatter()
        self._prefilter_override = prefilter
        self._which = which
        self.logger = get_logger("pipeline")

    def run(self, request: SearchRequest) -> int:
        """Execute ``request`` and return the process exit code.

        Raises :class:`~printfunction.matcher.CriterionError` before touching
        the filesystem when a pattern does not compile.
        """
        if request.line_spec is not None:
            self._run_line_mode(request, request.line_spec)
            return self.outcome.exit_code()

        criterion = request.criterion
        if criterion is None:
            raise ValueError("a match criterion or a line range is required")
        first_only = request.first_only and criterion.mode != MatchCriterion.LIST
        matcher = Matcher(criterion, first_only=first_only)

        candidates = self._resolve(request.roots, request.type_filter)
        literal = required_literal(criterion)
        candidates = self._narrow(candidates, literal, request.type_filter)
        self.outcome.flush_warnings()

        builder = SnippetBuilder(request.context)
        for discovery_index, candidate in enumerate(candidates):
            try:
                self._search_file(
                    candidate, discovery_index, matcher, literal, request, builder
                )
            except ParseError as exc:
                self.outcome.record_fatal(exc)

        if criterion.mode == MatchCriterion.EXACT and request.type_filter == TYPE_PY:
            self.outcome.suggest_listing()
        return self.outcome.exit_code()

    # ------------------------------------------------------------------
    # Candidate selection

    def _resolve(self, roots: Sequence[str], type_filter: str) -> List[CandidateFile]:
        resolver = RootResolver(type_filter=type_filter, ignore_dirs=self.config.ignore_dirs)
        resolution = resolver.resolve(roots)
        self.outcome.warn_all(resolution.warnings)
        self.logger.debug(
            "Resolved %d root(s) into %d candidate file(s)",
            len(roots),
            len(resolution.candidates),
        )
        return resolution.candidates

    def _narrow(
        self, candidates: List[CandidateFile], literal: Optional[str], type_filter: str
    ) -> List[CandidateFile]:
        # rg given no file arguments would search the working directory.
        if not candidates or literal is None:
            return candidates
        engine = self._prefilter_override or select_prefilter(
            self.config.prefilter,
            type_filter=type_filter,
            literal=literal,
            which=self._which,
        )
        self.logger.debug("Narrowing with %s on literal %r", engine.name, literal)
        result = engine.narrow(literal, candidates)
        self.outcome.warn_all(result.warnings)
        if result.used and self.config.report_rg_usage:
            self.outcome.note_accelerant_used()
        return result.candidates

    # ------------------------------------------------------------------
    # Definition modes

    def _search_file(
        self,
        candidate: CandidateFile,
        discovery_index: int,
        matcher: Matcher,
        literal: Optional[str],
        request: SearchRequest,
        builder: SnippetBuilder,
    ) -> None:
        mode = matcher.criterion.mode
        if not candidate.recognized:
            if mode == MatchCriterion.ANCHOR:
                self._anchor_raw_file(candidate, matcher, literal, builder)
            return

        source = read_source(candidate.path, literal)
        if source is None:
            return
        outline = self.extractor.extract(candidate.path, source)
        definitions = matcher.select(outline)
        results = [
            MatchResult(
                definition=definition,
                order=(candidate.root_index, discovery_index, definition.lineno),
            )
            for definition in definitions
        ]

        if mode == MatchCriterion.LIST:
            self.outcome.emit(
                self.formatter.render_listing(outline.path, results), results=len(results)
            )
            return
        if not results:
            if mode == MatchCriterion.ANCHOR:
                self._anchor_outside_definitions(outline, matcher, builder)
            return

        prefix = import_prefix(
            outline, select_imports(outline, definitions, request.import_mode)
        )
        self.outcome.emit(
            self.formatter.render_matches(outline, results, prefix=prefix),
            results=len(results),
        )

    def _anchor_raw_file(
        self,
        candidate: CandidateFile,
        matcher: Matcher,
        literal: Optional[str],
        builder: SnippetBuilder,
    ) -> None:
        source = read_source(candidate.path, literal)
        if source is None:
            return
        lines = split_lines(source)
        matched = matcher.anchor_lines(lines)
        if matched:
            self._emit_snippets([_padded_at(builder, candidate.path, lines, matched[0])])

    def _anchor_outside_definitions(
        self, outline: FileOutline, matcher: Matcher, builder: SnippetBuilder
    ) -> None:
        matched = matcher.anchor_lines(outline.lines)
        if matched:
            self._emit_snippets([_padded_at(builder, outline.path, outline.lines, matched[0])])

    # ------------------------------------------------------------------
    # Line-range mode

    def _run_line_mode(self, request: SearchRequest, spec: LineSpec) -> None:
        builder = SnippetBuilder(request.context)
        candidates = self._resolve(request.roots, request.type_filter)
        self.outcome.flush_warnings()
        for candidate in candidates:
            try:
                snippet = self._line_snippet(candidate, spec, builder)
            except ParseError as exc:
                self.outcome.record_fatal(exc)
                continue
            self._emit_snippets([snippet])

    def _line_snippet(
        self, candidate: CandidateFile, spec: LineSpec, builder: SnippetBuilder
    ) -> Snippet:
        source = read_text(candidate.path)
        lines = split_lines(source)
        if not spec.smart:
            return builder.plain(candidate.path, lines, spec)
        if not candidate.recognized:
            return builder.padded(candidate.path, lines, spec.start, spec.end)
        outline = self.extractor.extract(candidate.path, source)
        return builder.enclosing(outline, spec)

    def _emit_snippets(self, snippets: Sequence[Snippet]) -> None:
        self.outcome.emit(self.formatter.render_snippets(snippets), results=len(snippets))


def _padded_at(builder: SnippetBuilder, path: str, lines: List[str], lineno: int) -> Snippet:
    return builder.padded(path, lines, lineno, lineno, match_line=lineno)


__all__ = ["Pipeline", "SearchRequest"]
