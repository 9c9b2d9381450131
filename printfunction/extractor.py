"""Indentation-aware extraction of function, method and class blocks.

The extractor works on logical lines produced by the standard tokenizer, so a
multi-line signature, a bracketed continuation or a triple-quoted string all
belong to the logical line that opened them. Block boundaries are then decided
purely by indentation: a ``def`` owns every following logical line that is
indented deeper than itself, and interior blank or comment lines come along
because they sit between those logical lines.
Compound statements (``if``, ``for``, ``try`` and friends) are tracked the same
way, with their ``elif``/``else``/``except``/``finally`` clauses folded in, so a
line range can resolve to the statement around it.

Only the boundary and ownership rules are enforced. A handful of structural
checks (tokenizer failures, unexpected indents, headers without a body) turn a
file into a :class:`ParseError`; anything subtler is left to Python itself.
"""

from __future__ import annotations

import io
import re
import tokenize
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from .logging import get_logger
from .models import (
    ClassScope,
    CompoundBlock,
    Definition,
    FileOutline,
    ImportStatement,
    MatchCriterion,
)

logger = get_logger("extractor")

_SKIPPED_TOKENS = frozenset(
    {tokenize.COMMENT, tokenize.NL, tokenize.ENCODING, tokenize.DEDENT}
)
_OPENERS = frozenset("([{")
_CLOSERS = frozenset(")]}")
_COMPOUND_KEYWORDS = frozenset({"if", "for", "while", "with", "try"})
_CLAUSE_KEYWORDS = frozenset({"elif", "else", "except", "finally"})

# Characters that end the literal prefix of a regular expression.
_REGEX_META = frozenset(".^$*+?{}[]\\|()")
_OPTIONAL_QUANTIFIERS = frozenset("?*{")


class ParseError(Exception):
    """Raised when a file that must be parsed is structurally malformed."""

    verb = "parsing"

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"Error {self.verb} {path}: {message}")
        self.path = path
        self.message = message


class SourceReadError(ParseError):
    """Raised when a required file cannot be read or decoded."""

    verb = "reading"


@dataclass
class _LogicalLine:
    start: int
    end: int
    indent: int
    indented: bool
    tokens: List[tokenize.TokenInfo]

    def first(self, offset: int = 0) -> Optional[tokenize.TokenInfo]:
        return self.tokens[offset] if offset < len(self.tokens) else None

    def starts_with(self, *words: str) -> bool:
        if len(self.tokens) < len(words):
            return False
        return all(
            tok.type == tokenize.NAME and tok.string == word
            for tok, word in zip(self.tokens, words)
        )

    def ends_with_colon(self) -> bool:
        last = self.tokens[-1]
        return last.type == tokenize.OP and last.string == ":"


@dataclass
class _OpenBlock:
    kind: str
    name: str
    indent: int
    lineno: int
    is_async: bool = False
    qualname: str = ""
    end: int = 0


def required_literal(criterion: MatchCriterion) -> Optional[str]:
    """Return a substring every file able to match ``criterion`` must contain.

    ``None`` means nothing can be ruled out and every candidate must be parsed.
    """
    pattern = criterion.pattern
    if not pattern:
        return None
    if criterion.mode == MatchCriterion.EXACT:
        return pattern.rsplit(".", 1)[-1] or None
    if criterion.mode in (MatchCriterion.REGEX, MatchCriterion.ANCHOR):
        return regex_literal_prefix(pattern)
    if criterion.mode == MatchCriterion.LIST and not criterion.list_filter_is_regex:
        return pattern.rsplit(".", 1)[-1] or None
    if criterion.mode == MatchCriterion.LIST:
        return regex_literal_prefix(pattern)
    return None


def regex_literal_prefix(pattern: str) -> Optional[str]:
    """Return the literal text a regex must match at its start, if provable.

    Conservative: alternation, inline flags and escapes stop the scan, and a
    trailing character made optional by a quantifier is dropped.
    """
    if "|" in pattern:
        return None
    body = pattern[1:] if pattern.startswith("^") else pattern
    literal: List[str] = []
    for char in body:
        if char in _REGEX_META:
            if char in _OPTIONAL_QUANTIFIERS and literal:
                literal.pop()
            break
        literal.append(char)
    text = "".join(literal)
    return text or None


def read_source(path: str, literal: Optional[str] = None) -> Optional[str]:
    """Read and decode ``path``; ``None`` when ``literal`` cannot occur in it.

    The literal check runs on the raw bytes for ASCII literals so a file the
    fast path skips is never decoded, and therefore never fails.
    """
    data = _read_bytes(path)
    if literal is not None and literal.isascii() and literal.encode("ascii") not in data:
        return None

    text = _decode(path, data)
    if literal is not None and literal not in text:
        return None
    return text


def read_text(path: str) -> str:
    """Read and decode ``path`` unconditionally."""
    return _decode(path, _read_bytes(path))


def _read_bytes(path: str) -> bytes:
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except OSError as exc:
        raise SourceReadError(path, exc.strerror or str(exc)) from exc


def _decode(path: str, data: bytes) -> str:
    try:
        encoding, _ = tokenize.detect_encoding(io.BytesIO(data).readline)
        text = data.decode(encoding)
    except (SyntaxError, LookupError, UnicodeDecodeError) as exc:
        raise SourceReadError(path, str(exc)) from exc
    # Universal newlines, as tokenize.open() would produce.
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(source: str) -> List[str]:
    return io.StringIO(source).readlines()


class StructuralExtractor:
    """Derives definitions, class scopes and imports from Python source text."""

    def extract(self, path: str, source: str) -> FileOutline:
        lines = split_lines(source)
        logical = self._logical_lines(path, source, lines)
        self._check_blocks(path, logical)
        outline = FileOutline(path=path, lines=lines)
        self._collect(path, logical, outline)
        logger.debug(
            "%s: %d definition(s), %d class(es)",
            path,
            len(outline.definitions),
            len(outline.classes),
        )
        return outline

    # ------------------------------------------------------------------
    # Tokenizing

    def _logical_lines(
        self, path: str, source: str, lines: List[str]
    ) -> List[_LogicalLine]:
        logical: List[_LogicalLine] = []
        current: List[tokenize.TokenInfo] = []
        pending_indent = False
        try:
            for tok in _joined_names(tokenize.generate_tokens(io.StringIO(source).readline)):
                if tok.type in _SKIPPED_TOKENS:
                    continue
                if tok.type == tokenize.INDENT:
                    pending_indent = True
                    continue
                if tok.type == tokenize.ERRORTOKEN and tok.string.strip():
                    raise ParseError(
                        path, f"invalid token {tok.string!r} (line {tok.start[0]})"
                    )
                if tok.type in (tokenize.NEWLINE, tokenize.ENDMARKER):
                    if current:
                        logical.append(self._make_line(lines, current, pending_indent))
                        current = []
                        pending_indent = False
                    continue
                if tok.type == tokenize.ERRORTOKEN:
                    continue
                current.append(tok)
        except tokenize.TokenError as exc:
            message = exc.args[0] if exc.args else "tokenize error"
            row = exc.args[1][0] if len(exc.args) > 1 else None
            suffix = f" (line {row})" if row else ""
            raise ParseError(path, f"{message}{suffix}") from exc
        except SyntaxError as exc:
            raise ParseError(path, f"{exc.msg} (line {exc.lineno})") from exc
        if current:
            logical.append(self._make_line(lines, current, pending_indent))
        return logical

    @staticmethod
    def _make_line(
        lines: List[str], tokens: List[tokenize.TokenInfo], indented: bool
    ) -> _LogicalLine:
        start = tokens[0].start[0]
        physical = lines[start - 1] if start - 1 < len(lines) else ""
        expanded = physical.expandtabs(8)
        indent = len(expanded) - len(expanded.lstrip(" \t\f"))
        return _LogicalLine(
            start=start,
            end=tokens[-1].end[0],
            indent=indent,
            indented=indented,
            tokens=list(tokens),
        )

    # ------------------------------------------------------------------
    # Structural checks

    def _check_blocks(self, path: str, logical: List[_LogicalLine]) -> None:
        previous: Optional[_LogicalLine] = None
        for line in logical:
            opens_block = previous is not None and previous.ends_with_colon()
            if line.indented and not opens_block:
                raise ParseError(path, f"unexpected indent (line {line.start})")
            if opens_block and not line.indented:
                raise ParseError(
                    path,
                    f"expected an indented block after line {previous.start} (line {line.start})",
                )
            previous = line
        if previous is not None and previous.ends_with_colon():
            raise ParseError(
                path, f"expected an indented block after line {previous.start}"
            )

    # ------------------------------------------------------------------
    # Block collection

    def _collect(self, path: str, logical: List[_LogicalLine], outline: FileOutline) -> None:
        stack: List[_OpenBlock] = []
        closed: List[_OpenBlock] = []
        previous_end = 0

        for line in logical:
            clause = _is_clause(line)
            while stack and not _stays_open(stack[-1], line, clause):
                block = stack.pop()
                block.end = previous_end
                closed.append(block)
            if clause and stack and stack[-1].indent == line.indent:
                # elif/else/except/finally extend the statement they follow.
                previous_end = line.end
                continue

            block = self._open_block(path, line, stack)
            if block is not None:
                stack.append(block)
            elif not any(open_block.kind == "def" for open_block in stack):
                statement = _import_statement(line)
                if statement is not None:
                    outline.imports.append(statement)
            previous_end = line.end

        while stack:
            block = stack.pop()
            block.end = previous_end
            closed.append(block)

        closed.sort(key=lambda block: block.lineno)
        for block in closed:
            if block.kind == "block":
                outline.blocks.append(
                    CompoundBlock(keyword=block.name, lineno=block.lineno, end_lineno=block.end)
                )
            elif block.kind == "class":
                outline.classes.append(
                    ClassScope(name=block.name, lineno=block.lineno, end_lineno=block.end)
                )
            else:
                outline.definitions.append(
                    Definition(
                        name=block.name,
                        qualname=block.qualname,
                        lineno=block.lineno,
                        end_lineno=block.end,
                        is_async=block.is_async,
                        path=path,
                    )
                )

    def _open_block(
        self, path: str, line: _LogicalLine, stack: List[_OpenBlock]
    ) -> Optional[_OpenBlock]:
        is_async = line.starts_with("async", "def")
        offset = 1 if is_async else 0
        keyword = line.first(offset)
        if keyword is None or keyword.type != tokenize.NAME:
            return None
        if keyword.string not in ("def", "class"):
            return _compound_block(line)

        name_token = line.first(offset + 1)
        if name_token is None or name_token.type != tokenize.NAME:
            raise ParseError(
                path, f"expected a name after '{keyword.string}' (line {line.start})"
            )
        if not _has_header_colon(line.tokens[offset + 2 :]):
            raise ParseError(
                path, f"expected ':' in '{keyword.string}' header (line {line.start})"
            )

        name = name_token.string
        if keyword.string == "class":
            return _OpenBlock(kind="class", name=name, indent=line.indent, lineno=line.start)

        return _OpenBlock(
            kind="def",
            name=name,
            indent=line.indent,
            lineno=line.start,
            is_async=is_async,
            qualname=_qualify(name, stack),
        )


def _compound_block(line: _LogicalLine) -> Optional[_OpenBlock]:
    keyword = line.first(1) if line.starts_with("async") else line.first()
    if keyword is None or keyword.type != tokenize.NAME:
        return None
    if keyword.string in _COMPOUND_KEYWORDS or (
        keyword.string == "match" and line.ends_with_colon() and len(line.tokens) > 2
    ):
        return _OpenBlock(kind="block", name=keyword.string, indent=line.indent, lineno=line.start)
    return None


def _is_clause(line: _LogicalLine) -> bool:
    first = line.tokens[0]
    return first.type == tokenize.NAME and first.string in _CLAUSE_KEYWORDS


def _stays_open(block: _OpenBlock, line: _LogicalLine, clause: bool) -> bool:
    """A block stays open for deeper lines and for its own ``else``-style clauses."""
    if block.indent < line.indent:
        return True
    return clause and block.kind == "block" and block.indent == line.indent


def _joined_names(tokens: Iterable[tokenize.TokenInfo]) -> Iterator[tokenize.TokenInfo]:
    """Re-join identifiers the pure-Python tokenizer splits at combining marks.

    Characters such as Hebrew niqqud or a Devanagari virama are valid inside an
    identifier but fall outside the tokenizer's \\w, so they arrive as
    ``ERRORTOKEN`` pieces between ``NAME`` fragments.
    """
    pending: Optional[tokenize.TokenInfo] = None
    for tok in tokens:
        if tok.type == tokenize.ERRORTOKEN and tok.string.isidentifier():
            tok = tok._replace(type=tokenize.NAME)
        if pending is not None and _continues_name(pending, tok):
            pending = pending._replace(string=pending.string + tok.string, end=tok.end)
            continue
        if pending is not None:
            yield pending
        pending = tok
    if pending is not None:
        yield pending


def _continues_name(previous: tokenize.TokenInfo, tok: tokenize.TokenInfo) -> bool:
    if previous.type != tokenize.NAME or previous.end != tok.start:
        return False
    if tok.type == tokenize.NAME:
        return True
    return tok.type == tokenize.ERRORTOKEN and ("a" + tok.string).isidentifier()


def _qualify(name: str, stack: Iterable[_OpenBlock]) -> str:
    """Prefix ``name`` with the classes directly enclosing it."""
    owners: List[str] = []
    for block in reversed(list(stack)):
        if block.kind == "block":
            continue
        if block.kind != "class":
            break
        owners.append(block.name)
    if not owners:
        return name
    return ".".join(list(reversed(owners)) + [name])


def _has_header_colon(tokens: Iterable[tokenize.TokenInfo]) -> bool:
    depth = 0
    for tok in tokens:
        if tok.type != tokenize.OP:
            continue
        if tok.string in _OPENERS:
            depth += 1
        elif tok.string in _CLOSERS:
            depth -= 1
        elif tok.string == ":" and depth == 0:
            return True
    return False


def _import_statement(line: _LogicalLine) -> Optional[ImportStatement]:
    if line.starts_with("import"):
        items = line.tokens[1:]
        names = [_bound_name(item, dotted_root=True) for item in _split_commas(items)]
    elif line.starts_with("from"):
        index = next(
            (
                i
                for i, tok in enumerate(line.tokens)
                if tok.type == tokenize.NAME and tok.string == "import"
            ),
            None,
        )
        if index is None:
            return None
        items = [
            tok
            for tok in line.tokens[index + 1 :]
            if not (tok.type == tokenize.OP and tok.string in "()")
        ]
        names = [_bound_name(item, dotted_root=False) for item in _split_commas(items)]
    else:
        return None
    bound = tuple(name for name in names if name)
    return ImportStatement(lineno=line.start, end_lineno=line.end, bound_names=bound)


def _split_commas(tokens: List[tokenize.TokenInfo]) -> List[List[tokenize.TokenInfo]]:
    groups: List[List[tokenize.TokenInfo]] = [[]]
    for tok in tokens:
        if tok.type == tokenize.OP and tok.string == ",":
            groups.append([])
        else:
            groups[-1].append(tok)
    return [group for group in groups if group]


def _bound_name(item: List[tokenize.TokenInfo], *, dotted_root: bool) -> str:
    words = [tok.string for tok in item]
    if "as" in words:
        position = len(words) - 1 - words[::-1].index("as")
        return words[position + 1] if position + 1 < len(words) else ""
    if words == ["*"]:
        return "*"
    if dotted_root:
        return words[0]
    return words[0] if len(words) == 1 else words[-1]


def source_block(outline: FileOutline, start: int, end: int) -> str:
    """Return lines ``start..end`` (1-based, inclusive) without trailing newlines."""
    return "".join(outline.lines[start - 1 : end]).rstrip("\n")


def iter_block_names(text: str) -> Tuple[str, ...]:
    """Return identifiers referenced in ``text``, skipping attribute names."""
    names: List[str] = []
    previous: Optional[tokenize.TokenInfo] = None
    try:
        for tok in _joined_names(tokenize.generate_tokens(io.StringIO(text).readline)):
            if tok.type == tokenize.NAME and not (
                previous is not None and previous.type == tokenize.OP and previous.string == "."
            ):
                names.append(tok.string)
            if tok.type not in (tokenize.NL, tokenize.COMMENT):
                previous = tok
    except (tokenize.TokenError, SyntaxError):
        # A block cut from a valid file tokenizes; fall back to a word scan.
        names = re.findall(r"(?<![\w.])[A-Za-z_]\w*", text)
    return tuple(names)


__all__ = [
    "ParseError",
    "SourceReadError",
    "StructuralExtractor",
    "iter_block_names",
    "read_source",
    "read_text",
    "regex_literal_prefix",
    "required_literal",
    "source_block",
    "split_lines",
]
