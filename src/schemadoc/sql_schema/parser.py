"""SQL creation-script parser using sqlglot's tokenizer.

Extracts table and column metadata from CREATE TABLE statements. The script is
lexed with the sqlglot tokenizer of its dialect (quoting, escapes and comments
follow the dialect), then a small explicit-state scanner walks the tokens:

1. seek the ``CREATE TABLE <name> (`` start marker
2. capture the body up to the matching closing parenthesis (depth tracked,
   so ``DECIMAL(10,2)`` never ends the block)
3. match the trailing table options (ENGINE, CHARSET, COMMENT, ...) up to ``;``

Types and defaults are sliced from the source by token offsets, so they keep
their source spelling. Blocks and column lines that do not fit the grammar
are skipped and reported as StructuralAnomaly records instead of failing the
whole source.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import NamedTuple

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

logger = logging.getLogger(__name__)

DEFAULT_DIALECT = "mysql"


@dataclass(frozen=True)
class ParsedColumn:
    """Parsed column definition from CREATE TABLE."""
    name: str
    data_type: str
    nullable: bool = True
    is_primary_key: bool = False
    comment: str = ""
    default: str | None = None  # raw DEFAULT text, diagnostic only


@dataclass(frozen=True)
class ParsedTable:
    """Parsed CREATE TABLE statement."""
    table_name: str
    columns: tuple[ParsedColumn, ...] = ()
    comment: str = ""
    start_line: int = 0
    end_line: int = 0


@dataclass(frozen=True)
class StructuralAnomaly:
    """A table block, column line or whole source that was skipped."""
    kind: str  # "table", "column" or "source"
    line: int
    fragment: str
    reason: str

    def __str__(self) -> str:
        return f"line {self.line}: skipped {self.kind} ({self.reason}): {self.fragment}"


@dataclass(frozen=True)
class ParseResult:
    """Tables found in one source plus everything that was skipped."""
    tables: tuple[ParsedTable, ...] = ()
    anomalies: tuple[StructuralAnomaly, ...] = ()


class _GrammarMismatch(ValueError):
    """A body item that is not a column definition."""


class _Lexeme(NamedTuple):
    kind: str  # "word", "ident", "string", "punct"
    text: str  # raw word, decoded identifier/string, or the punctuation char
    start: int
    end: int  # exclusive
    line: int
    quote: str = ""  # opening delimiter of identifiers and strings


# ============================================================================
# Grammar
# ============================================================================

_PUNCTUATION = {
    TokenType.L_PAREN: "(",
    TokenType.R_PAREN: ")",
    TokenType.L_BRACKET: "[",
    TokenType.R_BRACKET: "]",
    TokenType.COMMA: ",",
    TokenType.SEMICOLON: ";",
    TokenType.EQ: "=",
    TokenType.DOT: ".",
}

# Body items that are table-level clauses rather than column definitions
_STRUCTURAL_WORDS = {"UNIQUE", "KEY", "INDEX", "CONSTRAINT", "FULLTEXT", "SPATIAL", "CHECK"}
_STRUCTURAL_PAIRS = {("PRIMARY", "KEY"), ("FOREIGN", "KEY")}

_BARE_IDENT_RE = re.compile(r"[A-Za-z_][\w$]*")
_TYPE_WORD_RE = re.compile(r"[A-Za-z_]\w*")
_WORD_RE = re.compile(r"\S+")

_TYPE_CONTINUATIONS = {"VARYING", "PRECISION"}
_NUMERIC_ATTRIBUTES = {"UNSIGNED", "SIGNED", "ZEROFILL"}

# Punctuation never separated by a space in a normalized type
_NO_SPACE_BEFORE = {"(", ")", "[", "]", ","}
_NO_SPACE_AFTER = {"(", "["}

_FRAGMENT_LIMIT = 80


# ============================================================================
# Public API
# ============================================================================

def parse_schema(text: str, dialect: str = DEFAULT_DIALECT) -> ParseResult:
    """Parse a schema-definition script.

    Args:
        text: Full content of one SQL creation script
        dialect: sqlglot dialect used to lex the script

    Returns:
        ParseResult with the tables in declaration order and the anomalies
        (skipped blocks and column lines) encountered along the way. A script
        the tokenizer rejects yields no tables and one "source" anomaly.
    """
    try:
        lexemes = _lex(text, dialect)
    except TokenError as e:
        anomaly = _anomaly("source", 1, str(e), "cannot tokenize source")
        logger.warning(f"Structural anomaly at {anomaly}")
        return ParseResult(anomalies=(anomaly,))

    tables: list[ParsedTable] = []
    anomalies: list[StructuralAnomaly] = []

    pos = 0
    while pos < len(lexemes):
        # Seeking block start
        header = _match_header(lexemes, pos)
        if header is None:
            pos += 1
            continue

        table_name, open_idx = header
        create = lexemes[pos]
        marker = text[create.start:lexemes[open_idx].end]

        # Capturing body
        close_idx = _find_closing(lexemes, open_idx)
        if close_idx == -1:
            anomalies.append(_anomaly(
                "table", create.line, marker, "unbalanced parentheses in table body"
            ))
            pos = open_idx + 1
            continue

        # Matching trailing metadata
        terminator = _find_punct(lexemes, ";", close_idx + 1)
        if terminator == -1:
            anomalies.append(_anomaly(
                "table", create.line, marker, "missing statement terminator"
            ))
            pos = open_idx + 1
            continue

        options = _parse_table_options(lexemes[close_idx + 1:terminator])
        if options is None:
            anomalies.append(_anomaly(
                "table", create.line,
                text[lexemes[close_idx].start:lexemes[terminator].end],
                "unrecognized table options"
            ))
            pos = open_idx + 1
            continue

        columns = _decompose(text, lexemes[open_idx + 1:close_idx], anomalies)

        table = ParsedTable(
            table_name=table_name,
            columns=tuple(columns),
            comment=options.get("COMMENT", ""),
            start_line=create.line,
            end_line=lexemes[terminator].line,
        )
        logger.debug(
            f"Parsed table {table.table_name} "
            f"({len(table.columns)} columns, lines {table.start_line}-{table.end_line})"
        )
        tables.append(table)
        pos = terminator + 1

    for anomaly in anomalies:
        logger.warning(f"Structural anomaly at {anomaly}")

    return ParseResult(tables=tuple(tables), anomalies=tuple(anomalies))


def extract_tables(text: str, dialect: str = DEFAULT_DIALECT) -> list[ParsedTable]:
    """Extract all CREATE TABLE declarations from a script, in order."""
    return list(parse_schema(text, dialect).tables)


def decompose_columns(body: str, dialect: str = DEFAULT_DIALECT) -> list[ParsedColumn]:
    """Decompose a captured table body into column records.

    Args:
        body: Text between the parentheses of a CREATE TABLE statement
        dialect: sqlglot dialect used to lex the body

    Returns:
        Columns in source order. Structural clauses (keys, indexes,
        constraints) and lines that do not match the column grammar are
        skipped.

    Raises:
        TokenError: If the body contains unterminated quoted text
    """
    anomalies: list[StructuralAnomaly] = []
    columns = _decompose(body, _lex(body, dialect), anomalies)
    for anomaly in anomalies:
        logger.warning(f"Structural anomaly at {anomaly}")
    return columns


def extract_primary_keys(body: str, dialect: str = DEFAULT_DIALECT) -> set[str]:
    """Extract column names from the first PRIMARY KEY (...) clause.

    Column-level ``PRIMARY KEY`` annotations without an argument list are not
    clauses. Later clauses are ignored.

    Args:
        body: Table body text
        dialect: sqlglot dialect used to lex the body

    Returns:
        Set of primary key column names (empty when there is no clause)

    Raises:
        TokenError: If the body contains unterminated quoted text
    """
    return _primary_keys(_lex(body, dialect))


# ============================================================================
# Lexing
# ============================================================================

def _lex(text: str, dialect: str) -> list[_Lexeme]:
    """Tokenize with sqlglot and flatten the tokens into lexemes.

    Comments are dropped by the tokenizer. Multi-word keyword tokens
    ("PRIMARY KEY", "CHARACTER SET") become one word lexeme per word.
    """
    lexemes = []
    for token in sqlglot.tokenize(text, read=dialect):
        start, end = token.start, token.end + 1
        if token.token_type in _PUNCTUATION:
            lexemes.append(_Lexeme("punct", _PUNCTUATION[token.token_type], start, end, token.line))
        elif token.token_type == TokenType.IDENTIFIER:
            lexemes.append(_Lexeme("ident", token.text, start, end, token.line, text[start]))
        elif token.token_type.name.endswith("STRING"):
            lexemes.append(_Lexeme("string", token.text, start, end, token.line, text[start]))
        else:
            # Keyword token text is upper-cased; keep the source spelling
            for word in _WORD_RE.finditer(text, start, end):
                lexemes.append(_Lexeme("word", word.group(), word.start(), word.end(), token.line))
    return lexemes


def _match_header(lexemes: list[_Lexeme], pos: int) -> tuple[str, int] | None:
    """Match ``CREATE [TEMPORARY] TABLE [IF NOT EXISTS] name (`` at pos.

    Returns:
        Tuple of (unqualified table name, index of the opening parenthesis)
    """
    if _word(lexemes, pos) != "CREATE":
        return None
    idx = pos + 1
    if _word(lexemes, idx) == "OR" and _word(lexemes, idx + 1) == "REPLACE":
        idx += 2
    if _word(lexemes, idx) in ("GLOBAL", "LOCAL"):
        idx += 1
    if _word(lexemes, idx) in ("TEMP", "TEMPORARY"):
        idx += 1
    if _word(lexemes, idx) != "TABLE":
        return None
    idx += 1
    if [_word(lexemes, idx + k) for k in range(3)] == ["IF", "NOT", "EXISTS"]:
        idx += 3

    # Qualified names keep the last part
    name, idx = _read_name(lexemes, idx)
    while name and _is_punct(lexemes, idx, "."):
        name, idx = _read_name(lexemes, idx + 1)

    if not name or not _is_punct(lexemes, idx, "("):
        return None
    return name, idx


# ============================================================================
# Column decomposition
# ============================================================================

def _decompose(
    text: str,
    lexemes: list[_Lexeme],
    anomalies: list[StructuralAnomaly]
) -> list[ParsedColumn]:
    """Decompose a table body, appending skipped lines to anomalies."""
    primary_keys = _primary_keys(lexemes)

    columns = []
    for item in _split_top_level(lexemes):
        if not item or _is_structural(item):
            continue
        try:
            column = _parse_column(text, item, primary_keys)
        except _GrammarMismatch as e:
            fragment = text[item[0].start:item[-1].end]
            anomalies.append(_anomaly("column", item[0].line, fragment, str(e)))
            continue
        columns.append(column)

    return columns


def _is_structural(item: list[_Lexeme]) -> bool:
    first = _word(item, 0)
    return first in _STRUCTURAL_WORDS or (first, _word(item, 1)) in _STRUCTURAL_PAIRS


def _parse_column(
    text: str,
    lexemes: list[_Lexeme],
    primary_keys: set[str]
) -> ParsedColumn:
    """Parse one column definition.

    Raises:
        _GrammarMismatch: If the item does not match the column grammar
    """
    if not _balanced(lexemes):
        raise _GrammarMismatch("unbalanced parentheses")

    name, idx = _read_name(lexemes, 0)
    if not name:
        raise _GrammarMismatch("not a column identifier")

    if not _TYPE_WORD_RE.fullmatch(_word(lexemes, idx)):
        raise _GrammarMismatch("missing column type")

    # Type: base word, continuations, precision, array suffix, numeric attributes
    type_start = idx
    idx += 1
    while _word(lexemes, idx) in _TYPE_CONTINUATIONS:
        idx += 1
    if _is_punct(lexemes, idx, "("):
        idx = _find_closing(lexemes, idx) + 1
    while _is_punct(lexemes, idx, "["):
        close = _find_punct(lexemes, "]", idx + 1)
        if close == -1:
            raise _GrammarMismatch("unbalanced brackets")
        idx = close + 1
    if (
        _word(lexemes, idx) in ("WITH", "WITHOUT")
        and _word(lexemes, idx + 1) == "TIME"
        and _word(lexemes, idx + 2) == "ZONE"
    ):
        idx += 3
    while _word(lexemes, idx) in _NUMERIC_ATTRIBUTES:
        idx += 1
    data_type = _normalize_type(text, lexemes[type_start:idx])

    nullable = True
    default = None
    comment = ""

    while idx < len(lexemes):
        word = _word(lexemes, idx)

        if word == "CHARACTER" and _word(lexemes, idx + 1) == "SET":
            idx += 3  # CHARACTER SET <charset>
        elif word in ("CHARSET", "COLLATE"):
            idx += 2
        elif word == "NOT" and _word(lexemes, idx + 1) == "NULL":
            nullable = False
            idx += 2
        elif word == "DEFAULT" and idx + 1 < len(lexemes):
            value_end = _value_end(lexemes, idx + 1)
            default = text[lexemes[idx + 1].start:lexemes[value_end - 1].end]
            idx = value_end
        elif word == "COMMENT" and idx + 1 < len(lexemes) and lexemes[idx + 1].kind == "string":
            comment = lexemes[idx + 1].text
            idx += 2
        else:
            idx += 1

    return ParsedColumn(
        name=name,
        data_type=data_type,
        nullable=nullable,
        is_primary_key=name in primary_keys,
        comment=comment,
        default=default,
    )


def _value_end(lexemes: list[_Lexeme], idx: int) -> int:
    """Index just past a DEFAULT value: a token, a call or a parenthesized expression."""
    if not _is_punct(lexemes, idx, "("):
        idx += 1
    if _is_punct(lexemes, idx, "("):
        idx = _find_closing(lexemes, idx) + 1
    return idx


def _normalize_type(text: str, lexemes: list[_Lexeme]) -> str:
    """Source text of the type tokens with whitespace collapsed.

    String literals (enum members) are copied verbatim. No space is kept
    inside parentheses and brackets or before a comma.
    """
    parts = []
    previous = None
    for lex in lexemes:
        if previous is not None and previous.end < lex.start:
            tight = (
                (lex.kind == "punct" and lex.text in _NO_SPACE_BEFORE)
                or (previous.kind == "punct" and previous.text in _NO_SPACE_AFTER)
            )
            if not tight:
                parts.append(" ")
        parts.append(text[lex.start:lex.end])
        previous = lex
    return "".join(parts)


def _primary_keys(lexemes: list[_Lexeme]) -> set[str]:
    """Key column names from the first ``PRIMARY KEY [USING x] (...)`` clause."""
    for idx in range(len(lexemes)):
        if _word(lexemes, idx) != "PRIMARY" or _word(lexemes, idx + 1) != "KEY":
            continue
        open_idx = idx + 2
        if _word(lexemes, open_idx) == "USING":
            open_idx += 2
        if not _is_punct(lexemes, open_idx, "("):
            continue

        close_idx = _find_closing(lexemes, open_idx)
        if close_idx == -1:
            return set()

        keys = set()
        for item in _split_top_level(lexemes[open_idx + 1:close_idx]):
            # Prefix lengths and ASC/DESC follow the name
            name, _ = _read_name(item, 0)
            if name:
                keys.add(name)
        return keys

    return set()


# ============================================================================
# Table options
# ============================================================================

def _parse_table_options(lexemes: list[_Lexeme]) -> dict[str, str] | None:
    """Parse table options between the closing parenthesis and ``;``.

    Grammar: keyword sequences with values, ``KEYWORD [=] VALUE``, optionally
    comma separated (``ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COMMENT 'x'``).
    Parenthesized groups, quoted identifiers or stray punctuation make the
    segment unrecognized.

    Returns:
        Dict of option keyword (the word right before the value, upper-case)
        to value, or None when the segment does not fit the grammar
    """
    options: dict[str, str] = {}
    for idx, lex in enumerate(lexemes):
        previous = lexemes[idx - 1] if idx > 0 else None
        following = lexemes[idx + 1] if idx + 1 < len(lexemes) else None

        if lex.kind == "ident":
            return None

        if lex.kind == "punct":
            if lex.text == "=":
                if previous is None or previous.kind != "word":
                    return None
                if following is None or following.kind not in ("word", "string"):
                    return None
                options.setdefault(previous.text.upper(), following.text)
            elif lex.text == ",":
                if previous is None or previous.kind == "punct":
                    return None
            else:
                return None
        elif lex.kind == "string":
            if previous is None or previous.kind == "string":
                return None
            if previous.kind == "word":
                options.setdefault(previous.text.upper(), lex.text)
            elif previous.text != "=":
                return None

    return options


# ============================================================================
# Scanner helpers
# ============================================================================

def _word(lexemes: list[_Lexeme], idx: int) -> str:
    """Upper-case text of a word lexeme, "" for anything else or out of range."""
    if 0 <= idx < len(lexemes) and lexemes[idx].kind == "word":
        return lexemes[idx].text.upper()
    return ""


def _is_punct(lexemes: list[_Lexeme], idx: int, char: str) -> bool:
    return 0 <= idx < len(lexemes) and lexemes[idx].kind == "punct" and lexemes[idx].text == char


def _read_name(lexemes: list[_Lexeme], idx: int) -> tuple[str | None, int]:
    """Read an identifier at idx: quoted, ``[bracketed]`` or bare.

    Returns:
        Tuple of (name or None, index after the name)
    """
    if idx >= len(lexemes):
        return None, idx
    lex = lexemes[idx]
    if lex.kind == "ident":
        return lex.text or None, idx + 1
    # Double-quoted names in dialects where "..." lexes as a string
    if lex.kind == "string" and lex.quote == '"':
        return lex.text or None, idx + 1
    if lex.kind == "word" and _BARE_IDENT_RE.fullmatch(lex.text):
        return lex.text, idx + 1
    if _is_punct(lexemes, idx, "[") and _is_punct(lexemes, idx + 2, "]"):
        inner = lexemes[idx + 1]
        if inner.kind in ("word", "ident"):
            return inner.text, idx + 3
    return None, idx


def _find_closing(lexemes: list[_Lexeme], open_idx: int) -> int:
    """Find the parenthesis that balances the one at ``open_idx``, or -1."""
    depth = 0
    for idx in range(open_idx, len(lexemes)):
        if _is_punct(lexemes, idx, "("):
            depth += 1
        elif _is_punct(lexemes, idx, ")"):
            depth -= 1
            if depth == 0:
                return idx
    return -1


def _find_punct(lexemes: list[_Lexeme], char: str, start: int) -> int:
    for idx in range(start, len(lexemes)):
        if _is_punct(lexemes, idx, char):
            return idx
    return -1


def _balanced(lexemes: list[_Lexeme]) -> bool:
    depth = 0
    for lex in lexemes:
        if lex.kind != "punct":
            continue
        if lex.text == "(":
            depth += 1
        elif lex.text == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _split_top_level(lexemes: list[_Lexeme]) -> list[list[_Lexeme]]:
    """Split lexemes on commas at parenthesis depth zero."""
    items: list[list[_Lexeme]] = [[]]
    depth = 0
    for lex in lexemes:
        if lex.kind == "punct":
            if lex.text == "(":
                depth += 1
            elif lex.text == ")":
                depth -= 1
            elif lex.text == "," and depth == 0:
                items.append([])
                continue
        items[-1].append(lex)
    return items


def _anomaly(kind: str, line: int, fragment: str, reason: str) -> StructuralAnomaly:
    fragment = " ".join(fragment.split())
    if len(fragment) > _FRAGMENT_LIMIT:
        fragment = fragment[:_FRAGMENT_LIMIT - 3] + "..."
    return StructuralAnomaly(kind=kind, line=line, fragment=fragment, reason=reason)
