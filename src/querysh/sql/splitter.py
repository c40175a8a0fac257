# /src/querysh/sql/splitter.py
"""
Statement boundary detection for partially typed SQL.

The splitter never validates SQL. It only needs to know when a terminator
token is "real", which means tracking whether the scanner is inside a string
literal, a quoted identifier or a comment. That tracking is done by a small
explicit lexer (`LexState`) shared with `squeeze`.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union


class Terminator(str, Enum):
    """Tokens that close a statement. VERTICAL requests expanded output."""

    SEMICOLON = ";"
    VERTICAL = "\\G"


DEFAULT_TERMINATORS = frozenset({Terminator.SEMICOLON})
INTERACTIVE_TERMINATORS = frozenset({Terminator.SEMICOLON, Terminator.VERTICAL})


class LexState(Enum):
    NORMAL = auto()
    IN_SINGLE_QUOTE = auto()
    IN_DOUBLE_QUOTE = auto()
    IN_LINE_COMMENT = auto()
    IN_BLOCK_COMMENT = auto()


class LexemeKind(Enum):
    WORD = auto()
    WHITESPACE = auto()
    TERMINATOR = auto()
    STRING = auto()
    QUOTED_IDENTIFIER = auto()
    LINE_COMMENT = auto()
    BLOCK_COMMENT = auto()


@dataclass(frozen=True)
class Lexeme:
    kind: LexemeKind
    text: str


@dataclass(frozen=True)
class Statement:
    """One complete statement and the terminator that closed it."""

    text: str
    terminator: Terminator = Terminator.SEMICOLON


@dataclass(frozen=True)
class SplitResult:
    complete: Tuple[Statement, ...]
    partial: str


# Order matters: two-character openers are checked before single quotes.
_OPENERS = {
    "--": LexState.IN_LINE_COMMENT,
    "/*": LexState.IN_BLOCK_COMMENT,
    "'": LexState.IN_SINGLE_QUOTE,
    '"': LexState.IN_DOUBLE_QUOTE,
}

_CLOSERS = {
    LexState.IN_SINGLE_QUOTE: "'",
    LexState.IN_DOUBLE_QUOTE: '"',
    LexState.IN_LINE_COMMENT: "\n",
    LexState.IN_BLOCK_COMMENT: "*/",
}

_LEXEME_FOR_STATE = {
    LexState.NORMAL: LexemeKind.WORD,
    LexState.IN_SINGLE_QUOTE: LexemeKind.STRING,
    LexState.IN_DOUBLE_QUOTE: LexemeKind.QUOTED_IDENTIFIER,
    LexState.IN_LINE_COMMENT: LexemeKind.LINE_COMMENT,
    LexState.IN_BLOCK_COMMENT: LexemeKind.BLOCK_COMMENT,
}


def _match_prefix(text: str, index: int, candidates: Iterable[str]) -> Optional[str]:
    return next((c for c in candidates if text.startswith(c, index)), None)


def lex(text: str, terminators: Iterable[str] = ()) -> Iterator[Lexeme]:
    """
    Scans `text` into lexemes. Terminators are only recognized in the NORMAL
    state; the longest registered terminator wins at a given position.
    Unclosed quotes or comments run to the end of the input.
    """
    ordered_terminators = sorted(set(terminators), key=len, reverse=True)
    state = LexState.NORMAL
    start = index = 0
    length = len(text)

    while index < length:
        if state is LexState.NORMAL:
            char = text[index]
            terminator = _match_prefix(text, index, ordered_terminators)
            opener = None if terminator else _match_prefix(text, index, _OPENERS)
            if not (char.isspace() or terminator or opener):
                index += 1
                continue

            if start < index:
                yield Lexeme(LexemeKind.WORD, text[start:index])

            if terminator:
                yield Lexeme(LexemeKind.TERMINATOR, terminator)
                index += len(terminator)
            elif opener:
                state = _OPENERS[opener]
                start = index
                index += len(opener)
                continue
            else:
                end = index
                while end < length and text[end].isspace():
                    end += 1
                yield Lexeme(LexemeKind.WHITESPACE, text[index:end])
                index = end
            start = index
            continue

        closer = _CLOSERS[state]
        if state in (LexState.IN_SINGLE_QUOTE, LexState.IN_DOUBLE_QUOTE):
            # A doubled quote is an escape, not the end of the literal.
            if text.startswith(closer * 2, index):
                index += 2
                continue
        if text.startswith(closer, index):
            # The newline that ends a line comment stays in the token stream as whitespace.
            end = index if state is LexState.IN_LINE_COMMENT else index + len(closer)
            yield Lexeme(_LEXEME_FOR_STATE[state], text[start:end])
            state = LexState.NORMAL
            start = index = end
            continue
        index += 1

    if start < length:
        yield Lexeme(_LEXEME_FOR_STATE[state], text[start:])


class StatementSplitter:
    """Partitions text into complete statements plus one trailing partial."""

    def __init__(
        self, terminators: Iterable[Union[str, Terminator]] = DEFAULT_TERMINATORS
    ):
        self.terminators = frozenset(Terminator(t) for t in terminators)
        if not self.terminators:
            raise ValueError("At least one statement terminator is required.")
        self._terminator_tokens: Sequence[str] = [t.value for t in self.terminators]

    def split(self, text: str) -> SplitResult:
        complete = []
        current = []
        for lexeme in lex(text, self._terminator_tokens):
            if lexeme.kind is LexemeKind.TERMINATOR:
                statement_text = "".join(current).strip()
                # Blank statements (e.g. ";;") are no-ops.
                if statement_text:
                    complete.append(Statement(statement_text, Terminator(lexeme.text)))
                current = []
            else:
                current.append(lexeme.text)
        return SplitResult(tuple(complete), "".join(current).strip())


def split_statements(
    text: str, terminators: Iterable[Union[str, Terminator]] = DEFAULT_TERMINATORS
) -> SplitResult:
    return StatementSplitter(terminators).split(text)


def squeeze(text: str) -> str:
    """
    Collapses whitespace runs into single spaces for compact history entries.
    Whitespace inside literals and comments is preserved, and the line break
    that closes a line comment is kept so the statement still means the same.
    """
    parts = []
    previous: Optional[LexemeKind] = None
    for lexeme in lex(text):
        if lexeme.kind is LexemeKind.WHITESPACE:
            parts.append("\n" if previous is LexemeKind.LINE_COMMENT else " ")
        else:
            parts.append(lexeme.text)
        previous = lexeme.kind
    return "".join(parts).strip()
