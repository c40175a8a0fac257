# /src/querysh/sql/parser.py

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Union

import structlog
from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from ..errors import StatementParseError
from ..utils import get_grammar_path

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UseCollection:
    """
    `USE ...` in any of its forms. `catalog` is only set when the statement
    names a catalog; `schema` is None for `USE CATALOG x`.
    """

    catalog: Optional[str] = None
    schema: Optional[str] = None


@dataclass(frozen=True)
class QueryStatement:
    """Any other recognized statement. The client treats it as opaque text."""

    verb: str
    text: str


ParsedStatement = Union[UseCollection, QueryStatement]


def _unquote_identifier(token) -> str:
    value = str(token)
    if token.type == "QUOTED_IDENTIFIER":
        return value[1:-1].replace('""', '"')
    return value


@v_args(inline=True)
class StatementTransformer(Transformer):
    """Transforms the Lark parse tree into parsed statement values."""

    def __init__(self, text: str):
        super().__init__()
        self.text = text

    def start(self, statement):
        return statement

    def identifier(self, token):
        return _unquote_identifier(token)

    def use_catalog(self, _use, _catalog, name):
        return UseCollection(catalog=name)

    def use_schema(self, _use, *items):
        return UseCollection(schema=items[-1])

    def use_qualified(self, _use, catalog, schema):
        return UseCollection(catalog=catalog, schema=schema)

    def query(self, verb, rest=None):
        return QueryStatement(verb=str(verb).upper(), text=self.text)


@lru_cache(maxsize=1)
def get_parser() -> Lark:
    grammar_path = get_grammar_path("statement.lark")
    with open(grammar_path, "r", encoding="utf-8") as f:
        return Lark(f.read(), start="start", parser="lalr")


def parse_statement(text: str) -> ParsedStatement:
    """
    Parses one complete statement (without its terminator).

    Raises:
        StatementParseError: if the text is not a form the client recognizes.
    """
    try:
        tree = get_parser().parse(text)
        return StatementTransformer(text).transform(tree)
    except LarkError as e:
        raise StatementParseError(f"Could not parse statement: {e}") from e


def try_parse_statement(text: str) -> Optional[ParsedStatement]:
    """Like `parse_statement`, but returns None instead of raising."""
    try:
        return parse_statement(text)
    except StatementParseError as e:
        logger.debug("parser.statement.unparsed", statement=text, error=str(e))
        return None
