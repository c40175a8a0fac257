# /src/querysh/interactive/commands.py

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from ..sql.splitter import Terminator
from .filters import extract_filter_directive

EXIT_COMMANDS = frozenset({"exit", "quit"})
HELP_COMMANDS = frozenset({"help"})
ALLOWED_VERBS = ("select", "show", "explain", "describe", "use")

ONLY_READ_STATEMENTS_MESSAGE = (
    "Only SELECT, SHOW, EXPLAIN, DESCRIBE and USE statements are supported "
    "over the command line client. For other statements, please use the API."
)

_ALLOWED_VERB_RE = re.compile(
    r"\b(" + "|".join(ALLOWED_VERBS) + r")\b", re.IGNORECASE
)


class FirstLineKind(Enum):
    EMPTY = auto()
    EXIT = auto()
    HELP = auto()
    REJECTED = auto()
    STATEMENT = auto()


@dataclass(frozen=True)
class FirstLineDecision:
    """What to do with the first physical line of a new command."""

    kind: FirstLineKind
    line: str = ""
    filter_expression: Optional[str] = None


def strip_terminator(command: str, terminator: str = Terminator.SEMICOLON.value) -> str:
    if command.endswith(terminator):
        return command[: -len(terminator)].strip()
    return command


def is_allowed_statement(command: str) -> bool:
    return _ALLOWED_VERB_RE.search(command) is not None


def inspect_first_line(line: str) -> FirstLineDecision:
    """
    Classifies the first line of a command, in order: meta-command check,
    filter marker split, terminator stripping, allow-list check.
    """
    command = line.strip()
    if not command:
        return FirstLineDecision(FirstLineKind.EMPTY)

    meta = strip_terminator(command).lower()
    if meta in EXIT_COMMANDS:
        return FirstLineDecision(FirstLineKind.EXIT)
    if meta in HELP_COMMANDS:
        return FirstLineDecision(FirstLineKind.HELP)

    filter_expression = None
    directive = extract_filter_directive(command)
    if directive is not None:
        line = command = directive.base_command
        filter_expression = directive.filter_expression

    if not is_allowed_statement(strip_terminator(command)):
        return FirstLineDecision(FirstLineKind.REJECTED)
    return FirstLineDecision(FirstLineKind.STATEMENT, line, filter_expression)
