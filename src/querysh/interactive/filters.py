# /src/querysh/interactive/filters.py

import re
from dataclasses import dataclass
from typing import Optional

from ..sql.splitter import Terminator

FILTER_MARKER = "filter with"

_FILTER_MARKER_RE = re.compile(re.escape(FILTER_MARKER), re.IGNORECASE)


@dataclass(frozen=True)
class FilterDirective:
    """`<base command> FILTER WITH <expression>` split into its two halves."""

    base_command: str
    filter_expression: str


def extract_filter_directive(
    line: str, terminator: str = Terminator.SEMICOLON.value
) -> Optional[FilterDirective]:
    """
    Looks for the inline filter marker on the first line of a command.

    The base command is cut at its own first terminator and re-terminated
    exactly once, so it always reaches the splitter as a single complete
    statement. The expression keeps its case; surrounding whitespace and
    trailing terminators are dropped.
    """
    match = _FILTER_MARKER_RE.search(line)
    if match is None:
        return None

    base = line[: match.start()].split(terminator, 1)[0].strip()
    expression = line[match.end() :].strip()
    while expression.endswith(terminator):
        expression = expression[: -len(terminator)].rstrip()

    return FilterDirective(base_command=base + terminator, filter_expression=expression)
