# /src/querysh/execution/output_handler.py

import csv
import io
from typing import Any, List, Optional, Sequence

import jmespath
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .executor import OutputMode

NULL_DISPLAY = "NULL"


def build_filter_query(filter_expression: str) -> str:
    """A bare predicate becomes a JMESPath filter over the row list."""
    expression = filter_expression.strip()
    if expression.startswith("["):
        return expression
    return f"[?{expression}]"


def apply_filter(
    columns: Sequence[str], rows: Sequence[Sequence[Any]], filter_expression: str
) -> List[Sequence[Any]]:
    """
    Filters result rows with a JMESPath expression. Each row is presented as
    a dict keyed by column name; the expression must yield a list of rows.
    """
    records = [dict(zip(columns, row)) for row in rows]
    filtered = jmespath.search(build_filter_query(filter_expression), records)
    if not isinstance(filtered, list) or not all(isinstance(r, dict) for r in filtered):
        raise ValueError(
            f"Filter expression '{filter_expression}' must produce a list of rows."
        )
    return [tuple(record.get(c) for c in columns) for record in filtered]


def _display(value: Any) -> str:
    return NULL_DISPLAY if value is None else str(value)


def _render_aligned(sink: Console, columns: Sequence[str], rows, interactive: bool):
    table = Table(box=box.SIMPLE_HEAD if interactive else box.ASCII, show_edge=False)
    for column in columns:
        table.add_column(Text(str(column)), overflow="fold")
    for row in rows:
        table.add_row(*(Text(_display(value)) for value in row))
    sink.print(table)
    count = len(rows)
    sink.print(f"({count} row{'' if count == 1 else 's'})")


def _render_vertical(sink: Console, columns: Sequence[str], rows):
    width = max((len(str(c)) for c in columns), default=0)
    for number, row in enumerate(rows, start=1):
        sink.print(Text(f"-[ RECORD {number} ]-" + "-" * max(width - 8, 0)))
        for column, value in zip(columns, row):
            sink.print(Text(f"{str(column).ljust(width)} | {_display(value)}"))
    if not rows:
        sink.print("(0 rows)")


def _render_delimited(sink: Console, columns, rows, output_mode: OutputMode):
    delimiter = "\t" if output_mode in (OutputMode.TSV, OutputMode.TSV_HEADER) else ","
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")
    if output_mode in (OutputMode.CSV_HEADER, OutputMode.TSV_HEADER):
        writer.writerow(columns)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    # Written to the raw stream: rich would expand the tabs in TSV rows.
    sink.file.write(buffer.getvalue())
    sink.file.flush()


def render_rows(
    sink: Console,
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    output_mode: OutputMode,
    interactive: bool,
    filter_expression: Optional[str] = None,
):
    if filter_expression:
        rows = apply_filter(columns, rows, filter_expression)

    if output_mode is OutputMode.VERTICAL:
        _render_vertical(sink, columns, rows)
    elif output_mode is OutputMode.ALIGNED:
        _render_aligned(sink, columns, rows, interactive)
    else:
        _render_delimited(sink, columns, rows, output_mode)


def render_update_count(sink: Console, rowcount: int, interactive: bool):
    if interactive:
        sink.print(f"[bold green]✓[/bold green] {max(rowcount, 0)} row(s) affected")
