# /src/querysh/interactive/help.py

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .filters import FILTER_MARKER

SUPPORTED_STATEMENTS = [
    ("SELECT ...", "Run a query."),
    ("EXPLAIN [ ( option [, ...] ) ] <query>", "Show the plan of a query."),
    ("DESCRIBE <table>", "List the columns of a table."),
    ("SHOW CATALOGS | SCHEMAS | TABLES [LIKE <pattern>]", "Browse the catalog."),
    ("SHOW COLUMNS FROM <table>", "List the columns of a table."),
    ("SHOW FUNCTIONS", "List the available functions."),
    ("USE [<catalog>.]<schema>", "Switch the active schema (and catalog)."),
    ("USE CATALOG <catalog>", "Switch the active catalog; clears the schema."),
    ("USE SCHEMA <schema>", "Switch the active schema."),
]


def print_help(console: Console):
    """Prints the static help text for the interactive client."""
    console.print()
    statements_table = Table(
        title="[bold cyan]Supported Statements[/bold cyan]",
        box=box.MINIMAL,
        padding=(0, 1),
    )
    statements_table.add_column("Statement", style="yellow", no_wrap=True)
    statements_table.add_column("Description")
    for statement, description in SUPPORTED_STATEMENTS:
        statements_table.add_row(Text(statement), description)
    console.print(statements_table)

    syntax_table = Table(
        title="[bold cyan]Client Syntax[/bold cyan]",
        box=box.MINIMAL,
        padding=(0, 1),
    )
    syntax_table.add_column("Syntax", style="yellow", no_wrap=True)
    syntax_table.add_column("Description")
    syntax_table.add_row("<statement>;", "Run the statement and show an aligned table.")
    syntax_table.add_row("<statement>\\G", "Run the statement and show one record per block.")
    syntax_table.add_row(
        f"<statement> {FILTER_MARKER.upper()} <predicate>",
        "Keep only result rows matching a JMESPath predicate, e.g. age > `30`.",
    )
    syntax_table.add_row("help", "Show this help message.")
    syntax_table.add_row("exit | quit", "Exit the client (Ctrl+D works too).")
    syntax_table.add_row("Ctrl+C", "Discard the statement being typed.")
    console.print(syntax_table)
    console.print()
