import asyncio
import functools
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
import typer
from rich.console import Console
from rich.traceback import Traceback

# --- Local Application Imports ---
from querysh.batch import run_batch
from querysh.config import RunMode, build_client_options, parse_session_properties
from querysh.execution.executor import OutputMode
from querysh.execution.sqlalchemy_executor import SqlAlchemyExecutor
from querysh.interactive.filters import extract_filter_directive
from querysh.interactive.main import start_repl
from querysh.state import APP_STATE


def setup_logging(verbose: bool):
    """
    Configures structlog for the entire application.
    - Default level: WARNING (keeps the query transcript clean)
    - Verbose level: DEBUG (for power users)
    - All logs are routed to stderr to keep stdout clean for piping.
    """
    log_level = logging.DEBUG if verbose else logging.WARNING

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    root_logger = logging.getLogger()
    handler = logging.StreamHandler(sys.stderr)
    # We don't need a formatter because ConsoleRenderer does it all
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
    # Clear any other handlers that might have been added by libraries
    for handler in root_logger.handlers[:]:
        if getattr(handler, "stream", None) is not sys.stderr:
            root_logger.removeHandler(handler)


def handle_exceptions(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        console = Console(stderr=True)
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            if APP_STATE.verbose_mode:
                console.print(
                    Traceback.from_exception(
                        type(e), e, e.__traceback__, show_locals=True
                    )
                )
            raise typer.Exit(code=1)

    return wrapper


# --- Main Application Definition ---
app = typer.Typer(
    name="querysh",
    help="An interactive command-line client for SQL query backends.",
    no_args_is_help=False,
    rich_markup_mode="markdown",
)


@app.command()
@handle_exceptions
def main(
    server: Optional[str] = typer.Option(
        None, "--server", help="SQLAlchemy URL of the default database."
    ),
    catalog: Optional[str] = typer.Option(None, "--catalog", help="Initial catalog."),
    schema: Optional[str] = typer.Option(None, "--schema", help="Initial schema."),
    user: Optional[str] = typer.Option(None, "--user", help="Username."),
    source: Optional[str] = typer.Option(None, "--source", help="Name of the client."),
    session: Optional[List[str]] = typer.Option(
        None, "--session", help="Session property (key=value). Repeatable."
    ),
    execute: Optional[str] = typer.Option(
        None, "--execute", "-e", help="Execute the statement(s) and exit."
    ),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Execute the statements in a file and exit."
    ),
    output_format: Optional[OutputMode] = typer.Option(
        None,
        "--output-format",
        case_sensitive=False,
        help="Output format for batch mode (default: CSV).",
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Show full diagnostics for failed statements."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose DEBUG logging."
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path to the YAML config file."
    ),
    history_file: Optional[Path] = typer.Option(
        None, "--history-file", help="Where to keep the interactive history."
    ),
):
    """
    Runs statements against a query backend: interactively, from `--execute`,
    or from `--file`.
    """
    APP_STATE.verbose_mode = verbose or debug
    setup_logging(APP_STATE.verbose_mode)

    options = build_client_options(
        config,
        server=server,
        catalog=catalog,
        schema_name=schema,
        user=user,
        source=source,
        session_properties=parse_session_properties(session) or None,
        execute=execute,
        file=file,
        output_format=output_format,
        debug=debug or None,
        history_file=history_file,
    )

    # Conflicting modes are fatal before anything connects.
    mode = options.resolve_mode()
    if mode is RunMode.INTERACTIVE:
        start_repl(options)
        return

    query = options.read_query()
    filter_expression = None
    directive = extract_filter_directive(query) if mode is RunMode.EXECUTE else None
    if directive is not None:
        query = directive.base_command
        filter_expression = directive.filter_expression

    executor = SqlAlchemyExecutor(options.to_session_state(), options.catalogs)
    result = asyncio.run(
        run_batch(executor, query, options.output_format, filter_expression)
    )
    if result.failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
