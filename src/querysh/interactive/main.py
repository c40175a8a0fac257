# /src/querysh/interactive/main.py

import asyncio

from ..config import ClientOptions
from ..execution.executor import console
from ..execution.sqlalchemy_executor import SqlAlchemyExecutor
from .line_source import PromptToolkitLineSource, open_history
from .repl import ReplEngine


def start_repl(options: ClientOptions):
    """Starts the main Read-Eval-Print-Loop (REPL) for the interactive client."""
    history = open_history(options.history_file, console)
    executor = SqlAlchemyExecutor(options.to_session_state(), options.catalogs)
    line_source = PromptToolkitLineSource(history)
    engine = ReplEngine(line_source, executor, console)

    console.print("Welcome to querysh (Interactive Mode)!")
    console.print(
        f"Session: [cyan]{engine.session.describe()}[/cyan]. "
        "Type 'help' for help, 'exit' or Ctrl+D to quit."
    )
    asyncio.run(engine.run())
    print("Exiting querysh. Goodbye!")
