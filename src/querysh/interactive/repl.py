# /src/querysh/interactive/repl.py

import asyncio
from enum import Enum, auto
from typing import Optional

import structlog
from rich.console import Console

from ..execution.executor import Executor, OutputMode, console, process
from ..sql.splitter import (
    INTERACTIVE_TERMINATORS,
    Statement,
    StatementSplitter,
    Terminator,
    squeeze,
)
from .commands import ONLY_READ_STATEMENTS_MESSAGE, FirstLineKind, inspect_first_line
from .help import print_help
from .line_source import LineSource, ReadResult
from .session import SessionState
from .session_changes import bind_session_change

logger = structlog.get_logger(__name__)

PROMPT_NAME = "querysh"


class ReplState(Enum):
    AWAITING_FIRST_LINE = auto()
    AWAITING_CONTINUATION = auto()
    TERMINATED = auto()


def continuation_label(prompt_name: str) -> str:
    """Same width as the primary label, signalling an unfinished statement."""
    return " " * (len(prompt_name) - 1) + "-"


class ReplEngine:
    """
    The interactive loop. Turns lines from a LineSource into statements,
    intercepts catalog/schema switches and sends everything else to the
    executor, one statement at a time.
    """

    def __init__(
        self,
        line_source: LineSource,
        executor: Executor,
        sink: Optional[Console] = None,
        prompt_name: str = PROMPT_NAME,
    ):
        self.line_source = line_source
        self.executor = executor
        self.sink = sink or console
        self.prompt_name = prompt_name
        self.splitter = StatementSplitter(INTERACTIVE_TERMINATORS)
        self.buffer = ""
        self.filter_expression: Optional[str] = None
        self.state = ReplState.AWAITING_FIRST_LINE

    @property
    def session(self) -> SessionState:
        return self.executor.session

    @property
    def prompt(self) -> str:
        if self.state is ReplState.AWAITING_CONTINUATION:
            return continuation_label(self.prompt_name) + "> "
        return self.prompt_name + "> "

    async def run(self):
        while self.state is not ReplState.TERMINATED:
            result = await self.line_source.read_line(self.prompt)
            await self.handle(result)
        logger.debug("repl.terminated")

    async def handle(self, result: ReadResult):
        if result.interrupted:
            self.discard_buffer()
        elif result.eof:
            self.state = ReplState.TERMINATED
        else:
            await self.handle_line(result.line)

    def discard_buffer(self):
        """Saves the unfinished statement to history and starts over."""
        partial = squeeze(self.buffer)
        if partial:
            self.line_source.append_history(partial)
        self.buffer = ""
        self.state = ReplState.AWAITING_FIRST_LINE

    async def handle_line(self, line: str):
        # Meta-commands and filter directives only exist on the first line.
        if not self.buffer:
            self.filter_expression = None
            decision = inspect_first_line(line)
            if decision.kind is FirstLineKind.EMPTY:
                return
            if decision.kind is FirstLineKind.EXIT:
                self.state = ReplState.TERMINATED
                return
            if decision.kind is FirstLineKind.HELP:
                print_help(self.sink)
                return
            if decision.kind is FirstLineKind.REJECTED:
                self.sink.print(ONLY_READ_STATEMENTS_MESSAGE)
                return
            line = decision.line
            self.filter_expression = decision.filter_expression

        self.buffer += line + "\n"
        split = self.splitter.split(self.buffer)
        for statement in split.complete:
            if not await self.dispatch(statement):
                # An aborted query drops whatever else was typed with it.
                self.buffer = ""
                self.state = ReplState.AWAITING_FIRST_LINE
                return

        self.buffer = split.partial + "\n" if split.partial else ""
        self.state = (
            ReplState.AWAITING_CONTINUATION if self.buffer else ReplState.AWAITING_FIRST_LINE
        )

    async def dispatch(self, statement: Statement) -> bool:
        """Runs one statement. Returns False when the user interrupted it."""
        log = logger.bind(terminator=statement.terminator.value)
        try:
            rebound = bind_session_change(self.executor, statement.text)
            if rebound is not None:
                self.executor = rebound
                log.debug("repl.session.switched", session=self.session.describe())
                return True

            output_mode = OutputMode.ALIGNED
            if statement.terminator is Terminator.VERTICAL:
                output_mode = OutputMode.VERTICAL
            log.debug("repl.statement.dispatch", output_mode=output_mode.value)
            await process(
                self.executor,
                statement.text,
                output_mode,
                True,
                self.filter_expression,
                self.sink,
            )
            return True
        except (asyncio.CancelledError, KeyboardInterrupt):
            # Ctrl+C under asyncio.run cancels the main task; undo that and keep reading.
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                task.uncancel()
            log.info("repl.statement.aborted")
            self.sink.print("[bold yellow]Query aborted by user.[/bold yellow]")
            return False
        finally:
            self.line_source.append_history(
                squeeze(statement.text) + statement.terminator.value
            )
