# /src/querysh/execution/executor.py

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import structlog
from rich.console import Console
from rich.markup import escape
from rich.traceback import Traceback

from ..interactive.session import SessionState

logger = structlog.get_logger(__name__)

# A single, shared console instance for the interactive transcript
console = Console()


class OutputMode(str, Enum):
    ALIGNED = "ALIGNED"
    VERTICAL = "VERTICAL"
    CSV = "CSV"
    TSV = "TSV"
    CSV_HEADER = "CSV_HEADER"
    TSV_HEADER = "TSV_HEADER"


class QueryHandle(ABC):
    """
    One in-flight statement. Use it with `async with`: the handle is released
    exactly once however the block exits, including when starting it fails.
    """

    def __init__(self, sql: str):
        self.sql = sql
        self.released = False

    async def __aenter__(self) -> "QueryHandle":
        try:
            await self.start()
        except BaseException:
            await self.release()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.release()

    async def start(self):
        """Submits the statement. Optional for handles that start lazily."""

    @abstractmethod
    async def render_output(
        self,
        sink: Console,
        output_mode: OutputMode,
        interactive: bool,
        filter_expression: Optional[str] = None,
    ):
        raise NotImplementedError

    async def release(self):
        if self.released:
            return
        self.released = True
        await self.close()

    async def close(self):
        """Frees backend resources. Called once by `release`."""


class Executor(ABC):
    """The contract for anything that can run statements for a session."""

    def __init__(self, session: SessionState):
        self._session = session

    @property
    def session(self) -> SessionState:
        return self._session

    @abstractmethod
    def bind_session(self, session: SessionState) -> "Executor":
        """Returns an executor bound to `session`. The receiver is left untouched."""
        raise NotImplementedError

    @abstractmethod
    def start_query(self, sql: str) -> QueryHandle:
        raise NotImplementedError


async def process(
    executor: Executor,
    sql: str,
    output_mode: OutputMode,
    interactive: bool,
    filter_expression: Optional[str] = None,
    sink: Optional[Console] = None,
) -> bool:
    """
    Runs one statement and renders its output. Failures are reported as a
    single line (plus a traceback when the session has debug enabled) and
    never propagate, so the caller's loop or batch keeps going.
    """
    sink = sink or console
    log = logger.bind(output_mode=output_mode.value, interactive=interactive)
    try:
        async with executor.start_query(sql) as query:
            await query.render_output(sink, output_mode, interactive, filter_expression)
        log.debug("executor.query.finished")
        return True
    except Exception as e:
        log.info("executor.query.failed", error=str(e))
        sink.print(f"[bold red]Error running command:[/bold red] {escape(str(e))}")
        if executor.session.debug:
            sink.print(Traceback.from_exception(type(e), e, e.__traceback__))
        return False
