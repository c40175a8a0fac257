import asyncio
import io
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from rich.console import Console

from querysh import config, utils
from querysh.errors import ExecutionFailure
from querysh.execution.executor import Executor, OutputMode, QueryHandle
from querysh.interactive.session import SessionState


class RecordingQueryHandle(QueryHandle):
    """A query handle that records what it was asked to render."""

    def __init__(self, executor: "RecordingExecutor", sql: str):
        super().__init__(sql)
        self.executor = executor

    async def start(self):
        if self.sql in self.executor.failing:
            raise ExecutionFailure(f"Query failed: {self.sql}")
        interrupt = self.executor.interrupts.get(self.sql)
        if interrupt is asyncio.CancelledError:
            # What asyncio.run does to the main task on Ctrl+C.
            asyncio.current_task().cancel()
            await asyncio.sleep(0)
        elif interrupt is not None:
            raise interrupt()

    async def render_output(
        self,
        sink: Console,
        output_mode: OutputMode,
        interactive: bool,
        filter_expression: Optional[str] = None,
    ):
        self.executor.calls.append(
            (self.sql, output_mode, interactive, filter_expression, self.executor.session)
        )

    async def close(self):
        self.executor.released.append(self.sql)


class RecordingExecutor(Executor):
    """An executor that never talks to a backend. Rebinding shares the logs."""

    def __init__(
        self, session: SessionState, failing=(), calls=None, released=None, interrupts=None
    ):
        super().__init__(session)
        self.failing = set(failing)
        self.interrupts: Dict[str, type] = dict(interrupts or {})
        self.calls: List[tuple] = calls if calls is not None else []
        self.released: List[str] = released if released is not None else []

    def bind_session(self, session: SessionState) -> "RecordingExecutor":
        return RecordingExecutor(
            session, self.failing, self.calls, self.released, self.interrupts
        )

    def start_query(self, sql: str) -> RecordingQueryHandle:
        return RecordingQueryHandle(self, sql)


@pytest.fixture
def clean_querysh_home(tmp_path: Path, monkeypatch):
    """
    Creates a pristine, isolated querysh home for each test and redirects all
    parts of the application to use it.
    """
    temp_home = tmp_path / ".querysh"
    monkeypatch.setattr(utils, "QUERYSH_HOME", temp_home)
    monkeypatch.setattr(config, "DEFAULT_CONFIG_FILE", temp_home / "config.yaml")
    yield temp_home


@pytest.fixture
def session() -> SessionState:
    return SessionState(catalog="hive", schema_name="default")


@pytest.fixture
def executor(session: SessionState) -> RecordingExecutor:
    return RecordingExecutor(session)


@pytest.fixture
def sink() -> Console:
    """A console that writes plain text into memory."""
    return Console(file=io.StringIO(), width=200, color_system=None)


def sink_text(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture
def read_sink():
    return sink_text


@pytest.fixture
def make_executor(session: SessionState):
    """Builds a recording executor whose listed statements fail or are interrupted."""

    def _make(*failing: str, interrupts=None) -> RecordingExecutor:
        return RecordingExecutor(session, failing=failing, interrupts=interrupts)

    return _make
