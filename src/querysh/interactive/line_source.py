# /src/querysh/interactive/line_source.py

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import structlog
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, History, InMemoryHistory
from rich.console import Console

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReadResult:
    """The outcome of one read: a line, an interrupt, or end of input."""

    line: Optional[str] = None
    interrupted: bool = False

    @property
    def eof(self) -> bool:
        return self.line is None and not self.interrupted


class LineSource(ABC):
    """
    The contract between the REPL and whatever supplies input lines.
    Interrupts are reported as a result, never raised.
    """

    @abstractmethod
    async def read_line(self, prompt: str) -> ReadResult:
        raise NotImplementedError

    @abstractmethod
    def append_history(self, entry: str):
        raise NotImplementedError


def open_history(path: Path, console: Optional[Console] = None) -> History:
    """
    Opens the persistent history file. If it cannot be used, warns once and
    falls back to a history that only lives for this session.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)
        with open(path, "a", encoding="utf-8"):
            pass
        return FileHistory(str(path))
    except OSError as e:
        logger.warning("history.file.unavailable", path=str(path), error=str(e))
        (console or Console(stderr=True)).print(
            f"[bold yellow]WARNING:[/bold yellow] Failed to load history file ({path}): {e}. "
            "History will not be available during this session."
        )
        return InMemoryHistory()


class StatementHistory(History):
    """
    A history that only records what the REPL appends explicitly.

    prompt_toolkit appends every accepted line on its own; multi-line
    statements are instead recorded once, squeezed, when they are dispatched.
    """

    def __init__(self, backing: History):
        super().__init__()
        self.backing = backing

    def load_history_strings(self) -> Iterable[str]:
        yield from self.backing.load_history_strings()

    def store_string(self, string: str):
        self.backing.store_string(string)

    def append_string(self, string: str):
        pass

    def append_statement(self, string: str):
        super().append_string(string)


class PromptToolkitLineSource(LineSource):
    """Reads lines from the terminal using a prompt_toolkit PromptSession."""

    def __init__(self, history: History, **prompt_kwargs):
        self.history = StatementHistory(history)
        self.prompt_session = PromptSession(history=self.history, **prompt_kwargs)

    async def read_line(self, prompt: str) -> ReadResult:
        try:
            line = await self.prompt_session.prompt_async(prompt)
        except KeyboardInterrupt:
            return ReadResult(interrupted=True)
        except EOFError:
            return ReadResult()
        return ReadResult(line=line)

    def append_history(self, entry: str):
        try:
            self.history.append_statement(entry)
        except OSError as e:
            # Warn once; the rest of the session keeps its history in memory.
            logger.warning("history.append.failed", error=str(e))
            self.history.backing = InMemoryHistory()


class ScriptedLineSource(LineSource):
    """
    Feeds a fixed sequence of lines, e.g. from a test or a pipe.
    A `None` entry is delivered as an interrupt; running out of lines is EOF.
    """

    def __init__(self, lines: Iterable[Optional[str]]):
        self._lines = list(lines)
        self.prompts: List[str] = []
        self.history: List[str] = []

    async def read_line(self, prompt: str) -> ReadResult:
        self.prompts.append(prompt)
        if not self._lines:
            return ReadResult()
        line = self._lines.pop(0)
        if line is None:
            return ReadResult(interrupted=True)
        return ReadResult(line=line)

    def append_history(self, entry: str):
        self.history.append(entry)
