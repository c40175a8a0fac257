# /src/querysh/interactive/session_changes.py

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

import structlog

from ..sql.parser import ParsedStatement, UseCollection, try_parse_statement
from .session import SessionState

if TYPE_CHECKING:
    from ..execution.executor import Executor

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SessionChange:
    """A statement that switches the active catalog and/or schema locally."""

    catalog: Optional[str] = None
    schema_name: Optional[str] = None

    def apply(self, state: SessionState) -> SessionState:
        # Schema validity depends on the catalog, so a catalog switch
        # always replaces the schema (clearing it when none was named).
        if self.catalog is not None:
            return state.with_catalog(self.catalog, self.schema_name)
        return state.with_schema(self.schema_name)


@dataclass(frozen=True)
class Passthrough:
    """Any statement that must be sent to the backend unchanged."""

    text: str


SessionOutcome = Union[SessionChange, Passthrough]


def classify(parsed: Optional[ParsedStatement], text: str) -> SessionOutcome:
    """
    Decides whether a statement changes client-side session state.

    Detection is purely syntactic: `parsed` is whatever the statement parser
    produced, or None when the text could not be parsed.
    """
    if isinstance(parsed, UseCollection):
        return SessionChange(catalog=parsed.catalog, schema_name=parsed.schema)
    return Passthrough(text)


def apply_session_change(outcome: SessionOutcome, state: SessionState) -> SessionState:
    """Returns the next session. A Passthrough returns `state` itself."""
    if isinstance(outcome, SessionChange):
        new_state = outcome.apply(state)
        logger.debug(
            "session.changed",
            previous=state.describe(),
            current=new_state.describe(),
        )
        return new_state
    if isinstance(outcome, Passthrough):
        return state
    raise TypeError(f"Unknown session outcome: {type(outcome).__name__}")


def bind_session_change(executor: "Executor", text: str) -> Optional["Executor"]:
    """
    Intercepts catalog/schema switches. Returns an executor bound to the new
    session, or None when the statement must go to the backend instead.
    """
    outcome = classify(try_parse_statement(text), text)
    if isinstance(outcome, Passthrough):
        return None
    return executor.bind_session(apply_session_change(outcome, executor.session))
