# /src/querysh/batch.py

from dataclasses import dataclass
from typing import Optional

import structlog
from rich.console import Console

from .execution.executor import Executor, OutputMode, process
from .interactive.session_changes import bind_session_change
from .sql.splitter import Terminator, split_statements

logger = structlog.get_logger(__name__)


@dataclass
class BatchResult:
    executor: Executor
    succeeded: int = 0
    failed: int = 0


async def run_batch(
    executor: Executor,
    text: str,
    output_mode: OutputMode,
    filter_expression: Optional[str] = None,
    sink: Optional[Console] = None,
) -> BatchResult:
    """
    Runs every statement in `text` once, in order. A failing statement is
    reported and the batch moves on to the next one.
    """
    split = split_statements(text + Terminator.SEMICOLON.value)
    result = BatchResult(executor=executor)
    logger.debug("batch.begin", statements=len(split.complete))

    for statement in split.complete:
        rebound = bind_session_change(result.executor, statement.text)
        if rebound is not None:
            result.executor = rebound
            continue
        if await process(
            result.executor, statement.text, output_mode, False, filter_expression, sink
        ):
            result.succeeded += 1
        else:
            result.failed += 1

    logger.debug("batch.finished", succeeded=result.succeeded, failed=result.failed)
    return result
