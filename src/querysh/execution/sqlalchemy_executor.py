# /src/querysh/execution/sqlalchemy_executor.py

from typing import Any, Dict, List, Optional, Sequence

import structlog
from rich.console import Console
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from ..errors import ConfigurationError, ExecutionFailure
from ..interactive.session import SessionState
from .executor import Executor, OutputMode, QueryHandle
from .output_handler import render_rows, render_update_count

logger = structlog.get_logger(__name__)

SEARCH_PATH_DIALECTS = frozenset({"postgresql"})


class SqlAlchemyExecutor(Executor):
    """
    Runs statements against any SQLAlchemy-compatible database through its
    asyncio interface. The session's catalog selects a database URL from the
    configured catalog map; the server URL is the fallback.
    """

    def __init__(self, session: SessionState, catalogs: Optional[Dict[str, str]] = None):
        super().__init__(session)
        self.catalogs = dict(catalogs or {})

    def bind_session(self, session: SessionState) -> "SqlAlchemyExecutor":
        return SqlAlchemyExecutor(session, self.catalogs)

    def connection_url(self) -> URL:
        catalog = self.session.catalog
        raw_url = self.catalogs.get(catalog) if catalog else None
        if raw_url is None:
            raw_url = self.session.properties.get("server")
            if catalog:
                logger.debug("executor.catalog.unmapped", catalog=catalog)
        if not raw_url:
            raise ConfigurationError(
                "No database URL configured. Pass --server or add a catalog to the config file."
            )
        url = make_url(raw_url)
        user = self.session.properties.get("user")
        # File-based backends such as SQLite reject credentials in the URL.
        if user and url.host and not url.username:
            url = url.set(username=user)
        return url

    def start_query(self, sql: str) -> "SqlAlchemyQueryHandle":
        return SqlAlchemyQueryHandle(self, sql)


class SqlAlchemyQueryHandle(QueryHandle):
    """Executes one statement on its own engine and buffers the result."""

    def __init__(self, executor: SqlAlchemyExecutor, sql: str):
        super().__init__(sql)
        self.executor = executor
        self.columns: Optional[List[str]] = None
        self.rows: List[Sequence[Any]] = []
        self.rowcount: int = -1
        self._engine: Optional[AsyncEngine] = None
        self._connection: Optional[AsyncConnection] = None

    async def start(self):
        url = self.executor.connection_url()
        log = logger.bind(dialect=url.get_backend_name())
        log.debug("sqlalchemy.query.begin", statement=self.sql)
        try:
            self._engine = create_async_engine(url)
            self._connection = await self._engine.connect()
            await self._apply_schema()
            result = await self._connection.exec_driver_sql(self.sql)
            if result.returns_rows:
                self.columns = list(result.keys())
                self.rows = [tuple(row) for row in result.fetchall()]
                log.debug("sqlalchemy.query.success", row_count=len(self.rows))
            else:
                self.rowcount = result.rowcount
                log.debug("sqlalchemy.query.success_no_rows", row_count=self.rowcount)
            await self._connection.commit()
        except SQLAlchemyError as e:
            original_exc = getattr(e, "orig", None) or e
            log.info("sqlalchemy.query.failed", error=str(original_exc))
            raise ExecutionFailure(str(original_exc)) from e

    async def _apply_schema(self):
        schema_name = self.executor.session.schema_name
        if not schema_name:
            return
        dialect = self._engine.dialect
        if dialect.name not in SEARCH_PATH_DIALECTS:
            logger.debug("sqlalchemy.schema.ignored", dialect=dialect.name, schema=schema_name)
            return
        quoted = dialect.identifier_preparer.quote(schema_name)
        await self._connection.exec_driver_sql(f"SET search_path TO {quoted}")

    async def render_output(
        self,
        sink: Console,
        output_mode: OutputMode,
        interactive: bool,
        filter_expression: Optional[str] = None,
    ):
        if self.columns is None:
            render_update_count(sink, self.rowcount, interactive)
            return
        render_rows(sink, self.columns, self.rows, output_mode, interactive, filter_expression)

    async def close(self):
        try:
            if self._connection is not None:
                await self._connection.close()
        finally:
            if self._engine is not None:
                await self._engine.dispose()
                logger.debug("sqlalchemy.engine.disposed")
