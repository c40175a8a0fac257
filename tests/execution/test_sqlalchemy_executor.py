import pytest

from querysh.config import ClientOptions
from querysh.errors import ConfigurationError
from querysh.execution.executor import OutputMode, process
from querysh.execution.sqlalchemy_executor import SqlAlchemyExecutor
from querysh.interactive.session import SessionState


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def sqlite_executor(db_url):
    return SqlAlchemyExecutor(SessionState(properties={"server": db_url}))


@pytest.mark.asyncio
async def test_statements_run_against_sqlite(sqlite_executor, sink, read_sink):
    for sql in [
        "create table users (id integer, name text)",
        "insert into users values (1, 'alice'), (2, 'bob')",
    ]:
        assert await process(sqlite_executor, sql, OutputMode.CSV, False, sink=sink)

    ok = await process(
        sqlite_executor,
        "select id, name from users order by id",
        OutputMode.CSV_HEADER,
        False,
        sink=sink,
    )

    assert ok is True
    assert read_sink(sink) == "id,name\n1,alice\n2,bob\n"


@pytest.mark.asyncio
async def test_semicolon_and_colon_inside_literals(sqlite_executor, sink, read_sink):
    await process(sqlite_executor, "select 'a;b:c' as v", OutputMode.CSV, False, sink=sink)

    assert read_sink(sink) == "a;b:c\n"


@pytest.mark.asyncio
async def test_backend_error_is_reported_and_engine_released(sqlite_executor, sink, read_sink):
    handle = sqlite_executor.start_query("select * from missing_table")

    with pytest.raises(Exception, match="missing_table"):
        async with handle:
            pass

    assert handle.released
    ok = await process(sqlite_executor, "select * from missing_table", OutputMode.ALIGNED, True, sink=sink)
    assert ok is False
    assert "Error running command:" in read_sink(sink)


def test_catalog_selects_configured_url(db_url):
    session = SessionState(catalog="sales", properties={"server": "sqlite+aiosqlite://"})
    executor = SqlAlchemyExecutor(session, catalogs={"sales": db_url})

    assert executor.connection_url().render_as_string() == db_url
    unmapped = executor.bind_session(session.with_catalog("other"))
    assert unmapped.connection_url().render_as_string() == "sqlite+aiosqlite://"
    assert unmapped.catalogs == {"sales": db_url}


def test_user_is_added_to_url_without_credentials():
    session = SessionState(
        properties={"server": "postgresql+asyncpg://db.internal/warehouse", "user": "alice"}
    )

    url = SqlAlchemyExecutor(session).connection_url()

    assert url.username == "alice"
    assert url.database == "warehouse"


def test_missing_url_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        SqlAlchemyExecutor(SessionState()).connection_url()


def test_bind_session_leaves_original_untouched(sqlite_executor):
    rebound = sqlite_executor.bind_session(sqlite_executor.session.with_schema("web"))

    assert rebound is not sqlite_executor
    assert sqlite_executor.session.schema_name is None
    assert rebound.session.schema_name == "web"


@pytest.mark.asyncio
async def test_default_user_is_not_added_to_sqlite_url(db_url, sink, read_sink):
    """The OS user is always set; file databases must still connect."""
    options = ClientOptions(server=db_url)
    executor = SqlAlchemyExecutor(options.to_session_state())

    assert executor.connection_url().username is None
    assert executor.connection_url().render_as_string() == db_url
    assert await process(executor, "select 1 as one", OutputMode.CSV, False, sink=sink)
    assert read_sink(sink) == "1\n"
