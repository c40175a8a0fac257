import pytest

from querysh.execution.executor import OutputMode, process
from querysh.interactive.session import SessionState


@pytest.mark.asyncio
async def test_successful_statement_is_rendered_and_released(executor, sink):
    ok = await process(executor, "select 1", OutputMode.ALIGNED, True, "a > `1`", sink)

    assert ok is True
    assert executor.calls == [
        ("select 1", OutputMode.ALIGNED, True, "a > `1`", executor.session)
    ]
    assert executor.released == ["select 1"]


@pytest.mark.asyncio
async def test_failure_is_reported_on_one_line(make_executor, sink, read_sink):
    executor = make_executor("select 1")

    ok = await process(executor, "select 1", OutputMode.ALIGNED, True, sink=sink)

    assert ok is False
    assert read_sink(sink).strip() == "Error running command: Query failed: select 1"
    assert executor.released == ["select 1"]


@pytest.mark.asyncio
async def test_debug_session_shows_traceback(make_executor, sink, read_sink):
    executor = make_executor("select 1").bind_session(SessionState(debug=True))

    await process(executor, "select 1", OutputMode.ALIGNED, False, sink=sink)

    assert "Traceback" in read_sink(sink)


@pytest.mark.asyncio
async def test_render_failure_still_releases(executor, sink, mocker):
    handle = executor.start_query("select 1")
    mocker.patch.object(executor, "start_query", return_value=handle)
    mocker.patch.object(handle, "render_output", side_effect=RuntimeError("broken pipe"))

    ok = await process(executor, "select 1", OutputMode.CSV, False, sink=sink)

    assert ok is False
    assert handle.released
    assert executor.released == ["select 1"]


@pytest.mark.asyncio
async def test_release_is_idempotent(executor):
    handle = executor.start_query("select 1")

    await handle.release()
    await handle.release()

    assert executor.released == ["select 1"]
