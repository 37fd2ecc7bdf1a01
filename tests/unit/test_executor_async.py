"""Unit tests for the async SqlCommandExecutor variants."""

from __future__ import annotations

import asyncio

import pytest

from sqlcommand.core.exceptions import (
    MissingReturnValueError,
    ReaderClosedError,
    ScalarCastError,
)
from sqlcommand.models.parameters import CommandType, SqlDbType, SqlParameter
from sqlcommand.sql.tsql import INPUT_SIZES
from tests.fakes import MemoryAsyncDriver, MemoryDriver, MemoryResultSet


def _script(driver) -> None:
    # last match wins, so the broadest needle goes first
    driver.set_rows("FROM plans", ["plan_id", "freq"], [("ACME", "W"), ("INITECH", "M")])
    driver.set_return_value("dbo.Archive", 4)
    driver.set_scalar("COUNT", 12)


def _assert_released_once(driver: MemoryAsyncDriver) -> None:
    assert driver.connections
    assert all(conn.close_count == 1 for conn in driver.connections)
    assert all(cur.close_count == 1 for cur in driver.cursors)


class TestExecuteScalarAsync:
    @pytest.mark.asyncio
    async def test_returns_typed_value(self, executor, async_driver):
        _script(async_driver)
        result = await executor.execute_scalar_async(
            int, "SELECT COUNT(*) FROM plans WHERE freq = @freq", None, SqlParameter("freq", "W"),
        )
        assert result == 12
        assert async_driver.last_sql == "SELECT COUNT(*) FROM plans WHERE freq = ?"
        assert async_driver.last_args == ("W",)
        _assert_released_once(async_driver)

    @pytest.mark.asyncio
    async def test_cast_failure(self, executor, async_driver):
        async_driver.set_scalar("SELECT", "twelve")
        with pytest.raises(ScalarCastError):
            await executor.execute_scalar_async(int, "SELECT 'twelve'")
        _assert_released_once(async_driver)

    @pytest.mark.asyncio
    async def test_nullable(self, executor, async_driver):
        async_driver.set_scalar("SELECT", None)
        assert await executor.execute_scalar_async(int, "SELECT NULL", nullable=True) is None


class TestExecuteNonQueryAsync:
    @pytest.mark.asyncio
    async def test_returns_return_value(self, executor, async_driver):
        _script(async_driver)
        result = await executor.execute_non_query_async(
            "dbo.Archive", SqlParameter("days", 30), command_type=CommandType.STORED_PROCEDURE,
        )
        assert result == 4
        assert async_driver.last_args == (30,)
        _assert_released_once(async_driver)

    @pytest.mark.asyncio
    async def test_missing_return_value(self, executor, async_driver):
        async_driver.set_result("DELETE", MemoryResultSet(["ReturnValue"], [(None,)]))
        with pytest.raises(MissingReturnValueError):
            await executor.execute_non_query_async("DELETE FROM t")
        _assert_released_once(async_driver)

    @pytest.mark.asyncio
    async def test_declared_types_reach_the_cursor(self, executor, async_driver):
        async_driver.set_return_value("dbo.SaveBlob", 0)
        await executor.execute_non_query_async(
            "dbo.SaveBlob",
            SqlParameter("id", 1),
            SqlParameter("blob", None, db_type=SqlDbType.VARBINARY),
            command_type=CommandType.STORED_PROCEDURE,
        )
        assert async_driver.input_sizes == [[None, INPUT_SIZES[SqlDbType.VARBINARY]]]
        events = [event for event, _ in async_driver.events]
        assert events.index("setinputsizes") == events.index("execute") - 1


class TestExecuteReaderAsync:
    @pytest.mark.asyncio
    async def test_awaits_projection(self, executor, async_driver):
        _script(async_driver)
        seen = []

        async def projection(reader):
            seen.append(reader)
            return [row async for row in reader]

        result = await executor.execute_reader_async("SELECT * FROM plans", [], projection)
        assert result == [("ACME", "W"), ("INITECH", "M")]
        assert seen[0].closed
        with pytest.raises(ReaderClosedError):
            await seen[0].read()
        _assert_released_once(async_driver)

    @pytest.mark.asyncio
    async def test_projection_error_releases(self, executor, async_driver):
        _script(async_driver)

        async def projection(reader):
            await reader.read()
            raise KeyError("freq")

        with pytest.raises(KeyError):
            await executor.execute_reader_async("SELECT * FROM plans", [], projection)
        _assert_released_once(async_driver)


@pytest.mark.asyncio
@pytest.mark.parametrize("stage", ["connect", "cursor", "execute"])
async def test_failure_propagates_and_releases(executor, async_driver, stage):
    error = RuntimeError(f"{stage} failed")
    async_driver.fail_on(stage, error)
    with pytest.raises(RuntimeError) as excinfo:
        await executor.execute_non_query_async("dbo.Archive")
    assert excinfo.value is error
    assert all(conn.close_count == 1 for conn in async_driver.connections)
    assert all(cur.close_count == 1 for cur in async_driver.cursors)


@pytest.mark.asyncio
async def test_async_matches_sync(settings):
    from sqlcommand.executor import SqlCommandExecutor

    sync_driver, async_driver = MemoryDriver(), MemoryAsyncDriver()
    _script(sync_driver)
    _script(async_driver)
    executor = SqlCommandExecutor(settings, driver=sync_driver, async_driver=async_driver)
    param = SqlParameter("freq", "W")

    assert await executor.execute_scalar_async(int, "SELECT COUNT(*) FROM plans", param) == \
        executor.execute_scalar(int, "SELECT COUNT(*) FROM plans", param)
    assert await executor.execute_non_query_async("dbo.Archive", param) == \
        executor.execute_non_query("dbo.Archive", param)

    async def records(reader):
        return await reader.records()

    assert await executor.execute_reader_async("SELECT * FROM plans", [param], records) == \
        executor.execute_reader("SELECT * FROM plans", [param], lambda r: r.records())
    assert async_driver.executed == sync_driver.executed
    assert [e for e, _ in async_driver.events] == [e for e, _ in sync_driver.events]


@pytest.mark.asyncio
async def test_concurrent_calls_use_separate_connections(executor, async_driver):
    _script(async_driver)
    results = await asyncio.gather(*(
        executor.execute_scalar_async(int, "SELECT COUNT(*) FROM plans") for _ in range(5)
    ))
    assert results == [12] * 5
    assert len(async_driver.connections) == 5
    _assert_released_once(async_driver)
