"""In-memory drivers for unit tests — scripted results, recorded calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class MemoryResultSet:
    """One result set. ``columns=None`` models a statement with no rows (e.g. a rowcount)."""

    columns: list[str] | None
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    @property
    def description(self) -> list[tuple[Any, ...]] | None:
        if self.columns is None:
            return None
        return [(name, None, None, None, None, None, True) for name in self.columns]


class _MemoryDriverBase:
    """Shared scripting and bookkeeping for the sync and async fakes."""

    def __init__(self) -> None:
        self._results: list[tuple[str, list[MemoryResultSet]]] = []
        self._failures: dict[str, BaseException] = {}
        self.events: list[tuple[str, Any]] = []
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.input_sizes: list[list[Any]] = []
        self.connections: list[Any] = []
        self.connection_strings: list[str] = []

    # ---- scripting ----

    def set_result(self, sql_contains: str, *result_sets: MemoryResultSet) -> None:
        """Return ``result_sets`` for SQL containing ``sql_contains`` (last match wins)."""
        self._results.append((sql_contains, list(result_sets)))

    def set_rows(self, sql_contains: str, columns: list[str], rows: list[tuple[Any, ...]]) -> None:
        self.set_result(sql_contains, MemoryResultSet(columns, list(rows)))

    def set_scalar(self, sql_contains: str, value: Any) -> None:
        self.set_rows(sql_contains, [""], [(value,)])

    def set_return_value(self, sql_contains: str, value: Any) -> None:
        """Script a non-query batch: a rowcount-only set, then @ReturnValue."""
        self.set_result(
            sql_contains,
            MemoryResultSet(None),
            MemoryResultSet(["ReturnValue"], [(value,)]),
        )

    def fail_on(self, stage: str, exc: BaseException) -> None:
        """Raise ``exc`` at ``stage``: connect, cursor, execute, or fetch."""
        self._failures[stage] = exc

    # ---- inspection ----

    @property
    def cursors(self) -> list[Any]:
        return [cur for conn in self.connections for cur in conn.cursors]

    @property
    def last_sql(self) -> str:
        return self.executed[-1][0]

    @property
    def last_args(self) -> tuple[Any, ...]:
        return self.executed[-1][1]

    # ---- internals ----

    def _maybe_fail(self, stage: str) -> None:
        exc = self._failures.get(stage)
        if exc is not None:
            raise exc

    def _result_for(self, sql: str) -> list[MemoryResultSet]:
        for needle, result_sets in reversed(self._results):
            if needle in sql:
                return [MemoryResultSet(rs.columns, list(rs.rows)) for rs in result_sets]
        return [MemoryResultSet(None)]


class _CursorState:
    def __init__(self, driver: _MemoryDriverBase) -> None:
        self._driver = driver
        self._sets: list[MemoryResultSet] = []
        self._position = 0
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    @property
    def description(self) -> list[tuple[Any, ...]] | None:
        current = self._current()
        return current.description if current else None

    def _current(self) -> MemoryResultSet | None:
        if self._position < len(self._sets):
            return self._sets[self._position]
        return None

    def _check(self) -> None:
        if self.closed:
            raise RuntimeError("Attempt to use a closed cursor.")

    def _setinputsizes(self, sizes: list[Any]) -> None:
        self._check()
        self._driver.input_sizes.append(list(sizes))
        self._driver.events.append(("setinputsizes", id(self)))

    def _execute(self, sql: str, params: tuple[Any, ...]) -> None:
        self._check()
        self._driver.events.append(("execute", sql))
        self._driver.executed.append((sql, params))
        self._driver._maybe_fail("execute")
        self._sets = self._driver._result_for(sql)
        self._position = 0

    def _take(self, size: int | None) -> list[tuple[Any, ...]]:
        self._check()
        self._driver._maybe_fail("fetch")
        current = self._current()
        if current is None or current.columns is None:
            raise RuntimeError("No results. Previous SQL was not a query.")
        count = len(current.rows) if size is None else size
        taken, current.rows = current.rows[:count], current.rows[count:]
        return taken

    def _nextset(self) -> bool:
        self._check()
        self._position += 1
        return self._position < len(self._sets)

    def _close(self) -> None:
        self.close_count += 1
        self._driver.events.append(("close_cursor", id(self)))


class MemoryCursor(_CursorState):
    """ICursor fake."""

    def setinputsizes(self, sizes: list[Any]) -> None:
        self._setinputsizes(sizes)

    def execute(self, sql: str, *params: Any) -> MemoryCursor:
        self._execute(sql, params)
        return self

    def fetchone(self) -> tuple[Any, ...] | None:
        rows = self._take(1)
        return rows[0] if rows else None

    def fetchmany(self, size: int) -> list[tuple[Any, ...]]:
        return self._take(size)

    def fetchall(self) -> list[tuple[Any, ...]]:
        return self._take(None)

    def nextset(self) -> bool:
        return self._nextset()

    def close(self) -> None:
        self._close()


class MemoryAsyncCursor(_CursorState):
    """IAsyncCursor fake."""

    async def setinputsizes(self, sizes: list[Any]) -> None:
        self._setinputsizes(sizes)

    async def execute(self, sql: str, *params: Any) -> MemoryAsyncCursor:
        self._execute(sql, params)
        return self

    async def fetchone(self) -> tuple[Any, ...] | None:
        rows = self._take(1)
        return rows[0] if rows else None

    async def fetchmany(self, size: int) -> list[tuple[Any, ...]]:
        return self._take(size)

    async def fetchall(self) -> list[tuple[Any, ...]]:
        return self._take(None)

    async def nextset(self) -> bool:
        return self._nextset()

    async def close(self) -> None:
        self._close()


class _ConnectionState:
    def __init__(self, driver: _MemoryDriverBase, autocommit: bool, timeout: int) -> None:
        self._driver = driver
        self.autocommit = autocommit
        self.timeout = timeout
        self.cursors: list[Any] = []
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def _open_cursor(self, cursor_cls: type) -> Any:
        if self.closed:
            raise RuntimeError("Attempt to use a closed connection.")
        self._driver._maybe_fail("cursor")
        cursor = cursor_cls(self._driver)
        self.cursors.append(cursor)
        self._driver.events.append(("cursor", id(cursor)))
        return cursor

    def _close(self) -> None:
        self.close_count += 1
        self._driver.events.append(("close_connection", id(self)))


class MemoryConnection(_ConnectionState):
    """IConnection fake."""

    def cursor(self) -> MemoryCursor:
        return self._open_cursor(MemoryCursor)

    def close(self) -> None:
        self._close()


class MemoryAsyncConnection(_ConnectionState):
    """IAsyncConnection fake."""

    async def cursor(self) -> MemoryAsyncCursor:
        return self._open_cursor(MemoryAsyncCursor)

    async def close(self) -> None:
        self._close()


class MemoryDriver(_MemoryDriverBase):
    """Scripted IDriver for unit tests."""

    def connect(self, connection_string: str, *, autocommit: bool = True,
                timeout: int = 0) -> MemoryConnection:
        self._maybe_fail("connect")
        connection = MemoryConnection(self, autocommit, timeout)
        self.connections.append(connection)
        self.connection_strings.append(connection_string)
        self.events.append(("connect", id(connection)))
        return connection


class MemoryAsyncDriver(_MemoryDriverBase):
    """Scripted IAsyncDriver for unit tests."""

    async def connect(self, connection_string: str, *, autocommit: bool = True,
                      timeout: int = 0) -> MemoryAsyncConnection:
        self._maybe_fail("connect")
        connection = MemoryAsyncConnection(self, autocommit, timeout)
        self.connections.append(connection)
        self.connection_strings.append(connection_string)
        self.events.append(("connect", id(connection)))
        return connection
