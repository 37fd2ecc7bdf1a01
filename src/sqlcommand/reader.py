"""Forward-only readers handed to executor projections."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Sequence
from typing import Any

from sqlcommand.core.exceptions import ReaderClosedError
from sqlcommand.core.protocols import IAsyncCursor, ICursor
from sqlcommand.core.types import Record, Row


def _columns(description: Sequence[Sequence[Any]] | None) -> list[str]:
    return [col[0] for col in description] if description else []


class DataReader:
    """Forward-only view over the current result set of a cursor.

    Closing the reader runs ``on_close`` once, which releases the command and
    the connection behind it. Any use after close raises ReaderClosedError.
    """

    def __init__(self, cursor: ICursor, on_close: Callable[[], None] | None = None) -> None:
        self._cursor = cursor
        self._on_close = on_close
        self._closed = False
        self._current: Row | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def columns(self) -> list[str]:
        self._check_open()
        return _columns(self._cursor.description)

    @property
    def current(self) -> Row | None:
        """The row returned by the last successful read()."""
        self._check_open()
        return self._current

    def read(self) -> bool:
        """Advance to the next row. Returns False once the set is exhausted."""
        self._check_open()
        if self._cursor.description is None:
            self._current = None
            return False
        self._current = self._cursor.fetchone()
        return self._current is not None

    def __getitem__(self, key: int | str) -> Any:
        row = self.current
        if row is None:
            raise IndexError("No current row; call read() first")
        if isinstance(key, str):
            key = self.columns.index(key)
        return row[key]

    def fetchmany(self, size: int) -> list[Row]:
        self._check_open()
        if self._cursor.description is None:
            return []
        return list(self._cursor.fetchmany(size))

    def fetchall(self) -> list[Row]:
        self._check_open()
        if self._cursor.description is None:
            return []
        return list(self._cursor.fetchall())

    def records(self) -> list[Record]:
        """Remaining rows of the current set as column-name dicts."""
        columns = self.columns
        return [dict(zip(columns, row)) for row in self.fetchall()]

    def next_result(self) -> bool:
        """Move to the next result set, if the batch produced one."""
        self._check_open()
        self._current = None
        return bool(self._cursor.nextset())

    def __iter__(self) -> Iterator[Row]:
        while self.read():
            yield self._current  # type: ignore[misc]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._current = None
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> DataReader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ReaderClosedError("Reader is closed")


class AsyncDataReader:
    """Awaitable counterpart of DataReader."""

    def __init__(self, cursor: IAsyncCursor,
                 on_close: Callable[[], Awaitable[None]] | None = None) -> None:
        self._cursor = cursor
        self._on_close = on_close
        self._closed = False
        self._current: Row | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def columns(self) -> list[str]:
        self._check_open()
        return _columns(self._cursor.description)

    @property
    def current(self) -> Row | None:
        self._check_open()
        return self._current

    async def read(self) -> bool:
        self._check_open()
        if self._cursor.description is None:
            self._current = None
            return False
        self._current = await self._cursor.fetchone()
        return self._current is not None

    def __getitem__(self, key: int | str) -> Any:
        row = self.current
        if row is None:
            raise IndexError("No current row; call read() first")
        if isinstance(key, str):
            key = self.columns.index(key)
        return row[key]

    async def fetchmany(self, size: int) -> list[Row]:
        self._check_open()
        if self._cursor.description is None:
            return []
        return list(await self._cursor.fetchmany(size))

    async def fetchall(self) -> list[Row]:
        self._check_open()
        if self._cursor.description is None:
            return []
        return list(await self._cursor.fetchall())

    async def records(self) -> list[Record]:
        columns = self.columns
        return [dict(zip(columns, row)) for row in await self.fetchall()]

    async def next_result(self) -> bool:
        self._check_open()
        self._current = None
        return bool(await self._cursor.nextset())

    async def __aiter__(self) -> AsyncIterator[Row]:
        while await self.read():
            yield self._current  # type: ignore[misc]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._current = None
        if self._on_close is not None:
            await self._on_close()

    async def __aenter__(self) -> AsyncDataReader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ReaderClosedError("Reader is closed")
