"""SqlCommandExecutor: scoped scalar, non-query, and reader execution.

Every operation follows the same order, sync and async alike: open the
connection, open a cursor, build the Command through the setup strategy,
execute, consume the result, then release cursor and connection. Release is
driven by an exit stack, so it happens exactly once on every exit path.
Driver and projection errors are not caught.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import AsyncExitStack, ExitStack
from typing import Any, TypeVar, overload

from sqlcommand.command_setup import DefaultCommandSetup
from sqlcommand.core.config import AppSettings, ConnectionSettings
from sqlcommand.core.exceptions import MissingReturnValueError, ScalarCastError
from sqlcommand.core.protocols import (
    IAsyncCursor,
    IAsyncDriver,
    ICommandSetup,
    ICursor,
    IDriver,
)
from sqlcommand.core.types import AsyncProjection, Parameters, Projection
from sqlcommand.models.parameters import Command, CommandType, SqlParameter
from sqlcommand.reader import AsyncDataReader, DataReader
from sqlcommand.sql import tsql

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SqlCommandExecutor:
    """Runs commands against one SQL Server database.

    Holds only the connection settings and its collaborators; each call
    acquires and releases its own connection, so one executor can be shared
    across threads and tasks.
    """

    def __init__(
        self,
        settings: ConnectionSettings | str,
        *,
        driver: IDriver | None = None,
        async_driver: IAsyncDriver | None = None,
        setup: ICommandSetup | None = None,
    ) -> None:
        if isinstance(settings, str):
            settings = ConnectionSettings.from_connection_string(settings)
        self._settings = settings
        self._connection_string = settings.connection_string()
        self._driver = driver
        self._async_driver = async_driver
        self._setup = setup or DefaultCommandSetup()

    @property
    def settings(self) -> ConnectionSettings:
        return self._settings

    @property
    def connection_string(self) -> str:
        return self._connection_string

    @property
    def setup(self) -> ICommandSetup:
        return self._setup

    # ---- scalar ----

    @overload
    def execute_scalar(self, result_type: type[T], command_text: str,
                       *parameters: SqlParameter | None) -> T: ...

    @overload
    def execute_scalar(self, result_type: type[T], command_text: str,
                       *parameters: SqlParameter | None, nullable: bool) -> T | None: ...

    def execute_scalar(self, result_type: type[T], command_text: str,
                       *parameters: SqlParameter | None, nullable: bool = False) -> T | None:
        """Return the first column of the first row, checked against ``result_type``."""
        with ExitStack() as stack:
            cursor = self._open_cursor(stack)
            command = self._setup.scalar(command_text, parameters)
            self._execute(cursor, command, "execute_scalar")
            row = _first_row(cursor)
        return _check_scalar(row[0] if row else None, result_type, nullable)

    async def execute_scalar_async(self, result_type: type[T], command_text: str,
                                   *parameters: SqlParameter | None,
                                   nullable: bool = False) -> T | None:
        async with AsyncExitStack() as stack:
            cursor = await self._open_cursor_async(stack)
            command = self._setup.scalar(command_text, parameters)
            await self._execute_async(cursor, command, "execute_scalar_async")
            row = await _first_row_async(cursor)
        return _check_scalar(row[0] if row else None, result_type, nullable)

    # ---- non-query ----

    def execute_non_query(self, command_text: str, *parameters: SqlParameter | None,
                          command_type: CommandType | None = None) -> int:
        """Execute and return the command's @ReturnValue.

        Raises:
            MissingReturnValueError: If the command never assigned it.
        """
        with ExitStack() as stack:
            cursor = self._open_cursor(stack)
            command = self._setup.non_query(command_text, parameters, command_type)
            self._execute(cursor, command, "execute_non_query")
            row = _last_row(cursor)
        return _return_value(row, command)

    async def execute_non_query_async(self, command_text: str,
                                      *parameters: SqlParameter | None,
                                      command_type: CommandType | None = None) -> int:
        async with AsyncExitStack() as stack:
            cursor = await self._open_cursor_async(stack)
            command = self._setup.non_query(command_text, parameters, command_type)
            await self._execute_async(cursor, command, "execute_non_query_async")
            row = await _last_row_async(cursor)
        return _return_value(row, command)

    # ---- reader ----

    def execute_reader(self, command_text: str, parameters: Parameters,
                       projection: Projection[T],
                       command_type: CommandType | None = None) -> T:
        """Return ``projection(reader)``; the reader is closed afterwards.

        Closing the reader releases the cursor and the connection.
        """
        with ExitStack() as stack:
            cursor = self._open_cursor(stack)
            command = self._setup.reader(command_text, parameters, command_type)
            self._execute(cursor, command, "execute_reader")
            reader = DataReader(cursor, on_close=stack.pop_all().close)
        with reader:
            return projection(reader)

    async def execute_reader_async(self, command_text: str,
                                   parameters: Parameters,
                                   projection: AsyncProjection[T],
                                   command_type: CommandType | None = None) -> T:
        async with AsyncExitStack() as stack:
            cursor = await self._open_cursor_async(stack)
            command = self._setup.reader(command_text, parameters, command_type)
            await self._execute_async(cursor, command, "execute_reader_async")
            reader = AsyncDataReader(cursor, on_close=stack.pop_all().aclose)
        async with reader:
            return await projection(reader)

    # ---- internals ----

    def _get_driver(self) -> IDriver:
        if self._driver is None:
            from sqlcommand.drivers import default_driver
            return default_driver()
        return self._driver

    def _get_async_driver(self) -> IAsyncDriver:
        if self._async_driver is None:
            from sqlcommand.drivers import default_async_driver
            return default_async_driver()
        return self._async_driver

    def _open_cursor(self, stack: ExitStack) -> ICursor:
        connection = self._get_driver().connect(
            self._connection_string,
            autocommit=self._settings.autocommit,
            timeout=self._settings.timeout,
        )
        stack.callback(connection.close)
        cursor = connection.cursor()
        stack.callback(cursor.close)
        return cursor

    async def _open_cursor_async(self, stack: AsyncExitStack) -> IAsyncCursor:
        connection = await self._get_async_driver().connect(
            self._connection_string,
            autocommit=self._settings.autocommit,
            timeout=self._settings.timeout,
        )
        stack.push_async_callback(connection.close)
        cursor = await connection.cursor()
        stack.push_async_callback(cursor.close)
        return cursor

    def _execute(self, cursor: ICursor, command: Command, operation: str) -> None:
        sql, bound = tsql.render_bound(command)
        _log_command(operation, command)
        sizes = tsql.input_sizes(bound)
        if sizes is not None:
            cursor.setinputsizes(sizes)
        cursor.execute(sql, *[p.value for p in bound])

    async def _execute_async(self, cursor: IAsyncCursor, command: Command,
                             operation: str) -> None:
        sql, bound = tsql.render_bound(command)
        _log_command(operation, command)
        sizes = tsql.input_sizes(bound)
        if sizes is not None:
            await cursor.setinputsizes(sizes)
        await cursor.execute(sql, *[p.value for p in bound])


def create_executor(settings: AppSettings | None = None, **kwargs: Any) -> SqlCommandExecutor:
    """Create an executor from application settings.

    Keyword arguments (``driver``, ``async_driver``, ``setup``) are passed
    through to SqlCommandExecutor.
    """
    if settings is None:
        settings = AppSettings()
    return SqlCommandExecutor(settings.sql, **kwargs)


def _log_command(operation: str, command: Command) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "%s %s %r params=[%s]",
            operation,
            command.command_type,
            command.text,
            ", ".join(tsql.describe(p) for p in command.parameters),
        )


def _first_row(cursor: ICursor) -> Sequence[Any] | None:
    while cursor.description is None:
        if not cursor.nextset():
            return None
    return cursor.fetchone()


async def _first_row_async(cursor: IAsyncCursor) -> Sequence[Any] | None:
    while cursor.description is None:
        if not await cursor.nextset():
            return None
    return await cursor.fetchone()


def _last_row(cursor: ICursor) -> Sequence[Any] | None:
    """First row of the last result set; the return value is selected last."""
    row = None
    while True:
        if cursor.description is not None:
            rows = cursor.fetchall()
            row = rows[0] if rows else None
        if not cursor.nextset():
            return row


async def _last_row_async(cursor: IAsyncCursor) -> Sequence[Any] | None:
    row = None
    while True:
        if cursor.description is not None:
            rows = await cursor.fetchall()
            row = rows[0] if rows else None
        if not await cursor.nextset():
            return row


def _check_scalar(value: Any, result_type: type[T], nullable: bool) -> T | None:
    if value is None:
        if nullable:
            return None
        raise ScalarCastError(value, result_type)
    if isinstance(value, bool) and result_type is int:
        raise ScalarCastError(value, result_type)
    if not isinstance(value, result_type):
        raise ScalarCastError(value, result_type)
    return value


def _return_value(row: Sequence[Any] | None, command: Command) -> int:
    if row is None or row[0] is None:
        raise MissingReturnValueError(command.text)
    return int(row[0])
