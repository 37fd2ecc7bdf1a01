"""Protocol interfaces for sqlcommand abstractions.

The driver Protocols describe the slice of a DB-API connection that the
executor calls. Structural typing, no inheritance required, easy to test with
isinstance().
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlcommand.models.parameters import Command, CommandType, SqlParameter


# ---------------------------------------------------------------------------
# Driver: synchronous
# ---------------------------------------------------------------------------

@runtime_checkable
class ICursor(Protocol):
    """Command handle bound to one connection (pyodbc.Cursor shaped)."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    def setinputsizes(self, sizes: Sequence[Any]) -> None: ...

    def execute(self, sql: str, *params: Any) -> Any: ...

    def fetchone(self) -> Sequence[Any] | None: ...

    def fetchmany(self, size: int) -> list[Sequence[Any]]: ...

    def fetchall(self) -> list[Sequence[Any]]: ...

    def nextset(self) -> bool | None: ...

    def close(self) -> None: ...


@runtime_checkable
class IConnection(Protocol):
    """Open database connection (pyodbc.Connection shaped)."""

    def cursor(self) -> ICursor: ...

    def close(self) -> None: ...


@runtime_checkable
class IDriver(Protocol):
    """Opens connections from an ODBC connection string."""

    def connect(self, connection_string: str, *, autocommit: bool = True,
                timeout: int = 0) -> IConnection: ...


# ---------------------------------------------------------------------------
# Driver: asynchronous
# ---------------------------------------------------------------------------

@runtime_checkable
class IAsyncCursor(Protocol):
    """Awaitable command handle (aioodbc.Cursor shaped)."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    async def setinputsizes(self, sizes: Sequence[Any]) -> None: ...

    async def execute(self, sql: str, *params: Any) -> Any: ...

    async def fetchone(self) -> Sequence[Any] | None: ...

    async def fetchmany(self, size: int) -> list[Sequence[Any]]: ...

    async def fetchall(self) -> list[Sequence[Any]]: ...

    async def nextset(self) -> bool | None: ...

    async def close(self) -> None: ...


@runtime_checkable
class IAsyncConnection(Protocol):
    """Awaitable database connection (aioodbc.Connection shaped)."""

    async def cursor(self) -> IAsyncCursor: ...

    async def close(self) -> None: ...


@runtime_checkable
class IAsyncDriver(Protocol):
    """Opens awaitable connections from an ODBC connection string."""

    async def connect(self, connection_string: str, *, autocommit: bool = True,
                      timeout: int = 0) -> IAsyncConnection: ...


# ---------------------------------------------------------------------------
# Command setup
# ---------------------------------------------------------------------------

@runtime_checkable
class ICommandSetup(Protocol):
    """Builds the Command for each execution mode.

    Swap the implementation to change the default command kind or to add
    parameters to every command.
    """

    def scalar(self, command_text: str,
               parameters: Sequence[SqlParameter | None]) -> Command: ...

    def reader(self, command_text: str, parameters: Sequence[SqlParameter | None],
               command_type: CommandType | None = None) -> Command: ...

    def non_query(self, command_text: str, parameters: Sequence[SqlParameter | None],
                  command_type: CommandType | None = None) -> Command: ...
