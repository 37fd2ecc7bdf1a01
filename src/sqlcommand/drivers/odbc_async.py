"""SQL Server driver backed by aioodbc."""

from __future__ import annotations

import aioodbc

from sqlcommand.core.protocols import IAsyncConnection


class AioOdbcDriver:
    """Production IAsyncDriver; runs pyodbc calls on aioodbc's executor."""

    async def connect(self, connection_string: str, *, autocommit: bool = True,
                      timeout: int = 0) -> IAsyncConnection:
        return await aioodbc.connect(
            dsn=connection_string, autocommit=autocommit, timeout=timeout,
        )
