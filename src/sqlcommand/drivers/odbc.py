"""SQL Server driver backed by pyodbc."""

from __future__ import annotations

import pyodbc

from sqlcommand.core.protocols import IConnection


class OdbcDriver:
    """Production IDriver; pooling is left to the ODBC driver manager."""

    def connect(self, connection_string: str, *, autocommit: bool = True,
                timeout: int = 0) -> IConnection:
        return pyodbc.connect(connection_string, autocommit=autocommit, timeout=timeout)
