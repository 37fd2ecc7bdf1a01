"""Database drivers behind the IDriver / IAsyncDriver Protocols.

Production drivers load pyodbc (and aioodbc) on first use; both need the
unixODBC runtime and a SQL Server ODBC driver installed on the host.
"""

from __future__ import annotations

from sqlcommand.core.protocols import IAsyncDriver, IDriver


def default_driver() -> IDriver:
    """The pyodbc-backed driver used when an executor is given none."""
    from sqlcommand.drivers.odbc import OdbcDriver

    return OdbcDriver()


def default_async_driver() -> IAsyncDriver:
    """The aioodbc-backed driver used when an executor is given none."""
    from sqlcommand.drivers.odbc_async import AioOdbcDriver

    return AioOdbcDriver()
