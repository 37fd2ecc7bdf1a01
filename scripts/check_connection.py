"""Check that the configured SQL Server answers a trivial query.

Usage:
    python scripts/check_connection.py [--async] [--query "SELECT 1"]

Connection settings come from SQLCOMMAND_SQL_* environment variables, or
from --connection-string.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sqlcommand.core.config import AppSettings, ConnectionSettings
from sqlcommand.core.exceptions import SqlCommandError
from sqlcommand.core.log import configure_logging
from sqlcommand.executor import SqlCommandExecutor

logger = logging.getLogger("sqlcommand.scripts.check_connection")


def build_executor(connection_string: str | None, settings: AppSettings) -> SqlCommandExecutor:
    if connection_string:
        return SqlCommandExecutor(ConnectionSettings.from_connection_string(connection_string))
    return SqlCommandExecutor(settings.sql)


def check(executor: SqlCommandExecutor, query: str, use_async: bool = False) -> object:
    """Run ``query`` as a scalar and return its value."""
    if use_async:
        return asyncio.run(executor.execute_scalar_async(object, query, nullable=True))
    return executor.execute_scalar(object, query, nullable=True)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check SQL Server connectivity")
    parser.add_argument("--connection-string", default=None)
    parser.add_argument("--query", default="SELECT 1")
    parser.add_argument("--async", dest="use_async", action="store_true")
    args = parser.parse_args(argv)

    settings = AppSettings()
    configure_logging(settings.log_level)

    try:
        executor = build_executor(args.connection_string, settings)
        value = check(executor, args.query, use_async=args.use_async)
    except SqlCommandError as exc:
        logger.error("Check failed: %s", exc)
        return 1
    except Exception:
        logger.exception("Check failed: driver error")
        return 1

    print(f"OK ({executor.settings.server}/{executor.settings.database or '-'}): {value!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
