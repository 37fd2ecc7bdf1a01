"""Tests for scripts/check_connection.py."""

from __future__ import annotations

from unittest.mock import patch

from scripts.check_connection import check, main
from sqlcommand.executor import SqlCommandExecutor
from tests.fakes import MemoryAsyncDriver, MemoryDriver


def _executor(settings):
    driver, async_driver = MemoryDriver(), MemoryAsyncDriver()
    driver.set_scalar("SELECT", 1)
    async_driver.set_scalar("SELECT", 1)
    return SqlCommandExecutor(settings, driver=driver, async_driver=async_driver)


def test_check_runs_query_sync_and_async(settings):
    executor = _executor(settings)
    assert check(executor, "SELECT 1") == 1
    assert check(executor, "SELECT 1", use_async=True) == 1


def test_main_reports_success(settings, capsys):
    with patch("scripts.check_connection.build_executor", return_value=_executor(settings)):
        assert main(["--query", "SELECT 1"]) == 0
    assert "OK (db.test/app): 1" in capsys.readouterr().out


def test_main_fails_on_bad_connection_string():
    assert main(["--connection-string", "Database=app"]) == 1


def test_main_fails_on_driver_error(settings):
    executor = _executor(settings)
    executor._get_driver().fail_on("connect", ConnectionError("login failed"))
    with patch("scripts.check_connection.build_executor", return_value=executor):
        assert main([]) == 1
