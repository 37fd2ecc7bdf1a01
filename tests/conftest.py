"""Shared fixtures: scripted drivers and an executor wired to them."""

from __future__ import annotations

import pytest

from sqlcommand.core.config import ConnectionSettings
from sqlcommand.executor import SqlCommandExecutor
from tests.fakes import MemoryAsyncDriver, MemoryDriver


@pytest.fixture
def settings():
    return ConnectionSettings(server="db.test", database="app", user="svc", password="s3cret")


@pytest.fixture
def driver():
    return MemoryDriver()


@pytest.fixture
def async_driver():
    return MemoryAsyncDriver()


@pytest.fixture
def executor(settings, driver, async_driver):
    return SqlCommandExecutor(settings, driver=driver, async_driver=async_driver)
