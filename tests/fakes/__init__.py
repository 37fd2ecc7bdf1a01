"""Shared test doubles — re-export the in-memory drivers."""

from __future__ import annotations

from sqlcommand.drivers.memory import (
    MemoryAsyncDriver,
    MemoryDriver,
    MemoryResultSet,
)

__all__ = ["MemoryAsyncDriver", "MemoryDriver", "MemoryResultSet"]
