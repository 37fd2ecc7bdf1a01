"""Type aliases used across sqlcommand."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from sqlcommand.models.parameters import SqlParameter
    from sqlcommand.reader import AsyncDataReader, DataReader

T = TypeVar("T")

Row = Sequence[Any]
Record = dict[str, Any]
Parameters = Sequence["SqlParameter | None"]
Projection = Callable[["DataReader"], T]
AsyncProjection = Callable[["AsyncDataReader"], Awaitable[T]]
