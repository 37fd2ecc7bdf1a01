"""Command setup strategies: how each execution mode builds its Command."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlcommand.core.exceptions import ParameterError
from sqlcommand.models.parameters import (
    Command,
    CommandType,
    ParameterDirection,
    SqlParameter,
)


def bindable(parameters: Iterable[SqlParameter | None]) -> list[SqlParameter]:
    """Drop absent entries and check the rest can be bound together."""
    bound: list[SqlParameter] = []
    seen: set[str] = set()
    for param in parameters:
        if param is None:
            continue
        if param.direction != ParameterDirection.INPUT:
            raise ParameterError(f"{param.name}: only INPUT parameters may be supplied")
        if param.key in seen:
            raise ParameterError(f"Duplicate parameter {param.name}")
        seen.add(param.key)
        bound.append(param)
    return bound


class DefaultCommandSetup:
    """Plain-text commands, with a synthesized @ReturnValue for non-queries."""

    default_command_type: CommandType = CommandType.TEXT

    def scalar(self, command_text: str,
               parameters: Sequence[SqlParameter | None]) -> Command:
        return Command(
            text=command_text,
            command_type=self.default_command_type,
            parameters=bindable(parameters),
        )

    def reader(self, command_text: str, parameters: Sequence[SqlParameter | None],
               command_type: CommandType | None = None) -> Command:
        return Command(
            text=command_text,
            command_type=command_type or self.default_command_type,
            parameters=bindable(parameters),
        )

    def non_query(self, command_text: str, parameters: Sequence[SqlParameter | None],
                  command_type: CommandType | None = None) -> Command:
        caller = bindable(parameters)
        return_param = SqlParameter.return_value()
        if any(p.key == return_param.key for p in caller):
            raise ParameterError(f"{return_param.name} is reserved for the return value")
        return Command(
            text=command_text,
            command_type=command_type or self.default_command_type,
            parameters=[return_param, *caller],
        )


class StoredProcedureCommandSetup(DefaultCommandSetup):
    """Treats every command text as a stored procedure name."""

    default_command_type = CommandType.STORED_PROCEDURE
