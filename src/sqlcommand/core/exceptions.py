"""sqlcommand exception hierarchy.

Only conditions detected by this package are raised as these types. Errors from
the database driver and from caller projections propagate unchanged.
"""

from __future__ import annotations


class SqlCommandError(Exception):
    """Base exception for all sqlcommand errors."""


class ConfigurationError(SqlCommandError, ValueError):
    """Connection settings are missing or invalid."""


class ParameterError(SqlCommandError, ValueError):
    """A command parameter cannot be bound."""


class ScalarCastError(SqlCommandError, TypeError):
    """A scalar result does not match the declared result type."""

    def __init__(self, value: object, result_type: type) -> None:
        self.value = value
        self.result_type = result_type
        super().__init__(
            f"Scalar {value!r} ({type(value).__name__}) is not {result_type.__name__}"
        )


class MissingReturnValueError(SqlCommandError):
    """A non-query command completed without setting @ReturnValue."""

    def __init__(self, command_text: str) -> None:
        self.command_text = command_text
        super().__init__(f"Command did not populate @ReturnValue: {command_text!r}")


class ReaderClosedError(SqlCommandError):
    """A data reader was used after it was closed."""
