"""Parameter and command models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

RETURN_VALUE_NAME = "@ReturnValue"


class CommandType(StrEnum):
    TEXT = "TEXT"
    STORED_PROCEDURE = "STORED_PROCEDURE"


class ParameterDirection(StrEnum):
    INPUT = "INPUT"
    RETURN_VALUE = "RETURN_VALUE"


class SqlDbType(StrEnum):
    """SQL Server types; the value is the T-SQL type used in DECLARE."""

    BIT = "bit"
    TINYINT = "tinyint"
    SMALLINT = "smallint"
    INT = "int"
    BIGINT = "bigint"
    DECIMAL = "decimal(38, 10)"
    FLOAT = "float"
    MONEY = "money"
    DATE = "date"
    DATETIME = "datetime"
    DATETIME2 = "datetime2"
    DATETIMEOFFSET = "datetimeoffset"
    CHAR = "char"
    VARCHAR = "varchar(max)"
    NCHAR = "nchar"
    NVARCHAR = "nvarchar(max)"
    VARBINARY = "varbinary(max)"
    UNIQUEIDENTIFIER = "uniqueidentifier"


class SqlParameter(BaseModel):
    """A named value bound to an ``@name`` placeholder.

    ``value=None`` binds SQL NULL; it is not the same as leaving the
    parameter out.
    """

    model_config = {"frozen": True}

    name: str
    value: Any = None
    db_type: SqlDbType | None = None
    direction: ParameterDirection = ParameterDirection.INPUT

    def __init__(self, name: str, value: Any = None, **data: Any) -> None:
        super().__init__(name=name, value=value, **data)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("@"):
            value = f"@{value}"
        if len(value) < 2 or value.startswith("@@"):
            raise ValueError(f"invalid parameter name: {value!r}")
        return value

    @property
    def key(self) -> str:
        """Case-insensitive lookup key (T-SQL names ignore case)."""
        return self.name.lower()

    @classmethod
    def return_value(cls) -> SqlParameter:
        return cls(
            RETURN_VALUE_NAME,
            db_type=SqlDbType.INT,
            direction=ParameterDirection.RETURN_VALUE,
        )


class Command(BaseModel):
    """A single command invocation: text, kind, and bound parameters."""

    text: str
    command_type: CommandType = CommandType.TEXT
    parameters: list[SqlParameter] = Field(default_factory=list)

    @property
    def return_parameter(self) -> SqlParameter | None:
        for param in self.parameters:
            if param.direction == ParameterDirection.RETURN_VALUE:
                return param
        return None

    @property
    def input_parameters(self) -> list[SqlParameter]:
        return [p for p in self.parameters if p.direction == ParameterDirection.INPUT]
