"""Render a Command into a T-SQL batch with ``?`` placeholders.

Named ``@param`` references become positional ODBC placeholders. String
literals, quoted identifiers and comments are copied through untouched. When
the command carries a return-value parameter the batch declares it, lets the
command assign it, and selects it as the final result set.
"""

from __future__ import annotations

import re
from typing import Any

from sqlcommand.models.parameters import Command, CommandType, SqlDbType, SqlParameter

# Spans that never hold parameters are matched first and kept as-is.
# A @name must not follow another @ (skips @@ROWCOUNT) or a word char (skips emails).
_TOKENS = re.compile(
    r"""
    (?P<skip>
        '(?:[^']|'')*'              # string literal, '' escapes a quote
      | \[(?:[^\]]|\]\])*\]         # [bracketed identifier]
      | "(?:[^"]|"")*"              # "quoted identifier"
      | --[^\n]*                    # line comment
      | /\*.*?\*/                   # block comment
    )
    | (?<![@\w])@(?P<name>[A-Za-z_][A-Za-z0-9_@#$]*)
    """,
    re.DOTALL | re.VERBOSE,
)

# ODBC (sql_type, column_size, decimal_digits) for cursor.setinputsizes;
# column_size 0 selects the (max) variant.
SQL_BIT, SQL_TINYINT, SQL_SMALLINT, SQL_INTEGER, SQL_BIGINT = -7, -6, 5, 4, -5
SQL_DECIMAL, SQL_FLOAT = 3, 6
SQL_TYPE_DATE, SQL_TYPE_TIMESTAMP, SQL_SS_TIMESTAMPOFFSET = 91, 93, -155
SQL_CHAR, SQL_VARCHAR, SQL_WCHAR, SQL_WVARCHAR = 1, 12, -8, -9
SQL_VARBINARY, SQL_GUID = -3, -11

InputSize = tuple[int, int, int]

INPUT_SIZES: dict[SqlDbType, InputSize] = {
    SqlDbType.BIT: (SQL_BIT, 1, 0),
    SqlDbType.TINYINT: (SQL_TINYINT, 3, 0),
    SqlDbType.SMALLINT: (SQL_SMALLINT, 5, 0),
    SqlDbType.INT: (SQL_INTEGER, 10, 0),
    SqlDbType.BIGINT: (SQL_BIGINT, 19, 0),
    SqlDbType.DECIMAL: (SQL_DECIMAL, 38, 10),
    SqlDbType.FLOAT: (SQL_FLOAT, 53, 0),
    SqlDbType.MONEY: (SQL_DECIMAL, 19, 4),
    SqlDbType.DATE: (SQL_TYPE_DATE, 10, 0),
    SqlDbType.DATETIME: (SQL_TYPE_TIMESTAMP, 23, 3),
    SqlDbType.DATETIME2: (SQL_TYPE_TIMESTAMP, 27, 7),
    SqlDbType.DATETIMEOFFSET: (SQL_SS_TIMESTAMPOFFSET, 34, 7),
    SqlDbType.CHAR: (SQL_CHAR, 0, 0),
    SqlDbType.VARCHAR: (SQL_VARCHAR, 0, 0),
    SqlDbType.NCHAR: (SQL_WCHAR, 0, 0),
    SqlDbType.NVARCHAR: (SQL_WVARCHAR, 0, 0),
    SqlDbType.VARBINARY: (SQL_VARBINARY, 0, 0),
    SqlDbType.UNIQUEIDENTIFIER: (SQL_GUID, 36, 0),
}


def render(command: Command) -> tuple[str, list[Any]]:
    """Return ``(sql, args)`` for ``cursor.execute(sql, *args)``."""
    sql, bound = render_bound(command)
    return sql, [p.value for p in bound]


def render_bound(command: Command) -> tuple[str, list[SqlParameter]]:
    """Return the batch and the parameter behind each ``?``, in order."""
    if command.command_type == CommandType.STORED_PROCEDURE:
        sql, bound = _render_procedure(command)
    else:
        sql, bound = _render_text(command)

    return_param = command.return_parameter
    if return_param is None:
        return sql, bound
    db_type = (return_param.db_type or SqlDbType.INT).value
    batch = (
        "SET NOCOUNT ON;\n"
        f"DECLARE {return_param.name} {db_type};\n"
        f"{sql};\n"
        f"SELECT {return_param.name} AS [ReturnValue];"
    )
    return batch, bound


def input_sizes(bound: list[SqlParameter]) -> list[InputSize | None] | None:
    """Sizes for ``cursor.setinputsizes``, or None when no parameter is typed."""
    if not any(p.db_type is not None for p in bound):
        return None
    return [INPUT_SIZES[p.db_type] if p.db_type is not None else None for p in bound]


def _render_text(command: Command) -> tuple[str, list[SqlParameter]]:
    by_key = {p.key: p for p in command.input_parameters}
    bound: list[SqlParameter] = []

    def replace(match: re.Match[str]) -> str:
        if match.group("skip") is not None:
            return match.group(0)
        param = by_key.get(f"@{match.group('name')}".lower())
        if param is None:
            return match.group(0)
        bound.append(param)
        return "?"

    sql = _TOKENS.sub(replace, command.text.strip().rstrip(";"))
    return sql, bound


def _render_procedure(command: Command) -> tuple[str, list[SqlParameter]]:
    inputs = command.input_parameters
    call = "EXEC "
    if command.return_parameter is not None:
        call += f"{command.return_parameter.name} = "
    call += command.text.strip()
    if inputs:
        call += " " + ", ".join(f"{p.name} = ?" for p in inputs)
    return call, inputs


def describe(param: SqlParameter) -> str:
    """Loggable form of a parameter: name and type, never the value."""
    db_type = param.db_type.value if param.db_type else type(param.value).__name__
    return f"{param.name}:{db_type}"
