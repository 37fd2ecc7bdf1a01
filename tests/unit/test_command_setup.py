"""Tests for SqlParameter, Command, and the command setup strategies."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sqlcommand.command_setup import (
    DefaultCommandSetup,
    StoredProcedureCommandSetup,
    bindable,
)
from sqlcommand.core.exceptions import ParameterError
from sqlcommand.core.protocols import ICommandSetup
from sqlcommand.models.parameters import (
    CommandType,
    ParameterDirection,
    SqlDbType,
    SqlParameter,
)


class TestSqlParameter:
    def test_name_gets_at_prefix(self):
        assert SqlParameter("plan_id", "ACME").name == "@plan_id"
        assert SqlParameter("@plan_id", "ACME").name == "@plan_id"

    def test_defaults_to_input(self):
        param = SqlParameter("a", 1)
        assert param.direction == ParameterDirection.INPUT
        assert param.db_type is None

    def test_null_value_is_allowed(self):
        assert SqlParameter("a").value is None

    @pytest.mark.parametrize("name", ["", "@", "@@ROWCOUNT"])
    def test_invalid_names_rejected(self, name):
        with pytest.raises(ValidationError):
            SqlParameter(name, 1)

    def test_return_value_parameter(self):
        param = SqlParameter.return_value()
        assert param.name == "@ReturnValue"
        assert param.db_type == SqlDbType.INT
        assert param.direction == ParameterDirection.RETURN_VALUE


class TestBindable:
    def test_drops_none_entries(self):
        a, b = SqlParameter("a", 1), SqlParameter("b", None)
        assert bindable([None, a, None, b, None]) == [a, b]

    def test_duplicate_names_rejected_case_insensitively(self):
        with pytest.raises(ParameterError):
            bindable([SqlParameter("Id", 1), SqlParameter("@id", 2)])

    def test_caller_return_value_rejected(self):
        with pytest.raises(ParameterError):
            bindable([SqlParameter.return_value()])


class TestDefaultCommandSetup:
    def test_satisfies_protocol(self):
        assert isinstance(DefaultCommandSetup(), ICommandSetup)

    def test_scalar_is_text(self):
        command = DefaultCommandSetup().scalar("SELECT 1", [None])
        assert command.command_type == CommandType.TEXT
        assert command.parameters == []

    def test_reader_honors_command_type(self):
        command = DefaultCommandSetup().reader(
            "dbo.GetPlans", [SqlParameter("a", 1)], CommandType.STORED_PROCEDURE,
        )
        assert command.command_type == CommandType.STORED_PROCEDURE
        assert [p.name for p in command.parameters] == ["@a"]

    def test_non_query_prepends_exactly_one_return_parameter(self):
        caller = [SqlParameter("a", 1), None, SqlParameter("b", 2)]
        command = DefaultCommandSetup().non_query("dbo.Touch", caller)
        assert len(command.parameters) == 3
        first = command.parameters[0]
        assert first.name == "@ReturnValue"
        assert first.db_type == SqlDbType.INT
        assert first.direction == ParameterDirection.RETURN_VALUE
        assert command.return_parameter == first
        assert [p.name for p in command.input_parameters] == ["@a", "@b"]

    def test_non_query_rejects_reserved_name(self):
        with pytest.raises(ParameterError):
            DefaultCommandSetup().non_query("x", [SqlParameter("returnvalue", 1)])


class TestStoredProcedureCommandSetup:
    def test_defaults_every_mode_to_procedure(self):
        setup = StoredProcedureCommandSetup()
        assert setup.scalar("dbo.A", []).command_type == CommandType.STORED_PROCEDURE
        assert setup.reader("dbo.B", []).command_type == CommandType.STORED_PROCEDURE
        assert setup.non_query("dbo.C", []).command_type == CommandType.STORED_PROCEDURE

    def test_explicit_type_still_wins(self):
        command = StoredProcedureCommandSetup().reader("SELECT 1", [], CommandType.TEXT)
        assert command.command_type == CommandType.TEXT
