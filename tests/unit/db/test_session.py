"""Tests for statement chaining on :class:`fluentdb.session.Session`."""

from __future__ import annotations

import logging

import pytest

from fluentdb.config import SessionSettings
from fluentdb.exceptions import PreconditionError, StatementError
from fluentdb.fetch import FetchMode
from fluentdb.params import ParamType
from fluentdb.session import Session
from fluentdb.statement import ExecutionState


@pytest.mark.parametrize(
    "operation",
    [
        lambda session: session.bind(1, 42),
        lambda session: session.bind_values([1, 2]),
        lambda session: session.execute(),
        lambda session: session.fetch_all(),
        lambda session: session.fetch_one(),
        lambda session: session.fetch_column(),
        lambda session: session.row_count(),
    ],
)
def test_operations_before_prepare_fail_without_engine_calls(fake_connection, operation) -> None:
    session = Session(fake_connection)

    with pytest.raises(PreconditionError):
        operation(session)

    assert fake_connection.calls == []


def test_bind_infers_types_and_chains(fake_session, fake_connection) -> None:
    result = (
        fake_session.prepare("INSERT INTO t (a, b, c, d) VALUES (?, ?, ?, ?)")
        .bind(1, None)
        .bind(2, True)
        .bind(3, 7)
        .bind(4, "x")
    )

    assert result is fake_session
    assert fake_connection.statements[-1].bound == [
        (1, None, ParamType.NULL),
        (2, True, ParamType.BOOLEAN),
        (3, 7, ParamType.INTEGER),
        (4, "x", ParamType.STRING),
    ]


def test_explicit_type_hint_wins_over_inference(fake_session, fake_connection) -> None:
    fake_session.prepare("SELECT :flag").bind(":flag", 1, ParamType.BOOLEAN)

    assert fake_connection.statements[-1].bound == [("flag", 1, ParamType.BOOLEAN)]


def test_bind_values_accepts_mappings_and_sequences(fake_session, fake_connection) -> None:
    fake_session.prepare("SELECT :a, :b").bind_values({"a": 1, "b": "two"})
    fake_session.prepare("SELECT ?, ?").bind_values([None, b"raw"])

    named, positional = fake_connection.statements
    assert named.bound == [("a", 1, ParamType.INTEGER), ("b", "two", ParamType.STRING)]
    assert positional.bound == [(1, None, ParamType.NULL), (2, b"raw", ParamType.BLOB)]


def test_bind_values_rejects_plain_strings(fake_session) -> None:
    with pytest.raises(TypeError):
        fake_session.prepare("SELECT ?").bind_values("abc")


def test_prepare_replaces_current_statement(fake_session, fake_connection) -> None:
    fake_session.prepare("SELECT 1")
    first = fake_session.current
    fake_session.prepare("SELECT 2")

    assert fake_session.current is not first
    assert fake_session.current.sql == "SELECT 2"
    assert len(fake_connection.statements) == 2


def test_statement_returns_independent_context(fake_session) -> None:
    fake_session.prepare("SELECT * FROM users")
    side = fake_session.statement("SELECT name FROM users")

    assert side is not fake_session.current
    assert fake_session.current.sql == "SELECT * FROM users"
    assert side.fetch_column() == 1


def test_fetch_all_executes_once_and_uses_default_mode(fake_session, fake_connection) -> None:
    rows = fake_session.prepare("SELECT id, name FROM users").fetch_all()

    statement = fake_connection.statements[-1]
    assert rows == [{"id": 1, "name": "ada"}, {"id": 2, "name": "grace"}]
    assert statement.executions == 1
    assert statement.fetch_modes == [FetchMode.ASSOC]


def test_fetch_modes_are_passed_through(fake_session) -> None:
    assert fake_session.prepare("SELECT 1").fetch_one(FetchMode.NUM) == (1, "ada")
    assert fake_session.prepare("SELECT 1").fetch_one(FetchMode.BOTH) == {
        "id": 1,
        "name": "ada",
        0: 1,
        1: "ada",
    }


def test_default_fetch_mode_comes_from_settings(fake_connection) -> None:
    session = Session(fake_connection, SessionSettings(default_fetch_mode=FetchMode.NUM))

    assert session.prepare("SELECT 1").fetch_all(FetchMode.DEFAULT) == [(1, "ada"), (2, "grace")]


def test_execute_then_fetch_does_not_run_twice(fake_session, fake_connection) -> None:
    fake_session.prepare("SELECT id, name FROM users")

    assert fake_session.execute() is True
    assert fake_session.fetch_all() == [{"id": 1, "name": "ada"}, {"id": 2, "name": "grace"}]
    assert fake_connection.statements[-1].executions == 1


def test_fetch_after_consumption_fails_fast(fake_session, fake_connection) -> None:
    fake_session.prepare("SELECT id, name FROM users").fetch_all()

    with pytest.raises(PreconditionError):
        fake_session.fetch_one()

    assert fake_session.current.state is ExecutionState.CONSUMED
    assert fake_connection.statements[-1].executions == 1


def test_rebinding_allows_fetching_again(fake_session, fake_connection) -> None:
    fake_session.prepare("SELECT * FROM users WHERE id > ?").bind(1, 0).fetch_all()
    rows = fake_session.bind(1, 1).fetch_all()

    assert len(rows) == 2
    assert fake_connection.statements[-1].executions == 2


def test_fetch_one_walks_rows_then_returns_none(fake_session) -> None:
    fake_session.prepare("SELECT id, name FROM users")

    assert fake_session.fetch_one() == {"id": 1, "name": "ada"}
    assert fake_session.current.state is ExecutionState.EXECUTED
    assert fake_session.fetch_one() == {"id": 2, "name": "grace"}
    assert fake_session.fetch_one() is None
    assert fake_session.current.state is ExecutionState.CONSUMED


def test_fetch_all_on_empty_result_returns_empty_list(fake_connection) -> None:
    fake_connection.rows = []
    session = Session(fake_connection)

    assert session.prepare("SELECT * FROM users WHERE 0").fetch_all() == []


def test_fetch_column_reads_requested_position(fake_session) -> None:
    assert fake_session.prepare("SELECT id, name FROM users").fetch_column(1) == "ada"


def test_fetch_column_rejects_negative_positions(fake_session, fake_connection) -> None:
    with pytest.raises(ValueError):
        fake_session.prepare("SELECT 1").fetch_column(-1)

    assert fake_connection.statements[-1].executions == 0


def test_row_count_requires_execution(fake_session) -> None:
    fake_session.prepare("UPDATE users SET name = name")

    with pytest.raises(PreconditionError):
        fake_session.row_count()

    fake_session.execute()
    assert fake_session.row_count() == 2


def test_statement_errors_propagate(fake_connection) -> None:
    fake_connection.fail_on_execute = StatementError("UNIQUE constraint failed", sql="INSERT")
    session = Session(fake_connection)

    with pytest.raises(StatementError, match="UNIQUE"):
        session.prepare("INSERT INTO users (name) VALUES (?)").bind(1, "ada").execute()

    assert session.current.state is ExecutionState.UNEXECUTED


def test_failed_re_execution_forgets_previous_results(fake_session, fake_connection) -> None:
    fake_session.prepare("SELECT id, name FROM users").execute()
    statement = fake_connection.statements[-1]
    statement.fail_on_execute = StatementError("connection lost", sql=statement.sql)

    with pytest.raises(StatementError, match="connection lost"):
        fake_session.execute()

    assert fake_session.current.state is ExecutionState.UNEXECUTED
    statement.fail_on_execute = None
    assert fake_session.fetch_all() == [{"id": 1, "name": "ada"}, {"id": 2, "name": "grace"}]
    assert statement.executions == 2


@pytest.mark.parametrize(("raw", "expected"), [(None, 0), ("", 0), ("42", 42), (7, 7)])
def test_last_insert_id_casts_engine_value(fake_connection, raw, expected) -> None:
    fake_connection.insert_id = raw

    assert Session(fake_connection).last_insert_id() == expected


def test_last_insert_id_rejects_non_numeric_values(fake_connection) -> None:
    fake_connection.insert_id = "not-a-number"

    with pytest.raises(StatementError):
        Session(fake_connection).last_insert_id()


def test_log_statements_emits_debug_record(fake_connection, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="fluentdb")
    session = Session(fake_connection, SessionSettings(log_statements=True))

    session.prepare("SELECT 1")

    record = next(r for r in caplog.records if r.message == "Preparing statement")
    assert record.extra_fields == {"sql": "SELECT 1"}
