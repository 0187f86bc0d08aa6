# SPDX-License-Identifier: MIT
"""Shared fakes and fixtures for the fluentdb test-suite."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Sequence
from typing import Any

import pytest

from fluentdb.drivers.sqlite import SQLiteConnection, connect_sqlite
from fluentdb.fetch import FetchMode, Row, shape_row
from fluentdb.params import ParamType
from fluentdb.session import Session


class FakeStatement:
    """Record bindings and executions, replaying canned rows."""

    def __init__(
        self,
        owner: "FakeConnection",
        sql: str,
        *,
        columns: Sequence[str],
        rows: Sequence[tuple[Any, ...]],
        fail_on_execute: BaseException | None = None,
    ) -> None:
        self.owner = owner
        self.sql = sql
        self.columns = tuple(columns)
        self.rows = list(rows)
        self.fail_on_execute = fail_on_execute
        self.bound: list[tuple[int | str, Any, ParamType]] = []
        self.executions = 0
        self.fetch_modes: list[FetchMode] = []
        self._pending: deque[tuple[Any, ...]] = deque()

    def bind_value(self, param: int | str, value: Any, param_type: ParamType) -> None:
        self.owner.calls.append("bind")
        self.bound.append((param, value, param_type))

    def execute(self) -> bool:
        self.owner.calls.append("execute")
        if self.fail_on_execute is not None:
            raise self.fail_on_execute
        self.executions += 1
        self._pending = deque(self.rows)
        return True

    def fetch_all(self, mode: FetchMode) -> list[Row]:
        self.owner.calls.append("fetch_all")
        self.fetch_modes.append(mode)
        rows = [shape_row(self.columns, row, mode) for row in self._pending]
        self._pending.clear()
        return rows

    def fetch_one(self, mode: FetchMode) -> Row | None:
        self.owner.calls.append("fetch_one")
        self.fetch_modes.append(mode)
        if not self._pending:
            return None
        return shape_row(self.columns, self._pending.popleft(), mode)

    def fetch_column(self, position: int) -> Any:
        self.owner.calls.append("fetch_column")
        if not self._pending:
            return None
        return self._pending.popleft()[position]

    def row_count(self) -> int:
        return len(self.rows)


class FakeConnection:
    """Connection double counting transaction calls."""

    def __init__(
        self,
        *,
        columns: Sequence[str] = ("id", "name"),
        rows: Sequence[tuple[Any, ...]] = (),
        insert_id: str | int | None = None,
    ) -> None:
        self.columns = columns
        self.rows = rows
        self.insert_id = insert_id
        self.calls: list[str] = []
        self.statements: list[FakeStatement] = []
        self.fail_on_execute: BaseException | None = None
        self.fail_on_begin: BaseException | None = None
        self.fail_on_commit: BaseException | None = None
        self.fail_on_rollback: BaseException | None = None

    def count(self, call: str) -> int:
        return self.calls.count(call)

    def prepare(self, sql: str) -> FakeStatement:
        self.calls.append("prepare")
        statement = FakeStatement(
            self,
            sql,
            columns=self.columns,
            rows=self.rows,
            fail_on_execute=self.fail_on_execute,
        )
        self.statements.append(statement)
        return statement

    def last_insert_id(self) -> str | int | None:
        self.calls.append("last_insert_id")
        return self.insert_id

    def begin_transaction(self) -> bool:
        self.calls.append("begin")
        if self.fail_on_begin is not None:
            raise self.fail_on_begin
        return True

    def commit(self) -> bool:
        self.calls.append("commit")
        if self.fail_on_commit is not None:
            raise self.fail_on_commit
        return True

    def rollback(self) -> bool:
        self.calls.append("rollback")
        if self.fail_on_rollback is not None:
            raise self.fail_on_rollback
        return True


@pytest.fixture()
def fake_connection() -> FakeConnection:
    return FakeConnection(rows=[(1, "ada"), (2, "grace")])


@pytest.fixture()
def fake_session(fake_connection: FakeConnection) -> Session:
    return Session(fake_connection)


@pytest.fixture()
def sqlite_connection() -> Iterator[SQLiteConnection]:
    connection = connect_sqlite(":memory:")
    connection.raw.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE, active BOOLEAN)"
    )
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture()
def sqlite_session(sqlite_connection: SQLiteConnection) -> Session:
    return Session(sqlite_connection)
