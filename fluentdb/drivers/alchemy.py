# SPDX-License-Identifier: MIT
"""Adapter running statements over a SQLAlchemy 2.x :class:`~sqlalchemy.engine.Connection`."""

from __future__ import annotations

from collections import deque
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection, Transaction
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.types import Boolean, Integer, LargeBinary, NullType, String, TypeEngine

from ..exceptions import StatementError, TransactionError
from ..fetch import FetchMode, Row, shape_row
from ..params import ParamType
from .dbapi import build_parameters, coerce_bound_value

__all__ = ["SqlAlchemyConnection", "SqlAlchemyStatement"]

_SQL_TYPES: dict[ParamType, type[TypeEngine[Any]]] = {
    ParamType.NULL: NullType,
    ParamType.BOOLEAN: Boolean,
    ParamType.INTEGER: Integer,
    ParamType.STRING: String,
    ParamType.BLOB: LargeBinary,
}


class SqlAlchemyStatement:
    """Statement handle whose results are buffered when it executes.

    Named placeholders (``:name``) go through :func:`sqlalchemy.text` with typed
    bind parameters. Positional ones are passed to ``exec_driver_sql`` and must
    use the driver's own placeholder syntax.
    """

    def __init__(self, owner: SqlAlchemyConnection, sql: str) -> None:
        self._owner = owner
        self._sql = sql
        self._values: dict[int | str, Any] = {}
        self._types: dict[int | str, ParamType] = {}
        self._columns: tuple[str, ...] = ()
        self._rows: deque[tuple[Any, ...]] | None = None
        self._rowcount = -1

    def bind_value(self, param: int | str, value: Any, param_type: ParamType) -> None:
        self._values[param] = coerce_bound_value(value, param_type, sql=self._sql)
        self._types[param] = param_type

    def execute(self) -> bool:
        params = build_parameters(self._values, sql=self._sql)
        connection = self._owner.raw
        try:
            if isinstance(params, tuple):
                result = connection.exec_driver_sql(self._sql, params)
            else:
                clause = text(self._sql)
                if params:
                    clause = clause.bindparams(
                        *(
                            bindparam(name, value, type_=_SQL_TYPES[self._types[name]]())
                            for name, value in params.items()
                        )
                    )
                result = connection.execute(clause)
            self._owner._record_insert_id(result.lastrowid)
            self._rowcount = int(result.rowcount)
            if result.returns_rows:
                self._columns = tuple(result.keys())
                rows = [tuple(row) for row in result.fetchall()]
            else:
                self._columns = ()
                rows = []
            self._owner._commit_if_idle()
        except SQLAlchemyError as exc:
            self._owner._rollback_if_idle()
            raise StatementError(str(exc), sql=self._sql) from exc
        self._rows = deque(rows)
        return True

    def fetch_all(self, mode: FetchMode) -> list[Row]:
        rows = self._require_rows()
        shaped = [shape_row(self._columns, row, mode) for row in rows]
        rows.clear()
        return shaped

    def fetch_one(self, mode: FetchMode) -> Row | None:
        rows = self._require_rows()
        if not rows:
            return None
        return shape_row(self._columns, rows.popleft(), mode)

    def fetch_column(self, position: int) -> Any:
        rows = self._require_rows()
        if not rows:
            return None
        row = rows.popleft()
        if position >= len(row):
            raise StatementError(
                f"column position {position} is out of range for a row of {len(row)} columns",
                sql=self._sql,
            )
        return row[position]

    def row_count(self) -> int:
        return self._rowcount

    def _require_rows(self) -> deque[tuple[Any, ...]]:
        if self._rows is None:
            raise StatementError("statement has not been executed", sql=self._sql)
        return self._rows


class SqlAlchemyConnection:
    """Borrow a SQLAlchemy connection.

    Statements executed outside :meth:`begin_transaction` are committed right
    away so the connection never sits in an implicit autobegun transaction.
    """

    def __init__(self, raw: Connection) -> None:
        self._raw = raw
        self._transaction: Transaction | None = None
        self._last_insert_id: Any = None

    @property
    def raw(self) -> Connection:
        return self._raw

    def prepare(self, sql: str) -> SqlAlchemyStatement:
        if not sql or not sql.strip():
            raise StatementError("cannot prepare an empty statement", sql=sql)
        return SqlAlchemyStatement(self, sql)

    def last_insert_id(self) -> str | int | None:
        return self._last_insert_id

    def begin_transaction(self) -> bool:
        if self._transaction is not None or self._raw.in_transaction():
            raise TransactionError("the connection already has an open transaction")
        try:
            self._transaction = self._raw.begin()
        except SQLAlchemyError as exc:
            raise TransactionError(f"begin failed: {exc}") from exc
        return True

    def commit(self) -> bool:
        transaction = self._require_transaction()
        try:
            transaction.commit()
        except SQLAlchemyError as exc:
            raise TransactionError(f"commit failed: {exc}") from exc
        self._transaction = None
        return True

    def rollback(self) -> bool:
        transaction = self._require_transaction()
        try:
            transaction.rollback()
        except SQLAlchemyError as exc:
            raise TransactionError(f"rollback failed: {exc}") from exc
        finally:
            self._transaction = None
        return True

    def close(self) -> None:
        self._raw.close()

    def _require_transaction(self) -> Transaction:
        if self._transaction is None:
            raise TransactionError("no transaction was started on this connection")
        return self._transaction

    def _record_insert_id(self, value: Any) -> None:
        if value:
            self._last_insert_id = value

    def _commit_if_idle(self) -> None:
        if self._transaction is None and self._raw.in_transaction():
            self._raw.commit()

    def _rollback_if_idle(self) -> None:
        if self._transaction is None and self._raw.in_transaction():
            self._raw.rollback()
