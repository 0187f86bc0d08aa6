# SPDX-License-Identifier: MIT
"""Adapter exposing a DB-API 2.0 connection through the session contract.

DB-API drivers have no separate prepare step, so statements collect their
bound values and hand them to ``cursor.execute`` on every execution. Outside an
explicit transaction each statement is committed right after it runs, the way
autocommit clients behave. The adapter works with any PEP 249 driver such as
``sqlite3`` or ``psycopg``.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import Any, Protocol

from ..exceptions import StatementError, TransactionError
from ..fetch import FetchMode, Row, shape_row
from ..params import ParamType

__all__ = ["DBAPIConnection", "DBAPIStatement", "build_parameters", "coerce_bound_value"]


class SupportsCursor(Protocol):
    """Minimum surface of a PEP 249 connection."""

    def cursor(self) -> Any:  # pragma: no cover - runtime duck typing
        """Return a cursor object."""

    def commit(self) -> None:  # pragma: no cover - runtime duck typing
        """Commit the current transaction."""

    def rollback(self) -> None:  # pragma: no cover - runtime duck typing
        """Rollback the current transaction."""

    def close(self) -> None:  # pragma: no cover - runtime duck typing
        """Close the connection."""


def build_parameters(values: dict[int | str, Any], *, sql: str) -> tuple[Any, ...] | dict[str, Any] | None:
    """Turn bound values into the argument ``cursor.execute`` expects.

    Named values become a mapping. Positional values become a tuple ordered by
    position and must cover ``1..n`` without gaps.
    """

    if not values:
        return None
    named = {key: value for key, value in values.items() if isinstance(key, str)}
    if named and len(named) != len(values):
        raise StatementError("cannot mix named and positional parameters", sql=sql)
    if named:
        return named
    positions = sorted(values)
    expected = list(range(1, len(positions) + 1))
    if positions != expected:
        missing = sorted(set(range(1, positions[-1] + 1)) - set(positions))
        raise StatementError(f"positional parameters {missing} were not bound", sql=sql)
    return tuple(values[position] for position in positions)


def coerce_bound_value(value: Any, param_type: ParamType, *, sql: str) -> Any:
    """Coerce *value* to *param_type*, reporting failures against the statement."""

    try:
        return param_type.coerce(value)
    except (TypeError, ValueError) as exc:
        raise StatementError(
            f"cannot bind {type(value).__name__} value as {param_type.value}: {exc}", sql=sql
        ) from exc


def _resolve_error_types(raw: Any, explicit: Iterable[type[BaseException]] | None) -> tuple[type[BaseException], ...]:
    if explicit is not None:
        return tuple(explicit)
    # PEP 249 exposes the exception hierarchy on the module and optionally on the connection.
    candidates = (
        getattr(raw, "Error", None),
        getattr(sys.modules.get(type(raw).__module__.partition(".")[0]), "Error", None),
    )
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, Exception):
            return (candidate,)
    raise TypeError(
        f"cannot determine the exception base of {type(raw).__name__}; pass error_types explicitly"
    )


class DBAPIStatement:
    """Statement handle backed by a fresh cursor per execution."""

    def __init__(self, owner: DBAPIConnection, sql: str) -> None:
        self._owner = owner
        self._sql = sql
        self._values: dict[int | str, Any] = {}
        self._cursor: Any = None
        self._columns: tuple[str, ...] = ()
        self._rowcount = -1

    def bind_value(self, param: int | str, value: Any, param_type: ParamType) -> None:
        self._values[param] = coerce_bound_value(value, param_type, sql=self._sql)

    def execute(self) -> bool:
        params = build_parameters(self._values, sql=self._sql)
        self._close_cursor()
        cursor = self._owner.raw.cursor()
        try:
            if params is None:
                cursor.execute(self._sql)
            else:
                cursor.execute(self._sql, params)
        except self._owner.error_types as exc:
            _close_quietly(cursor)
            self._owner._rollback_if_idle()
            raise StatementError(str(exc), sql=self._sql) from exc
        self._cursor = cursor
        self._columns = tuple(column[0] for column in (cursor.description or ()))
        self._rowcount = int(getattr(cursor, "rowcount", -1))
        self._owner._record_insert_id(cursor)
        self._owner._commit_if_idle()
        return True

    def fetch_all(self, mode: FetchMode) -> list[Row]:
        cursor = self._require_cursor()
        if not self._columns:
            return []
        try:
            raw_rows = cursor.fetchall()
        except self._owner.error_types as exc:
            raise StatementError(str(exc), sql=self._sql) from exc
        return [shape_row(self._columns, tuple(row), mode) for row in raw_rows]

    def fetch_one(self, mode: FetchMode) -> Row | None:
        raw_row = self._next_row()
        if raw_row is None:
            return None
        return shape_row(self._columns, raw_row, mode)

    def fetch_column(self, position: int) -> Any:
        raw_row = self._next_row()
        if raw_row is None:
            return None
        if position >= len(raw_row):
            raise StatementError(
                f"column position {position} is out of range for a row of {len(raw_row)} columns",
                sql=self._sql,
            )
        return raw_row[position]

    def row_count(self) -> int:
        return self._rowcount

    def _next_row(self) -> tuple[Any, ...] | None:
        cursor = self._require_cursor()
        if not self._columns:
            return None
        try:
            row = cursor.fetchone()
        except self._owner.error_types as exc:
            raise StatementError(str(exc), sql=self._sql) from exc
        return None if row is None else tuple(row)

    def _require_cursor(self) -> Any:
        if self._cursor is None:
            raise StatementError("statement has not been executed", sql=self._sql)
        return self._cursor

    def _close_cursor(self) -> None:
        if self._cursor is not None:
            _close_quietly(self._cursor)
            self._cursor = None


def _close_quietly(cursor: Any) -> None:
    close = getattr(cursor, "close", None)
    if callable(close):
        close()


class DBAPIConnection:
    """Wrap a PEP 249 connection.

    Parameters
    ----------
    raw:
        The driver connection. It stays owned by the caller unless
        :meth:`close` is used.
    error_types:
        Driver exception classes translated into fluentdb errors. Defaults to
        the driver's ``Error`` base class.
    """

    def __init__(
        self,
        raw: SupportsCursor,
        *,
        error_types: Iterable[type[BaseException]] | None = None,
    ) -> None:
        self._raw = raw
        self._error_types = _resolve_error_types(raw, error_types)
        self._explicit = False
        self._manual = False
        self._last_insert_id: Any = None

    @property
    def raw(self) -> SupportsCursor:
        return self._raw

    @property
    def error_types(self) -> tuple[type[BaseException], ...]:
        return self._error_types

    def prepare(self, sql: str) -> DBAPIStatement:
        if not sql or not sql.strip():
            raise StatementError("cannot prepare an empty statement", sql=sql)
        return DBAPIStatement(self, sql)

    def last_insert_id(self) -> str | int | None:
        return self._last_insert_id

    def begin_transaction(self) -> bool:
        if self._explicit or self._driver_in_transaction():
            raise TransactionError("the connection already has an open transaction")
        # Outside autocommit mode the driver opens a transaction on the first statement.
        if self._uses_autocommit():
            try:
                self._run_control("BEGIN")
            except self._error_types as exc:
                raise TransactionError(f"begin failed: {exc}") from exc
            self._manual = True
        self._explicit = True
        return True

    def commit(self) -> bool:
        try:
            if self._manual:
                self._run_control("COMMIT")
            else:
                self._raw.commit()
        except self._error_types as exc:
            raise TransactionError(f"commit failed: {exc}") from exc
        self._explicit = False
        self._manual = False
        return True

    def rollback(self) -> bool:
        try:
            if self._manual:
                self._run_control("ROLLBACK")
            else:
                self._raw.rollback()
        except self._error_types as exc:
            raise TransactionError(f"rollback failed: {exc}") from exc
        finally:
            self._explicit = False
            self._manual = False
        return True

    def close(self) -> None:
        self._raw.close()

    def _uses_autocommit(self) -> bool:
        """Whether the driver commits every statement on its own.

        ``driver.commit()`` is a no-op in that mode, so transaction control
        statements have to be issued explicitly.
        """

        if getattr(self._raw, "autocommit", None) is True:
            return True
        return getattr(self._raw, "isolation_level", "") is None

    def _driver_in_transaction(self) -> bool:
        # With autocommit=False the driver keeps a transaction open at all times.
        if getattr(self._raw, "autocommit", None) is False:
            return False
        return getattr(self._raw, "in_transaction", False) is True

    def _run_control(self, sql: str) -> None:
        cursor = self._raw.cursor()
        try:
            cursor.execute(sql)
        finally:
            _close_quietly(cursor)

    def _record_insert_id(self, cursor: Any) -> None:
        value = getattr(cursor, "lastrowid", None)
        if value:
            self._last_insert_id = value

    def _commit_if_idle(self) -> None:
        if self._explicit:
            return
        if getattr(self._raw, "in_transaction", True) is False:
            return
        try:
            self._raw.commit()
        except self._error_types as exc:
            raise StatementError(f"autocommit failed: {exc}") from exc

    def _rollback_if_idle(self) -> None:
        if self._explicit:
            return
        if getattr(self._raw, "in_transaction", True) is False:
            return
        self._raw.rollback()
