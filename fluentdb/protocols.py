# SPDX-License-Identifier: MIT
"""Structural contract a connection must satisfy to back a :class:`Session`."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .fetch import FetchMode, Row
from .params import ParamType

__all__ = ["DriverConnection", "DriverStatement"]


@runtime_checkable
class DriverStatement(Protocol):
    """Prepared statement handle produced by :meth:`DriverConnection.prepare`."""

    def bind_value(self, param: int | str, value: Any, param_type: ParamType) -> None:  # pragma: no cover - runtime duck typing
        """Attach *value* to the placeholder *param*."""

    def execute(self) -> bool:  # pragma: no cover - runtime duck typing
        """Run the statement with the currently bound values."""

    def fetch_all(self, mode: FetchMode) -> list[Row]:  # pragma: no cover - runtime duck typing
        """Return every remaining row."""

    def fetch_one(self, mode: FetchMode) -> Row | None:  # pragma: no cover - runtime duck typing
        """Return the next row or ``None``."""

    def fetch_column(self, position: int) -> Any:  # pragma: no cover - runtime duck typing
        """Return one column of the next row or ``None``."""

    def row_count(self) -> int:  # pragma: no cover - runtime duck typing
        """Rows affected by the last execution, ``-1`` when unknown."""


@runtime_checkable
class DriverConnection(Protocol):
    """Minimum surface of a live connection borrowed by a session."""

    def prepare(self, sql: str) -> DriverStatement:  # pragma: no cover - runtime duck typing
        """Compile *sql* into a statement handle."""

    def last_insert_id(self) -> str | int | None:  # pragma: no cover - runtime duck typing
        """Most recently generated autoincrement identifier."""

    def begin_transaction(self) -> bool:  # pragma: no cover - runtime duck typing
        """Open a transaction."""

    def commit(self) -> bool:  # pragma: no cover - runtime duck typing
        """Commit the open transaction."""

    def rollback(self) -> bool:  # pragma: no cover - runtime duck typing
        """Roll back the open transaction."""
