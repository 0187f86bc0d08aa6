# SPDX-License-Identifier: MIT
"""Prepared statement context with an explicit execution state."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from .exceptions import PreconditionError
from .fetch import FetchMode, Row
from .params import ParamType, infer_param_type, normalize_param_id
from .protocols import DriverStatement

__all__ = ["ExecutionState", "Statement"]


class ExecutionState(str, Enum):
    """Where a statement is in its execute/fetch lifecycle."""

    UNEXECUTED = "unexecuted"
    EXECUTED = "executed"
    CONSUMED = "consumed"


class Statement:
    """Chainable wrapper around one driver statement handle.

    Fetch helpers execute the statement only when it has not run since it was
    prepared or last bound. Fetching after the results were consumed raises
    :class:`PreconditionError` instead of running the statement again, so an
    ``INSERT`` followed by a fetch never applies its side effects twice.
    """

    def __init__(
        self,
        handle: DriverStatement,
        sql: str,
        *,
        default_fetch_mode: FetchMode = FetchMode.ASSOC,
    ) -> None:
        self._handle = handle
        self._sql = sql
        self._default_fetch_mode = default_fetch_mode
        self._state = ExecutionState.UNEXECUTED

    def __repr__(self) -> str:
        return f"Statement(sql={self._sql!r}, state={self._state.value})"

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def state(self) -> ExecutionState:
        return self._state

    def bind(self, param: int | str, value: Any, param_type: ParamType | None = None) -> Statement:
        """Bind *value* to a named or 1-based positional placeholder."""

        param_id = normalize_param_id(param)
        resolved = param_type if param_type is not None else infer_param_type(value)
        self._handle.bind_value(param_id, value, resolved)
        self._state = ExecutionState.UNEXECUTED
        return self

    def bind_values(self, values: Mapping[str, Any] | Sequence[Any]) -> Statement:
        """Bind a mapping by name or a sequence by position, inferring every type."""

        if isinstance(values, Mapping):
            for name, value in values.items():
                self.bind(name, value)
        elif isinstance(values, (str, bytes, bytearray)):
            raise TypeError("bind_values() expects a mapping or a sequence of values")
        else:
            for position, value in enumerate(values, start=1):
                self.bind(position, value)
        return self

    def execute(self) -> bool:
        """Run the statement with the values bound so far."""

        try:
            succeeded = bool(self._handle.execute())
        except Exception:
            # The previous result set is gone; the next fetch has to run the statement.
            self._state = ExecutionState.UNEXECUTED
            raise
        self._state = ExecutionState.EXECUTED
        return succeeded

    def fetch_all(self, mode: FetchMode | None = None) -> list[Row]:
        self._ensure_executed()
        rows = list(self._handle.fetch_all(self._resolve_mode(mode)))
        self._state = ExecutionState.CONSUMED
        return rows

    def fetch_one(self, mode: FetchMode | None = None) -> Row | None:
        """Return the next row, or ``None`` once the result set is exhausted."""

        self._ensure_executed()
        row = self._handle.fetch_one(self._resolve_mode(mode))
        if row is None:
            self._state = ExecutionState.CONSUMED
        return row

    def fetch_column(self, position: int = 0) -> Any:
        """Return the value at *position* in the next row, ``None`` without rows.

        A ``None`` result cannot be told apart from a SQL ``NULL``, so the
        statement stays executed rather than being marked consumed.
        """

        if position < 0:
            raise ValueError(f"column position must be >= 0, got {position}")
        self._ensure_executed()
        return self._handle.fetch_column(position)

    def row_count(self) -> int:
        if self._state is ExecutionState.UNEXECUTED:
            raise PreconditionError("row_count() requires an executed statement")
        return int(self._handle.row_count())

    def _ensure_executed(self) -> None:
        if self._state is ExecutionState.CONSUMED:
            raise PreconditionError(
                "statement results were already consumed; bind or execute again before fetching"
            )
        if self._state is ExecutionState.UNEXECUTED:
            self.execute()

    def _resolve_mode(self, mode: FetchMode | None) -> FetchMode:
        if mode is None or mode is FetchMode.DEFAULT:
            return self._default_fetch_mode
        return mode
