# SPDX-License-Identifier: MIT
"""Fluent statement session with a callback based transaction runner.

A :class:`Session` borrows a live connection for its whole lifetime and keeps
one *current* prepared statement. Statement calls chain on the session::

    rows = session.prepare("SELECT * FROM users WHERE id = :id").bind("id", 7).fetch_all()

Units of work run atomically through :meth:`Session.run_in_transaction` (or the
equivalent :meth:`Session.transaction` context manager). Any exception raised
by the work rolls the transaction back exactly once before it is re-raised as
:class:`~fluentdb.exceptions.TransactionFailedError`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from enum import Enum
from typing import Any, TypeVar

from .config import SessionSettings
from .exceptions import PreconditionError, StatementError, TransactionError, TransactionFailedError
from .fetch import FetchMode, Row
from .logging import StructuredLogger, get_logger
from .params import ParamType
from .protocols import DriverConnection
from .statement import Statement

__all__ = ["Session", "TransactionState"]

T = TypeVar("T")

_logger = get_logger(__name__)


class TransactionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class Session:
    """Chainable facade over one borrowed connection.

    Parameters
    ----------
    connection:
        Live connection implementing :class:`~fluentdb.protocols.DriverConnection`.
        The session never closes it.
    settings:
        Optional :class:`~fluentdb.config.SessionSettings`.
    logger:
        Structured logger override, mostly useful in tests.
    """

    def __init__(
        self,
        connection: DriverConnection,
        settings: SessionSettings | None = None,
        *,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._connection = connection
        self._settings = settings or SessionSettings()
        self._logger = logger or _logger
        self._current: Statement | None = None
        self._tx_state = TransactionState.IDLE

    @property
    def connection(self) -> DriverConnection:
        return self._connection

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def in_transaction(self) -> bool:
        return self._tx_state is TransactionState.ACTIVE

    @property
    def current(self) -> Statement:
        """The statement created by the last :meth:`prepare` call."""

        if self._current is None:
            raise PreconditionError("no prepared statement; call prepare() first")
        return self._current

    # ------------------------------------------------------------------
    # Statement chaining
    def statement(self, sql: str) -> Statement:
        """Prepare *sql* as an independent statement, leaving the current one untouched."""

        if self._settings.log_statements:
            self._logger.debug("Preparing statement", sql=sql)
        handle = self._connection.prepare(sql)
        return Statement(handle, sql, default_fetch_mode=self._settings.default_fetch_mode)

    def prepare(self, sql: str) -> Session:
        """Replace the current statement with a freshly prepared *sql*."""

        self._current = self.statement(sql)
        return self

    def bind(self, param: int | str, value: Any, param_type: ParamType | None = None) -> Session:
        self.current.bind(param, value, param_type)
        return self

    def bind_values(self, values: Mapping[str, Any] | Sequence[Any]) -> Session:
        self.current.bind_values(values)
        return self

    def execute(self) -> bool:
        return self.current.execute()

    def fetch_all(self, mode: FetchMode | None = None) -> list[Row]:
        return self.current.fetch_all(mode)

    def fetch_one(self, mode: FetchMode | None = None) -> Row | None:
        return self.current.fetch_one(mode)

    def fetch_column(self, position: int = 0) -> Any:
        return self.current.fetch_column(position)

    def row_count(self) -> int:
        return self.current.row_count()

    def last_insert_id(self) -> int:
        """Most recent autoincrement id generated on the connection, 0 if none."""

        raw = self._connection.last_insert_id()
        if raw is None or raw == "":
            return 0
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise StatementError(f"engine returned a non-integer insert id: {raw!r}") from exc

    # ------------------------------------------------------------------
    # Explicit transaction control
    def begin(self) -> bool:
        if self._tx_state is TransactionState.ACTIVE:
            raise TransactionError("a transaction is already active on this connection")
        started = bool(self._connection.begin_transaction())
        self._tx_state = TransactionState.ACTIVE
        self._logger.debug("Transaction started")
        return started

    def commit(self) -> bool:
        """Commit the active transaction.

        If the connection fails to commit the transaction stays active, so the
        caller can still roll it back.
        """

        if self._tx_state is not TransactionState.ACTIVE:
            raise TransactionError("commit() called without an active transaction")
        committed = bool(self._connection.commit())
        self._tx_state = TransactionState.IDLE
        self._logger.debug("Transaction committed")
        return committed

    def rollback(self) -> bool:
        if self._tx_state is not TransactionState.ACTIVE:
            raise TransactionError("rollback() called without an active transaction")
        try:
            rolled_back = bool(self._connection.rollback())
        finally:
            self._tx_state = TransactionState.IDLE
        self._logger.debug("Transaction rolled back")
        return rolled_back

    # ------------------------------------------------------------------
    # Transaction runner
    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Run the enclosed block in a transaction.

        Leaving the block normally commits. An :class:`Exception` rolls back and
        is re-raised as :class:`TransactionFailedError`; other
        :class:`BaseException` subclasses roll back and propagate unchanged.
        """

        self.begin()
        try:
            yield self
        except Exception as exc:
            self._abort(exc)
            raise TransactionFailedError(f"Transaction failed: {exc}", cause=exc) from exc
        except BaseException as exc:
            self._abort(exc)
            raise
        self._finish()

    def run_in_transaction(self, work: Callable[[Session], T]) -> T:
        """Call ``work(self)`` inside a transaction and return its result."""

        with self.transaction() as session:
            return work(session)

    def _abort(self, error: BaseException) -> None:
        self._logger.warning(
            "Rolling back failed transaction",
            error_type=type(error).__name__,
            error_message=str(error),
        )
        try:
            self.rollback()
        except Exception as rollback_error:
            raise TransactionError("rollback of the failed transaction did not complete") from rollback_error

    def _finish(self) -> None:
        try:
            self.commit()
        except Exception as commit_error:
            self._abort(commit_error)
            raise TransactionError("commit failed; the transaction was rolled back") from commit_error
