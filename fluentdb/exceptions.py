# SPDX-License-Identifier: MIT
"""Exceptions raised by the statement session and its driver adapters."""

from __future__ import annotations

__all__ = [
    "DatabaseError",
    "PreconditionError",
    "StatementError",
    "TransactionError",
    "TransactionFailedError",
]


class DatabaseError(RuntimeError):
    """Base class for database access related failures."""


class StatementError(DatabaseError):
    """The engine rejected a statement while preparing, executing or fetching it."""

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql


class PreconditionError(DatabaseError):
    """An operation was invoked in a state that does not allow it.

    Raised before any engine call is made, e.g. binding without a prepared
    statement or fetching from a statement whose results were consumed.
    """


class TransactionError(DatabaseError):
    """Begin, commit or rollback failed at the connection level."""


class TransactionFailedError(TransactionError):
    """The unit of work passed to the transaction runner raised.

    The transaction has been rolled back by the time this is raised. The
    original exception is kept on :attr:`cause` and chained as ``__cause__``.
    """

    def __init__(self, message: str, *, cause: BaseException) -> None:
        super().__init__(message)
        self.cause = cause
