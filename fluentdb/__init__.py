# SPDX-License-Identifier: MIT
"""Fluent prepared-statement sessions with a callback based transaction runner."""

from .config import DatabaseSettings, SessionSettings
from .connect import open_session
from .drivers import DBAPIConnection, SQLiteConnection, SqlAlchemyConnection, connect_sqlite
from .exceptions import (
    DatabaseError,
    PreconditionError,
    StatementError,
    TransactionError,
    TransactionFailedError,
)
from .fetch import FetchMode
from .params import ParamType, infer_param_type
from .protocols import DriverConnection, DriverStatement
from .session import Session, TransactionState
from .statement import ExecutionState, Statement

__all__ = [
    "DBAPIConnection",
    "DatabaseError",
    "DatabaseSettings",
    "DriverConnection",
    "DriverStatement",
    "ExecutionState",
    "FetchMode",
    "ParamType",
    "PreconditionError",
    "SQLiteConnection",
    "Session",
    "SessionSettings",
    "SqlAlchemyConnection",
    "Statement",
    "StatementError",
    "TransactionError",
    "TransactionFailedError",
    "TransactionState",
    "connect_sqlite",
    "infer_param_type",
    "open_session",
]
