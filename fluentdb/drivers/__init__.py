# SPDX-License-Identifier: MIT
"""Adapters turning concrete database clients into session connections."""

from .alchemy import SqlAlchemyConnection, SqlAlchemyStatement
from .dbapi import DBAPIConnection, DBAPIStatement
from .sqlite import SQLiteConnection, connect_sqlite

__all__ = [
    "DBAPIConnection",
    "DBAPIStatement",
    "SQLiteConnection",
    "SqlAlchemyConnection",
    "SqlAlchemyStatement",
    "connect_sqlite",
]
