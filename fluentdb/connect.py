# SPDX-License-Identifier: MIT
"""Open a session from :class:`~fluentdb.config.DatabaseSettings`."""

from __future__ import annotations

import math
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool

from .config import DatabaseSettings
from .drivers.alchemy import SqlAlchemyConnection
from .drivers.sqlite import connect_sqlite
from .logging import get_logger
from .session import Session

__all__ = ["build_connect_args", "open_session"]

_logger = get_logger(__name__)


def build_connect_args(settings: DatabaseSettings) -> dict[str, object]:
    """Return the DBAPI keyword arguments carrying the connect timeout.

    Each driver family spells the option differently; libpq and the MySQL
    drivers only accept whole seconds.
    """

    backend = make_url(settings.url).get_backend_name()
    timeout = settings.connect_timeout_seconds
    if backend == "sqlite":
        return {"timeout": float(timeout)}
    if backend in {"postgresql", "mysql", "mariadb"}:
        return {"connect_timeout": math.ceil(timeout)}
    return {}


@contextmanager
def open_session(settings: DatabaseSettings | None = None) -> Iterator[Session]:
    """Yield a :class:`Session` over a connection owned by this block.

    ``sqlite://`` URLs use :func:`~fluentdb.drivers.sqlite.connect_sqlite`;
    any other URL goes through a SQLAlchemy engine without pooling. The
    connection and engine are released when the block exits.
    """

    settings = settings or DatabaseSettings()
    if settings.is_sqlite:
        connection = connect_sqlite(settings.sqlite_path, timeout=settings.connect_timeout_seconds)
        _logger.debug("Opened SQLite connection", path=settings.sqlite_path)
        try:
            yield Session(connection, settings.session)
        finally:
            connection.close()
        return

    engine = create_engine(
        settings.url,
        echo=settings.echo,
        poolclass=NullPool,
        connect_args=build_connect_args(settings),
    )
    try:
        with engine.connect() as raw:
            _logger.debug("Opened SQLAlchemy connection", dialect=engine.dialect.name)
            yield Session(SqlAlchemyConnection(raw), settings.session)
    finally:
        engine.dispose()
