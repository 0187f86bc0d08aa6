# SPDX-License-Identifier: MIT
"""Typed configuration for statement sessions and the connections behind them."""

from __future__ import annotations

from pydantic import BaseModel, Field, PositiveFloat, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .fetch import FetchMode

__all__ = ["DatabaseSettings", "SessionSettings"]


class SessionSettings(BaseModel):
    """Behaviour knobs applied by a :class:`~fluentdb.session.Session`."""

    default_fetch_mode: FetchMode = Field(
        FetchMode.ASSOC,
        description="Row shape used when a fetch call does not request one explicitly.",
    )
    log_statements: bool = Field(
        False,
        description="Emit a DEBUG record with the SQL text every time a statement is prepared.",
    )

    @field_validator("default_fetch_mode")
    @classmethod
    def _reject_default(cls, value: FetchMode) -> FetchMode:
        if value is FetchMode.DEFAULT:
            raise ValueError("default_fetch_mode must name a concrete row shape")
        return value


class DatabaseSettings(BaseSettings):
    """Connection target plus session options, loadable from ``FLUENTDB_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLUENTDB_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    url: str = Field(
        "sqlite:///:memory:",
        min_length=1,
        description="SQLAlchemy style database URL. ``sqlite:///`` URLs use the built-in sqlite3 driver.",
    )
    echo: bool = Field(
        False,
        description="Enable SQLAlchemy statement logging for non-SQLite URLs.",
    )
    connect_timeout_seconds: PositiveFloat = Field(
        5.0,
        description="Seconds to wait for the database to accept a connection or release a lock.",
    )
    session: SessionSettings = Field(default_factory=SessionSettings)

    @property
    def is_sqlite(self) -> bool:
        return self.url.lower().startswith("sqlite://")

    @property
    def sqlite_path(self) -> str:
        """Filesystem path (or ``:memory:``) encoded in a ``sqlite:///`` URL."""

        if not self.is_sqlite:
            raise ValueError(f"{self.url!r} is not a SQLite URL")
        path = self.url[len("sqlite://"):]
        if path.startswith("/"):
            path = path[1:]
        return path or ":memory:"
