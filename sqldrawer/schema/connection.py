"""Pydantic model for the connection configuration of a builder.

The configuration identifies a pooled connection by its fingerprint, a hash
of the configuration sorted by key.  Two configurations holding the same
values resolve to the same pooled connection whatever the key order of the
mapping they were created from.
"""
from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConnectionConfig(BaseModel):
    """Connection settings for one database.

    Attributes:
        driver: SQLAlchemy driver name (e.g. ``'mysql+pymysql'``,
            ``'mssql+pyodbc'``, ``'sqlite'``).
        host: Server host name.
        port: Server port; empty when the driver default applies.
        username: Login name.
        password: Login password.
        database: Database (schema) name, or file path for SQLite.
        charset: Connection character set, passed as URL query.
        options: Extra DB-API ``connect()`` keyword arguments.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    driver: str = ""
    host: str = ""
    port: str | int = ""
    username: str = ""
    password: str = ""
    database: str = ""
    charset: str = ""
    options: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def coerce(cls, config: ConnectionConfig | Mapping[str, Any] | None) -> ConnectionConfig:
        """Return ``config`` as a :class:`ConnectionConfig`.

        Args:
            config: A model instance, a plain mapping, or ``None`` (empty
                configuration).
        """
        if config is None:
            return cls()
        if isinstance(config, cls):
            return config
        return cls.model_validate(dict(config))

    def fingerprint(self) -> str:
        """Return a stable identifier for this configuration."""
        payload = json.dumps(self.model_dump(), sort_keys=True, default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
