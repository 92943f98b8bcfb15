"""Pooled SQLAlchemy connections keyed by configuration fingerprint.

Each distinct :class:`~sqldrawer.schema.connection.ConnectionConfig` gets one
engine and one long-lived connection.  Configurations that hold the same
values share that connection regardless of the key order they were written
in.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Connection, Engine, create_engine
from sqlalchemy.engine import URL
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError

from sqldrawer.errors import DriverError
from sqldrawer.schema.connection import ConnectionConfig

logger = logging.getLogger(__name__)

#: Short driver names accepted in configurations, mapped to SQLAlchemy driver
#: names.  Any other value is passed to SQLAlchemy unchanged.
DRIVER_ALIASES: dict[str, str] = {
    "mysql": "mysql+pymysql",
    "pdo_mysql": "mysql+pymysql",
    "sqlserver": "mssql+pyodbc",
    "sqlsrv": "mssql+pyodbc",
    "pdo_sqlsrv": "mssql+pyodbc",
    "dblib": "mssql+pymssql",
    "pdo_dblib": "mssql+pymssql",
}


def resolve_driver(driver: str) -> str:
    """Return the SQLAlchemy driver name for ``driver``."""
    return DRIVER_ALIASES.get(driver.strip().lower(), driver)


def build_url(config: ConnectionConfig) -> URL:
    """Translate ``config`` into a SQLAlchemy :class:`~sqlalchemy.engine.URL`."""
    query = {"charset": config.charset} if config.charset else {}
    return URL.create(
        drivername=resolve_driver(config.driver),
        username=config.username or None,
        password=config.password or None,
        host=config.host or None,
        port=int(config.port) if config.port not in ("", None) else None,
        database=config.database or None,
        query=query,
    )


class ConnectionPool:
    """One engine and connection per configuration fingerprint.

    Example::

        pool = ConnectionPool()
        conn = pool.connection({"driver": "sqlite", "database": ":memory:"})
        assert conn is pool.connection({"database": ":memory:", "driver": "sqlite"})
    """

    def __init__(self) -> None:
        self._engines: dict[str, Engine] = {}
        self._connections: dict[str, Connection] = {}

    def connection(self, config: ConnectionConfig | Mapping[str, Any]) -> Connection:
        """Return the pooled connection for ``config``, opening it on first use."""
        config = ConnectionConfig.coerce(config)
        key = config.fingerprint()
        connection = self._connections.get(key)
        if connection is not None and not connection.closed:
            return connection

        engine = self._engines.get(key)
        if engine is None:
            try:
                engine = create_engine(build_url(config), connect_args=dict(config.options))
            except (ArgumentError, NoSuchModuleError, ImportError) as exc:
                raise DriverError(f"Cannot load driver {config.driver!r}: {exc}") from exc
            self._engines[key] = engine
            logger.debug("Created engine for driver %r (%s)", config.driver, key[:12])

        try:
            connection = engine.connect()
        except SQLAlchemyError as exc:
            raise DriverError(f"Cannot connect with driver {config.driver!r}: {exc}") from exc
        self._connections[key] = connection
        return connection

    def __contains__(self, config: object) -> bool:
        if not isinstance(config, (ConnectionConfig, Mapping)):
            return False
        return ConnectionConfig.coerce(config).fingerprint() in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def close(self) -> None:
        """Close every pooled connection and dispose of the engines."""
        for connection in self._connections.values():
            connection.close()
        for engine in self._engines.values():
            engine.dispose()
        self._connections.clear()
        self._engines.clear()
