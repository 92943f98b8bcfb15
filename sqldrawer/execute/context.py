"""Execution context shared by builders.

The context carries what every statement run consults before it reaches the
driver: the global listener, the global print switch, the transaction switch,
the connection recorded as the active transaction, and the connection pool.

A process-wide default context is created lazily and used by builders that
are not given one explicitly.  Code that runs builders from several threads
should give each thread its own context.
"""
from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO

from sqlalchemy import Connection

from sqldrawer.execute.connector import ConnectionPool
from sqldrawer.schema.connection import ConnectionConfig

logger = logging.getLogger(__name__)

#: ``(interpolated_sql, template, bindings) -> None``
Listener = Callable[[str, str, list[Any]], None]


@dataclass
class ExecutionContext:
    """Listener, print and transaction state for a group of builders.

    Attributes:
        listener: Called before every statement with the interpolated SQL,
            the template and the bindings.
        print_sql: Write the interpolated SQL of every statement to
            ``output``.
        transaction_requested: Begin a transaction on the next statement's
            connection if it has none.
        transaction: The connection recorded as the active transaction.
        pool: Connection pool used to resolve builder configurations.
        output: Stream the printed SQL is written to.
    """

    listener: Listener | None = None
    print_sql: bool = False
    transaction_requested: bool = False
    transaction: Connection | None = None
    pool: ConnectionPool = field(default_factory=ConnectionPool)
    output: TextIO | None = None

    # ------------------------------------------------------------------
    # Switches
    # ------------------------------------------------------------------

    def listen(self, listener: Listener) -> None:
        """Register the listener invoked before every statement."""
        self.listener = listener

    def print(self) -> None:
        """Print every statement's SQL; execution is unaffected."""
        self.print_sql = True

    def begin_transaction(self) -> None:
        """Run the following statements inside one transaction.

        The transaction is opened lazily on the connection of the next
        executed statement.
        """
        self.transaction_requested = True

    def commit(self) -> bool:
        """Commit the recorded transaction.

        Returns:
            ``False`` when no transaction is active on the recorded connection.
        """
        if self.transaction is None or not self.transaction.in_transaction():
            return False
        self.transaction_requested = False
        self.transaction.commit()
        logger.debug("Transaction committed")
        return True

    def roll_back(self) -> bool:
        """Roll back the recorded transaction.

        Returns:
            ``False`` when no transaction is active on the recorded connection.
        """
        if self.transaction is None or not self.transaction.in_transaction():
            return False
        self.transaction_requested = False
        self.transaction.rollback()
        logger.debug("Transaction rolled back")
        return True

    # ------------------------------------------------------------------
    # Helpers used by the executor
    # ------------------------------------------------------------------

    def connection(self, config: ConnectionConfig | Mapping[str, Any]) -> Connection:
        """Return the pooled connection for ``config``."""
        return self.pool.connection(config)

    def record_transaction(self, connection: Connection) -> None:
        """Record ``connection`` as the active transaction handle."""
        self.transaction = connection

    def emit(self, sql: str) -> None:
        """Write ``sql`` to the output stream."""
        stream = self.output if self.output is not None else sys.stdout
        stream.write(sql + "\n")


_default_context: ExecutionContext | None = None


def get_default_context() -> ExecutionContext:
    """Return the process-wide default context, creating it on first use."""
    global _default_context
    if _default_context is None:
        _default_context = ExecutionContext()
    return _default_context


def set_default_context(context: ExecutionContext | None) -> None:
    """Replace the process-wide default context (``None`` resets it)."""
    global _default_context
    _default_context = context
