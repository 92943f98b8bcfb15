"""sqldrawer – fluent multi-dialect SQL statement builder and executor.

Chain. Compile. Execute.

Public API
----------
``MySQLQuery`` / ``SQLServerQuery``
    Fluent builders; terminal calls (``fetch_all``, ``insert``, ``update``,
    ...) compile the accumulated clauses to a ``?``-parameterized template
    and run it through a pooled SQLAlchemy connection::

        from sqldrawer import MySQLQuery

        posts = MySQLQuery("posts", {"driver": "mysql+pymysql", "host": "db",
                                     "username": "app", "database": "blog"})
        rows = posts.where({"state": 1}).order_by_desc("id").limit(10).fetch_all()

``listen`` / ``print_sql`` / ``begin_transaction`` / ``commit`` / ``roll_back``
    Switches on the process-wide default :class:`ExecutionContext`.

Extensibility
-------------
New dialects can be registered via::

    from sqldrawer.compile.registry import DialectFactory

    @DialectFactory.register("postgres")
    class PostgresDialect(Dialect):
        ...

and used by a ``Query`` subclass with ``dialect_name = "postgres"``.
"""

from __future__ import annotations

from sqldrawer.compile.base import CompiledSQL, Dialect
from sqldrawer.compile.builder import ExpressionCompiler
from sqldrawer.compile.mysql import MySQLDialect
from sqldrawer.compile.registry import DialectFactory
from sqldrawer.compile.sqlserver import SQLServerDialect
from sqldrawer.errors import (
    BindingError,
    ConfigurationError,
    DriverError,
    ExecutionError,
    PreparationError,
    SQLDrawerError,
    UsageError,
)
from sqldrawer.execute.connector import ConnectionPool
from sqldrawer.execute.context import (
    ExecutionContext,
    Listener,
    get_default_context,
    set_default_context,
)
from sqldrawer.query.base import Query, has_next_page
from sqldrawer.query.mysql import MySQLQuery
from sqldrawer.query.sqlserver import SQLServerQuery
from sqldrawer.schema.connection import ConnectionConfig
from sqldrawer.schema.operations import AggregateKind, Operation

# ---------------------------------------------------------------------------
# Register built-in dialects with DialectFactory
# ---------------------------------------------------------------------------

DialectFactory.register_class("mysql", MySQLDialect)
DialectFactory.register_class("sqlserver", SQLServerDialect)

__all__ = [
    # Builders
    "Query",
    "MySQLQuery",
    "SQLServerQuery",
    "has_next_page",
    # Configuration
    "ConnectionConfig",
    "Operation",
    "AggregateKind",
    # Execution
    "ExecutionContext",
    "ConnectionPool",
    "Listener",
    "get_default_context",
    "set_default_context",
    "listen",
    "print_sql",
    "begin_transaction",
    "commit",
    "roll_back",
    # Compilation
    "CompiledSQL",
    "Dialect",
    "DialectFactory",
    "ExpressionCompiler",
    "MySQLDialect",
    "SQLServerDialect",
    # Errors
    "SQLDrawerError",
    "UsageError",
    "ConfigurationError",
    "DriverError",
    "PreparationError",
    "BindingError",
    "ExecutionError",
]


def listen(listener: Listener) -> None:
    """Call ``listener(sql, template, bindings)`` before every statement run
    through the default context."""
    get_default_context().listen(listener)


def print_sql() -> None:
    """Print every statement run through the default context."""
    get_default_context().print()


def begin_transaction() -> None:
    """Open a transaction on the next statement run through the default context."""
    get_default_context().begin_transaction()


def commit() -> bool:
    """Commit the default context's transaction; ``False`` if none is active."""
    return get_default_context().commit()


def roll_back() -> bool:
    """Roll back the default context's transaction; ``False`` if none is active."""
    return get_default_context().roll_back()
