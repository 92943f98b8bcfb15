"""sqldrawer execution layer: compiled template → driver result."""
from sqldrawer.execute.connector import ConnectionPool
from sqldrawer.execute.context import (
    ExecutionContext,
    get_default_context,
    set_default_context,
)
from sqldrawer.execute.executor import Executor, StatementOptions

__all__ = [
    "ConnectionPool",
    "ExecutionContext",
    "Executor",
    "StatementOptions",
    "get_default_context",
    "set_default_context",
]
