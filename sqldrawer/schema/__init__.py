"""sqldrawer schema models: Scope, ConnectionConfig, Operation."""
from sqldrawer.schema.connection import ConnectionConfig
from sqldrawer.schema.operations import AggregateKind, Operation, ResultShape
from sqldrawer.schema.scope import Clause, ConditionEntry, JoinEntry, Scope

__all__ = [
    "AggregateKind",
    "Clause",
    "ConditionEntry",
    "ConnectionConfig",
    "JoinEntry",
    "Operation",
    "ResultShape",
    "Scope",
]
