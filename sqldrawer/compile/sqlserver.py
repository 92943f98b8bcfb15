"""SQL Server dialect."""

from __future__ import annotations

from typing import ClassVar

from sqldrawer.compile.base import Dialect
from sqldrawer.schema.operations import Operation
from sqldrawer.schema.scope import Clause, Scope

_SELECT: tuple[Clause, ...] = (
    Clause.TOP,
    Clause.COLUMNS,
    Clause.ALIAS,
    Clause.JOIN,
    Clause.WHERE,
    Clause.GROUP_BY,
    Clause.HAVING,
    Clause.ORDER_BY,
    Clause.OFFSET,
)

_AGGREGATE: tuple[Clause, ...] = (
    Clause.COLUMNS,
    Clause.ALIAS,
    Clause.JOIN,
    Clause.WHERE,
    Clause.GROUP_BY,
    Clause.HAVING,
)


class SQLServerDialect(Dialect):
    """Renders SQL Server (T-SQL) flavoured templates.

    Identifiers are quoted with brackets (``[name]``).  Row limits render as
    ``top <n>`` right after ``select``; once an offset is set the limit moves
    to ``offset <m> rows fetch next <n> rows only`` after ``order by``, with
    ``n`` defaulting to ``0`` when no row count was given.

    UPDATE and DELETE carry the row limit in their head
    (``update top (n) [t]`` / ``delete top (n) from [t]``).  ``replace into``
    and the JSON aggregates are MySQL-only and not declared here.
    """

    operations: ClassVar[frozenset[Operation]] = frozenset(Operation) - {
        Operation.REPLACE,
        Operation.REPLACE_GET_ID,
        Operation.JSON_ARRAY_AGG,
        Operation.JSON_OBJECT_AGG,
    }

    clause_orders: ClassVar[dict[Operation, tuple[Clause, ...]]] = {
        Operation.FETCH: _SELECT,
        Operation.FETCH_ALL: _SELECT,
        Operation.DISTINCT: _SELECT,
        Operation.MIN: _AGGREGATE,
        Operation.MAX: _AGGREGATE,
        Operation.SUM: _AGGREGATE,
        Operation.AVG: _AGGREGATE,
        Operation.COUNT: _AGGREGATE,
        Operation.INSERT: (Clause.INSERT, Clause.VALUES),
        Operation.INSERT_GET_ID: (Clause.INSERT, Clause.VALUES),
        Operation.UPDATE: (Clause.ALIAS, Clause.SET, Clause.WHERE, Clause.ORDER_BY),
        Operation.DELETE: (Clause.ALIAS, Clause.WHERE, Clause.ORDER_BY),
        Operation.TRUNCATE: (),
    }

    @property
    def dialect_name(self) -> str:
        return "sqlserver"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("]", "]]")
        return f"[{escaped}]"

    def render_limit(self, scope: Scope) -> str:
        top = scope.get(Clause.TOP)
        if top == "" or scope.has(Clause.OFFSET):
            return ""
        return f"top {top} "

    def render_offset(self, scope: Scope) -> str:
        offset = scope.get(Clause.OFFSET)
        if offset == "":
            return ""
        top = scope.get(Clause.TOP) or "0"
        return f" offset {offset} rows fetch next {top} rows only"

    def truncate_head(self, table_sql: str) -> str:
        return f"truncate table {table_sql}"

    def head(self, operation: Operation, table_sql: str, scope: Scope) -> str:
        top = scope.get(Clause.TOP)
        if top and operation is Operation.UPDATE:
            return f"update top ({top}) {table_sql}"
        if top and operation is Operation.DELETE:
            return f"delete top ({top}) from {table_sql}"
        return super().head(operation, table_sql, scope)
