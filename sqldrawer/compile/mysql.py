"""MySQL dialect."""

from __future__ import annotations

from typing import ClassVar

from sqldrawer.compile.base import Dialect, keyword_expression
from sqldrawer.schema.operations import Operation
from sqldrawer.schema.scope import Clause, Scope

_SELECT: tuple[Clause, ...] = (
    Clause.COLUMNS,
    Clause.ALIAS,
    Clause.JOIN,
    Clause.WHERE,
    Clause.GROUP_BY,
    Clause.HAVING,
    Clause.ORDER_BY,
    Clause.LIMIT,
    Clause.OFFSET,
    Clause.LOCK,
)

_AGGREGATE: tuple[Clause, ...] = (
    Clause.COLUMNS,
    Clause.ALIAS,
    Clause.JOIN,
    Clause.WHERE,
    Clause.GROUP_BY,
    Clause.HAVING,
    Clause.LOCK,
)

_WRITE: tuple[Clause, ...] = (Clause.INSERT, Clause.VALUES)


class MySQLDialect(Dialect):
    """Renders MySQL-flavoured templates.

    Identifiers are quoted with backticks (`` ` ``).  Pagination is
    ``limit <n>`` followed by an optional ``offset <m>``; an offset without a
    limit is rendered as-is and rejected by the server.
    """

    operations: ClassVar[frozenset[Operation]] = frozenset(Operation)

    clause_orders: ClassVar[dict[Operation, tuple[Clause, ...]]] = {
        Operation.FETCH: _SELECT,
        Operation.FETCH_ALL: _SELECT,
        Operation.DISTINCT: _SELECT,
        Operation.JSON_ARRAY_AGG: _SELECT,
        Operation.JSON_OBJECT_AGG: _SELECT,
        Operation.MIN: _AGGREGATE,
        Operation.MAX: _AGGREGATE,
        Operation.SUM: _AGGREGATE,
        Operation.AVG: _AGGREGATE,
        Operation.COUNT: _AGGREGATE,
        Operation.INSERT: _WRITE,
        Operation.INSERT_GET_ID: _WRITE,
        Operation.REPLACE: _WRITE,
        Operation.REPLACE_GET_ID: _WRITE,
        Operation.UPDATE: (Clause.ALIAS, Clause.SET, Clause.WHERE, Clause.ORDER_BY, Clause.LIMIT),
        Operation.DELETE: (Clause.ALIAS, Clause.WHERE, Clause.ORDER_BY, Clause.LIMIT),
        Operation.TRUNCATE: (),
    }

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"

    def render_limit(self, scope: Scope) -> str:
        return keyword_expression("limit", scope.get(Clause.LIMIT))

    def render_offset(self, scope: Scope) -> str:
        return keyword_expression("offset", scope.get(Clause.OFFSET))

    def truncate_head(self, table_sql: str) -> str:
        return f"truncate {table_sql}"
