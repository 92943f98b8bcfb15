"""Fluent statement builder shared by every dialect.

A :class:`Query` accumulates clauses in its :class:`~sqldrawer.schema.scope.Scope`
through chained calls and compiles + executes them on a terminal call::

    posts = MySQLQuery("posts", {"driver": "mysql+pymysql", "host": "db", ...})
    rows = posts.select("id, title").where({"state": 1}).order_by_desc("id").fetch_all()

Builders can also be declared model-style::

    class Post(MySQLQuery):
        table = "posts"
        connection = {"driver": "mysql+pymysql", "host": "db", "database": "blog"}

    Post().where(["id", ">", 10]).fetch_count()

Dialect subclasses add pagination (``limit`` / ``offset`` / ``top`` /
``page``) and dialect-only statements.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Self

from sqldrawer.compile.base import CompiledSQL
from sqldrawer.compile.builder import ExpressionCompiler
from sqldrawer.compile.clause_builders import (
    ColumnsBuilder,
    InsertRowBuilder,
    SetClauseBuilder,
)
from sqldrawer.compile.condition import ConditionAnalyzer
from sqldrawer.compile.context import CompilationContext
from sqldrawer.compile.registry import DialectFactory
from sqldrawer.errors import UsageError
from sqldrawer.execute.context import ExecutionContext, Listener, get_default_context
from sqldrawer.execute.executor import Executor, StatementOptions
from sqldrawer.schema.connection import ConnectionConfig
from sqldrawer.schema.operations import AggregateKind, Operation
from sqldrawer.schema.scope import Clause, ConditionEntry, Connective, JoinEntry, Scope


def has_next_page(total: int, page: int, per: int) -> bool:
    """Return whether ``page`` holds rows when ``total`` rows are split by ``per``.

    Raises:
        UsageError: If ``per`` is not positive.
    """
    if total == 0:
        return False
    if per <= 0:
        raise UsageError(f"Rows per page must be positive, got {per}.", value=per)
    if page > math.ceil(total / per):
        return False
    return True


class Query(ABC):
    """Dialect-independent fluent builder.

    Args:
        table: Base table; defaults to the ``table`` class attribute.
        connection: Connection settings; defaults to the ``connection``
            class attribute.
        context: Execution context; the process-wide default is used when
            omitted.
    """

    #: Registered dialect name, set by dialect subclasses.
    dialect_name: ClassVar[str] = ""
    #: Default base table for model-style subclasses.
    table: ClassVar[str] = ""
    #: Default connection settings for model-style subclasses.
    connection: ClassVar[Mapping[str, Any] | ConnectionConfig | None] = None

    def __init__(
        self,
        table: str | None = None,
        connection: Mapping[str, Any] | ConnectionConfig | None = None,
        *,
        context: ExecutionContext | None = None,
    ) -> None:
        self._table = table if table is not None else type(self).table
        self._connection = ConnectionConfig.coerce(
            connection if connection is not None else type(self).connection
        )
        self._context = context

        self._ctx = CompilationContext(
            dialect=DialectFactory.create(self.dialect_name), table=self._table
        )
        self._compiler = ExpressionCompiler(self._ctx)
        self._analyzer = ConditionAnalyzer(self._ctx)
        self._columns = ColumnsBuilder(self._ctx)
        self._set = SetClauseBuilder(self._ctx)
        self._rows = InsertRowBuilder(self._ctx)

        self._scope = Scope()
        self._prepare_bindings: list[Any] = []
        self._sql_only = False
        self._complete_sql_only = False
        self._print_sql = False
        self._listener: Listener | None = None

    # ------------------------------------------------------------------
    # Dialect-specific pagination
    # ------------------------------------------------------------------

    @abstractmethod
    def limit(self, limit: int) -> Self:
        """Limit the number of rows."""

    @abstractmethod
    def offset(self, offset: int) -> Self:
        """Skip ``offset`` rows."""

    @abstractmethod
    def page(self, page: int, per: int) -> Self:
        """Select page ``page`` of ``per`` rows."""

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def context(self) -> ExecutionContext:
        return self._context if self._context is not None else get_default_context()

    @property
    def scope(self) -> Scope:
        return self._scope

    def get_table(self) -> str:
        return self._table

    def get_connection(self) -> dict[str, Any]:
        return self._connection.model_dump()

    def reset(self) -> Self:
        """Forget every accumulated clause and binding."""
        self._scope.clear()
        self._prepare_bindings = []
        return self

    def prepare_bindings(self) -> list[Any]:
        """Return the bindings of the most recently compiled statement."""
        return list(self._prepare_bindings)

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def select(self, columns: str | list[str] = "*") -> Self:
        """Add quoted columns: ``select("id, title as t")`` or ``select(["id", "title"])``."""
        columns_sql = self._columns.build(columns)
        if columns_sql:
            self._scope.append(Clause.COLUMNS, columns_sql)
        return self

    def select_raw(self, expr: str = "*") -> Self:
        """Add a column expression verbatim."""
        if expr:
            self._scope.append(Clause.COLUMNS, expr)
        return self

    def min(self, column: str, alias: str = "") -> Self:
        return self._aggregate_column("min", column, alias)

    def max(self, column: str, alias: str = "") -> Self:
        return self._aggregate_column("max", column, alias)

    def sum(self, column: str, alias: str = "") -> Self:
        return self._aggregate_column("sum", column, alias)

    def avg(self, column: str, alias: str = "") -> Self:
        return self._aggregate_column("avg", column, alias)

    def count(self, column: str = "*", alias: str = "aggregate") -> Self:
        return self._aggregate_column("count", column, alias)

    def distinct(self, column: str) -> Self:
        """Add ``distinct(<column>)``; call after :meth:`select` when both are used."""
        self._scope.append(Clause.COLUMNS, f"distinct({self._ctx.decode_field(column)})")
        return self

    def _aggregate_column(self, function: str, column: str, alias: str) -> Self:
        alias = alias or column
        column_sql = column if column == "*" else self._ctx.decode_field(column)
        quote = self._ctx.dialect.quote_identifier
        self._scope.append(Clause.COLUMNS, f"{function}({column_sql}) as {quote(alias)}")
        return self

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def where(self, where: Any) -> Self:
        """AND a condition: a mapping, ``[col, value]``, ``[col, op, value]`` or a group.

        Examples::

            .where({"id": 1, "state": 1})          # `id` = ? and `state` = ?
            .where(["id", ">", 1])                 # `id` > ?
            .where(["state", "is", "null"])        # `state` is null
            .where([["id", ">", 1], {"state": 1}]) # (`id` > ? and `state` = ?)
        """
        return self._add_where(where, (), "and")

    def where_or(self, where: Any) -> Self:
        """OR a condition; see :meth:`where`."""
        return self._add_where(where, (), "or")

    def where_raw(self, expr: str, bindings: list[Any] | tuple[Any, ...] = ()) -> Self:
        """AND raw text using ``?`` markers for ``bindings``."""
        return self._add_where(expr, tuple(bindings), "and")

    def where_or_raw(self, expr: str, bindings: list[Any] | tuple[Any, ...] = ()) -> Self:
        """OR raw text using ``?`` markers for ``bindings``."""
        return self._add_where(expr, tuple(bindings), "or")

    def where_case(self, column: str, *args: Any) -> Self:
        """Positional shorthand.

        ``where_case("type")`` → ``type = ''``; ``where_case("type", 1)`` →
        ``type = 1``; ``where_case("type", ">", 1)`` → ``type > 1``.
        """
        if not args:
            return self.where([column, "=", ""])
        if len(args) == 1:
            return self.where([column, "=", args[0]])
        return self.where([column, args[0], args[1]])

    def where_sub(self, column: str, symbol: str, query: Query, sub_column: str) -> Self:
        """Compare ``column`` with a sub-select of ``query`` on ``sub_column``."""
        query.sub_column(sub_column)
        return self.where([column, symbol, query])

    def where_null(self, column: str) -> Self:
        return self.where([column, "is", "null"])

    def where_not_null(self, column: str) -> Self:
        return self.where([column, "is", "not null"])

    def where_in(self, column: str, values: list[Any]) -> Self:
        return self.where([column, "in", values])

    def where_not_in(self, column: str, values: list[Any]) -> Self:
        return self.where([column, "not in", values])

    def where_like(self, column: str, value: str) -> Self:
        return self.where([column, "like", value])

    def where_not_like(self, column: str, value: str) -> Self:
        return self.where([column, "not like", value])

    def where_between(self, column: str, values: list[Any]) -> Self:
        return self.where([column, "between", values])

    def where_not_between(self, column: str, values: list[Any]) -> Self:
        return self.where([column, "not between", values])

    def _add_where(self, condition: Any, bindings: tuple[Any, ...], connective: Connective) -> Self:
        entry = ConditionEntry(condition=condition, bindings=bindings, connective=connective)
        self._check(entry)
        self._scope.add_where(entry)
        return self

    # ------------------------------------------------------------------
    # HAVING / GROUP BY / ORDER BY
    # ------------------------------------------------------------------

    def having(self, having: Any) -> Self:
        """AND a HAVING condition; accepts the same shapes as :meth:`where`."""
        entry = ConditionEntry(condition=having, connective="and")
        self._check(entry)
        self._scope.add_having(entry)
        return self

    def having_raw(self, expr: str, bindings: list[Any] | tuple[Any, ...] = ()) -> Self:
        self._scope.add_having(ConditionEntry(condition=expr, bindings=tuple(bindings)))
        return self

    def having_between(self, column: str, values: list[Any]) -> Self:
        return self.having([column, "between", values])

    def having_not_between(self, column: str, values: list[Any]) -> Self:
        return self.having([column, "not between", values])

    def having_null(self, column: str) -> Self:
        return self.having([column, "is", "null"])

    def having_not_null(self, column: str) -> Self:
        return self.having([column, "is", "not null"])

    def group_by(self, column: str) -> Self:
        """Group by quoted columns (``"type"`` or ``"type, state"``)."""
        self._scope.append(Clause.GROUP_BY, self._decode_list(column))
        return self

    def group_by_raw(self, expr: str) -> Self:
        self._scope.append(Clause.GROUP_BY, expr)
        return self

    def order_by(self, column: str) -> Self:
        """Order ascending by quoted columns (``"id"`` or ``"type, id"``)."""
        self._scope.append(Clause.ORDER_BY, self._decode_list(column))
        return self

    def order_by_desc(self, column: str) -> Self:
        """Order descending by quoted columns (``"id"`` or ``"type, id"``)."""
        desc = ",".join(f"{self._ctx.decode_field(c)} desc" for c in column.split(","))
        self._scope.append(Clause.ORDER_BY, desc)
        return self

    def order_by_raw(self, expr: str) -> Self:
        self._scope.append(Clause.ORDER_BY, expr)
        return self

    def _decode_list(self, columns: str) -> str:
        return ",".join(self._ctx.decode_field(c) for c in columns.split(","))

    # ------------------------------------------------------------------
    # Alias / JOIN / sub-queries
    # ------------------------------------------------------------------

    def alias(self, alias: str) -> Self:
        """Alias the base table: ``select ... from `t` as `alias```."""
        self._scope.set(Clause.ALIAS, self._ctx.dialect.quote_identifier(alias))
        return self

    def join_raw(self, table: str, on: str = "", alias: str = "", join_type: str = "join") -> Self:
        """Join with a raw ON expression and any supported join type."""
        if table:
            self._scope.add_join(JoinEntry(join_type=join_type, table=table, on=on, alias=alias))
        return self

    def join(self, table: str, on: Mapping[str, str] | None = None, alias: str = "") -> Self:
        """Join on ``{left_column: right_column}`` pairs."""
        return self._join("join", table, on, alias)

    def inner_join(self, table: str, on: Mapping[str, str] | None = None, alias: str = "") -> Self:
        return self._join("inner join", table, on, alias)

    def left_join(self, table: str, on: Mapping[str, str] | None = None, alias: str = "") -> Self:
        return self._join("left join", table, on, alias)

    def right_join(self, table: str, on: Mapping[str, str] | None = None, alias: str = "") -> Self:
        return self._join("right join", table, on, alias)

    def _join(self, join_type: str, table: str, on: Mapping[str, str] | None, alias: str) -> Self:
        if table:
            entry = JoinEntry(join_type=join_type, table=table, on=dict(on or {}), alias=alias)
            self._scope.add_join(entry)
        return self

    def sub_column(self, column: str) -> Self:
        """Column selected when this builder is used as a sub-query value."""
        self._scope.sub_column = column
        return self

    def compile_subquery(self) -> CompiledSQL:
        """Compile this builder as a sub-select restricted to its sub-column.

        Raises:
            UsageError: If :meth:`sub_column` was never called.
        """
        if not self._scope.sub_column:
            raise UsageError(
                f"Sub-query on '{self._table}' has no sub column; call sub_column() first."
            )
        previous = self._scope.strings.get(Clause.COLUMNS)
        self._scope.set(Clause.COLUMNS, self._columns.build(self._scope.sub_column))
        try:
            return self._compiler.compile(Operation.FETCH_ALL, self._scope)
        finally:
            if previous is None:
                self._scope.strings.pop(Clause.COLUMNS, None)
            else:
                self._scope.set(Clause.COLUMNS, previous)

    def _check(self, entry: ConditionEntry) -> None:
        # Surfaces malformed conditions at call time; the result is discarded
        # and rendered again at compile time.
        if entry.condition:
            self._analyzer.analyze(entry)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def to_sql(self) -> Self:
        """Return the template from terminal calls instead of executing."""
        self._sql_only = True
        return self

    def to_complete_sql(self) -> Self:
        """Return the interpolated SQL from terminal calls instead of executing."""
        self._complete_sql_only = True
        return self

    def print(self) -> Self:
        """Print every statement's SQL; execution is unaffected."""
        self._print_sql = True
        return self

    def listen(self, listener: Listener) -> Self:
        """Call ``listener(sql, template, bindings)`` before every statement."""
        self._listener = listener
        return self

    # ------------------------------------------------------------------
    # Terminal calls: reads
    # ------------------------------------------------------------------

    def fetch(self) -> dict[str, Any] | str:
        """Return the first matching record (``{}`` when nothing matches)."""
        self.limit(1)
        return self._execute(Operation.FETCH)

    def fetch_all(self) -> list[dict[str, Any]] | str:
        """Return every matching record."""
        return self._execute(Operation.FETCH_ALL)

    def paginator(self, page: int, per: int) -> dict[str, Any]:
        """Return ``{"total": <count>, "list": <rows of page>}``.

        ``list`` is empty when ``page`` is past the last page or there are no
        rows.

        Raises:
            UsageError: In sql-only modes, where no count is available.
        """
        if self._sql_only or self._complete_sql_only:
            raise UsageError("paginator() needs to execute and cannot run in sql-only mode.")
        columns = self._scope.get(Clause.COLUMNS) or "*"
        total = int(self.fetch_count() or 0)
        self._scope.set(Clause.COLUMNS, columns)
        rows = self.page(page, per).fetch_all() if has_next_page(total, page, per) else []
        return {"total": total, "list": rows}

    @staticmethod
    def has_next_page(total: int, page: int, per: int) -> bool:
        return has_next_page(total, page, per)

    def fetch_aggregate(self, kind: AggregateKind | str, column: str = "*") -> Any:
        """Run one aggregate over ``column``.

        Returns:
            The scalar result (``None`` when no row), the rows for
            ``distinct``, or the SQL text in sql-only modes.

        Raises:
            UsageError: If ``kind`` is not an :class:`AggregateKind`.
        """
        try:
            kind = AggregateKind(kind)
        except ValueError:
            raise UsageError(f"Unsupported aggregate: {kind}", value=kind) from None

        column_sql = column if column == "*" else self._ctx.decode_field(column)
        self._scope.set(Clause.COLUMNS, f"{kind.value}({column_sql})")
        result = self._execute(kind.operation)
        if isinstance(result, str) or kind.returns_rows:
            return result
        return next(iter(result.values()), None)

    def fetch_min(self, column: str) -> Any:
        return self.fetch_aggregate(AggregateKind.MIN, column)

    def fetch_max(self, column: str) -> Any:
        return self.fetch_aggregate(AggregateKind.MAX, column)

    def fetch_sum(self, column: str) -> Any:
        return self.fetch_aggregate(AggregateKind.SUM, column)

    def fetch_avg(self, column: str) -> Any:
        return self.fetch_aggregate(AggregateKind.AVG, column)

    def fetch_count(self, column: str = "*") -> Any:
        return self.fetch_aggregate(AggregateKind.COUNT, column)

    def fetch_distinct(self, column: str) -> list[dict[str, Any]] | str:
        return self.fetch_aggregate(AggregateKind.DISTINCT, column)

    # ------------------------------------------------------------------
    # Terminal calls: writes
    # ------------------------------------------------------------------

    def insert(self, data: Mapping[str, Any] | list[Mapping[str, Any]]) -> int | str:
        """Insert one row (mapping) or many rows (list of mappings) in one statement."""
        self._add_rows(data)
        return self._execute(Operation.INSERT)

    def insert_get_id(self, data: Mapping[str, Any] | list[Mapping[str, Any]]) -> Any:
        """Insert and return the last inserted id."""
        self._add_rows(data)
        return self._execute(Operation.INSERT_GET_ID)

    def update(self, data: Mapping[str, Any]) -> int | str:
        """Update with ``{column: value}`` assignments; returns affected rows."""
        return self._update(data)

    def update_raw(self, expr: str) -> int | str:
        """Update with ``"a = x, b = y"``; right-hand sides are bound as text."""
        return self._update(expr)

    def delete(self) -> int | str:
        return self._execute(Operation.DELETE)

    def truncate(self) -> int | str:
        return self._execute(Operation.TRUNCATE)

    def _update(self, data: Mapping[str, Any] | str) -> int | str:
        sql, bindings = self._set.build(data)
        self._scope.set(Clause.SET, sql)
        self._scope.add_bindings(bindings, prepend=True)
        return self._execute(Operation.UPDATE)

    def _add_rows(self, data: Mapping[str, Any] | list[Mapping[str, Any]]) -> None:
        if isinstance(data, Mapping):
            rows = [data]
        elif isinstance(data, (list, tuple)) and data and all(isinstance(r, Mapping) for r in data):
            rows = list(data)
        else:
            raise UsageError("insert() expects a mapping or a non-empty list of mappings.")
        for row in rows:
            columns, values, bindings = self._rows.build(row)
            self._scope.set(Clause.INSERT, columns)
            self._scope.append(Clause.VALUES, values)
            self._scope.add_bindings(bindings)

    # ------------------------------------------------------------------
    # Compilation / execution
    # ------------------------------------------------------------------

    def compile(self, operation: Operation | str) -> CompiledSQL:
        """Compile the current scope for ``operation`` without executing.

        The scope bindings are drained; clause strings are kept.
        """
        compiled = self._compiler.compile(Operation(operation), self._scope)
        self._prepare_bindings = list(compiled.bindings)
        return compiled

    def _execute(self, operation: Operation) -> Any:
        compiled = self.compile(operation)
        options = StatementOptions(
            listener=self._listener,
            print_sql=self._print_sql,
            sql_only=self._sql_only,
            complete_sql_only=self._complete_sql_only,
        )
        return Executor(self.context).execute(operation, compiled, self._connection, options)
