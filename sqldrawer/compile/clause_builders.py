"""Clause-level SQL builders.

Each class handles exactly one clause.  They are pure: they return rendered
text (and bindings where the clause has markers) and leave it to the caller
to store the result in the builder's scope.

Classes
-------
ColumnsBuilder     — ``select`` column lists with ``as`` / space aliases
JoinClauseBuilder  — `` <type> <table> as <alias> on (...)``
SetClauseBuilder   — ``update ... set`` assignments
InsertRowBuilder   — ``insert`` column head and one ``values`` tuple
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqldrawer.compile.context import CompilationContext
from sqldrawer.errors import UsageError
from sqldrawer.schema.scope import JoinEntry


class ColumnsBuilder:
    """Builds the column list of a ``select``.

    ``"id, title as t, name n"`` renders as ```id`,`title` as `t`,`name` `n```.
    A lone ``*`` is kept unquoted.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, columns: str | list[str] | tuple[str, ...]) -> str:
        if isinstance(columns, str):
            if columns.strip() == "*":
                return "*"
            items = columns.split(",")
        else:
            items = list(columns)
            if len(items) == 1 and items[0].strip() == "*":
                return "*"
        return ",".join(self._build_item(item.strip()) for item in items if item.strip())

    def _build_item(self, column: str) -> str:
        if " as " in column:
            base, alias = column.split(" as ", 1)
            symbol = " as "
        elif " " in column:
            base, alias = column.split(" ", 1)
            symbol = " "
        else:
            return self._ctx.decode_field(column)
        quote = self._ctx.dialect.quote_identifier
        return f"{self._ctx.decode_field(base)}{symbol}{quote(alias.strip())}"


class JoinClauseBuilder:
    """Builds the JOIN fragments of a statement.

    Column-pair ON mappings are decoded against the left alias (the builder's
    alias, else the quoted base table) and the join alias.  Raw ON text is
    emitted verbatim; markers inside it are not bound.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, joins: list[JoinEntry], left_alias: str = "") -> str:
        """Render every join in chain order.

        Args:
            joins: The chained join entries.
            left_alias: The quoted alias of the base table, if any.
        """
        left = left_alias or self._ctx.table_sql
        return "".join(self._build_one(join, left) for join in joins)

    def _build_one(self, join: JoinEntry, left: str) -> str:
        quote = self._ctx.dialect.quote_identifier
        right = quote(join.alias or join.table)
        sql = f" {join.join_type} {quote(join.table)} as {right}"
        if not join.on:
            return sql
        if isinstance(join.on, Mapping):
            decode = self._ctx.decode_field
            pairs = [
                f"{decode(left_col, left)} = {decode(right_col, right)}"
                for left_col, right_col in join.on.items()
            ]
            on_sql = " and ".join(pairs)
        else:
            on_sql = join.on
        return f"{sql} on ({on_sql})"


class SetClauseBuilder:
    """Builds ``update`` assignments.

    A mapping binds each value; a raw ``"a = x, b = y"`` string is split on
    ``,`` and ``=`` and its right-hand sides are bound as strings.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, update: Mapping[str, Any] | str) -> tuple[str, list[Any]]:
        if isinstance(update, str):
            pairs: list[tuple[str, Any]] = []
            for item in update.split(","):
                if "=" not in item:
                    raise UsageError(f"Malformed assignment: {item.strip()!r}", value=item)
                column, value = item.split("=", 1)
                pairs.append((column, value.strip()))
        elif isinstance(update, Mapping) and update:
            pairs = list(update.items())
        else:
            raise UsageError("update() expects a non-empty mapping or assignment string.")

        decode = self._ctx.decode_field
        sql = ", ".join(f"{decode(column)} = ?" for column, _ in pairs)
        return sql, [value for _, value in pairs]


class InsertRowBuilder:
    """Builds the column head and the ``values`` tuple for one row."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, row: Mapping[str, Any]) -> tuple[str, str, list[Any]]:
        """Return ``(columns_sql, values_sql, bindings)`` for ``row``."""
        if not row:
            raise UsageError("Cannot insert an empty row.")
        quote = self._ctx.dialect.quote_identifier
        columns = ", ".join(quote(column) for column in row)
        markers = ",".join("?" for _ in row)
        return f"({columns})", f"({markers})", list(row.values())
