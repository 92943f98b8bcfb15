"""Dialect abstractions: CompiledSQL and the Dialect ABC.

The Template Method pattern (GoF) is used:
- ``Dialect`` declares, per :class:`~sqldrawer.schema.operations.Operation`,
  the ordered list of clauses to render and the statement head.
- ``MySQLDialect`` and ``SQLServerDialect`` override the dialect-specific
  steps (identifier quoting, pagination, truncate syntax).

Clause tables are validated when a dialect class is defined: every operation
a dialect declares must have a clause list.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from sqldrawer.errors import ConfigurationError
from sqldrawer.schema.operations import Operation, is_select
from sqldrawer.schema.scope import Clause, Scope

#: Placeholder marker used in every compiled template.
PLACEHOLDER = "?"


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled template with ``?`` markers.
        bindings: Values for the markers, in marker order.
        dialect: The dialect name (``'mysql'`` or ``'sqlserver'``).
    """

    sql: str
    bindings: list[Any] = field(default_factory=list)
    dialect: str = ""

    @property
    def complete_sql(self) -> str:
        """The template with every marker replaced by its literal value."""
        return interpolate(self.sql, self.bindings)


def interpolate(template: str, bindings: list[Any]) -> str:
    """Substitute ``bindings`` into ``template`` for display.

    Strings are single-quoted, ``None`` renders as ``null`` and booleans as
    ``1`` / ``0``.  Markers without a binding are dropped.  The result is
    meant for logs and listeners, never for execution.
    """
    pieces = template.split(PLACEHOLDER)
    parts: list[str] = []
    for index, piece in enumerate(pieces):
        parts.append(piece)
        if index < len(bindings) and index < len(pieces) - 1:
            parts.append(_literal(bindings[index]))
    return "".join(parts)


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    return str(value)


def keyword_expression(keyword: str, expr: str) -> str:
    """Render `` <keyword> <expr>``, or `` <expr>`` for an empty keyword.

    Returns ``""`` when ``expr`` is empty.
    """
    if not expr:
        return ""
    if keyword == "":
        return f" {expr}"
    return f" {keyword} {expr}"


class Dialect(ABC):
    """Abstract base for SQL dialects.

    Subclasses declare ``operations`` (what their builder supports) and
    ``clause_orders`` (how each operation renders).  A missing clause list is
    reported when the subclass is created.
    """

    operations: ClassVar[frozenset[Operation]] = frozenset()
    clause_orders: ClassVar[dict[Operation, tuple[Clause, ...]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        missing = sorted(op.value for op in cls.operations if op not in cls.clause_orders)
        if missing:
            raise ConfigurationError(
                f"Dialect {cls.__name__} declares operations without a clause list: {missing}",
                operation=missing[0],
            )

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier.

        Args:
            name: Unquoted identifier (table, column or alias).

        Returns:
            Quoted identifier.
        """

    @abstractmethod
    def render_limit(self, scope: Scope) -> str:
        """Render the row-count clause (``limit`` / ``top``)."""

    @abstractmethod
    def render_offset(self, scope: Scope) -> str:
        """Render the offset clause."""

    @abstractmethod
    def truncate_head(self, table_sql: str) -> str:
        """Return the full truncate statement for a quoted table."""

    # ------------------------------------------------------------------
    # Template methods
    # ------------------------------------------------------------------

    def clauses_for(self, operation: Operation) -> tuple[Clause, ...]:
        """Return the ordered clause list for ``operation``.

        Raises:
            ConfigurationError: If the dialect does not support ``operation``.
        """
        clauses = self.clause_orders.get(operation)
        if clauses is None or operation not in self.operations:
            raise ConfigurationError(
                f"Dialect '{self.dialect_name}' has no clause list for '{operation.value}'.",
                operation=operation.value,
            )
        return clauses

    def head(self, operation: Operation, table_sql: str, scope: Scope) -> str:
        """Return the statement head for ``operation``.

        Args:
            operation: The operation being compiled.
            table_sql: The quoted base table.
            scope: The builder scope (dialects may read pagination from it).
        """
        if is_select(operation):
            return "select "
        if operation is Operation.UPDATE:
            return f"update {table_sql}"
        if operation is Operation.DELETE:
            return f"delete from {table_sql}"
        if operation in (Operation.INSERT, Operation.INSERT_GET_ID):
            return f"insert into {table_sql}"
        if operation in (Operation.REPLACE, Operation.REPLACE_GET_ID):
            return f"replace into {table_sql}"
        if operation is Operation.TRUNCATE:
            return self.truncate_head(table_sql)
        raise ConfigurationError(
            f"Unsupported operation: {operation.value}", operation=operation.value
        )
