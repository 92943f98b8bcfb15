"""Compilation context value object.

Packages the ``(dialect, table)`` pair shared by the expression compiler and
every clause-level builder into a single object.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqldrawer.compile.base import Dialect


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for compiling one builder's statements.

    Attributes:
        dialect: Dialect instance (quoting, clause order, pagination).
        table: Unquoted base table name.
    """

    dialect: Dialect
    table: str

    @property
    def table_sql(self) -> str:
        """The quoted base table."""
        return self.dialect.quote_identifier(self.table)

    def decode_field(self, field: str, qualifier: str = "") -> str:
        """Quote a column reference.

        ``a.b`` style references are split and every segment is quoted
        (a bare ``*`` segment is kept).  Otherwise ``qualifier``, already
        quoted, is prefixed when given.
        """
        quote = self.dialect.quote_identifier
        field = field.strip()
        if "." in field:
            return ".".join(s if s == "*" else quote(s) for s in field.split("."))
        if qualifier:
            return f"{qualifier}.{quote(field)}"
        return quote(field)
