"""SQL Server builder: ``top`` and ``offset ... fetch next`` pagination."""
from __future__ import annotations

from typing import ClassVar, Self

from sqldrawer.query.base import Query
from sqldrawer.schema.scope import Clause


class SQLServerQuery(Query):
    """Fluent builder rendering bracket-quoted T-SQL statements.

    ``limit`` and ``next`` are aliases of ``top``.  Once an offset is set the
    row count moves to ``offset <m> rows fetch next <n> rows only``, which
    SQL Server only accepts after an ``order by``.
    """

    dialect_name: ClassVar[str] = "sqlserver"

    def top(self, top: int) -> Self:
        self._scope.set(Clause.TOP, int(top))
        return self

    def limit(self, limit: int) -> Self:
        return self.top(limit)

    def next(self, next_rows: int) -> Self:
        return self.top(next_rows)

    def offset(self, offset: int) -> Self:
        self._scope.set(Clause.OFFSET, int(offset))
        return self

    def page(self, page: int, per: int) -> Self:
        """Set ``offset <(page - 1) * per> rows fetch next <per> rows only``."""
        self.top(per)
        self.offset((page - 1) * per)
        return self
