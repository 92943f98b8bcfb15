"""MySQL builder: ``limit`` / ``offset`` pagination, locks, ``replace into``
and the JSON aggregates."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Self

from sqldrawer.query.base import Query
from sqldrawer.schema.operations import Operation
from sqldrawer.schema.scope import Clause


class MySQLQuery(Query):
    """Fluent builder rendering backtick-quoted MySQL statements."""

    dialect_name: ClassVar[str] = "mysql"

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def limit(self, limit: int) -> Self:
        self._scope.set(Clause.LIMIT, int(limit))
        return self

    def offset(self, offset: int) -> Self:
        """Skip ``offset`` rows; only valid together with :meth:`limit`."""
        self._scope.set(Clause.OFFSET, int(offset))
        return self

    def page(self, page: int, per: int) -> Self:
        """Set ``limit <page> offset <(page - 1) * per>``.

        The row count is the page number, not ``per``; ``page(2, 2)`` renders
        ``limit 2 offset 2``.
        """
        self.limit(page)
        self.offset((page - 1) * per)
        return self

    # ------------------------------------------------------------------
    # Locks
    # ------------------------------------------------------------------

    def lock_for_update(self) -> Self:
        self._scope.set(Clause.LOCK, "for update")
        return self

    def lock_in_share_mode(self) -> Self:
        self._scope.set(Clause.LOCK, "lock in share mode")
        return self

    # ------------------------------------------------------------------
    # MySQL-only statements
    # ------------------------------------------------------------------

    def json_array_agg(self, column: str) -> list[dict[str, Any]] | str:
        """Aggregate ``column`` into a JSON array, usually per group::

            .select("type").group_by("type").json_array_agg("id")
        """
        column_sql = self._ctx.decode_field(column)
        self._scope.append(Clause.COLUMNS, f"json_arrayagg({column_sql}) as {column_sql}")
        return self._execute(Operation.JSON_ARRAY_AGG)

    def json_object_agg(self, key: str, value: str) -> list[dict[str, Any]] | str:
        """Aggregate ``key``/``value`` pairs into a JSON object aliased as ``key``."""
        key_sql = self._ctx.decode_field(key)
        value_sql = self._ctx.decode_field(value)
        self._scope.append(Clause.COLUMNS, f"json_objectagg({key_sql},{value_sql}) as {key_sql}")
        return self._execute(Operation.JSON_OBJECT_AGG)

    def replace(self, data: Mapping[str, Any] | list[Mapping[str, Any]]) -> int | str:
        """Like :meth:`insert`, replacing rows whose key already exists."""
        self._add_rows(data)
        return self._execute(Operation.REPLACE)

    def replace_get_id(self, data: Mapping[str, Any] | list[Mapping[str, Any]]) -> Any:
        self._add_rows(data)
        return self._execute(Operation.REPLACE_GET_ID)
