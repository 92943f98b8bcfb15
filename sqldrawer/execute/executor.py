"""Statement executor.

``Executor`` takes a :class:`~sqldrawer.compile.base.CompiledSQL` and runs it:

1. notify the context listener, then the builder listener;
2. print the interpolated SQL if either the context or the builder asks;
3. return the template (sql-only) or the interpolated text (complete-sql)
   without touching the database;
4. otherwise resolve the pooled connection, open the context transaction if
   one was requested, prepare, bind, execute and shape the result according
   to the operation's :class:`~sqldrawer.schema.operations.ResultShape`.

Statements that do not run inside a context transaction are committed as
soon as they succeed and rolled back when they fail.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Connection
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from sqldrawer.compile.base import PLACEHOLDER, CompiledSQL, interpolate
from sqldrawer.errors import BindingError, ExecutionError, PreparationError
from sqldrawer.execute.context import ExecutionContext, Listener
from sqldrawer.schema.connection import ConnectionConfig
from sqldrawer.schema.operations import Operation, ResultShape, result_shape

logger = logging.getLogger(__name__)

_COLLECTION_TYPES = (list, tuple, dict, set, frozenset)

#: Session-level identity lookups, by SQLAlchemy dialect name.
#: ``scope_identity()`` is NULL here when the insert ran as its own batch
#: (``sp_prepexec``).
IDENTITY_QUERIES: dict[str, str] = {"mssql": "select @@identity"}


@dataclass(frozen=True)
class StatementOptions:
    """Per-builder execution switches.

    Attributes:
        listener: Builder-level listener, called after the context listener.
        print_sql: Print the interpolated SQL.
        sql_only: Return the template instead of executing.
        complete_sql_only: Return the interpolated SQL instead of executing.
    """

    listener: Listener | None = None
    print_sql: bool = False
    sql_only: bool = False
    complete_sql_only: bool = False


@dataclass(frozen=True)
class PreparedStatement:
    """A template rewritten for the driver's parameter style."""

    sql: str
    paramstyle: str
    markers: int


class Executor:
    """Runs compiled statements against pooled connections.

    Args:
        context: Listener, print and transaction state plus the pool.
    """

    def __init__(self, context: ExecutionContext) -> None:
        self._context = context

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(
        self,
        operation: Operation,
        compiled: CompiledSQL,
        config: ConnectionConfig | Mapping[str, Any],
        options: StatementOptions | None = None,
    ) -> Any:
        """Run ``compiled`` and shape its result for ``operation``.

        Returns:
            ``int`` for row-count operations, the last inserted id for
            ``*_get_id`` operations, ``list[dict]`` for full-set reads,
            ``dict`` for single-record reads (``{}`` when nothing matched),
            or ``str`` in sql-only modes.

        Raises:
            PreparationError: If the template cannot be prepared.
            BindingError: If the bindings do not fit the template.
            ExecutionError: If the driver rejects the statement.
        """
        options = options or StatementOptions()
        template, bindings = compiled.sql, list(compiled.bindings)
        complete_sql = interpolate(template, bindings)

        for listener in (self._context.listener, options.listener):
            if listener is not None:
                self._notify(listener, complete_sql, template, bindings)

        if options.print_sql or self._context.print_sql:
            self._context.emit(complete_sql)

        if options.sql_only:
            return template

        if options.complete_sql_only:
            return complete_sql

        return self._run(operation, template, bindings, config)

    # ------------------------------------------------------------------
    # Database round trip
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: Operation,
        template: str,
        bindings: list[Any],
        config: ConnectionConfig | Mapping[str, Any],
    ) -> Any:
        connection = self._context.connection(config)

        if self._context.transaction_requested and not connection.in_transaction():
            connection.begin()
            self._context.record_transaction(connection)
            logger.debug("Transaction started")

        autocommit = not connection.in_transaction()
        try:
            prepared = prepare(template, connection.dialect.paramstyle)
            parameters = bind(prepared, bindings)
            result = self._exec(connection, prepared, parameters, template)
            if result_shape(operation) is ResultShape.LAST_ID:
                value = last_insert_id(connection, result, template)
            else:
                value = shape(operation, result, template)
        except BaseException:
            if autocommit and connection.in_transaction():
                connection.rollback()
            raise

        if autocommit and connection.in_transaction():
            connection.commit()
        return value

    @staticmethod
    def _exec(
        connection: Connection,
        prepared: PreparedStatement,
        parameters: tuple[Any, ...] | dict[str, Any],
        template: str,
    ) -> CursorResult:
        try:
            if parameters:
                return connection.exec_driver_sql(prepared.sql, parameters)
            return connection.exec_driver_sql(prepared.sql)
        except SQLAlchemyError as exc:
            raise ExecutionError(_driver_message(exc), sql=template) from exc

    @staticmethod
    def _notify(listener: Listener, complete_sql: str, template: str, bindings: list[Any]) -> None:
        try:
            listener(complete_sql, template, list(bindings))
        except Exception:
            logger.warning("SQL listener %r raised; ignoring", listener, exc_info=True)


# ---------------------------------------------------------------------------
# Prepare / bind / shape
# ---------------------------------------------------------------------------


def prepare(template: str, paramstyle: str) -> PreparedStatement:
    """Rewrite ``?`` markers for the driver's DB-API ``paramstyle``.

    Raises:
        PreparationError: If the template is empty or the parameter style is
            unknown.
    """
    if not template.strip():
        raise PreparationError("Cannot prepare an empty statement.", sql=template)

    pieces = template.split(PLACEHOLDER)
    markers = len(pieces) - 1

    if paramstyle == "qmark":
        return PreparedStatement(template, paramstyle, markers)

    if paramstyle in ("format", "pyformat"):
        # These drivers %-format every statement, including those without
        # parameters, so literal percent signs are always doubled.
        pieces = [piece.replace("%", "%%") for piece in pieces]
        return PreparedStatement("%s".join(pieces), paramstyle, markers)

    if paramstyle in ("numeric", "named"):
        prefix = ":" if paramstyle == "numeric" else ":p"
        parts = [pieces[0]]
        for index, piece in enumerate(pieces[1:], start=1):
            name = str(index) if paramstyle == "numeric" else str(index - 1)
            parts.append(f"{prefix}{name}{piece}")
        return PreparedStatement("".join(parts), paramstyle, markers)

    raise PreparationError(f"Unsupported parameter style: {paramstyle!r}", sql=template)


def bind(prepared: PreparedStatement, bindings: list[Any]) -> tuple[Any, ...] | dict[str, Any]:
    """Attach ``bindings`` positionally to ``prepared``.

    Raises:
        BindingError: If the binding count differs from the marker count or a
            value is a collection.
    """
    if len(bindings) != prepared.markers:
        raise BindingError(
            f"Statement has {prepared.markers} placeholder(s) but {len(bindings)} "
            f"binding(s) were supplied.",
            sql=prepared.sql,
        )
    for position, value in enumerate(bindings, start=1):
        if isinstance(value, _COLLECTION_TYPES):
            raise BindingError(
                f"Cannot bind {type(value).__name__} at position {position}.",
                sql=prepared.sql,
            )
    if prepared.paramstyle == "named":
        return {f"p{index}": value for index, value in enumerate(bindings)}
    return tuple(bindings)


def shape(operation: Operation, result: CursorResult, template: str = "") -> Any:
    """Turn a driver result into the return value of ``operation``."""
    kind = result_shape(operation)
    try:
        if kind is ResultShape.ROW_COUNT:
            return result.rowcount
        if kind is ResultShape.LAST_ID:
            return result.lastrowid
        if kind is ResultShape.ROWS:
            return [dict(row) for row in result.mappings()]
        row = result.mappings().first()
        return dict(row) if row is not None else {}
    except SQLAlchemyError as exc:
        raise ExecutionError(_driver_message(exc), sql=template) from exc


def last_insert_id(connection: Connection, result: CursorResult, template: str = "") -> Any:
    """Return the id generated by the insert that produced ``result``.

    Dialects listed in :data:`IDENTITY_QUERIES` do not expose it through the
    cursor for plain-text statements; it is read back with a follow-up query
    on the same connection.
    """
    query = IDENTITY_QUERIES.get(connection.dialect.name)
    if query is None:
        return result.lastrowid
    try:
        value = connection.exec_driver_sql(query).scalar()
    except SQLAlchemyError as exc:
        raise ExecutionError(_driver_message(exc), sql=template) from exc
    return int(value) if value is not None else None


def _driver_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)
