"""Operation kinds, result shapes and aggregate kinds.

Every terminal builder call maps to exactly one :class:`Operation`.  The
operation decides three things:

* the statement head (``select``, ``update <t>``, ...);
* which clause list a dialect renders (see :mod:`sqldrawer.compile.base`);
* how the executor shapes the driver result (:class:`ResultShape`).
"""

from __future__ import annotations

from enum import Enum


class Operation(str, Enum):
    """Terminal operation of a builder chain."""

    FETCH = "fetch"
    FETCH_ALL = "fetch_all"
    DISTINCT = "distinct"
    JSON_ARRAY_AGG = "json_array_agg"
    JSON_OBJECT_AGG = "json_object_agg"
    MIN = "min"
    MAX = "max"
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    INSERT = "insert"
    INSERT_GET_ID = "insert_get_id"
    REPLACE = "replace"
    REPLACE_GET_ID = "replace_get_id"
    UPDATE = "update"
    DELETE = "delete"
    TRUNCATE = "truncate"


class ResultShape(str, Enum):
    """How the executor turns a driver result into a return value."""

    ROW_COUNT = "row_count"
    LAST_ID = "last_id"
    ROWS = "rows"
    RECORD = "record"


#: Operations compiled with a ``select`` head.
SELECT_OPERATIONS: frozenset[Operation] = frozenset(
    {
        Operation.FETCH,
        Operation.FETCH_ALL,
        Operation.DISTINCT,
        Operation.JSON_ARRAY_AGG,
        Operation.JSON_OBJECT_AGG,
    }
)

#: Aggregate operations (``select`` head, no ordering or pagination).
AGGREGATE_OPERATIONS: frozenset[Operation] = frozenset(
    {
        Operation.MIN,
        Operation.MAX,
        Operation.SUM,
        Operation.AVG,
        Operation.COUNT,
    }
)

_SHAPES: dict[Operation, ResultShape] = {
    Operation.INSERT: ResultShape.ROW_COUNT,
    Operation.DELETE: ResultShape.ROW_COUNT,
    Operation.UPDATE: ResultShape.ROW_COUNT,
    Operation.REPLACE: ResultShape.ROW_COUNT,
    Operation.TRUNCATE: ResultShape.ROW_COUNT,
    Operation.INSERT_GET_ID: ResultShape.LAST_ID,
    Operation.REPLACE_GET_ID: ResultShape.LAST_ID,
    Operation.FETCH_ALL: ResultShape.ROWS,
    Operation.DISTINCT: ResultShape.ROWS,
    Operation.JSON_ARRAY_AGG: ResultShape.ROWS,
    Operation.JSON_OBJECT_AGG: ResultShape.ROWS,
    Operation.FETCH: ResultShape.RECORD,
    Operation.MIN: ResultShape.RECORD,
    Operation.MAX: ResultShape.RECORD,
    Operation.SUM: ResultShape.RECORD,
    Operation.AVG: ResultShape.RECORD,
    Operation.COUNT: ResultShape.RECORD,
}


def result_shape(operation: Operation) -> ResultShape:
    """Return the result shape for ``operation``."""
    return _SHAPES[operation]


def is_select(operation: Operation) -> bool:
    """Return ``True`` when ``operation`` compiles to a ``select`` statement."""
    return operation in SELECT_OPERATIONS or operation in AGGREGATE_OPERATIONS


class AggregateKind(str, Enum):
    """Aggregate accessors available as ``fetch_<kind>`` shortcuts.

    Each kind names the SQL function it renders and the operation it runs
    as.  ``distinct`` returns every row; the others return one scalar.
    """

    MIN = "min"
    MAX = "max"
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    DISTINCT = "distinct"

    @property
    def operation(self) -> Operation:
        return Operation(self.value)

    @property
    def returns_rows(self) -> bool:
        return self is AggregateKind.DISTINCT
