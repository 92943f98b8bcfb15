"""Per-builder clause accumulator.

A :class:`Scope` holds one fragment per clause name plus the ordered binding
list of the statement being built.  String clauses are either replaced or
appended with a ``,`` separator; WHERE, HAVING and JOIN are ordered lists of
structured entries that are only rendered at compile time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from sqldrawer.errors import UsageError


class Clause(str, Enum):
    """Clause names a dialect can list in its rendering order."""

    COLUMNS = "columns"
    ALIAS = "as"
    JOIN = "join"
    WHERE = "where"
    GROUP_BY = "group by"
    HAVING = "having"
    ORDER_BY = "order by"
    LIMIT = "limit"
    TOP = "top"
    OFFSET = "offset"
    LOCK = "lock"
    SET = "set"
    INSERT = "insert"
    VALUES = "values"


#: Supported join keywords.
JOIN_TYPES: frozenset[str] = frozenset(
    {
        "join",
        "cross join",
        "inner join",
        "left join",
        "right join",
        "left outer join",
        "right outer join",
        "full outer join",
        "straight_join",
        "natural join",
        "natural left join",
        "natural right join",
        "natural inner join",
    }
)

Connective = Literal["and", "or"]


@dataclass(frozen=True)
class ConditionEntry:
    """One chained WHERE / HAVING call.

    Attributes:
        condition: A mapping, a positional list, a list of lists (group), or
            a raw SQL string.
        bindings: Values for the ``?`` markers of a raw string condition.
        connective: ``and`` / ``or``; ignored for the first entry.
    """

    condition: Any
    bindings: tuple[Any, ...] = ()
    connective: Connective = "and"


@dataclass(frozen=True)
class JoinEntry:
    """One chained JOIN call.

    Attributes:
        join_type: Lower-cased join keyword from :data:`JOIN_TYPES`.
        table: Unquoted table name.
        on: Raw ON text or a ``{left_col: right_col}`` mapping.
        alias: Unquoted alias; the table name is used when empty.
    """

    join_type: str
    table: str
    on: str | dict[str, str] = ""
    alias: str = ""

    def __post_init__(self) -> None:
        normalised = self.join_type.strip().lower()
        if normalised not in JOIN_TYPES:
            raise UsageError(f"Unsupported join: {self.join_type}", value=self.join_type)
        object.__setattr__(self, "join_type", normalised)


@dataclass
class Scope:
    """Mutable clause store for a single builder.

    Attributes:
        strings: String clauses keyed by :class:`Clause`.
        where: Chained WHERE entries.
        having: Chained HAVING entries.
        joins: Chained JOIN entries.
        bindings: Ordered values for the statement being built.
        sub_column: Column selected when this builder is used as a sub-query.
    """

    strings: dict[Clause, str] = field(default_factory=dict)
    where: list[ConditionEntry] = field(default_factory=list)
    having: list[ConditionEntry] = field(default_factory=list)
    joins: list[JoinEntry] = field(default_factory=list)
    bindings: list[Any] = field(default_factory=list)
    sub_column: str = ""

    # ------------------------------------------------------------------
    # String clauses
    # ------------------------------------------------------------------

    def set(self, clause: Clause, value: Any) -> None:
        """Replace the value of a string clause."""
        self.strings[clause] = str(value)

    def append(self, clause: Clause, value: str, separator: str = ",") -> None:
        """Append to a string clause, separating from prior content."""
        if clause in self.strings:
            self.strings[clause] += separator + value
        else:
            self.strings[clause] = value

    def get(self, clause: Clause) -> str:
        """Return a string clause, or ``""`` when it was never set."""
        return self.strings.get(clause, "")

    def has(self, clause: Clause) -> bool:
        if clause is Clause.WHERE:
            return bool(self.where)
        if clause is Clause.HAVING:
            return bool(self.having)
        if clause is Clause.JOIN:
            return bool(self.joins)
        return clause in self.strings

    # ------------------------------------------------------------------
    # List clauses
    # ------------------------------------------------------------------

    def add_where(self, entry: ConditionEntry) -> None:
        if _is_empty(entry.condition):
            return
        self.where.append(entry)

    def add_having(self, entry: ConditionEntry) -> None:
        if _is_empty(entry.condition):
            return
        self.having.append(entry)

    def add_join(self, entry: JoinEntry) -> None:
        self.joins.append(entry)

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    def add_bindings(self, values: list[Any] | tuple[Any, ...], prepend: bool = False) -> None:
        """Add values to the binding list.

        Args:
            values: Values in marker order.
            prepend: Put ``values`` ahead of the bindings already collected.
                Used by the SET clause, which renders before WHERE.
        """
        if prepend:
            self.bindings[:0] = list(values)
        else:
            self.bindings.extend(values)

    def drain_bindings(self) -> list[Any]:
        """Return the collected bindings and clear them."""
        bindings = self.bindings
        self.bindings = []
        return bindings

    def clear(self) -> None:
        """Reset every clause and binding."""
        self.strings.clear()
        self.where.clear()
        self.having.clear()
        self.joins.clear()
        self.bindings = []
        self.sub_column = ""


def _is_empty(condition: Any) -> bool:
    if condition is None:
        return True
    if isinstance(condition, (str, list, tuple, dict)):
        return len(condition) == 0
    return False
