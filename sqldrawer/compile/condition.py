"""WHERE / HAVING condition compiler.

``ConditionAnalyzer`` turns chained :class:`~sqldrawer.schema.scope.ConditionEntry`
objects into a SQL fragment plus the bindings for its ``?`` markers, in
marker order.  A condition is one of:

``{"id": 1, "state": 2}``
    AND-joined equality tests, one binding per pair.
``["id", 1]`` / ``["id", [1, 2]]``
    Equality, or ``in`` when the value is a list.
``["id", ">", 1]``
    Explicit operator from :data:`OPERATORS`.
``[["id", ">", 1], {"state": 1}]``
    A group: items AND-joined and wrapped in parentheses.
``"id = ? or state > ?"``
    Raw text, emitted verbatim with the bindings given at call time.

A value that is itself a builder compiles to a parenthesised sub-select on
the builder's sub-column, contributing its own bindings.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from sqldrawer.compile.base import CompiledSQL
from sqldrawer.compile.context import CompilationContext
from sqldrawer.errors import UsageError
from sqldrawer.schema.scope import ConditionEntry

#: Operators accepted in ``[column, operator, value]`` conditions.
OPERATORS: frozenset[str] = frozenset(
    {"=", ">", "<", ">=", "<=", "in", "not in", "between", "not between", "is", "like", "not like"}
)

#: Values accepted by the ``is`` operator.
IS_VALUES: frozenset[str] = frozenset({"null", "not null", "true", "false"})

Fragment = tuple[str, list[Any]]


@runtime_checkable
class SubQuery(Protocol):
    """Anything that can be spliced in as a scalar sub-select."""

    def compile_subquery(self) -> CompiledSQL: ...


class ConditionAnalyzer:
    """Compiles condition entries to ``(text, bindings)`` pairs.

    Args:
        ctx: Compilation context (dialect quoting, base table).
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze_chain(self, entries: list[ConditionEntry]) -> Fragment:
        """Compile a chain of entries joined by their connectives.

        The connective of the first entry is ignored.  Entries are joined
        with single spaces; no parentheses are added between them.
        """
        parts: list[str] = []
        bindings: list[Any] = []
        for index, entry in enumerate(entries):
            text, values = self.analyze(entry)
            parts.append(text if index == 0 else f"{entry.connective} {text}")
            bindings.extend(values)
        return " ".join(parts), bindings

    def analyze(self, entry: ConditionEntry) -> Fragment:
        """Compile a single entry, ignoring its connective."""
        condition = entry.condition
        if isinstance(condition, str):
            return condition, list(entry.bindings)
        if _is_group(condition):
            return self._analyze_group(condition)
        return self.analyze_condition(condition)

    def analyze_condition(self, condition: Any) -> Fragment:
        """Compile one mapping or positional-list condition."""
        if isinstance(condition, Mapping):
            return self._analyze_mapping(condition)
        if isinstance(condition, (list, tuple)):
            return self._analyze_positional(list(condition))
        raise UsageError(
            f"Unsupported condition type: {type(condition).__name__}", value=condition
        )

    # ------------------------------------------------------------------
    # Condition shapes
    # ------------------------------------------------------------------

    def _analyze_group(self, group: list[Any]) -> Fragment:
        parts: list[str] = []
        bindings: list[Any] = []
        for index, item in enumerate(group):
            text, values = self.analyze_condition(item)
            parts.append(text if index == 0 else f"and {text}")
            bindings.extend(values)
        return f"({' '.join(parts)})", bindings

    def _analyze_mapping(self, condition: Mapping[str, Any]) -> Fragment:
        decode = self._ctx.decode_field
        parts = [f"{decode(column)} = ?" for column in condition]
        return " and ".join(parts), list(condition.values())

    def _analyze_positional(self, condition: list[Any]) -> Fragment:
        if len(condition) == 2:
            column, value = condition
            operator = "in" if isinstance(value, (list, tuple)) else "="
        elif len(condition) == 3:
            column, operator, value = condition
            if not isinstance(operator, str):
                raise UsageError(f"Unsupported Symbol: {operator!r}", value=operator)
            operator = operator.strip().lower()
        else:
            raise UsageError(
                f"Positional conditions take 2 or 3 items, got {len(condition)}.",
                value=condition,
            )

        if operator not in OPERATORS:
            raise UsageError(f"Unsupported Symbol: {operator}", value=operator)

        field = self._ctx.decode_field(str(column))

        if isinstance(value, SubQuery):
            compiled = value.compile_subquery()
            return f"{field} {operator} ({compiled.sql})", list(compiled.bindings)

        return self._render_operator(field, operator, value)

    # ------------------------------------------------------------------
    # Operator rendering
    # ------------------------------------------------------------------

    def _render_operator(self, field: str, operator: str, value: Any) -> Fragment:
        if operator == "is":
            if not isinstance(value, str) or value.strip().lower() not in IS_VALUES:
                raise UsageError(f"Unsupported Is Value: {value}", value=value)
            return f"{field} is {value.strip().lower()}", []

        if operator in ("between", "not between"):
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise UsageError(
                    f"'{operator}' expects a [low, high] pair, got {value!r}.", value=value
                )
            return f"{field} {operator} ? and ?", list(value)

        if operator in ("in", "not in"):
            if not isinstance(value, (list, tuple)) or len(value) == 0:
                raise UsageError(
                    f"'{operator}' expects a non-empty list of values, got {value!r}.",
                    value=value,
                )
            markers = ",".join("?" for _ in value)
            return f"{field} {operator} ({markers})", list(value)

        return f"{field} {operator} ?", [value]


def _is_group(condition: Any) -> bool:
    return (
        isinstance(condition, (list, tuple))
        and len(condition) > 0
        and isinstance(condition[0], (list, tuple, Mapping))
    )
