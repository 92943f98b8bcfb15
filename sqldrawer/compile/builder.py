"""Scope → SQL template compilation.

``ExpressionCompiler`` walks the clause list the dialect declares for an
operation, renders every present clause and concatenates them after the
statement head.  WHERE and HAVING bindings are collected while those clauses
render, so the binding list always follows the marker order of the final
text; the scope bindings are drained once the template is complete.

Sub-builder wiring
------------------
ExpressionCompiler
  ├── ConditionAnalyzer  (condition.py)
  └── JoinClauseBuilder  (clause_builders.py)
"""

from __future__ import annotations

import logging

from sqldrawer.compile.base import CompiledSQL, keyword_expression
from sqldrawer.compile.clause_builders import JoinClauseBuilder
from sqldrawer.compile.condition import ConditionAnalyzer
from sqldrawer.compile.context import CompilationContext
from sqldrawer.schema.operations import Operation
from sqldrawer.schema.scope import Clause, Scope

logger = logging.getLogger(__name__)

# Clauses rendered as `` <keyword> <text>``.
_KEYWORD_CLAUSES: frozenset[Clause] = frozenset(
    {Clause.ALIAS, Clause.SET, Clause.VALUES, Clause.GROUP_BY, Clause.ORDER_BY}
)

# Clauses rendered as `` <text>``.
_BARE_CLAUSES: frozenset[Clause] = frozenset({Clause.LOCK, Clause.INSERT})


class ExpressionCompiler:
    """Compiles a builder scope to a parameterized template.

    Args:
        ctx: Compilation context (dialect and base table).
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx
        self._conditions = ConditionAnalyzer(ctx)
        self._joins = JoinClauseBuilder(ctx)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, operation: Operation, scope: Scope) -> CompiledSQL:
        """Compile ``scope`` for ``operation`` and drain its bindings.

        Args:
            operation: The terminal operation being run.
            scope: The builder scope; clause strings are left untouched.

        Returns:
            :class:`~sqldrawer.compile.base.CompiledSQL` with the template and
            its ordered bindings.

        Raises:
            ConfigurationError: If the dialect has no clause list for
                ``operation``.
            UsageError: If a chained condition is malformed.
        """
        dialect = self._ctx.dialect
        clauses = dialect.clauses_for(operation)
        parts = [dialect.head(operation, self._ctx.table_sql, scope)]
        for clause in clauses:
            parts.append(self.render(clause, scope))
        sql = "".join(parts)
        bindings = scope.drain_bindings()
        logger.debug("Compiled %s (%s): %s", operation.value, dialect.dialect_name, sql)
        return CompiledSQL(sql=sql, bindings=bindings, dialect=dialect.dialect_name)

    def render(self, clause: Clause, scope: Scope) -> str:
        """Render one clause; absent clauses render as ``""``."""
        dialect = self._ctx.dialect

        if clause is Clause.COLUMNS:
            columns = scope.get(Clause.COLUMNS) or "*"
            return f"{columns} from {self._ctx.table_sql}"

        if clause in _KEYWORD_CLAUSES:
            return keyword_expression(clause.value, scope.get(clause))

        if clause in _BARE_CLAUSES:
            return keyword_expression("", scope.get(clause))

        if clause in (Clause.LIMIT, Clause.TOP):
            return dialect.render_limit(scope)

        if clause is Clause.OFFSET:
            return dialect.render_offset(scope)

        if clause is Clause.JOIN:
            if not scope.joins:
                return ""
            return self._joins.build(scope.joins, scope.get(Clause.ALIAS))

        if clause in (Clause.WHERE, Clause.HAVING):
            entries = scope.where if clause is Clause.WHERE else scope.having
            if not entries:
                return ""
            text, bindings = self._conditions.analyze_chain(entries)
            scope.add_bindings(bindings)
            return keyword_expression(clause.value, text)

        return ""
