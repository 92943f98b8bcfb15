"""sqldrawer compilation layer: builder scope → parameterized SQL."""
from sqldrawer.compile.base import CompiledSQL, Dialect
from sqldrawer.compile.builder import ExpressionCompiler
from sqldrawer.compile.mysql import MySQLDialect
from sqldrawer.compile.sqlserver import SQLServerDialect

__all__ = [
    "CompiledSQL",
    "Dialect",
    "ExpressionCompiler",
    "MySQLDialect",
    "SQLServerDialect",
]
