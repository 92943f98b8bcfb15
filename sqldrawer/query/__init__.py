"""sqldrawer fluent builders."""
from sqldrawer.query.base import Query, has_next_page
from sqldrawer.query.mysql import MySQLQuery
from sqldrawer.query.sqlserver import SQLServerQuery

__all__ = ["MySQLQuery", "Query", "SQLServerQuery", "has_next_page"]
