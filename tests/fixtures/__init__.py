"""Test fixtures: sample schema DDL and seed rows."""

from __future__ import annotations

from pathlib import Path

_FIXTURES_DIR = Path(__file__).parent

#: Rows inserted into ``posts`` by the integration fixtures, in id order.
POSTS = [
    {"title": "first", "type": 1, "state": 1, "views": 10},
    {"title": "second", "type": 1, "state": 0, "views": 20},
    {"title": "third", "type": 2, "state": 1, "views": 30},
    {"title": "fourth", "type": 2, "state": 1, "views": 40},
    {"title": "fifth", "type": 3, "state": 0, "views": 50},
]


def load_ddl() -> list[str]:
    """Return the sample SQLite DDL split into single statements."""
    text = (_FIXTURES_DIR / "ddl_sqlite.sql").read_text()
    return [statement.strip() for statement in text.split(";") if statement.strip()]
