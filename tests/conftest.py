"""Shared pytest fixtures for sqldrawer unit and integration tests."""
from __future__ import annotations

import io
from collections.abc import Iterator

import pytest

from sqldrawer.execute.context import ExecutionContext, set_default_context
from sqldrawer.schema.connection import ConnectionConfig

SQLITE = ConnectionConfig(driver="sqlite", database=":memory:")


@pytest.fixture(autouse=True)
def _reset_default_context() -> Iterator[None]:
    """Each test starts from a fresh process-wide default context."""
    set_default_context(None)
    yield
    set_default_context(None)


@pytest.fixture()
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def context(output: io.StringIO) -> Iterator[ExecutionContext]:
    """An isolated execution context with its own pool and output stream."""
    ctx = ExecutionContext(output=output)
    yield ctx
    ctx.pool.close()


@pytest.fixture()
def sqlite_config() -> ConnectionConfig:
    return SQLITE
