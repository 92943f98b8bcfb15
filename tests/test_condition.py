"""Unit tests for ConditionAnalyzer (condition shapes, operators, chaining)."""

from __future__ import annotations

import pytest

from sqldrawer.compile.base import CompiledSQL
from sqldrawer.compile.condition import ConditionAnalyzer, SubQuery
from sqldrawer.compile.context import CompilationContext
from sqldrawer.compile.mysql import MySQLDialect
from sqldrawer.compile.sqlserver import SQLServerDialect
from sqldrawer.errors import UsageError
from sqldrawer.schema.scope import ConditionEntry


def _my() -> ConditionAnalyzer:
    return ConditionAnalyzer(CompilationContext(MySQLDialect(), "posts"))


def _ms() -> ConditionAnalyzer:
    return ConditionAnalyzer(CompilationContext(SQLServerDialect(), "posts"))


class _FakeSub:
    def compile_subquery(self) -> CompiledSQL:
        return CompiledSQL("select `post_id` from `comments` where `body` like ?", ["%a%"])


def test_mapping_is_and_joined_in_map_order():
    text, bindings = _my().analyze_condition({"id": 1, "state": 2})
    assert text == "`id` = ? and `state` = ?"
    assert bindings == [1, 2]


def test_mapping_uses_dialect_quoting():
    text, _ = _ms().analyze_condition({"id": 1})
    assert text == "[id] = ?"


def test_dotted_column_quotes_every_segment():
    text, _ = _my().analyze_condition({"p.id": 1})
    assert text == "`p`.`id` = ?"


def test_two_item_list_is_equality():
    assert _my().analyze_condition(["type", 3]) == ("`type` = ?", [3])


def test_two_item_list_with_list_value_is_in():
    assert _my().analyze_condition(["id", [1, 2, 3]]) == ("`id` in (?,?,?)", [1, 2, 3])


def test_operator_is_trimmed_and_lower_cased():
    assert _my().analyze_condition(["id", " NOT IN ", [4, 5]]) == ("`id` not in (?,?)", [4, 5])


@pytest.mark.parametrize("op", ["=", ">", "<", ">=", "<=", "like", "not like"])
def test_scalar_operators_bind_one_value(op: str):
    text, bindings = _my().analyze_condition(["views", op, 7])
    assert text == f"`views` {op} ?"
    assert bindings == [7]


@pytest.mark.parametrize("value", ["null", "NOT NULL", "true", "False"])
def test_is_values_render_without_bindings(value: str):
    text, bindings = _my().analyze_condition(["deleted_at", "is", value])
    assert text == f"`deleted_at` is {value.lower()}"
    assert bindings == []


def test_between_binds_both_bounds():
    assert _my().analyze_condition(["id", "between", [1, 9]]) == ("`id` between ? and ?", [1, 9])
    assert _my().analyze_condition(["id", "not between", (1, 9)]) == (
        "`id` not between ? and ?",
        [1, 9],
    )


def test_unsupported_operator_raises():
    with pytest.raises(UsageError, match="Unsupported Symbol"):
        _my().analyze_condition(["id", "<>", 1])


def test_unsupported_is_value_raises():
    with pytest.raises(UsageError, match="Unsupported Is Value"):
        _my().analyze_condition(["id", "is", "empty"])


def test_empty_in_list_raises():
    with pytest.raises(UsageError):
        _my().analyze_condition(["id", "in", []])


def test_between_needs_exactly_two_values():
    with pytest.raises(UsageError):
        _my().analyze_condition(["id", "between", [1, 2, 3]])


def test_positional_condition_length_is_checked():
    with pytest.raises(UsageError):
        _my().analyze_condition(["id", "=", 1, 2])


def test_group_is_parenthesized_and_and_joined():
    entry = ConditionEntry(condition=[["id", ">", 1], {"state": 1}])
    assert _my().analyze(entry) == ("(`id` > ? and `state` = ?)", [1, 1])


def test_raw_entry_keeps_text_and_bindings():
    entry = ConditionEntry(condition="views > ? and views < ?", bindings=(1, 5))
    assert _my().analyze(entry) == ("views > ? and views < ?", [1, 5])


def test_chain_ignores_first_connective():
    entries = [
        ConditionEntry(condition={"type": 1}, connective="or"),
        ConditionEntry(condition={"state": 2}, connective="or"),
        ConditionEntry(condition=["id", ">", 3]),
    ]
    text, bindings = _my().analyze_chain(entries)
    assert text == "`type` = ? or `state` = ? and `id` > ?"
    assert bindings == [1, 2, 3]


def test_sub_query_value_is_spliced_with_its_bindings():
    sub = _FakeSub()
    assert isinstance(sub, SubQuery)
    text, bindings = _my().analyze_condition(["id", "in", sub])
    assert text == "`id` in (select `post_id` from `comments` where `body` like ?)"
    assert bindings == ["%a%"]
