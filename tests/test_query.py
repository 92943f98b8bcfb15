"""Unit tests for the fluent builders (compiled text only, no database)."""

from __future__ import annotations

import pytest

from sqldrawer import MySQLQuery, SQLServerQuery
from sqldrawer.errors import ConfigurationError, UsageError
from sqldrawer.query.base import has_next_page
from sqldrawer.schema.operations import AggregateKind, Operation


def _my(table: str = "posts") -> MySQLQuery:
    return MySQLQuery(table).to_sql()


def _ms(table: str = "posts") -> SQLServerQuery:
    return SQLServerQuery(table).to_sql()


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


def test_select_quotes_columns_and_aliases():
    sql = _my().select("id, title as t, views v").fetch_all()
    assert sql == "select `id`,`title` as `t`,`views` `v` from `posts`"


def test_select_list_and_raw_append():
    sql = _my().select(["id", "p.title"]).select_raw("now() as ts").fetch_all()
    assert sql == "select `id`,`p`.`title`,now() as ts from `posts`"


def test_select_ignores_empty_columns():
    assert _my().select([]).select("id").fetch_all() == "select `id` from `posts`"
    assert _my().select("").select_raw("").fetch_all() == "select * from `posts`"
    assert _my().select("id, ,title").fetch_all() == "select `id`,`title` from `posts`"


def test_aggregate_columns():
    q = _my().select("type").count().sum("views", "total").max("views")
    assert q.fetch_all() == (
        "select `type`,count(*) as `aggregate`,sum(`views`) as `total`,"
        "max(`views`) as `views` from `posts`"
    )


# ---------------------------------------------------------------------------
# WHERE
# ---------------------------------------------------------------------------


def test_where_or_chain():
    q = _my("t").where({"type": 1}).where_or({"state": 2})
    assert q.fetch_all() == "select * from `t` where `type` = ? or `state` = ?"
    assert q.prepare_bindings() == [1, 2]


def test_where_case_argument_counts():
    q = _my().where_case("a").where_case("b", 2).where_case("c", ">=", 3)
    assert q.fetch_all() == "select * from `posts` where `a` = ? and `b` = ? and `c` >= ?"
    assert q.prepare_bindings() == ["", 2, 3]


def test_where_shortcuts():
    q = (
        _my()
        .where_null("deleted_at")
        .where_not_null("title")
        .where_in("id", [1, 2])
        .where_not_in("type", [3])
        .where_like("title", "a%")
        .where_not_like("title", "%b")
        .where_between("views", [1, 10])
        .where_not_between("state", [5, 6])
    )
    assert q.fetch_all() == (
        "select * from `posts` where `deleted_at` is null and `title` is not null"
        " and `id` in (?,?) and `type` not in (?) and `title` like ?"
        " and `title` not like ? and `views` between ? and ? and `state` not between ? and ?"
    )
    assert q.prepare_bindings() == [1, 2, 3, "a%", "%b", 1, 10, 5, 6]


def test_where_raw_variants_keep_bindings_in_order():
    q = _my().where({"type": 1}).where_raw("views > ?", [5]).where_or_raw("state = ?", [0])
    assert q.fetch_all() == "select * from `posts` where `type` = ? and views > ? or state = ?"
    assert q.prepare_bindings() == [1, 5, 0]


def test_where_group_is_parenthesized():
    q = _my().where({"type": 1}).where_or([["views", ">", 10], {"state": 1}])
    assert q.fetch_all() == (
        "select * from `posts` where `type` = ? or (`views` > ? and `state` = ?)"
    )


def test_empty_conditions_are_ignored():
    assert _my().where({}).where([]).where_raw("").fetch_all() == "select * from `posts`"


def test_malformed_condition_fails_at_call_time():
    with pytest.raises(UsageError, match="Unsupported Symbol"):
        _my().where(["id", "!=", 1])
    with pytest.raises(UsageError):
        _my().where_in("id", [])


def test_where_sub_splices_subquery_and_bindings():
    comments = MySQLQuery("comments").where_like("body", "%great%")
    q = _my().where({"state": 1}).where_sub("id", "in", comments, "post_id")
    assert q.fetch_all() == (
        "select * from `posts` where `state` = ? and "
        "`id` in (select `post_id` from `comments` where `body` like ?)"
    )
    assert q.prepare_bindings() == [1, "%great%"]


def test_subquery_without_sub_column_is_rejected():
    with pytest.raises(UsageError, match="sub column"):
        _my().where(["id", "in", MySQLQuery("comments")])


# ---------------------------------------------------------------------------
# GROUP BY / HAVING / ORDER BY
# ---------------------------------------------------------------------------


def test_group_by_having():
    q = _my().select("type").count().group_by("type").having(["aggregate", ">", 1])
    assert q.fetch_all() == (
        "select `type`,count(*) as `aggregate` from `posts` group by `type` having `aggregate` > ?"
    )
    assert q.prepare_bindings() == [1]


def test_having_shortcuts():
    q = (
        _my()
        .group_by("type, state")
        .having_between("type", [1, 2])
        .having_not_between("state", [3, 4])
        .having_null("deleted_at")
        .having_not_null("title")
        .having_raw("count(*) > ?", [2])
    )
    assert q.fetch_all() == (
        "select * from `posts` group by `type`,`state` having `type` between ? and ?"
        " and `state` not between ? and ? and `deleted_at` is null"
        " and `title` is not null and count(*) > ?"
    )
    assert q.prepare_bindings() == [1, 2, 3, 4, 2]


def test_order_by_variants_append():
    q = _my().order_by("type, state").order_by_desc("id").order_by_raw("rand()")
    assert q.fetch_all() == "select * from `posts` order by `type`,`state`,`id` desc,rand()"


def test_order_by_desc_splits_columns():
    assert _my().order_by_desc("type, id").fetch_all() == (
        "select * from `posts` order by `type` desc,`id` desc"
    )
    assert _ms().order_by_desc("type,id").fetch_all() == (
        "select * from [posts] order by [type] desc,[id] desc"
    )


def test_group_by_raw():
    assert _my().group_by_raw("date(created)").fetch_all() == (
        "select * from `posts` group by date(created)"
    )


# ---------------------------------------------------------------------------
# Alias / JOIN
# ---------------------------------------------------------------------------


def test_join_uses_builder_alias_on_the_left():
    q = _my().alias("p").select("p.id, c.body").join("comments", {"id": "post_id"}, "c")
    assert q.fetch_all() == (
        "select `p`.`id`,`c`.`body` from `posts` as `p` "
        "join `comments` as `c` on (`p`.`id` = `c`.`post_id`)"
    )


def test_join_variants_default_to_table_names():
    q = (
        _my()
        .inner_join("users", {"user_id": "id"})
        .left_join("tags", {"id": "post_id"})
        .right_join("stats", {"id": "post_id"}, "s")
    )
    assert q.fetch_all() == (
        "select * from `posts`"
        " inner join `users` as `users` on (`posts`.`user_id` = `users`.`id`)"
        " left join `tags` as `tags` on (`posts`.`id` = `tags`.`post_id`)"
        " right join `stats` as `s` on (`posts`.`id` = `s`.`post_id`)"
    )


def test_join_raw_with_custom_type():
    q = _my().join_raw("users", "users.id = posts.user_id", "u", "NATURAL LEFT JOIN")
    assert q.fetch_all() == (
        "select * from `posts` natural left join `users` as `u` on (users.id = posts.user_id)"
    )


def test_join_raw_rejects_unknown_type():
    with pytest.raises(UsageError):
        _my().join_raw("users", "", "", "sideways join")


def test_sqlserver_uses_brackets():
    q = _ms().alias("p").join("comments", {"id": "post_id"}, "c").where({"p.state": 1})
    assert q.fetch_all() == (
        "select * from [posts] as [p] join [comments] as [c] on ([p].[id] = [c].[post_id])"
        " where [p].[state] = ?"
    )


# ---------------------------------------------------------------------------
# Pagination and locks
# ---------------------------------------------------------------------------


def test_mysql_fetch_limits_to_one():
    assert _my().where({"id": 1}).fetch() == "select * from `posts` where `id` = ? limit 1"


def test_mysql_limit_offset_and_page():
    assert _my().limit(10).offset(20).fetch_all() == "select * from `posts` limit 10 offset 20"
    assert _my().page(2, 2).fetch_all() == "select * from `posts` limit 2 offset 2"
    assert _my().page(3, 10).fetch_all() == "select * from `posts` limit 3 offset 20"


def test_mysql_locks():
    q = _my().select("id").where({"id": 1}).lock_for_update()
    assert q.fetch() == "select `id` from `posts` where `id` = ? limit 1 for update"
    assert _my().lock_in_share_mode().fetch_all() == "select * from `posts` lock in share mode"


def test_sqlserver_top_limit_next_are_aliases():
    assert _ms().top(3).fetch_all() == "select top 3 * from [posts]"
    assert _ms().limit(3).fetch_all() == "select top 3 * from [posts]"
    assert _ms().where({"id": 1}).fetch() == "select top 1 * from [posts] where [id] = ?"


def test_sqlserver_page_and_offset_next():
    assert _ms().order_by("id").page(2, 2).fetch_all() == (
        "select * from [posts] order by [id] offset 2 rows fetch next 2 rows only"
    )
    assert _ms().order_by("id").offset(4).next(2).fetch_all() == (
        "select * from [posts] order by [id] offset 4 rows fetch next 2 rows only"
    )


@pytest.mark.parametrize(
    ("total", "page", "per", "expected"),
    [(0, 1, 10, False), (5, 1, 2, True), (5, 3, 2, True), (5, 4, 2, False), (4, 2, 2, True)],
)
def test_has_next_page(total: int, page: int, per: int, expected: bool):
    assert has_next_page(total, page, per) is expected
    assert MySQLQuery.has_next_page(total, page, per) is expected


def test_has_next_page_rejects_non_positive_per():
    with pytest.raises(UsageError):
        has_next_page(5, 1, 0)


def test_paginator_needs_execution():
    with pytest.raises(UsageError):
        _my().paginator(1, 10)


# ---------------------------------------------------------------------------
# Aggregate accessors
# ---------------------------------------------------------------------------


def test_fetch_aggregates_replace_columns():
    q = _my().select("id").where({"state": 1}).order_by("id").limit(5)
    assert q.fetch_count() == "select count(*) from `posts` where `state` = ?"
    assert _my().fetch_sum("views") == "select sum(`views`) from `posts`"
    assert _my().fetch_avg("views") == "select avg(`views`) from `posts`"
    assert _my().fetch_min("id") == "select min(`id`) from `posts`"
    assert _my().fetch_max("id") == "select max(`id`) from `posts`"
    assert _my().fetch_distinct("type") == "select distinct(`type`) from `posts`"


def test_fetch_aggregate_dispatch():
    assert _my().fetch_aggregate("max", "id") == "select max(`id`) from `posts`"
    assert _ms().fetch_aggregate(AggregateKind.COUNT) == "select count(*) from [posts]"
    with pytest.raises(UsageError):
        _my().fetch_aggregate("median", "id")


def test_distinct_column_helper():
    assert _my().distinct("type").fetch_all() == "select distinct(`type`) from `posts`"


def test_mysql_json_aggregates():
    q = _my().select("type").group_by("type")
    assert q.json_array_agg("id") == (
        "select `type`,json_arrayagg(`id`) as `id` from `posts` group by `type`"
    )
    assert _my().json_object_agg("id", "title") == (
        "select json_objectagg(`id`,`title`) as `id` from `posts`"
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def test_update_set_bindings_come_first():
    q = _my().where({"id": 1})
    assert q.update({"a": "ABC"}) == "update `posts` set `a` = ? where `id` = ?"
    assert q.prepare_bindings() == ["ABC", 1]


def test_update_raw_binds_text_values():
    q = _my().where({"id": 2})
    assert q.update_raw("title = abc, views = 3") == (
        "update `posts` set `title` = ?, `views` = ? where `id` = ?"
    )
    assert q.prepare_bindings() == ["abc", "3", 2]


def test_update_rejects_malformed_input():
    with pytest.raises(UsageError):
        _my().update({})
    with pytest.raises(UsageError):
        _my().update_raw("title")


def test_mysql_update_and_delete_keep_order_and_limit():
    q = _my().where({"state": 0}).order_by("id").limit(2)
    assert q.delete() == "delete from `posts` where `state` = ? order by `id` limit 2"


def test_sqlserver_update_with_top():
    q = _ms().top(3).where({"state": 0})
    assert q.update({"state": 1}) == "update top (3) [posts] set [state] = ? where [state] = ?"


def test_insert_single_and_multi_row():
    q = _my()
    assert q.insert({"title": "a", "views": 1}) == "insert into `posts` (`title`, `views`) values (?,?)"
    assert q.prepare_bindings() == ["a", 1]

    q = _my()
    assert q.insert([{"title": "a"}, {"title": "b"}]) == "insert into `posts` (`title`) values (?),(?)"
    assert q.prepare_bindings() == ["a", "b"]


def test_insert_rejects_non_rows():
    with pytest.raises(UsageError):
        _my().insert([])
    with pytest.raises(UsageError):
        _my().insert({})


def test_replace_is_mysql_only():
    assert _my().replace({"id": 1, "title": "x"}) == (
        "replace into `posts` (`id`, `title`) values (?,?)"
    )
    assert _my().replace_get_id({"id": 1}) == "replace into `posts` (`id`) values (?)"
    assert not hasattr(SQLServerQuery, "replace")
    with pytest.raises(ConfigurationError):
        SQLServerQuery("posts").compile(Operation.REPLACE)


def test_truncate():
    assert _my().truncate() == "truncate `posts`"
    assert _ms().truncate() == "truncate table [posts]"


# ---------------------------------------------------------------------------
# Modes, state and model-style builders
# ---------------------------------------------------------------------------


def test_to_complete_sql_interpolates():
    q = MySQLQuery("posts").to_complete_sql().where({"title": "it's", "state": 1})
    assert q.fetch_all() == "select * from `posts` where `title` = 'it''s' and `state` = 1"


def test_builder_listener_receives_sql_and_bindings():
    calls: list[tuple[str, str, list]] = []
    q = _my().listen(lambda sql, template, bindings: calls.append((sql, template, bindings)))
    q.where({"id": 3}).fetch_all()
    assert calls == [
        ("select * from `posts` where `id` = 3", "select * from `posts` where `id` = ?", [3])
    ]


def test_reset_clears_scope():
    q = _my().select("id").where({"id": 1}).limit(1)
    q.fetch_all()
    q.reset()
    assert q.prepare_bindings() == []
    assert q.fetch_all() == "select * from `posts`"


def test_compile_does_not_execute():
    compiled = MySQLQuery("posts").where({"id": 1}).compile("fetch_all")
    assert compiled.sql == "select * from `posts` where `id` = ?"
    assert compiled.bindings == [1]
    assert compiled.dialect == "mysql"


def test_model_style_class_attributes():
    class Post(MySQLQuery):
        table = "posts"
        connection = {"driver": "sqlite", "database": ":memory:"}

    post = Post()
    assert post.get_table() == "posts"
    assert post.get_connection()["driver"] == "sqlite"
    assert Post("archive").get_table() == "archive"


def test_unknown_connection_key_is_rejected():
    with pytest.raises(ValueError):
        MySQLQuery("posts", {"driver": "sqlite", "hostname": "x"})
