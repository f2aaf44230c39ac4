"""Tests for convention resolution over the schema cache."""

import datetime as dt
from dataclasses import dataclass

import pytest

from sqlspine.core.schema import ColumnSchema, SchemaCache
from sqlspine.query.conventions import ConventionResolver, Skip, SoftDeleteColumn, SoftDeleteKind
from sqlspine.query.records import column, record_meta


@pytest.fixture
def resolver() -> ConventionResolver:
    cache = SchemaCache()
    cache.register(
        "users",
        [
            ColumnSchema("id", "int", primary_key=True, nullable=False),
            ColumnSchema("user_name", "varchar"),
            ColumnSchema("birthday", "date"),
            ColumnSchema("createTime", "datetime", nullable=False),
            ColumnSchema("update_at", "datetime"),
            ColumnSchema("del_flag", "tinyint"),
            ColumnSchema("delete_at", "datetime"),
        ],
    )
    cache.register(
        "posts",
        [
            ColumnSchema("post_id", "bigint", primary_key=True),
            ColumnSchema("deleteAt", "datetime"),
            ColumnSchema("ctime", "int"),
            ColumnSchema("stamp", "timestamp"),
        ],
    )
    cache.register("flags", [ColumnSchema("del_flag", "varchar")])
    cache.freeze()
    return ConventionResolver(cache)


@dataclass
class User:
    id: int = 0
    user_name: str = ""
    UserName: str = ""
    nick: str = column("nickname", default="")


@dataclass
class Post:
    key: int = column("post_id", primary_key=True, default=0)


class TestSoftDelete:
    def test_flag_wins_over_timestamp(self, resolver):
        assert resolver.soft_delete_column("users") == SoftDeleteColumn("del_flag", SoftDeleteKind.FLAG)

    def test_timestamp_marker(self, resolver):
        assert resolver.soft_delete_column("posts") == SoftDeleteColumn("deleteAt", SoftDeleteKind.TIMESTAMP)

    def test_flag_must_be_integer(self, resolver):
        assert resolver.soft_delete_column("flags") is None

    def test_unknown_table(self, resolver):
        assert resolver.soft_delete_column("ghosts") is None


class TestTimestamps:
    def test_create_and_update(self, resolver):
        assert resolver.create_time_column("users") == "createTime"
        assert resolver.update_time_column("users") == "update_at"

    def test_type_must_be_datetime(self, resolver):
        assert resolver.create_time_column("posts") is None
        assert resolver.update_time_column("posts") is None


class TestFieldColumns:
    def test_hint_wins(self, resolver):
        meta = record_meta(User)
        assert resolver.column_for_field("users", meta.field("nick")) == "nickname"

    def test_schema_match_ignores_case_and_separators(self, resolver):
        meta = record_meta(User)
        assert resolver.column_for_field("users", meta.field("UserName")) == "user_name"

    def test_falls_back_to_lcfirst(self, resolver):
        meta = record_meta(User)
        assert resolver.column_for_field("ghosts", meta.field("UserName")) == "userName"

    def test_primary_key(self, resolver):
        user = record_meta(User)
        assert resolver.is_primary_key("users", "id", user.field("id"))
        assert not resolver.is_primary_key("users", "user_name", user.field("user_name"))
        assert resolver.is_primary_key("ghosts", "post_id", record_meta(Post).field("key"))

    def test_primary_key_column(self, resolver):
        assert resolver.primary_key_column("posts") == "post_id"
        assert resolver.primary_key_column("posts", record_meta(Post)) == "post_id"
        assert resolver.primary_key_column("ghosts") is None


class TestDatetimeFieldValue:
    moment = dt.datetime(2024, 1, 31, 8, 30)

    def test_datetime_column(self, resolver):
        assert resolver.datetime_field_value("users", "update_at", self.moment) == "2024-01-31 08:30:00"

    def test_timestamp_column(self, resolver):
        assert resolver.datetime_field_value("posts", "stamp", self.moment) == "2024-01-31 08:30:00"

    def test_date_column(self, resolver):
        assert resolver.datetime_field_value("users", "birthday", self.moment) == "2024-01-31"

    def test_null_into_nullable(self, resolver):
        assert resolver.datetime_field_value("users", "birthday", None) is None

    def test_null_into_not_null(self, resolver):
        assert resolver.datetime_field_value("users", "createTime", None) is Skip.NOT_NULLABLE

    def test_missing_column(self, resolver):
        assert resolver.datetime_field_value("users", "born", self.moment) is Skip.NOT_EXISTS

    def test_non_date_column(self, resolver):
        assert resolver.datetime_field_value("users", "user_name", self.moment) is Skip.NOT_MATCHED
