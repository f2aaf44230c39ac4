"""Terminal operations against an in-memory SQLite database."""

import datetime as dt

import pytest
from conftest import Post, User

import sqlspine
from sqlspine.core.errors import ConfigError, MappingError, StatementError
from sqlspine.query.builder import QueryBuilder
from sqlspine.query.gateway import set_default_database


class TestReads:
    def test_get_decodes_rows(self, seeded):
        rows = seeded.table("users").where("age", ">", 18).get()
        assert len(rows) == 1
        row = rows[0]
        assert row["id"] == 1
        assert row["user_name"] == "ada"
        assert row["score"] == "91.5"
        assert row["birthday"] == "1815-12-10"
        assert row["del_flag"] == 0

    def test_get_with_columns(self, seeded):
        rows = seeded.table("users").order_by("id").get("id, user_name AS name")
        assert rows == [{"id": 1, "name": "ada"}, {"id": 2, "name": "bob"}, {"id": 3, "name": "cyd"}]

    def test_get_with_join(self, seeded):
        rows = (
            seeded.table("posts p")
            .join("users u", "u.id = p.user_id")
            .where("u.user_name", "bob")
            .order_by("p.id")
            .get("p.id, u.user_name")
        )
        assert rows == [{"id": 3, "user_name": "bob"}, {"id": 4, "user_name": "bob"}]

    def test_pagination(self, seeded):
        rows = seeded.table("posts").order_by("id").page(2, 3).get("id")
        assert rows == [{"id": 4}]

    def test_first(self, seeded):
        assert seeded.table("users").order_by("id desc").first("user_name") == {"user_name": "cyd"}
        assert seeded.table("users").where("id", 99).first() is None

    def test_value_helpers(self, seeded):
        users = seeded.table("users")
        assert users.clone().where("id", 1).value("user_name") == "ada"
        assert users.clone().where("id", 99).value("user_name", "nobody") == "nobody"
        assert users.clone().where("id", 2).string_value("nickname", "-") == "-"
        assert users.clone().where("id", 1).int_value("age") == 36
        assert users.clone().where("id", 3).int_value("age", -1) == -1

    def test_like_and_in(self, seeded):
        assert seeded.table("users").where_like("user_name", "d").count() == 2
        assert seeded.table("users").where_not_in("id", [1, 2]).get("user_name") == [{"user_name": "cyd"}]

    def test_null_and_blank(self, seeded):
        assert seeded.table("users").where_null("age").count() == 1
        assert seeded.table("users").where_blank("nickname").count() == 2
        assert seeded.table("posts").where_not_blank("title").count() == 3

    def test_date_filters(self, seeded):
        assert seeded.table("users").where_date("birthday", "1815-12-10").count() == 1
        today = dt.date.today()
        assert seeded.table("users").where_date_between("create_at", today, today).count() == 3


class TestAggregates:
    def test_count_and_exists(self, seeded):
        assert seeded.table("users").count() == 3
        assert seeded.table("users").count("age") == 2
        assert seeded.table("users").where_soft_delete(False).count() == 2
        assert seeded.table("users").where_soft_delete().exists()
        assert not seeded.table("users").where("id", 99).exists()

    def test_sums(self, seeded):
        assert seeded.table("posts").sum_int("views") == 18
        assert seeded.table("users").sum_float("score") == pytest.approx(151.75)
        assert seeded.table("posts").where("id", 99).sum_int("views") == 0


class TestWrites:
    def test_insert_returns_id_and_stamps_create_time(self, db):
        new_id = db.table("users").insert({"user_name": "dee", "nickname": None})
        assert new_id == 1
        row = db.table("users").where("id", new_id).first()
        assert row["create_at"]
        assert db.table("users").where_null("nickname").count() == 1

    def test_insert_empty_mapping(self, db):
        assert db.table("users").insert({}) == 0
        assert db.table("users").count() == 0

    def test_update_stamps_update_time(self, seeded):
        assert seeded.table("users").where("id", 2).update({"nickname": "b"}) == 1
        row = seeded.table("users").where("id", 2).first("nickname, update_at")
        assert row["nickname"] == "b"
        assert row["update_at"]

    def test_update_with_raw(self, seeded):
        seeded.table("posts").where("id", 1).update({"views": sqlspine.Raw("`views` * 2")})
        assert seeded.table("posts").where("id", 1).int_value("views") == 20

    def test_delete(self, seeded):
        assert seeded.table("posts").where("user_id", 2).delete() == 2
        assert seeded.table("posts").count() == 2

    def test_soft_delete_flag(self, seeded):
        assert seeded.table("users").where("id", 2).soft_delete() == 1
        row = seeded.table("users").where("id", 2).first("del_flag, update_at")
        assert row["del_flag"] == 1
        assert row["update_at"]

    def test_soft_delete_timestamp(self, seeded):
        assert seeded.table("posts").where("id", 1).soft_delete() == 1
        assert seeded.table("posts").where_soft_delete().count() == 1

    def test_soft_delete_without_convention(self, db):
        db.table("tags").insert({"name": "x"})
        assert db.table("tags").soft_delete() == 0
        assert db.table("tags").count() == 1

    def test_increment_and_decrement(self, seeded):
        posts = seeded.table("posts").where("id", 1)
        assert posts.increment("views", 5) == 1
        assert posts.decrement("views") == 1
        assert posts.int_value("views") == 14

    @pytest.mark.parametrize("amount", [0, -2, True, None, "abc"])
    def test_non_positive_step_is_noop(self, seeded, amount):
        posts = seeded.table("posts").where("id", 1)
        assert posts.increment("views", amount) == 0
        assert posts.int_value("views") == 10


class TestRecords:
    def test_insert_then_fetch_round_trip(self, db):
        user = User(user_name="eve", age=20, score=12.345, nick="e", birthday=dt.date(2000, 2, 29))
        new_id = db.table("users").insert_record(user)
        assert new_id == 1
        assert user.id == 1

        loaded = db.table("users").where("id", new_id).first_record(User)
        assert loaded.id == user.id
        assert loaded.user_name == "eve"
        assert loaded.age == 20
        assert loaded.score == pytest.approx(12.345)
        assert loaded.nick == "e"
        assert loaded.birthday == dt.date(2000, 2, 29)
        assert isinstance(loaded.create_at, dt.datetime)

    def test_first_record_fills_instance(self, seeded):
        user = User(age=-1)
        assert seeded.table("users").where("id", 2).first_record(user) is user
        assert (user.id, user.user_name, user.age) == (2, "bob", 17)

    def test_first_record_no_match(self, seeded):
        assert seeded.table("users").where("id", 99).first_record(User) is None

    def test_get_records_with_callback(self, seeded):
        seen = []
        records = seeded.table("posts").order_by("id").get_records(Post, seen.append)
        assert [p.id for p in records] == [1, 2, 3, 4]
        assert seen == records
        assert records[0].title == "engines"
        assert records[3].title is None

    def test_update_record_by_primary_key(self, seeded):
        user = seeded.table("users").where("id", 2).first_record(User)
        user.age = 18
        # The builder's own conditions do not apply to a keyed record update.
        assert seeded.table("users").where("id", 1).update_record(user) == 1
        assert seeded.table("users").where("id", 2).int_value("age") == 18
        assert seeded.table("users").where("id", 1).int_value("age") == 36

    def test_update_record_without_key_value(self, seeded):
        user = User(user_name="x")
        user.id = None
        with pytest.raises(MappingError):
            seeded.table("users").update_record(user)

    def test_record_ops_need_instances(self, db):
        with pytest.raises(MappingError):
            db.table("users").insert_record(User)

    def test_include_fields(self, db):
        builder = db.table("users").with_include_fields("user_name")
        builder.insert_record(User(user_name="fay", age=50))
        assert builder._include == []
        assert db.table("users").where("user_name", "fay").int_value("age", -1) == -1

    def test_exclude_fields(self, db):
        db.table("users").with_exclude_fields(["age", "score"]).insert_record(User(user_name="gus", age=9))
        assert db.table("users").where("user_name", "gus").int_value("age", -1) == -1


class TestBuilderReuse:
    def test_terminal_ops_keep_conditions(self, seeded):
        builder = seeded.table("users").where("age", ">", 10)
        before = builder.to_sql()
        builder.get("id")
        builder.first()
        builder.count()
        assert builder.to_sql() == before

    def test_timeout_resets_after_terminal(self, seeded):
        builder = seeded.table("users").with_timeout(3)
        builder.count()
        assert builder._timeout is None

    def test_timeout_resets_after_failure(self, db):
        builder = db.table("missing").with_timeout(3)
        with pytest.raises(StatementError):
            builder.get()
        assert builder._timeout is None


class TestDefaultDatabase:
    def test_without_database(self):
        with pytest.raises(ConfigError):
            QueryBuilder().table("users").count()

    def test_module_level_table(self, seeded):
        set_default_database(seeded)
        assert sqlspine.table("users").count() == 3
        assert sqlspine.get_default_database() is seeded

    def test_no_table(self, db):
        with pytest.raises(ConfigError, match="no table specified"):
            QueryBuilder(db).get()
