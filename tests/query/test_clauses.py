"""Tests for clause value objects and parsers."""

import pytest

from sqlspine.query.clauses import (
    ColumnRef,
    JoinClause,
    JoinKind,
    TableRef,
    parse_limit,
    parse_order,
    split_list,
    split_name_alias,
)


class TestSplitList:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("a, b ,c", ["a", "b", "c"]),
            ("a,,b", ["a", "b"]),
            (["a ", " b", ""], ["a", "b"]),
            ("", []),
            (None, []),
        ],
    )
    def test_split(self, value, expected):
        assert split_list(value) == expected


class TestNameAlias:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("users", ("users", "")),
            ("users AS u", ("users", "u")),
            ("users as u", ("users", "u")),
            ("users u", ("users", "u")),
            ("  users   u ", ("users", "u")),
        ],
    )
    def test_split(self, text, expected):
        assert split_name_alias(text) == expected

    def test_table_render(self):
        assert TableRef.parse("users u").render() == "`users` AS u"
        assert TableRef.parse("shop.users").render() == "shop.`users`"

    def test_column_render(self):
        assert ColumnRef.parse("u.name AS n").render() == "u.`name` AS n"
        assert ColumnRef.parse("*").render() == "*"


class TestJoinKind:
    @pytest.mark.parametrize(
        "text, kind",
        [
            ("inner", JoinKind.INNER),
            ("left  outer", JoinKind.LEFT_OUTER),
            (" RIGHT ", JoinKind.RIGHT),
            (JoinKind.CROSS, JoinKind.CROSS),
            ("sideways", None),
        ],
    )
    def test_parse(self, text, kind):
        assert JoinKind.parse(text) is kind

    def test_render(self):
        join = JoinClause(TableRef("posts", "p"), JoinKind.LEFT, "p.user_id = u.id")
        assert join.render() == "LEFT JOIN `posts` AS p ON p.user_id = u.id"


class TestParseOrder:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("score", "`score` ASC"),
            ("score desc", "`score` DESC"),
            ("u.score  DESC", "u.`score` DESC"),
            ("score sideways", None),
            ("", None),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_order(text) == expected


class TestParseLimit:
    @pytest.mark.parametrize(
        "args, expected",
        [
            ((10,), (10,)),
            ((20, 10), (20, 10)),
            (("10",), (10,)),
            (("20,10",), (20, 10)),
            (("20 , 10",), (20, 10)),
            ((0, 5), (0, 5)),
            ((0,), None),
            ((-1,), None),
            ((5, 0), None),
            ((-5, 10), None),
            (("ten",), None),
            ((True,), None),
            ((1, 2, 3), None),
            ((), None),
        ],
    )
    def test_parse(self, args, expected):
        assert parse_limit(*args) == expected
