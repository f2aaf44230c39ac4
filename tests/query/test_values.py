"""Tests for bind values and scalar conversions."""

import datetime as dt
import enum
from decimal import Decimal

import pytest

from sqlspine.query.values import (
    BindValue,
    Raw,
    ValueKind,
    format_date,
    format_datetime,
    parse_datetime,
    to_decimal,
    to_decimal_string,
    to_float,
    to_int,
)


class Color(enum.Enum):
    RED = "red"


class TestBindValue:
    @pytest.mark.parametrize(
        "value, kind",
        [
            (None, ValueKind.NULL),
            (True, ValueKind.BOOL),
            (3, ValueKind.INT),
            (2.5, ValueKind.FLOAT),
            ("ada", ValueKind.STRING),
            (Raw("NOW()"), ValueKind.RAW),
            ([1, 2], ValueKind.SEQUENCE),
            (dt.date(2024, 1, 31), ValueKind.SCALAR),
            (Decimal("1.5"), ValueKind.SCALAR),
            (b"\x00", ValueKind.SCALAR),
        ],
    )
    def test_kinds(self, value, kind):
        assert BindValue.of(value).kind is kind

    def test_enum_uses_its_value(self):
        bound = BindValue.of(Color.RED)
        assert bound.kind is ValueKind.STRING
        assert bound.param() == "red"

    def test_sequence_members_normalized(self):
        bound = BindValue.of((1, "a", None))
        assert [v.kind for v in bound.items()] == [ValueKind.INT, ValueKind.STRING, ValueKind.NULL]
        assert bound.param() == [1, "a", None]

    def test_scalar_items_is_itself(self):
        bound = BindValue.of(4)
        assert bound.items() == (bound,)

    def test_blank(self):
        assert BindValue.of(None).is_blank
        assert BindValue.of("").is_blank
        assert not BindValue.of(0).is_blank
        assert not BindValue.of(" ").is_blank

    def test_raw_param_is_expression(self):
        assert BindValue.of(Raw("`views` + 1")).param() == "`views` + 1"
        assert str(Raw("NOW()")) == "NOW()"


class TestDecimalString:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (12.0, "12"),
            (12.345, "12.34"),
            (12.349, "12.34"),
            (0.5, "0.5"),
            (0.1 + 0.2, "0.3"),
            (3, "3"),
            ("7.10", "7.1"),
            (Decimal("2.005"), "2"),
            (-1.25, "-1.25"),
            (-0.5, "-0.5"),
            (-0.001, "0"),
            (-0.0, "0"),
        ],
    )
    def test_truncates_and_trims(self, value, expected):
        assert to_decimal_string(value) == expected


class TestToInt:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 0),
            (True, 1),
            (7, 7),
            (7.9, 7),
            (Decimal("3.2"), 3),
            (" 42 ", 42),
            ("4.8", 4),
            (b"12", 12),
            ("abc", 0),
            ([], 0),
        ],
    )
    def test_conversion(self, value, expected):
        assert to_int(value) == expected

    def test_default(self):
        assert to_int("abc", default=-1) == -1
        assert to_int(None, default=9) == 9


class TestToFloat:
    def test_conversion(self):
        assert to_float("2.5") == 2.5
        assert to_float(Decimal("1.25")) == 1.25
        assert to_float("x", default=-1.0) == -1.0
        assert to_float(None) == 0.0

    def test_to_decimal(self):
        assert to_decimal("1.50") == Decimal("1.50")
        assert to_decimal("abc") is None


class TestDates:
    def test_parse_full_and_date_only(self):
        assert parse_datetime("2024-01-31 08:30:00") == dt.datetime(2024, 1, 31, 8, 30)
        assert parse_datetime("2024/01/31") == dt.datetime(2024, 1, 31)
        assert parse_datetime(" 2024-01-31 ") == dt.datetime(2024, 1, 31)
        assert parse_datetime("31.01.2024") is None

    def test_format(self):
        moment = dt.datetime(2024, 1, 31, 8, 30, 5)
        assert format_datetime(moment) == "2024-01-31 08:30:05"
        assert format_datetime(dt.date(2024, 1, 31)) == "2024-01-31 00:00:00"
        assert format_date(moment) == "2024-01-31"
