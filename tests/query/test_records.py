"""Tests for record metadata: dataclass fields, column hints and primary keys."""

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal

import pytest

from sqlspine.core.errors import MappingError
from sqlspine.query.records import (
    FieldKind,
    column,
    lcfirst,
    record_meta,
    resolve_target,
    squash,
    zero_value,
)


@dataclass
class Order:
    id: int = column(primary_key=True, default=0)
    paid: bool = False
    total: Decimal = Decimal(0)
    rate: float = 0.0
    note: str | None = None
    customer: str = column("customer_name", default="")
    placed_at: dt.datetime | None = None
    ship_day: dt.date | None = None
    tags: list = field(default_factory=list)


@dataclass
class Required:
    name: str
    count: int
    when: dt.datetime | None


class TestRecordMeta:
    def test_field_kinds(self):
        meta = record_meta(Order)
        kinds = {f.name: f.kind for f in meta.fields}
        assert kinds == {
            "id": FieldKind.INT,
            "paid": FieldKind.BOOL,
            "total": FieldKind.DECIMAL,
            "rate": FieldKind.FLOAT,
            "note": FieldKind.STRING,
            "customer": FieldKind.STRING,
            "placed_at": FieldKind.DATETIME,
            "ship_day": FieldKind.DATE,
            "tags": FieldKind.OTHER,
        }

    def test_optional_and_hints(self):
        meta = record_meta(Order)
        assert meta.field("note").optional is True
        assert meta.field("paid").optional is False
        assert meta.field("customer").column == "customer_name"
        assert meta.field("id").primary_key is True
        assert meta.field("paid").primary_key is False
        assert meta.field("missing") is None

    def test_cached_per_type(self):
        assert record_meta(Order) is record_meta(Order)

    def test_rejects_non_dataclass(self):
        with pytest.raises(MappingError):
            record_meta(dict)

    def test_new_fills_zero_values(self):
        record = record_meta(Required).new()
        assert record == Required(name="", count=0, when=None)

    def test_field_get_set(self):
        order = Order()
        meta = record_meta(Order).field("rate")
        meta.set(order, 1.5)
        assert meta.get(order) == 1.5


class TestResolveTarget:
    def test_type(self):
        meta, instance = resolve_target(Order)
        assert meta.cls is Order
        assert instance is None

    def test_instance(self):
        order = Order()
        meta, instance = resolve_target(order)
        assert meta.cls is Order
        assert instance is order

    @pytest.mark.parametrize("target", [None, {"id": 1}, 5])
    def test_rejects(self, target):
        with pytest.raises(MappingError):
            resolve_target(target)


class TestHelpers:
    def test_zero_values(self):
        meta = record_meta(Order)
        assert zero_value(meta.field("total")) == Decimal(0)
        assert zero_value(meta.field("note")) is None
        assert zero_value(meta.field("tags")) is None

    def test_name_helpers(self):
        assert lcfirst("UserName") == "userName"
        assert lcfirst("") == ""
        assert squash("User-Name") == squash("user_name") == "username"
