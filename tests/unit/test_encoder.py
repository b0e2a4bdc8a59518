"""
Unit tests for the shape-directed encoder.

Tests cover:
- Struct, tuple-struct and collection encoding
- NewType transparency
- Externally tagged enums, matching the generated schema
- Error paths
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, NamedTuple, NewType, Optional

import pytest
from pydantic import BaseModel
from typing_extensions import TypeAliasType, TypedDict

from jsonwrap.encoder import ShapeEncoder, to_jsonable
from jsonwrap.errors import SerializationError
from jsonwrap.reflection import trace
from jsonwrap.schema import SchemaRegistry, register_type


@dataclass
class Item:
    sku: str
    quantity: int
    tags: list[str]


@dataclass
class Order:
    id: int
    items: list[Item]
    notes: Optional[str]
    totals: dict[str, float]
    extra: Any


class Coordinate(NamedTuple):
    lat: float
    lon: float


class Status(enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class Address(TypedDict, total=False):
    city: str
    zip: str


@dataclass
class Reading:
    value: float


class Shade(str, enum.Enum):
    DARK = "dark"
    LIGHT = "light"


@dataclass
class Label:
    text: str


class Customer(BaseModel):
    email: str
    vip: bool = False


@dataclass
class Cancelled:
    reason: str


@dataclass
class Shipped:
    pass


Event = TypeAliasType("Event", Cancelled | Shipped | Coordinate | int | None)

OrderRef = NewType("OrderRef", Order)


def encode(tp, value):
    return ShapeEncoder(trace(tp)).encode(value)


class TestEncodeContainers:
    """Tests for struct and collection encoding."""

    def test_nested_struct(self):
        """Structs encode fields in order, recursing into nested types."""
        order = Order(
            id=7,
            items=[Item(sku="A-1", quantity=2, tags=["red"])],
            notes=None,
            totals={"net": 10},
            extra={"day": date(2024, 1, 2)},
        )

        result = encode(Order, order)

        assert result == {
            "id": 7,
            "items": [{"sku": "A-1", "quantity": 2, "tags": ["red"]}],
            "notes": None,
            "totals": {"net": 10.0},
            "extra": {"day": "2024-01-02"},
        }
        assert list(result) == ["id", "items", "notes", "totals", "extra"]

    def test_pydantic_model(self):
        """Pydantic models encode through their traced fields."""
        assert encode(Customer, Customer(email="a@b.c")) == {"email": "a@b.c", "vip": False}

    def test_namedtuple_as_array(self):
        """Tuple-structs encode as arrays."""
        assert encode(Coordinate, Coordinate(1.5, 2.0)) == [1.5, 2.0]

    def test_newtype_transparent(self):
        """A NewType value encodes exactly like its payload."""
        order = Order(id=1, items=[], notes="n", totals={}, extra=None)
        assert encode(OrderRef, OrderRef(order)) == encode(Order, order)

    def test_typeddict_missing_keys_omitted(self):
        """TypedDict values encode their present keys only."""
        assert encode(Address, {"city": "Oslo"}) == {"city": "Oslo"}
        assert encode(Address, {"zip": "0150", "city": "Oslo"}) == {"city": "Oslo", "zip": "0150"}


class TestEncodeEnums:
    """Tests for externally tagged enums."""

    def test_python_enum(self):
        """Enum members encode as a single key with null."""
        assert encode(Status, Status.CLOSED) == {"CLOSED": None}

    def test_union_alias_variants(self):
        """Each union member encodes under its variant name."""
        assert encode(Event, Cancelled(reason="late")) == {"Cancelled": {"reason": "late"}}
        assert encode(Event, Shipped()) == {"Shipped": None}
        assert encode(Event, Coordinate(1.0, 2.0)) == {"Coordinate": [1.0, 2.0]}
        assert encode(Event, 3) == {"int": 3}
        assert encode(Event, None) == {"None": None}

    def test_enum_matches_schema(self):
        """Every encoded variant key is a property of one anyOf branch."""
        traced = trace(Event)
        registry = SchemaRegistry()
        register_type("Event", traced, registry)
        branches = registry.to_dict()["Event"]["anyOf"]
        schema_keys = [list(branch["properties"]) for branch in branches]

        for value in (Cancelled(reason="x"), Shipped(), Coordinate(0.0, 0.0), 1, None):
            encoded = ShapeEncoder(traced).encode(value)
            assert list(encoded) in schema_keys

    def test_unknown_variant_raises(self):
        """A value matching no variant raises."""
        with pytest.raises(SerializationError, match="No variant of 'Event'"):
            encode(Event, "text")


class TestEncodeErrors:
    """Tests for encoding failures."""

    def test_wrong_scalar_type(self):
        """A scalar of the wrong type raises with its path."""
        with pytest.raises(SerializationError) as exc_info:
            encode(Item, Item(sku="A", quantity="two", tags=[]))

        assert exc_info.value.path == "$.quantity"
        assert exc_info.value.code == "SERIALIZATION_ERROR"

    def test_bool_is_not_integer(self):
        """Booleans are not accepted as integers."""
        with pytest.raises(SerializationError):
            encode(Item, Item(sku="A", quantity=True, tags=[]))

    def test_wrong_instance(self):
        """A value of another class raises."""
        with pytest.raises(SerializationError, match="Expected 'Item'"):
            encode(Item, Coordinate(1.0, 2.0))

    def test_nested_path(self):
        """Errors deep in a value report the full JSON path."""
        order = Order(id=1, items=[Item(sku=5, quantity=1, tags=[])], notes=None, totals={}, extra=None)

        with pytest.raises(SerializationError) as exc_info:
            encode(Order, order)

        assert exc_info.value.path == "$.items[0].sku"

    def test_none_for_required_struct(self):
        """None is not a valid struct value."""
        with pytest.raises(SerializationError):
            encode(Item, None)

    def test_to_jsonable_fallback(self):
        """Untyped values use pydantic's encoder."""
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert to_jsonable(value) == "12345678-1234-5678-1234-567812345678"

    def test_to_jsonable_unknown_type_raises(self):
        """Values pydantic cannot encode raise SerializationError."""
        with pytest.raises(SerializationError, match="Cannot encode"):
            to_jsonable(object())


class TestEncodeScalars:
    """Tests for scalar edge cases."""

    def test_nan_raises(self):
        """NaN has no JSON form and raises with its path."""
        with pytest.raises(SerializationError, match="Expected a finite f64") as exc_info:
            encode(Reading, Reading(value=float("nan")))

        assert exc_info.value.path == "$.value"

    def test_infinity_raises(self):
        """Positive and negative infinity raise."""
        for value in (float("inf"), float("-inf")):
            with pytest.raises(SerializationError, match="Expected a finite f64"):
                encode(Reading, Reading(value=value))

    def test_finite_float_and_int(self):
        """Finite floats and ints encode as floats."""
        assert encode(Reading, Reading(value=1.25)) == {"value": 1.25}
        assert encode(Reading, Reading(value=3)) == {"value": 3.0}

    def test_str_enum_value_keeps_text(self):
        """A str-mixin enum in a str field encodes as its value, not its repr."""
        result = encode(Label, Label(text=Shade.DARK))

        assert result == {"text": "dark"}
        assert type(result["text"]) is str
