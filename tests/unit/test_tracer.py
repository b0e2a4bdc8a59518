"""
Unit tests for the type tracer.

Tests cover:
- Scalar, optional and collection shapes
- Named containers (struct, NewType, NamedTuple, enum, union alias)
- Cycle termination
- Name collisions and untraceable roots
"""

import enum
from dataclasses import dataclass
from typing import Any, NamedTuple, NewType, Optional

import pytest
from pydantic import BaseModel
from typing_extensions import TypeAliasType, TypedDict

from jsonwrap.errors import TraceError
from jsonwrap.reflection import (
    EnumShape,
    Field,
    MapOf,
    NamedRef,
    NewTypeShape,
    NewTypeVariant,
    Opaque,
    OptionalOf,
    Scalar,
    SequenceOf,
    ShapeKind,
    StructShape,
    StructVariant,
    TupleOf,
    TupleStructShape,
    TupleVariant,
    Tracer,
    UnitStructShape,
    UnitVariant,
    trace,
    type_name,
)


@dataclass
class Account:
    name: str
    balance: int
    active: bool


class Point(NamedTuple):
    x: float
    y: float


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


class Settings(TypedDict):
    theme: str


class Profile(BaseModel):
    handle: str
    score: Optional[float] = None


@dataclass
class Marker:
    pass


@dataclass
class Node:
    label: str
    children: list["Node"]


@dataclass
class Circle:
    radius: float


AccountId = NewType("AccountId", int)
WrappedAccount = NewType("WrappedAccount", Account)

Shape = TypeAliasType("Shape", Circle | Point | Marker | None | int)


class TestTypeName:
    """Tests for type_name()."""

    def test_class_name(self):
        """Classes use their bare name."""
        assert type_name(Account) == "Account"

    def test_newtype_name(self):
        """NewTypes use their own name."""
        assert type_name(AccountId) == "AccountId"

    def test_none(self):
        """None is named 'None'."""
        assert type_name(None) == "None"
        assert type_name(type(None)) == "None"

    def test_generic_display_name(self):
        """Parameterized generics get an identifier-only name."""
        assert type_name(list[int]) == "list_int"
        assert type_name(dict[str, Account]) == "dict_str_Account"


class TestScalarShapes:
    """Tests for scalar and collection shapes."""

    def test_scalars(self):
        """Builtin scalars map to their shape kinds."""
        tracer = Tracer()
        assert tracer.shape_of(str) == Scalar(ShapeKind.STR)
        assert tracer.shape_of(int) == Scalar(ShapeKind.I64)
        assert tracer.shape_of(float) == Scalar(ShapeKind.F64)
        assert tracer.shape_of(bool) == Scalar(ShapeKind.BOOL)
        assert tracer.shape_of(None) == Scalar(ShapeKind.UNIT)
        assert tracer.shape_of(bytes) == Scalar(ShapeKind.BYTES)

    def test_optional(self):
        """Optional[X] becomes OptionalOf(X)."""
        assert Tracer().shape_of(Optional[str]) == OptionalOf(Scalar(ShapeKind.STR))
        assert Tracer().shape_of(str | None) == OptionalOf(Scalar(ShapeKind.STR))

    def test_collections(self):
        """Lists, dicts and tuples map to sequence, map and tuple shapes."""
        tracer = Tracer()
        assert tracer.shape_of(list[int]) == SequenceOf(Scalar(ShapeKind.I64))
        assert tracer.shape_of(set[str]) == SequenceOf(Scalar(ShapeKind.STR))
        assert tracer.shape_of(tuple[int, ...]) == SequenceOf(Scalar(ShapeKind.I64))
        assert tracer.shape_of(dict[str, bool]) == MapOf(
            Scalar(ShapeKind.STR), Scalar(ShapeKind.BOOL)
        )
        assert tracer.shape_of(tuple[int, str]) == TupleOf(
            (Scalar(ShapeKind.I64), Scalar(ShapeKind.STR))
        )

    def test_any_is_opaque(self):
        """Any has no traceable shape."""
        assert isinstance(Tracer().shape_of(Any), Opaque)

    def test_plain_union_is_opaque(self):
        """A bare union of two non-None types is opaque."""
        assert isinstance(Tracer().shape_of(int | str), Opaque)


class TestContainers:
    """Tests for named container shapes."""

    def test_dataclass_struct(self):
        """Dataclass fields are traced in declaration order."""
        traced = Tracer().trace_type(Account)

        assert traced.root == NamedRef("Account")
        assert traced.get("Account") == StructShape(
            (
                Field("name", Scalar(ShapeKind.STR)),
                Field("balance", Scalar(ShapeKind.I64)),
                Field("active", Scalar(ShapeKind.BOOL)),
            )
        )

    def test_pydantic_model_struct(self):
        """Pydantic model fields are traced like dataclass fields."""
        traced = Tracer().trace_type(Profile)

        assert traced.get("Profile") == StructShape(
            (
                Field("handle", Scalar(ShapeKind.STR)),
                Field("score", OptionalOf(Scalar(ShapeKind.F64))),
            )
        )

    def test_typeddict_struct(self):
        """TypedDict keys become struct fields."""
        traced = Tracer().trace_type(Settings)
        assert traced.get("Settings") == StructShape((Field("theme", Scalar(ShapeKind.STR)),))

    def test_empty_dataclass_is_unit_struct(self):
        """A dataclass without fields is a unit struct."""
        assert Tracer().trace_type(Marker).get("Marker") == UnitStructShape()

    def test_namedtuple_tuple_struct(self):
        """NamedTuples become tuple-structs."""
        traced = Tracer().trace_type(Point)
        assert traced.get("Point") == TupleStructShape(
            (Scalar(ShapeKind.F64), Scalar(ShapeKind.F64))
        )

    def test_newtype(self):
        """NewTypes become single-field wrappers."""
        traced = Tracer().trace_type(WrappedAccount)

        assert traced.root == NamedRef("WrappedAccount")
        assert traced.get("WrappedAccount") == NewTypeShape(NamedRef("Account"))
        assert "Account" in traced

    def test_enum_unit_variants(self):
        """Enum members become unit variants in definition order."""
        traced = Tracer().trace_type(Color)

        assert traced.get("Color") == EnumShape(
            ((0, UnitVariant("RED")), (1, UnitVariant("GREEN")))
        )
        assert traced.variant_types["Color"] == (Color.RED, Color.GREEN)

    def test_union_alias_variants(self):
        """Union aliases become enums with one variant per member."""
        traced = Tracer().trace_type(Shape)
        container = traced.get("Shape")

        assert isinstance(container, EnumShape)
        assert container.variants == (
            (0, StructVariant("Circle", (Field("radius", Scalar(ShapeKind.F64)),))),
            (1, TupleVariant("Point", (Scalar(ShapeKind.F64), Scalar(ShapeKind.F64)))),
            (2, UnitVariant("Marker")),
            (3, UnitVariant("None")),
            (4, NewTypeVariant("int", Scalar(ShapeKind.I64))),
        )

    def test_self_reference_terminates(self):
        """A self-referential type traces to a NamedRef back to itself."""
        traced = Tracer().trace_type(Node)

        assert traced.get("Node") == StructShape(
            (
                Field("label", Scalar(ShapeKind.STR)),
                Field("children", SequenceOf(NamedRef("Node"))),
            )
        )

    def test_traced_types_immutable(self):
        """The returned mappings cannot be modified."""
        traced = Tracer().trace_type(Account)
        with pytest.raises(TypeError):
            traced.containers["Other"] = UnitStructShape()


class TestTraceFailures:
    """Tests for tracing failures."""

    def test_opaque_root_raises(self):
        """Tracing an untraceable root raises TraceError."""
        with pytest.raises(TraceError, match="no traceable serialization shape"):
            Tracer().trace_type(Any)

    def test_trace_returns_none_on_failure(self):
        """trace() reports failure as None."""
        assert trace(Any) is None

    def test_trace_returns_result(self):
        """trace() returns the traced types on success."""
        traced = trace(Account)
        assert traced is not None
        assert traced.root == NamedRef("Account")

    def test_name_collision_raises(self):
        """Two different types with one bare name cannot share a trace."""
        ShadowAccount = NewType("Account", str)
        tracer = Tracer()
        tracer.shape_of(Account)

        with pytest.raises(TraceError, match="Two different types"):
            tracer.shape_of(ShadowAccount)
