"""
Shape descriptors produced by the type tracer.

A shape describes how a value of some type looks once serialized, without
reference to the Python class that produced it:
- Shape: scalar, optional, sequence, map, tuple, named reference, opaque
- ContainerShape: the body of a named type (struct, newtype, tuple-struct,
  enum, unit-struct)
- VariantShape: the payload of one enum alternative

Invariants:
    - Every shape is immutable once traced
    - Field and variant order equals declaration order
    - Field names are unique within their container
    - NamedRef names are bare identifiers, unique within one trace

Example:
    >>> StructShape(fields=(
    ...     Field("text", Scalar(ShapeKind.STR)),
    ...     Field("count", Scalar(ShapeKind.I32)),
    ... ))
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ShapeKind(Enum):
    """Scalar kinds a traced value can have."""

    STR = "str"
    CHAR = "char"
    BOOL = "bool"
    UNIT = "unit"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    F32 = "f32"
    F64 = "f64"
    BYTES = "bytes"

    @property
    def is_integer(self) -> bool:
        """Whether this is an integer of any width or signedness."""
        return self.value[0] in ("i", "u") and self is not ShapeKind.UNIT

    @property
    def is_float(self) -> bool:
        """Whether this is a floating point kind."""
        return self in (ShapeKind.F32, ShapeKind.F64)


@dataclass(frozen=True)
class Scalar:
    """A primitive value."""

    kind: ShapeKind


@dataclass(frozen=True)
class OptionalOf:
    """A value that may be absent (encoded as JSON null)."""

    inner: Shape


@dataclass(frozen=True)
class SequenceOf:
    """A homogeneous sequence."""

    item: Shape


@dataclass(frozen=True)
class MapOf:
    """A mapping; keys are expected to be string-like on the wire."""

    key: Shape
    value: Shape


@dataclass(frozen=True)
class TupleOf:
    """A fixed-length heterogeneous tuple."""

    items: tuple[Shape, ...]


@dataclass(frozen=True)
class NamedRef:
    """A reference to a named container traced elsewhere."""

    name: str


@dataclass(frozen=True)
class Opaque:
    """A value whose structure the tracer cannot describe."""

    description: str = ""


Shape = Union[Scalar, OptionalOf, SequenceOf, MapOf, TupleOf, NamedRef, Opaque]


@dataclass(frozen=True)
class Field:
    """A named member of a struct or struct variant."""

    name: str
    shape: Shape


@dataclass(frozen=True)
class StructShape:
    fields: tuple[Field, ...]


@dataclass(frozen=True)
class NewTypeShape:
    """Single-field wrapper; serialized exactly like its inner value."""

    inner: Shape


@dataclass(frozen=True)
class TupleStructShape:
    items: tuple[Shape, ...]


@dataclass(frozen=True)
class UnitVariant:
    name: str


@dataclass(frozen=True)
class NewTypeVariant:
    name: str
    inner: Shape


@dataclass(frozen=True)
class TupleVariant:
    name: str
    items: tuple[Shape, ...]


@dataclass(frozen=True)
class StructVariant:
    name: str
    fields: tuple[Field, ...]


VariantShape = Union[UnitVariant, NewTypeVariant, TupleVariant, StructVariant]


@dataclass(frozen=True)
class EnumShape:
    """Tagged alternatives as ``(index, variant)`` pairs in declaration order."""

    variants: tuple[tuple[int, VariantShape], ...]

    def variant_names(self) -> list[str]:
        """Get the variant names in declaration order."""
        return [variant.name for _, variant in self.variants]


@dataclass(frozen=True)
class UnitStructShape:
    """A type with no data; serialized as JSON null."""


ContainerShape = Union[StructShape, NewTypeShape, TupleStructShape, EnumShape, UnitStructShape]
