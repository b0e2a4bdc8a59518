"""
Reflection module for jsonwrap.

This module describes the serialization shape of foreign types:
- Shape descriptors (Scalar, OptionalOf, SequenceOf, MapOf, TupleOf, NamedRef)
- Container shapes (StructShape, NewTypeShape, TupleStructShape, EnumShape,
  UnitStructShape) and enum variant shapes
- The Tracer that derives them from Python annotations

Invariants:
    - Shapes are immutable once traced
    - Tracing has no side effects on the traced types
"""

from .shapes import (
    ContainerShape,
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
    Shape,
    ShapeKind,
    StructShape,
    StructVariant,
    TupleOf,
    TupleStructShape,
    TupleVariant,
    UnitStructShape,
    UnitVariant,
    VariantShape,
)
from .tracer import TracedTypes, Tracer, optional_inner, trace, type_name

__all__ = [
    # Shapes
    "Shape",
    "ShapeKind",
    "Scalar",
    "OptionalOf",
    "SequenceOf",
    "MapOf",
    "TupleOf",
    "NamedRef",
    "Opaque",
    "Field",
    # Containers
    "ContainerShape",
    "StructShape",
    "NewTypeShape",
    "TupleStructShape",
    "EnumShape",
    "UnitStructShape",
    # Variants
    "VariantShape",
    "UnitVariant",
    "NewTypeVariant",
    "TupleVariant",
    "StructVariant",
    # Tracing
    "Tracer",
    "TracedTypes",
    "trace",
    "type_name",
    "optional_inner",
]
