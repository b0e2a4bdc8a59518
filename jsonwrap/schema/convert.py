"""
Conversion from traced shapes to schema fragments.

Three converters share one registry:
- shape_to_schema: one Shape -> one fragment; named references register
  their container and stay references
- variant_to_schema: one enum variant payload -> one fragment
- container_to_schema: a whole named container -> its top-level fragment

Invariants:
    - Conversion never fails; unsupported shapes become an untyped object
    - All integer widths map to ``integer``, all float widths to ``number``
    - Optionality is not expressed here (see make_nullable)
    - Enums are externally tagged: one single-property object per variant,
      matching jsonwrap.encoder
    - A NewType container is transparent: it converts to its inner
      fragment, inlining the inner container when the inner shape is named

How to change safely:
    - Changing the enum layout requires the same change in the encoder
    - Keep conversion deterministic; repeated runs must yield equal fragments
"""

from __future__ import annotations

import logging

from ..reflection.shapes import (
    ContainerShape,
    EnumShape,
    Field,
    MapOf,
    NamedRef,
    NewTypeShape,
    NewTypeVariant,
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
from ..reflection.tracer import TracedTypes
from .registry import SchemaRegistry
from .types import InlineSchema, Reference, SchemaKind, SchemaRef

logger = logging.getLogger(__name__)

_SCALAR_KINDS = {
    ShapeKind.STR: SchemaKind.STRING,
    ShapeKind.CHAR: SchemaKind.STRING,
    ShapeKind.BOOL: SchemaKind.BOOLEAN,
    ShapeKind.UNIT: SchemaKind.NULL,
}

UNTYPED_OBJECT = InlineSchema(kind=SchemaKind.OBJECT)


def _inline(kind: SchemaKind) -> InlineSchema:
    return InlineSchema(kind=kind)


def _scalar_kind(kind: ShapeKind) -> SchemaKind:
    if kind.is_integer:
        return SchemaKind.INTEGER
    if kind.is_float:
        return SchemaKind.NUMBER
    # Bytes have no JSON kind of their own.
    return _SCALAR_KINDS.get(kind, SchemaKind.OBJECT)


def _properties(
    fields: tuple[Field, ...],
    traced: TracedTypes,
    registry: SchemaRegistry,
) -> tuple[tuple[str, SchemaRef], ...]:
    return tuple((f.name, shape_to_schema(f.shape, traced, registry)) for f in fields)


def _positional(
    shapes: tuple[Shape, ...],
    traced: TracedTypes,
    registry: SchemaRegistry,
) -> InlineSchema:
    # Positional tuples approximated as an array whose allOf lists each slot.
    return InlineSchema(
        kind=SchemaKind.ARRAY,
        all_of=tuple(shape_to_schema(s, traced, registry) for s in shapes),
    )


def shape_to_schema(shape: Shape, traced: TracedTypes, registry: SchemaRegistry) -> SchemaRef:
    """Convert one shape descriptor to a fragment.

    Named references are registered as a side effect (skipped if already
    bound or currently being built) and returned as a Reference.

    Args:
        shape: Shape to convert
        traced: Trace the shape belongs to
        registry: Registry receiving nested named fragments

    Returns:
        Inline fragment or Reference
    """
    if isinstance(shape, Scalar):
        return _inline(_scalar_kind(shape.kind))
    if isinstance(shape, OptionalOf):
        return shape_to_schema(shape.inner, traced, registry)
    if isinstance(shape, SequenceOf):
        return InlineSchema(
            kind=SchemaKind.ARRAY,
            items=shape_to_schema(shape.item, traced, registry),
        )
    if isinstance(shape, MapOf):
        return InlineSchema(
            kind=SchemaKind.OBJECT,
            additional_properties=shape_to_schema(shape.value, traced, registry),
        )
    if isinstance(shape, TupleOf):
        return _positional(shape.items, traced, registry)
    if isinstance(shape, NamedRef):
        register_type(shape.name, traced, registry)
        return Reference(shape.name)
    return UNTYPED_OBJECT


def variant_to_schema(
    variant: VariantShape,
    traced: TracedTypes,
    registry: SchemaRegistry,
) -> SchemaRef:
    """Convert one enum variant's payload to a fragment."""
    if isinstance(variant, UnitVariant):
        return _inline(SchemaKind.NULL)
    if isinstance(variant, NewTypeVariant):
        return shape_to_schema(variant.inner, traced, registry)
    if isinstance(variant, TupleVariant):
        return _positional(variant.items, traced, registry)
    if isinstance(variant, StructVariant):
        return InlineSchema(
            kind=SchemaKind.OBJECT,
            properties=_properties(variant.fields, traced, registry),
        )
    return UNTYPED_OBJECT


def container_to_schema(
    container: ContainerShape,
    traced: TracedTypes,
    registry: SchemaRegistry,
) -> SchemaRef:
    """Convert a named container to its top-level fragment.

    Args:
        container: Container shape to convert
        traced: Trace the container belongs to
        registry: Registry receiving nested named fragments

    Returns:
        Fragment to register under the container's canonical name
    """
    if isinstance(container, StructShape):
        return InlineSchema(
            kind=SchemaKind.OBJECT,
            properties=_properties(container.fields, traced, registry),
        )
    if isinstance(container, NewTypeShape):
        inner = shape_to_schema(container.inner, traced, registry)
        if isinstance(inner, InlineSchema):
            return inner
        inner_container = traced.get(inner.name)
        if inner_container is None:
            logger.warning(f"NewType wraps untraced type '{inner.name}'; using untyped object")
            return UNTYPED_OBJECT
        return container_to_schema(inner_container, traced, registry)
    if isinstance(container, TupleStructShape):
        return _positional(container.items, traced, registry)
    if isinstance(container, EnumShape):
        return InlineSchema(
            kind=SchemaKind.OBJECT,
            any_of=tuple(
                InlineSchema(
                    kind=SchemaKind.OBJECT,
                    properties=((variant.name, variant_to_schema(variant, traced, registry)),),
                )
                for _, variant in container.variants
            ),
        )
    if isinstance(container, UnitStructShape):
        return _inline(SchemaKind.NULL)
    return UNTYPED_OBJECT


def register_type(name: str, traced: TracedTypes, registry: SchemaRegistry) -> None:
    """Register a traced named type (and what it references) once.

    Names missing from the trace are left unregistered.
    """
    container = traced.get(name)
    if container is None:
        return
    registry.create_schema(name, lambda reg: container_to_schema(container, traced, reg))
