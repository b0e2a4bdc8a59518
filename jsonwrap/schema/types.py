"""
Schema fragment types for the generated OpenAPI document.

A fragment is one node of the schema document:
- InlineSchema: a kind tag plus nested fragments, properties, nullability, title
- Reference: a pointer to a named entry in the SchemaRegistry

Invariants:
    - Fragments are immutable; the optionality adapter returns new objects
    - Property order is preserved end to end (declaration order of fields)
    - Property names are owned by the fragment, never interned globally
    - to_dict() output is deterministic for equal fragments

How to change safely:
    - New keywords must be added to both to_dict() and from_dict()
    - Never sort properties; consumers rely on declaration order

Example:
    >>> schema = InlineSchema(
    ...     kind=SchemaKind.OBJECT,
    ...     properties=(("text", InlineSchema(kind=SchemaKind.STRING)),),
    ... )
    >>> schema.to_dict()
    {'type': 'object', 'properties': {'text': {'type': 'string'}}}
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

from ..config import DEFAULT_REF_PREFIX


class SchemaKind(Enum):
    """JSON schema ``type`` values emitted by the converters."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class Reference:
    """Reference to a named schema in the registry.

    Attributes:
        name: Canonical registry name
    """

    name: str

    def to_dict(self, ref_prefix: str = DEFAULT_REF_PREFIX) -> dict[str, Any]:
        """Convert to a ``$ref`` object."""
        return {"$ref": f"{ref_prefix}{self.name}"}


@dataclass(frozen=True)
class InlineSchema:
    """An inline schema fragment.

    Attributes:
        kind: JSON type, or None for an unconstrained fragment
        title: Display title (set by the optionality adapter)
        nullable: Whether JSON null is accepted
        properties: Ordered ``(name, fragment)`` pairs of an object
        items: Element fragment of an array
        additional_properties: Value fragment of a map-like object
        all_of: Fragments that must all match
        any_of: Alternatives, at least one must match
    """

    kind: SchemaKind | None = None
    title: str | None = None
    nullable: bool = False
    properties: tuple[tuple[str, SchemaRef], ...] = ()
    items: SchemaRef | None = None
    additional_properties: SchemaRef | None = None
    all_of: tuple[SchemaRef, ...] = ()
    any_of: tuple[SchemaRef, ...] = ()

    def __post_init__(self) -> None:
        """Validate property names."""
        names = [name for name, _ in self.properties]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate property name in schema: {names}")

    def get_property(self, name: str) -> SchemaRef | None:
        """Get a property fragment by name."""
        for prop_name, schema in self.properties:
            if prop_name == name:
                return schema
        return None

    def property_names(self) -> list[str]:
        """Get property names in declaration order."""
        return [name for name, _ in self.properties]

    def to_dict(self, ref_prefix: str = DEFAULT_REF_PREFIX) -> dict[str, Any]:
        """Convert to the OpenAPI wire representation."""
        result: dict[str, Any] = {}
        if self.kind is not None:
            result["type"] = self.kind.value
        if self.title is not None:
            result["title"] = self.title
        if self.nullable:
            result["nullable"] = True
        if self.properties:
            result["properties"] = {
                name: schema.to_dict(ref_prefix) for name, schema in self.properties
            }
        if self.items is not None:
            result["items"] = self.items.to_dict(ref_prefix)
        if self.additional_properties is not None:
            result["additionalProperties"] = self.additional_properties.to_dict(ref_prefix)
        if self.all_of:
            result["allOf"] = [s.to_dict(ref_prefix) for s in self.all_of]
        if self.any_of:
            result["anyOf"] = [s.to_dict(ref_prefix) for s in self.any_of]
        return result

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        ref_prefix: str = DEFAULT_REF_PREFIX,
    ) -> InlineSchema:
        """Create from the OpenAPI wire representation."""

        def read(value: dict[str, Any]) -> SchemaRef:
            return schema_from_dict(value, ref_prefix)

        kind = data.get("type")
        return cls(
            kind=SchemaKind(kind) if kind is not None else None,
            title=data.get("title"),
            nullable=data.get("nullable", False),
            properties=tuple((name, read(s)) for name, s in data.get("properties", {}).items()),
            items=read(data["items"]) if "items" in data else None,
            additional_properties=(
                read(data["additionalProperties"]) if "additionalProperties" in data else None
            ),
            all_of=tuple(read(s) for s in data.get("allOf", [])),
            any_of=tuple(read(s) for s in data.get("anyOf", [])),
        )


SchemaRef = Union[Reference, InlineSchema]


def schema_from_dict(data: dict[str, Any], ref_prefix: str = DEFAULT_REF_PREFIX) -> SchemaRef:
    """Read a fragment (inline or ``$ref``) from its wire representation.

    Raises:
        ValueError: If a ``$ref`` does not start with ``ref_prefix``
    """
    if "$ref" in data:
        ref = data["$ref"]
        if not ref.startswith(ref_prefix):
            raise ValueError(f"Reference '{ref}' does not start with '{ref_prefix}'")
        return Reference(ref[len(ref_prefix):])
    return InlineSchema.from_dict(data, ref_prefix)


def make_nullable(schema: SchemaRef) -> InlineSchema:
    """Mark a fragment as accepting JSON null without renaming its type.

    A reference cannot carry keywords of its own, so it is wrapped:
    ``{title: <name>, nullable: true, allOf: [<ref>]}``. An inline fragment
    gets ``nullable: true`` set directly.

    Args:
        schema: Base fragment for the payload type

    Returns:
        Nullable inline fragment
    """
    if isinstance(schema, Reference):
        return InlineSchema(title=schema.name, nullable=True, all_of=(schema,))
    return replace(schema, nullable=True)
