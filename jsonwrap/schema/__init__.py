"""
Schema module for jsonwrap.

This module turns traced shapes into OpenAPI schema fragments:
- Fragment types (InlineSchema, Reference, SchemaKind)
- Shape, variant and container converters
- Canonical naming with transparent NewType unwrapping
- The SchemaRegistry that binds named fragments exactly once

Invariants:
    - Every named fragment is registered once per registry
    - Conversion is deterministic
    - Fragments are immutable
"""

from .convert import (
    container_to_schema,
    register_type,
    shape_to_schema,
    variant_to_schema,
)
from .naming import canonical_name
from .registry import SchemaRegistry
from .types import (
    InlineSchema,
    Reference,
    SchemaKind,
    SchemaRef,
    make_nullable,
    schema_from_dict,
)

__all__ = [
    # Types
    "SchemaKind",
    "InlineSchema",
    "Reference",
    "SchemaRef",
    "schema_from_dict",
    "make_nullable",
    # Conversion
    "shape_to_schema",
    "variant_to_schema",
    "container_to_schema",
    "register_type",
    # Naming
    "canonical_name",
    # Registry
    "SchemaRegistry",
]
