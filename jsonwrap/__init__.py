"""
jsonwrap - OpenAPI schemas for foreign types, derived by reflection.

This package documents values of types that were never written against the
documentation framework's schema contract:
- Reflection of a type's serialization shape (Tracer)
- Conversion of traced shapes into named schema fragments
- A SchemaRegistry that binds each named fragment exactly once
- The Foreign[T] wrapper and its schema providers
- A bridge into FastAPI's OpenAPI document

Example:
    >>> from dataclasses import dataclass
    >>> from jsonwrap import Foreign, SchemaRegistry
    >>>
    >>> @dataclass
    ... class ForeignType:
    ...     text: str
    >>>
    >>> registry = SchemaRegistry()
    >>> Foreign[ForeignType].register(registry)
    >>> registry.to_dict()
    {'ForeignType': {'type': 'object', 'properties': {'text': {'type': 'string'}}}}
    >>> Foreign[ForeignType](ForeignType(text="hello")).to_json()
    {'text': 'hello'}

Invariants:
    - Registration is idempotent per registry
    - Wire encoding and generated schemas follow the same traced shape

Version: 1.0.0
"""

__version__ = "1.0.0"

from .config import ConflictPolicy, SchemaConfig
from .errors import (
    ConflictingRegistrationError,
    JsonWrapError,
    RegistryError,
    RegistryFrozenError,
    SerializationError,
    TraceError,
)
from .foreign import (
    Foreign,
    ForeignSchema,
    OptionalForeignSchema,
    SchemaProvider,
    schema_provider,
)
from .openapi import ForeignOpenAPI, FrameworkOptional, provider_for
from .reflection import TracedTypes, Tracer, trace
from .schema import (
    InlineSchema,
    Reference,
    SchemaKind,
    SchemaRegistry,
    canonical_name,
    make_nullable,
)

__all__ = [
    # Version
    "__version__",
    # Wrapper and providers
    "Foreign",
    "SchemaProvider",
    "ForeignSchema",
    "OptionalForeignSchema",
    "schema_provider",
    # OpenAPI bridge
    "ForeignOpenAPI",
    "FrameworkOptional",
    "provider_for",
    # Reflection
    "Tracer",
    "TracedTypes",
    "trace",
    # Schemas
    "SchemaKind",
    "InlineSchema",
    "Reference",
    "SchemaRegistry",
    "canonical_name",
    "make_nullable",
    # Config
    "SchemaConfig",
    "ConflictPolicy",
    # Errors
    "JsonWrapError",
    "TraceError",
    "SerializationError",
    "RegistryError",
    "ConflictingRegistrationError",
    "RegistryFrozenError",
]
