"""
Foreign wrapper and schema providers.

``Foreign[T]`` marks a value of a foreign type for reflection-based schema
handling. Each specialization carries a SchemaProvider chosen when the
class is subscripted:
- ForeignSchema for ``Foreign[T]``
- OptionalForeignSchema for ``Foreign[Optional[T]]`` (nullable reference)

Invariants:
    - ``Foreign[X]`` returns the same class for equal X
    - Provider choice depends only on whether X is statically Optional
    - name() is identical for ``Foreign[T]`` and ``Foreign[Optional[T]]``
    - to_json() returns None only for an absent optional value

How to change safely:
    - Keep provider methods free of global state; the registry is always
      passed in by the caller
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from functools import cached_property
from typing import Any, ClassVar, Dict, Generic, TypeVar

from .encoder import ShapeEncoder, to_jsonable
from .reflection.tracer import TracedTypes, optional_inner, trace, type_name
from .schema.convert import UNTYPED_OBJECT, container_to_schema, shape_to_schema
from .schema.naming import canonical_name
from .schema.registry import SchemaRegistry
from .schema.types import Reference, SchemaRef, make_nullable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SchemaProvider(ABC):
    """Schema capability of one payload type, as seen by the documentation layer.

    Attributes:
        is_required: Whether the value must be present; published as
            ``requestBody.required`` by ForeignOpenAPI.request_body
    """

    is_required: ClassVar[bool] = True

    @abstractmethod
    def name(self) -> str:
        """Canonical registry name."""

    @abstractmethod
    def schema_ref(self) -> SchemaRef:
        """Fragment to embed where the type is used."""

    @abstractmethod
    def register(self, registry: SchemaRegistry) -> None:
        """Bind this type's fragment, and everything it references."""

    @abstractmethod
    def to_json(self, value: Any) -> Any:
        """Encode a payload value to a JSON-compatible value.

        Raises:
            SerializationError: If the value cannot be encoded
        """


class ForeignSchema(SchemaProvider):
    """Provider for a plain foreign payload type.

    Example:
        >>> provider = ForeignSchema(ForeignType)
        >>> provider.name()
        'ForeignType'
        >>> provider.schema_ref()
        Reference(name='ForeignType')
    """

    def __init__(self, payload_type: Any) -> None:
        self.payload_type = payload_type

    @cached_property
    def traced(self) -> TracedTypes | None:
        """Trace of the payload type (None if it cannot be traced)."""
        return trace(self.payload_type)

    def name(self) -> str:
        return canonical_name(self.payload_type, self.traced)

    def schema_ref(self) -> SchemaRef:
        return Reference(self.name())

    def register(self, registry: SchemaRegistry) -> None:
        name = self.name()
        traced = self.traced
        if traced is None:
            logger.warning(f"Registering '{name}' as an untyped object")
            registry.bind(name, lambda _: UNTYPED_OBJECT)
            return

        container = traced.get(type_name(self.payload_type))
        if container is None:
            registry.bind(name, lambda reg: shape_to_schema(traced.root, traced, reg))
        else:
            registry.bind(name, lambda reg: container_to_schema(container, traced, reg))

    def to_json(self, value: Any) -> Any:
        traced = self.traced
        if traced is None:
            return to_jsonable(value)
        return ShapeEncoder(traced).encode(value)


class OptionalForeignSchema(SchemaProvider):
    """Provider for ``Foreign[Optional[T]]``: presence tracked inside the wrapper.

    The schema is T's fragment marked nullable; the name stays T's.
    """

    is_required: ClassVar[bool] = False

    def __init__(self, payload_type: Any) -> None:
        self.inner = ForeignSchema(payload_type)

    def name(self) -> str:
        return self.inner.name()

    def schema_ref(self) -> SchemaRef:
        return make_nullable(self.inner.schema_ref())

    def register(self, registry: SchemaRegistry) -> None:
        self.inner.register(registry)

    def to_json(self, value: Any) -> Any:
        if value is None:
            return None
        return self.inner.to_json(value)


def schema_provider(payload_type: Any) -> SchemaProvider:
    """Select the provider for a payload type.

    Args:
        payload_type: ``T`` or ``Optional[T]``

    Returns:
        OptionalForeignSchema for ``Optional[T]``, ForeignSchema otherwise
    """
    inner = optional_inner(payload_type)
    if inner is not None:
        return OptionalForeignSchema(inner)
    return ForeignSchema(payload_type)


_specializations: Dict[Any, type] = {}
_specializations_lock = threading.Lock()


class Foreign(Generic[T]):
    """Carrier for one value of a foreign type.

    Subscript with the payload type to get a specialization that knows its
    schema:

    Example:
        >>> Foreign[ForeignType].name()
        'ForeignType'
        >>> Foreign[ForeignType](ForeignType(text="hello")).to_json()
        {'text': 'hello'}
        >>> Foreign[Optional[ForeignType]](None).to_json() is None
        True
    """

    __slots__ = ("value",)

    __payload_type__: ClassVar[Any] = None
    __schema_provider__: ClassVar[SchemaProvider | None] = None

    def __init__(self, value: T) -> None:
        self.value = value

    def __class_getitem__(cls, item: Any) -> Any:
        if isinstance(item, TypeVar):
            return super().__class_getitem__(item)
        if cls.__schema_provider__ is not None:
            raise TypeError(f"{cls.__name__} is already specialized")

        try:
            with _specializations_lock:
                specialized = _specializations.get(item)
                if specialized is None:
                    specialized = _specialize(cls, item)
                    _specializations[item] = specialized
                return specialized
        except TypeError:
            # Unhashable annotation; build an uncached specialization.
            return _specialize(cls, item)

    @classmethod
    def wrap(cls, value: Any) -> Foreign[Any]:
        """Wrap a value, specializing on its runtime type."""
        return cls[type(value)](value)

    @classmethod
    def provider(cls) -> SchemaProvider:
        """Get the schema provider of this specialization.

        Raises:
            TypeError: If called on the unsubscripted ``Foreign``
        """
        if cls.__schema_provider__ is None:
            raise TypeError("Foreign must be subscripted with a payload type, e.g. Foreign[MyType]")
        return cls.__schema_provider__

    @classmethod
    def name(cls) -> str:
        return cls.provider().name()

    @classmethod
    def schema_ref(cls) -> SchemaRef:
        return cls.provider().schema_ref()

    @classmethod
    def register(cls, registry: SchemaRegistry) -> None:
        cls.provider().register(registry)

    def to_json(self) -> Any:
        """Encode the wrapped value (see SchemaProvider.to_json)."""
        return self.provider().to_json(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Foreign):
            return NotImplemented
        return type(self) is type(other) and self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


def _specialize(cls: type, item: Any) -> type:
    return type(
        f"Foreign[{type_name(item)}]",
        (cls,),
        {
            "__slots__": (),
            "__module__": cls.__module__,
            "__payload_type__": item,
            "__schema_provider__": schema_provider(item),
        },
    )
