"""
Shape-directed JSON encoder for wrapped foreign values.

Values are encoded by walking the same traced shape the schema was generated
from, so the payload and the published schema cannot drift apart:
- structs become objects with fields in declaration order
- NewTypes are transparent
- tuple-structs and tuples become arrays
- enums are externally tagged: ``{"Variant": payload}``; plain ``Enum``
  members encode as ``{"NAME": null}``
- opaque leaves are delegated to pydantic_core.to_jsonable_python

Invariants:
    - Encoding is pure; no shared mutable state
    - Absent optional values encode as None (JSON null)
    - Any mismatch raises SerializationError with the JSON path of the value
    - Non-finite floats (nan, inf) raise SerializationError; JSON cannot hold them
    - str values are emitted as plain str, whatever their subclass

How to change safely:
    - Any change to the enum layout must be mirrored in schema.convert
"""

from __future__ import annotations

import enum
import math
import typing
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, get_args, get_origin

import typing_extensions
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .errors import SerializationError
from .reflection.shapes import (
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
from .reflection.tracer import TracedTypes, type_name

NoneType = type(None)


def _runtime_class(member: Any) -> type | None:
    """Get the class an enum union member's values are instances of."""
    if member is NoneType:
        return NoneType
    if hasattr(member, "__supertype__"):
        return _runtime_class(member.__supertype__)
    if typing_extensions.is_typeddict(member):
        return dict
    origin = get_origin(member)
    if origin in (typing.Annotated, typing_extensions.Annotated):
        return _runtime_class(get_args(member)[0])
    if isinstance(origin, type):
        return origin
    if isinstance(member, type):
        return member
    return None


def to_jsonable(value: Any, path: str = "$") -> Any:
    """Encode a value with no traced shape using pydantic's generic encoder.

    Raises:
        SerializationError: If pydantic cannot encode the value
    """
    try:
        return to_jsonable_python(value)
    except PydanticSerializationError as exc:
        raise SerializationError(
            f"Cannot encode value of type '{type(value).__name__}': {exc}",
            path=path,
        ) from exc


class ShapeEncoder:
    """Encodes values according to a traced shape.

    Example:
        >>> encoder = ShapeEncoder(trace(ForeignType))
        >>> encoder.encode(ForeignType(text="hello"))
        {'text': 'hello'}
    """

    def __init__(self, traced: TracedTypes) -> None:
        self.traced = traced

    def encode(self, value: Any, shape: Shape | None = None, path: str = "$") -> Any:
        """Encode a value.

        Args:
            value: Value to encode
            shape: Shape to encode against (defaults to the traced root)
            path: JSON path used in error messages

        Returns:
            JSON-compatible Python value

        Raises:
            SerializationError: If the value does not match the shape
        """
        if shape is None:
            shape = self.traced.root

        if isinstance(shape, Scalar):
            return self._scalar(value, shape.kind, path)
        if isinstance(shape, OptionalOf):
            if value is None:
                return None
            return self.encode(value, shape.inner, path)
        if isinstance(shape, SequenceOf):
            if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
                raise SerializationError(
                    f"Expected a sequence, got '{type(value).__name__}'", path=path
                )
            return [
                self.encode(item, shape.item, f"{path}[{index}]")
                for index, item in enumerate(value)
            ]
        if isinstance(shape, MapOf):
            return self._map(value, shape, path)
        if isinstance(shape, TupleOf):
            return self._positional(value, shape.items, path)
        if isinstance(shape, NamedRef):
            return self._named(value, shape.name, path)
        return to_jsonable(value, path)

    def _scalar(self, value: Any, kind: ShapeKind, path: str) -> Any:
        if kind is ShapeKind.UNIT:
            if value is not None:
                raise SerializationError(f"Expected None, got '{type(value).__name__}'", path=path)
            return None
        if kind is ShapeKind.BYTES:
            return to_jsonable(value, path)

        if kind is ShapeKind.BOOL:
            valid = isinstance(value, bool)
        elif kind.is_integer:
            valid = isinstance(value, int) and not isinstance(value, bool)
        elif kind.is_float:
            valid = isinstance(value, (int, float)) and not isinstance(value, bool)
            if isinstance(value, float) and not math.isfinite(value):
                raise SerializationError(
                    f"Expected a finite {kind.value}, got {value!r}", path=path
                )
        elif kind is ShapeKind.CHAR:
            valid = isinstance(value, str) and len(value) == 1
        else:
            valid = isinstance(value, str)

        if not valid:
            raise SerializationError(
                f"Expected {kind.value}, got '{type(value).__name__}'", path=path
            )
        if kind.is_integer:
            return int(value)
        if kind.is_float:
            return float(value)
        if kind in (ShapeKind.STR, ShapeKind.CHAR):
            # Plain str value, also for str subclasses such as str-mixin enums.
            return str.__str__(value)
        return value

    def _map(self, value: Any, shape: MapOf, path: str) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise SerializationError(f"Expected a mapping, got '{type(value).__name__}'", path=path)
        result: dict[str, Any] = {}
        for key, item in value.items():
            encoded_key = self.encode(key, shape.key, f"{path}.<key>")
            if isinstance(encoded_key, bool) or not isinstance(encoded_key, (str, int, float)):
                raise SerializationError(f"Map key {key!r} is not string-like", path=path)
            result[str(encoded_key)] = self.encode(item, shape.value, f"{path}[{key!r}]")
        return result

    def _positional(self, value: Any, shapes: tuple[Shape, ...], path: str) -> list[Any]:
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise SerializationError(f"Expected a tuple, got '{type(value).__name__}'", path=path)
        if len(value) != len(shapes):
            raise SerializationError(
                f"Expected {len(shapes)} items, got {len(value)}", path=path
            )
        return [
            self.encode(item, item_shape, f"{path}[{index}]")
            for index, (item, item_shape) in enumerate(zip(value, shapes))
        ]

    def _fields(self, value: Any, fields: tuple[Field, ...], path: str) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in fields:
            field_path = f"{path}.{f.name}"
            if isinstance(value, Mapping):
                if f.name not in value:
                    continue
                item = value[f.name]
            else:
                try:
                    item = getattr(value, f.name)
                except AttributeError as exc:
                    raise SerializationError(
                        f"Missing field '{f.name}' on '{type(value).__name__}'", path=field_path
                    ) from exc
            result[f.name] = self.encode(item, f.shape, field_path)
        return result

    def _check_instance(self, value: Any, name: str, path: str) -> None:
        source = self.traced.sources.get(name)
        if not isinstance(source, type) or typing_extensions.is_typeddict(source):
            return
        if not isinstance(value, source):
            raise SerializationError(
                f"Expected '{name}', got '{type(value).__name__}'", path=path, type_name=name
            )

    def _named(self, value: Any, name: str, path: str) -> Any:
        container = self.traced.get(name)
        if container is None:
            return to_jsonable(value, path)
        if isinstance(container, NewTypeShape):
            return self.encode(value, container.inner, path)
        if isinstance(container, EnumShape):
            return self._enum(value, name, container, path)

        self._check_instance(value, name, path)
        if isinstance(container, StructShape):
            return self._fields(value, container.fields, path)
        if isinstance(container, TupleStructShape):
            return self._positional(value, container.items, path)
        if isinstance(container, UnitStructShape):
            return None
        return to_jsonable(value, path)

    def _enum(self, value: Any, name: str, container: EnumShape, path: str) -> dict[str, Any]:
        index = self._variant_index(value, name, path)
        _, variant = container.variants[index]
        return {variant.name: self._variant(value, variant, f"{path}.{variant.name}")}

    def _variant_index(self, value: Any, name: str, path: str) -> int:
        members = self.traced.variant_types.get(name, ())
        source = self.traced.sources.get(name)

        if isinstance(source, type) and issubclass(source, enum.Enum):
            for index, member in enumerate(members):
                if member is value:
                    return index
            raise SerializationError(
                f"Expected a member of '{name}', got {value!r}", path=path, type_name=name
            )

        runtimes = [_runtime_class(member) for member in members]
        for index, runtime in enumerate(runtimes):
            if runtime is not None and type(value) is runtime:
                return index
        for index, runtime in enumerate(runtimes):
            if runtime is not None and isinstance(value, runtime):
                return index
        raise SerializationError(
            f"No variant of '{name}' matches '{type(value).__name__}'",
            path=path,
            type_name=name,
        )

    def _variant(self, value: Any, variant: VariantShape, path: str) -> Any:
        if isinstance(variant, UnitVariant):
            return None
        if isinstance(variant, NewTypeVariant):
            return self.encode(value, variant.inner, path)
        if isinstance(variant, TupleVariant):
            return self._positional(value, variant.items, path)
        if isinstance(variant, StructVariant):
            return self._fields(value, variant.fields, path)
        raise SerializationError(f"Unsupported variant '{type_name(type(variant))}'", path=path)
