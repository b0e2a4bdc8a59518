"""
Type tracer for foreign Python types.

The tracer walks a type's annotations and records the serialization shape of
every named type reachable from it. Nothing is instantiated: dataclass
fields, NamedTuple fields, TypedDict keys, pydantic model fields, enum members
and union members are read from the classes themselves.

Recognized named containers:
- dataclass / pydantic model / TypedDict  -> StructShape (UnitStructShape if empty)
- NamedTuple                              -> TupleStructShape
- NewType("W", X)                         -> NewTypeShape(X)
- enum.Enum subclass                      -> EnumShape of unit variants
- TypeAliasType whose value is a union    -> EnumShape, one variant per member

Invariants:
    - A trace never instantiates or mutates the traced types
    - Each name maps to exactly one Python object within a trace
    - Self-referential graphs terminate (a name is recorded before its body)
    - TracedTypes is immutable once returned

How to change safely:
    - New container kinds need matching rules in schema.convert and encoder
    - Keep variant order equal to declaration order; the encoder relies on it
"""

from __future__ import annotations

import collections
import collections.abc
import dataclasses
import enum
import logging
import re
import types
import typing
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, TypeVar, get_args, get_origin

import typing_extensions
from pydantic import BaseModel

from ..errors import TraceError
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

logger = logging.getLogger(__name__)

NoneType = type(None)

_SCALARS: dict[Any, ShapeKind] = {
    str: ShapeKind.STR,
    int: ShapeKind.I64,
    float: ShapeKind.F64,
    bool: ShapeKind.BOOL,
    NoneType: ShapeKind.UNIT,
    bytes: ShapeKind.BYTES,
    bytearray: ShapeKind.BYTES,
}

_SEQUENCE_ORIGINS = frozenset(
    {
        list,
        set,
        frozenset,
        collections.deque,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Collection,
        collections.abc.Iterable,
    }
)

_MAPPING_ORIGINS = frozenset(
    {
        dict,
        collections.OrderedDict,
        collections.defaultdict,
        collections.abc.Mapping,
        collections.abc.MutableMapping,
    }
)

_ALIAS_TYPES = tuple(
    {typing_extensions.TypeAliasType, getattr(typing, "TypeAliasType", typing_extensions.TypeAliasType)}
)

_MODULE_PREFIX = re.compile(r"\b(?:\w+\.)+(?=\w)")
_IDENTIFIER = re.compile(r"\w+")


def type_name(tp: Any) -> str:
    """Get the bare name of a type.

    The module path is dropped. Annotations without a name of their own get
    a display name built from the identifiers in their repr.

    Args:
        tp: Any annotation object (class, NewType, alias, typing construct)

    Returns:
        Identifier suitable as a registry key

    Example:
        >>> type_name(ForeignType)
        'ForeignType'
        >>> type_name(list[int])
        'list_int'
    """
    if tp is None or tp is NoneType:
        return "None"
    if get_origin(tp) is None:
        name = getattr(tp, "__name__", None)
        if isinstance(name, str) and name:
            return name.rsplit(".", 1)[-1]
    display = _MODULE_PREFIX.sub("", repr(tp))
    return "_".join(_IDENTIFIER.findall(display)) or "Unknown"


def is_union(tp: Any) -> bool:
    """Whether ``tp`` is a ``Union[...]`` or ``X | Y`` annotation."""
    return get_origin(tp) in (typing.Union, types.UnionType)


def optional_inner(tp: Any) -> Any | None:
    """Get ``X`` from ``Optional[X]`` / ``X | None``, or None if not optional."""
    if not is_union(tp):
        return None
    args = get_args(tp)
    non_none = [arg for arg in args if arg is not NoneType]
    if len(args) == 2 and len(non_none) == 1:
        return non_none[0]
    return None


def _is_newtype(tp: Any) -> bool:
    return callable(tp) and hasattr(tp, "__supertype__")


def _is_type_alias(tp: Any) -> bool:
    return isinstance(tp, _ALIAS_TYPES)


def _is_namedtuple(tp: type) -> bool:
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


def _is_struct_class(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    return (
        dataclasses.is_dataclass(tp)
        or typing_extensions.is_typeddict(tp)
        or issubclass(tp, BaseModel)
    )


@dataclass(frozen=True)
class TracedTypes:
    """Result of tracing one root type.

    Attributes:
        root: Shape of the root type itself
        containers: Container shape per traced name
        sources: Python object behind each traced name
        variant_types: Per enum name, the Python member or union member
            behind each variant, in variant order
    """

    root: Shape
    containers: Mapping[str, ContainerShape]
    sources: Mapping[str, Any]
    variant_types: Mapping[str, tuple[Any, ...]]

    def get(self, name: str) -> ContainerShape | None:
        """Get a container shape by name."""
        return self.containers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.containers


class Tracer:
    """Records the container shapes reachable from a type.

    A Tracer is single use: create one per root type.

    Example:
        >>> traced = Tracer().trace_type(ForeignType)
        >>> traced.root
        NamedRef(name='ForeignType')
        >>> traced.get("ForeignType")
        StructShape(fields=(Field(name='text', shape=Scalar(kind=<ShapeKind.STR: 'str'>)),))
    """

    def __init__(self) -> None:
        self._containers: dict[str, ContainerShape] = {}
        self._sources: dict[str, Any] = {}
        self._variant_types: dict[str, tuple[Any, ...]] = {}

    def trace_type(self, tp: Any) -> TracedTypes:
        """Trace a type and everything it references.

        Args:
            tp: The root type

        Returns:
            Immutable TracedTypes

        Raises:
            TraceError: If the root has no expressible shape, annotations
                cannot be resolved, or two types share a name
        """
        root = self.shape_of(tp)
        if isinstance(root, Opaque):
            raise TraceError(
                f"Type '{type_name(tp)}' has no traceable serialization shape",
                type_name=type_name(tp),
            )
        logger.debug(f"Traced '{type_name(tp)}': {len(self._containers)} named container(s)")
        return TracedTypes(
            root=root,
            containers=MappingProxyType(dict(self._containers)),
            sources=MappingProxyType(dict(self._sources)),
            variant_types=MappingProxyType(dict(self._variant_types)),
        )

    def shape_of(self, tp: Any) -> Shape:
        """Get the shape of an annotation, tracing named types on the way."""
        if tp is None:
            return Scalar(ShapeKind.UNIT)
        if tp is typing.Any or isinstance(tp, TypeVar):
            return Opaque(type_name(tp))
        if _is_type_alias(tp):
            if is_union(tp.__value__):
                return self._named(tp, self._alias_enum)
            return self.shape_of(tp.__value__)
        if _is_newtype(tp):
            return self._named(tp, lambda nt: NewTypeShape(self.shape_of(nt.__supertype__)))
        if is_union(tp):
            inner = optional_inner(tp)
            if inner is None:
                return Opaque(type_name(tp))
            return OptionalOf(self.shape_of(inner))

        origin = get_origin(tp)
        if origin is not None:
            return self._generic_shape(tp, origin, get_args(tp))

        if not isinstance(tp, type):
            return Opaque(type_name(tp))
        if tp in _SCALARS:
            return Scalar(_SCALARS[tp])
        if tp in (list, set, frozenset, tuple):
            return SequenceOf(Opaque())
        if tp is dict:
            return MapOf(Scalar(ShapeKind.STR), Opaque())
        if issubclass(tp, enum.Enum):
            return self._named(tp, self._enum)
        if _is_namedtuple(tp):
            return self._named(tp, self._tuple_struct)
        if _is_struct_class(tp):
            return self._named(tp, self._struct)
        return Opaque(type_name(tp))

    def _generic_shape(self, tp: Any, origin: Any, args: tuple[Any, ...]) -> Shape:
        if origin in (typing.Annotated, typing_extensions.Annotated):
            return self.shape_of(args[0])
        if origin in _SEQUENCE_ORIGINS:
            return SequenceOf(self.shape_of(args[0]) if args else Opaque())
        if origin in _MAPPING_ORIGINS:
            if len(args) == 2:
                return MapOf(self.shape_of(args[0]), self.shape_of(args[1]))
            return MapOf(Scalar(ShapeKind.STR), Opaque())
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return SequenceOf(self.shape_of(args[0]))
            if args == ((),):
                return TupleOf(())
            return TupleOf(tuple(self.shape_of(arg) for arg in args))
        if isinstance(origin, type) and (_is_struct_class(origin) or _is_namedtuple(origin)):
            # Parameterized user generics trace as their origin class.
            return self.shape_of(origin)
        return Opaque(type_name(tp))

    def _named(self, tp: Any, build: Callable[[Any], ContainerShape]) -> NamedRef:
        name = type_name(tp)
        existing = self._sources.get(name, None)
        if name in self._sources:
            if existing is not tp and existing != tp:
                raise TraceError(
                    f"Two different types are named '{name}': {existing!r} and {tp!r}",
                    type_name=name,
                )
            return NamedRef(name)
        # Record the name before building so cycles resolve to a NamedRef.
        self._sources[name] = tp
        self._containers[name] = build(tp)
        return NamedRef(name)

    def _hints(self, cls: type) -> dict[str, Any]:
        try:
            return typing_extensions.get_type_hints(cls)
        except (NameError, TypeError, AttributeError) as exc:
            raise TraceError(
                f"Cannot resolve annotations of '{type_name(cls)}': {exc}",
                type_name=type_name(cls),
            ) from exc

    def _fields(self, cls: type) -> tuple[Field, ...]:
        if issubclass(cls, BaseModel):
            return tuple(
                Field(name, self.shape_of(info.annotation))
                for name, info in cls.model_fields.items()
            )
        hints = self._hints(cls)
        if dataclasses.is_dataclass(cls):
            return tuple(
                Field(f.name, self.shape_of(hints.get(f.name, typing.Any)))
                for f in dataclasses.fields(cls)
            )
        return tuple(Field(name, self.shape_of(hint)) for name, hint in hints.items())

    def _tuple_items(self, cls: type) -> tuple[Shape, ...]:
        hints = self._hints(cls)
        return tuple(self.shape_of(hints.get(name, typing.Any)) for name in cls._fields)

    def _struct(self, cls: type) -> ContainerShape:
        fields = self._fields(cls)
        if not fields:
            return UnitStructShape()
        return StructShape(fields)

    def _tuple_struct(self, cls: type) -> ContainerShape:
        items = self._tuple_items(cls)
        if not items:
            return UnitStructShape()
        return TupleStructShape(items)

    def _enum(self, cls: type[enum.Enum]) -> ContainerShape:
        members = tuple(cls)
        self._variant_types[type_name(cls)] = members
        return EnumShape(tuple((index, UnitVariant(m.name)) for index, m in enumerate(members)))

    def _alias_enum(self, alias: Any) -> ContainerShape:
        members = get_args(alias.__value__)
        self._variant_types[type_name(alias)] = members
        variants = tuple((index, self._variant(member)) for index, member in enumerate(members))
        names = [variant.name for _, variant in variants]
        if len(names) != len(set(names)):
            raise TraceError(
                f"Union alias '{type_name(alias)}' has duplicate variant names: {names}",
                type_name=type_name(alias),
            )
        return EnumShape(variants)

    def _variant(self, member: Any) -> VariantShape:
        name = type_name(member)
        if member is NoneType:
            return UnitVariant(name)
        if isinstance(member, type) and get_origin(member) is None:
            if _is_namedtuple(member):
                items = self._tuple_items(member)
                return TupleVariant(name, items) if items else UnitVariant(name)
            if _is_struct_class(member):
                fields = self._fields(member)
                return StructVariant(name, fields) if fields else UnitVariant(name)
        return NewTypeVariant(name, self.shape_of(member))


def trace(tp: Any) -> TracedTypes | None:
    """Trace a type, treating failure as "shape unknown".

    Args:
        tp: The root type

    Returns:
        TracedTypes, or None if the type cannot be traced
    """
    try:
        return Tracer().trace_type(tp)
    except TraceError as exc:
        logger.warning(f"Could not trace '{exc.type_name}': {exc.message}")
        return None
