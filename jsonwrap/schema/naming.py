"""
Canonical schema names for traced types.

Names are bare identifiers (see ``reflection.tracer.type_name``), so
``demo.models.ForeignType`` registers as ``ForeignType``.

Invariants:
    - canonical_name() unwraps at most one NewType layer, and only when the
      NewType wraps another named type

How to change safely:
    - Renaming rules change every ``$ref`` in published documents; treat any
      change here as a breaking change for API consumers
"""

from __future__ import annotations

from typing import Any

from ..reflection.shapes import NamedRef, NewTypeShape
from ..reflection.tracer import TracedTypes, type_name


def canonical_name(tp: Any, traced: TracedTypes | None) -> str:
    """Get the registry name for a type, hiding single-field wrappers.

    If ``tp`` traces as a NewType whose inner shape is a named reference,
    the inner name is returned so the wrapper is invisible to consumers.
    This never chases more than one layer.

    Args:
        tp: The payload type
        traced: Result of tracing ``tp`` (None if tracing failed)

    Returns:
        Canonical registry name

    Example:
        >>> Wrapped = NewType("Wrapped", ForeignType)
        >>> canonical_name(Wrapped, trace(Wrapped))
        'ForeignType'
    """
    name = type_name(tp)
    if traced is None:
        return name
    container = traced.get(name)
    if isinstance(container, NewTypeShape) and isinstance(container.inner, NamedRef):
        return container.inner.name
    return name
