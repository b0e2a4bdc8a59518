"""
Error types for jsonwrap.

This module defines all exception types raised by the library:
- JsonWrapError: Base exception
- TraceError: A type's serialization shape could not be traced
- SerializationError: A wrapped value could not be encoded to JSON
- RegistryError: Schema registry misuse
- ConflictingRegistrationError: Two different fragments claim one name
- RegistryFrozenError: Registration attempted after bootstrap

Invariants:
    - All errors inherit from JsonWrapError
    - Errors carry a stable code for programmatic handling
    - Error messages name the type or schema involved
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class JsonWrapError(Exception):
    """Base exception for all jsonwrap errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "JSONWRAP_ERROR"
        self.details = details or {}


class TraceError(JsonWrapError):
    """A type could not be traced.

    Raised when:
    - The root type has no expressible serialization shape
    - A forward reference cannot be resolved
    - Two different types share one bare name inside a trace
    """

    def __init__(self, message: str, type_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="TRACE_ERROR",
            details={"type_name": type_name},
        )
        self.type_name = type_name


class SerializationError(JsonWrapError):
    """A wrapped value could not be encoded.

    Raised when:
    - A value does not match its traced shape
    - A map key is not string-like
    - No enum variant matches the value

    Attributes:
        path: JSON path of the offending value (e.g. ``$.items[2].name``)
    """

    def __init__(
        self,
        message: str,
        path: str = "$",
        type_name: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"{message} (at {path})",
            code="SERIALIZATION_ERROR",
            details={"path": path, "type_name": type_name},
        )
        self.path = path
        self.type_name = type_name


class RegistryError(JsonWrapError):
    """Base class for schema registry errors."""

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        code: str = "REGISTRY_ERROR",
    ) -> None:
        super().__init__(message, code=code, details={"name": name})
        self.name = name


class ConflictingRegistrationError(RegistryError):
    """A name is already bound to a different schema fragment.

    Usually two distinct types with the same bare name (e.g. ``User`` from
    two modules) were registered into one registry.
    """

    def __init__(self, name: str, existing: Any, new: Any) -> None:
        super().__init__(
            f"Schema '{name}' is already registered with a different shape",
            name=name,
            code="CONFLICTING_REGISTRATION",
        )
        self.details.update({"existing": existing, "new": new})
        self.existing = existing
        self.new = new


class RegistryFrozenError(RegistryError):
    """Raised when attempting to add a schema to a frozen registry."""

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        super().__init__(message, name=name, code="REGISTRY_FROZEN")
