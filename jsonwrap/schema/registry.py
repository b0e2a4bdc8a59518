"""
Schema Registry for jsonwrap.

The SchemaRegistry holds every named fragment of the generated document.
It provides:
- Idempotent registration of named fragments
- Lazy construction with a cycle guard for nested named types
- Conflict detection when two fragments claim one name
- Schema fingerprinting and a freeze mechanism for the end of bootstrap

Invariants:
    - Names are unique; each name is inserted exactly once
    - Re-registering an equal fragment is a no-op
    - Re-registering a different fragment is an error (or ignored, per config)
    - A name being built is never built again re-entrantly; callers get a
      forward reference instead
    - Once frozen, no new names can be added

How to change safely:
    - Register all types before calling freeze()
    - Keep read-check-insert inside the registry lock
    - Never mutate a stored fragment; fragments are immutable by construction

Example:
    >>> registry = SchemaRegistry()
    >>> registry.register("Name", InlineSchema(kind=SchemaKind.STRING))
    True
    >>> registry.freeze()
    'sha256:...'
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from typing import Callable, Dict, Iterator, Optional, Set

from ..config import ConflictPolicy, SchemaConfig
from ..errors import ConflictingRegistrationError, RegistryFrozenError
from .types import SchemaRef, schema_from_dict

logger = logging.getLogger(__name__)

SchemaBuilder = Callable[["SchemaRegistry"], SchemaRef]


class SchemaRegistry:
    """Registry of named schema fragments.

    The registry is created by whoever bootstraps the documentation service
    and is passed explicitly through every conversion call.

    Thread-safety:
        - Registration is thread-safe (uses an internal re-entrant lock,
          since building a fragment may register nested fragments)
        - Lookups after freeze are lock-free
        - Freeze is atomic and irreversible

    Attributes:
        config: Reference prefix and conflict policy
        frozen: Whether the registry is frozen (immutable)
        fingerprint: SHA-256 hash of the schemas (computed on freeze)
    """

    def __init__(self, config: SchemaConfig | None = None) -> None:
        """Initialize an empty, mutable registry."""
        self.config = config or SchemaConfig()
        self._schemas: Dict[str, SchemaRef] = {}
        self._resolving: Set[str] = set()
        self._frozen = False
        self._fingerprint: Optional[str] = None
        self._lock = threading.RLock()

    @property
    def frozen(self) -> bool:
        """Whether the registry is frozen."""
        return self._frozen

    @property
    def fingerprint(self) -> Optional[str]:
        """Schema fingerprint (available after freeze)."""
        return self._fingerprint

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def get(self, name: str) -> Optional[SchemaRef]:
        """Get a registered fragment by name, or None."""
        return self._schemas.get(name)

    def names(self) -> Iterator[str]:
        """Iterate over registered names in insertion order."""
        yield from list(self._schemas)

    def is_resolving(self, name: str) -> bool:
        """Whether ``name`` is currently being built."""
        return name in self._resolving

    def register(self, name: str, schema: SchemaRef) -> bool:
        """Bind a fragment to a name.

        Args:
            name: Canonical schema name
            schema: Fragment to bind

        Returns:
            True if the fragment was inserted, False if the name was already
            bound (to an equal fragment, or ignored per conflict policy)

        Raises:
            ConflictingRegistrationError: If the name is bound to a different
                fragment and the conflict policy is ERROR
            RegistryFrozenError: If the name is new and the registry is frozen
        """
        with self._lock:
            existing = self._schemas.get(name)
            if existing is not None:
                if existing == schema:
                    return False
                if self.config.on_conflict is ConflictPolicy.IGNORE:
                    logger.warning(
                        f"Ignoring conflicting registration for schema '{name}'; keeping the first"
                    )
                    return False
                raise ConflictingRegistrationError(
                    name,
                    existing=existing.to_dict(self.config.ref_prefix),
                    new=schema.to_dict(self.config.ref_prefix),
                )

            self._check_not_frozen(name)
            self._schemas[name] = schema
            logger.debug(f"Registered schema: {name}")
            return True

    def create_schema(self, name: str, build: SchemaBuilder) -> None:
        """Build and register a fragment unless the name is already known.

        Used for nested named references: a name that is bound, or is being
        built further up the stack, is left alone.

        Args:
            name: Canonical schema name
            build: Called with this registry to produce the fragment
        """
        self._bind(name, build, verify=False)

    def bind(self, name: str, build: SchemaBuilder) -> None:
        """Build and register a fragment, verifying an existing binding.

        Used by schema providers for the type they represent. If the name is
        already bound, the fragment is rebuilt and compared so that a second
        type claiming the same name is detected.

        Args:
            name: Canonical schema name
            build: Called with this registry to produce the fragment

        Raises:
            ConflictingRegistrationError: See register()
            RegistryFrozenError: See register()
        """
        self._bind(name, build, verify=True)

    def _bind(self, name: str, build: SchemaBuilder, verify: bool) -> None:
        with self._lock:
            if name in self._resolving:
                return
            if name in self._schemas and not verify:
                return
            if name not in self._schemas:
                self._check_not_frozen(name)

            self._resolving.add(name)
            try:
                schema = build(self)
            finally:
                self._resolving.discard(name)
            self.register(name, schema)

    def _check_not_frozen(self, name: str) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register schema '{name}': registry is frozen",
                name=name,
            )

    def freeze(self) -> str:
        """Freeze the registry and compute fingerprint.

        Returns:
            Schema fingerprint string

        Raises:
            RegistryFrozenError: If already frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is already frozen")

            self._fingerprint = self._compute_fingerprint()
            self._frozen = True
            logger.info(
                f"Schema registry frozen with {len(self._schemas)} schemas, "
                f"fingerprint={self._fingerprint}"
            )
            return self._fingerprint

    def _compute_fingerprint(self) -> str:
        """Compute SHA-256 fingerprint of the registry.

        Keys are not sorted: property order is part of the schema.
        """
        canonical = json.dumps(self.to_dict(), separators=(",", ":"))
        hash_bytes = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
        return f"sha256:{hash_bytes}"

    def to_dict(self) -> dict:
        """Convert registry to the ``components.schemas`` representation.

        Returns:
            Mapping of name to wire fragment, sorted by name for determinism
        """
        prefix = self.config.ref_prefix
        return {name: self._schemas[name].to_dict(prefix) for name in sorted(self._schemas)}

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Convert registry to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict, config: SchemaConfig | None = None) -> SchemaRegistry:
        """Create registry from its ``components.schemas`` representation.

        Returns:
            New SchemaRegistry (not frozen)
        """
        registry = cls(config)
        for name, schema in data.items():
            registry.register(name, schema_from_dict(schema, registry.config.ref_prefix))
        return registry

    @classmethod
    def from_json(cls, json_str: str, config: SchemaConfig | None = None) -> SchemaRegistry:
        """Create registry from JSON string."""
        return cls.from_dict(json.loads(json_str), config)
