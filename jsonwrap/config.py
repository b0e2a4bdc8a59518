"""
Configuration for jsonwrap schema generation.

All configuration is done via environment variables with defaults that
suit a FastAPI application publishing OpenAPI components.

Invariants:
    - The environment is read only by SchemaConfig.from_env(); a registry
      built without a config uses the SchemaConfig() defaults
    - ref_prefix must match where the host document stores named schemas

How to change safely:
    - Add new settings with defaults that keep generated documents unchanged
    - Document new variables in the SchemaConfig docstring
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_REF_PREFIX = "#/components/schemas/"


class ConflictPolicy(Enum):
    """What the registry does when a name is bound to two different fragments."""

    ERROR = "error"  # Raise ConflictingRegistrationError
    IGNORE = "ignore"  # Keep the first fragment, log a warning

    @classmethod
    def from_str(cls, value: str) -> ConflictPolicy:
        """Convert string representation to ConflictPolicy.

        Raises:
            ValueError: If value is not a valid policy
        """
        for policy in cls:
            if policy.value == value.lower():
                return policy
        valid = [p.value for p in cls]
        raise ValueError(f"Invalid conflict policy '{value}'. Valid policies: {valid}")


@dataclass(frozen=True)
class SchemaConfig:
    """Schema registry configuration.

    Attributes:
        ref_prefix: Prefix prepended to names in ``$ref`` pointers
            (env: JSONWRAP_REF_PREFIX)
        on_conflict: Policy for conflicting registrations
            (env: JSONWRAP_ON_CONFLICT, ``error`` or ``ignore``)
    """

    ref_prefix: str = DEFAULT_REF_PREFIX
    on_conflict: ConflictPolicy = ConflictPolicy.ERROR

    @classmethod
    def from_env(cls) -> SchemaConfig:
        """Load configuration from environment variables."""
        config = cls(
            ref_prefix=os.getenv("JSONWRAP_REF_PREFIX", DEFAULT_REF_PREFIX),
            on_conflict=ConflictPolicy.from_str(os.getenv("JSONWRAP_ON_CONFLICT", "error")),
        )
        if config.on_conflict is ConflictPolicy.IGNORE:
            logger.warning("Conflicting schema registrations will be ignored (first one wins)")
        return config
