"""
Unit tests for configuration and errors.
"""

import pytest

from jsonwrap.config import DEFAULT_REF_PREFIX, ConflictPolicy, SchemaConfig
from jsonwrap.errors import (
    ConflictingRegistrationError,
    JsonWrapError,
    RegistryError,
    SerializationError,
    TraceError,
)
from jsonwrap.schema import SchemaRegistry


class TestSchemaConfig:
    """Tests for SchemaConfig."""

    def test_defaults(self):
        """Defaults target OpenAPI components and fail on conflicts."""
        config = SchemaConfig()

        assert config.ref_prefix == DEFAULT_REF_PREFIX == "#/components/schemas/"
        assert config.on_conflict is ConflictPolicy.ERROR

    def test_from_env(self, monkeypatch):
        """Settings are read from JSONWRAP_* variables."""
        monkeypatch.setenv("JSONWRAP_REF_PREFIX", "#/definitions/")
        monkeypatch.setenv("JSONWRAP_ON_CONFLICT", "IGNORE")

        config = SchemaConfig.from_env()

        assert config.ref_prefix == "#/definitions/"
        assert config.on_conflict is ConflictPolicy.IGNORE

    def test_from_env_defaults(self, monkeypatch):
        """Unset variables fall back to defaults."""
        monkeypatch.delenv("JSONWRAP_REF_PREFIX", raising=False)
        monkeypatch.delenv("JSONWRAP_ON_CONFLICT", raising=False)

        assert SchemaConfig.from_env() == SchemaConfig()

    def test_registry_default_ignores_environment(self, monkeypatch):
        """A registry without a config uses defaults, not the environment."""
        monkeypatch.setenv("JSONWRAP_REF_PREFIX", "#/definitions/")
        monkeypatch.setenv("JSONWRAP_ON_CONFLICT", "ignore")

        assert SchemaRegistry().config == SchemaConfig()
        assert SchemaRegistry(SchemaConfig.from_env()).config.ref_prefix == "#/definitions/"

    def test_invalid_policy(self):
        """Unknown policies are rejected."""
        with pytest.raises(ValueError, match="Invalid conflict policy"):
            ConflictPolicy.from_str("merge")


class TestErrors:
    """Tests for the error hierarchy."""

    def test_hierarchy(self):
        """All errors derive from JsonWrapError."""
        assert issubclass(TraceError, JsonWrapError)
        assert issubclass(SerializationError, JsonWrapError)
        assert issubclass(ConflictingRegistrationError, RegistryError)

    def test_serialization_error_path(self):
        """SerializationError records the JSON path in its message."""
        error = SerializationError("Expected str", path="$.name")

        assert error.message == "Expected str (at $.name)"
        assert error.details["path"] == "$.name"

    def test_default_code(self):
        """The base error has a generic code."""
        assert JsonWrapError("boom").code == "JSONWRAP_ERROR"
        assert TraceError("boom", type_name="X").code == "TRACE_ERROR"
