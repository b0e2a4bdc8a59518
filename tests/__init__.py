"""
jsonwrap Test Suite.

This package contains:
- unit/: Unit tests (reflection, schema conversion, registry, encoder, wrapper)
- integration/: Integration tests (demo FastAPI service and its OpenAPI document)
"""
