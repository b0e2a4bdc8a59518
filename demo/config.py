"""
Configuration for the jsonwrap demo service.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Demo service configuration."""

    # Document metadata
    title: str = Field(default="My API")
    version: str = Field(default="1.0")
    server_url: str = Field(default="http://localhost:3000")

    # Documentation endpoints
    docs_url: str = Field(default="/docs")
    openapi_url: str = Field(default="/spec.json")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="text or json")

    model_config = {"env_prefix": "JSONWRAP_DEMO_"}
