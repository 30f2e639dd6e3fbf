"""
Shared configuration management for the Gem Proxy.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    # Rotating log file in addition to stdout (10 files of ~1MB)
    log_file: Optional[str] = Field(default=None)

    # Upstream registry
    upstream_url: str = Field(default="https://rubygems.org")
    upstream_timeout: float = Field(default=5.0)
    max_redirects: int = Field(default=5)

    # Local store
    cache_dir: str = Field(default="./public")
    specs_dir: str = Field(default="./specs")

    # Cache policy
    api_prefix: str = Field(default="/api")
    specs_max_age_seconds: int = Field(default=84600)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
