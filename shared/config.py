"""
Shared configuration management for the Supplier Portal Access Layer.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Upstream ERP. Leaving the base URL unset is a supported state: every
    # read is then served by the fallback supplier.
    erp_base_url: Optional[str] = Field(default=None)
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)

    # External session provider
    auth_service_url: str = Field(default="http://localhost:8010")

    # "demo" fabricates a degraded success when a write cannot reach the ERP,
    # "strict" reports 503 instead.
    write_fallback_mode: Literal["demo", "strict"] = Field(default="demo")

    # Tracing
    tracing_enabled: bool = Field(default=False)
    otel_exporter: Optional[str] = Field(default=None)
    tracing_console: bool = Field(default=False)

    @field_validator("erp_base_url")
    @classmethod
    def _blank_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip().rstrip("/")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
