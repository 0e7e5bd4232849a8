"""
Shared configuration management for the access-layer MFA service.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ACCESS_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Duo admin API
    duo_api_host: str = "api-00000000.duosecurity.com"
    duo_integration_key: str = ""
    duo_secret_key: str = ""
    duo_auth_api_version: int = Field(default=2, gt=0)
    duo_request_timeout: float = Field(default=10.0, gt=0)
    duo_health_ping_ttl_seconds: float = Field(default=30.0, gt=0)

    # Account status cache
    mfa_cache_max_size: int = Field(default=100_000_000, gt=0)
    mfa_cache_ttl_seconds: float = Field(default=5.0, gt=0)


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
