"""
Configuration for Template Gateway Service.

Uses Pydantic settings for environment-based configuration of the gateway,
its request templates, application manifests and outbound HTTP client.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict

from gateway_service_libs.config import SecureServiceSettings
from services.template_gateway_service.utils.cors_utils import (
    get_cors_origins_for_environment,
    get_domain_patterns_for_environment,
)

_SERVICE_DIR = Path(__file__).resolve().parent


class Settings(SecureServiceSettings):
    """Configuration settings for Template Gateway Service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TEMPLATE_GATEWAY_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Service identity
    SERVICE_NAME: str = "template-gateway-service"
    SERVICE_VERSION: str = "1.0.0"

    # HTTP server configuration
    HTTP_HOST: str = Field(default="0.0.0.0", description="HTTP server host")
    HTTP_PORT: int = Field(
        default=9000,
        description="HTTP server port",
        validation_alias=AliasChoices("TEMPLATE_GATEWAY_HTTP_PORT", "PORT"),
    )
    GATEWAY_URL: str = Field(
        default="http://localhost:9000", description="Public URL of this gateway"
    )

    # Logging configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # CORS configuration; empty lists fall back to the environment defaults
    CORS_ORIGINS: list[str] = Field(
        default_factory=list,
        description="Pre-configured origins allowed without an API key",
    )
    DOMAIN_PATTERNS: list[str] = Field(
        default_factory=list,
        description="Wildcard origin patterns, e.g. 'https://*.company.com'",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(
        default=True, description="Allow credentials in CORS requests"
    )
    CORS_ALLOW_METHODS: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods for CORS",
    )
    CORS_ALLOW_HEADERS: list[str] = Field(
        default=["Content-Type", "Authorization", "X-API-Key", "X-Client-Domain", "X-Correlation-ID"],
        description="Allowed headers for CORS requests",
    )

    # API keys: key -> application display name
    API_KEYS: dict[str, str] = Field(
        default_factory=lambda: {
            "development-key-1": "App 1 Development",
            "development-key-2": "App 2 Development",
        },
        description="Known API keys mapped to the owning application name",
    )

    # Backend for the /api pass-through proxy
    BACKEND_URL: str = Field(
        default="http://localhost:8000",
        description="Backend base URL for the pass-through proxy",
        validation_alias=AliasChoices("TEMPLATE_GATEWAY_BACKEND_URL", "BACKEND_URL"),
    )

    # Request templates and application manifests
    APP_ID: str = Field(default="app2", description="Application whose manifest grants permissions")
    REQUEST_TEMPLATES_PATH: Path = Field(
        default=_SERVICE_DIR / "request_templates" / "requests.json",
        description="JSON file mapping template names to request descriptors",
    )
    MANIFESTS_DIR: Path = Field(
        default=_SERVICE_DIR / "manifests",
        description="Directory holding <app_id>/manifest.json declarations",
    )
    DEFAULT_PROTOCOL: str = Field(
        default="https", description="Scheme used when a template omits 'protocol'"
    )

    # HTTP Client Timeouts
    HTTP_CLIENT_TIMEOUT_SECONDS: float = 30.0
    HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS: float = 10.0

    # Request log
    REQUEST_LOG_CAPACITY: int = Field(default=1000, description="Entries kept in the request log")
    STATS_WINDOW_SECONDS: int = Field(default=3600, description="Default stats window")

    # Rate limiting configuration
    RATE_LIMIT_REQUESTS: int = Field(default=1000, description="Requests per window per client")
    RATE_LIMIT_WINDOW: int = Field(default=900, description="Rate limit window in seconds")
    RATE_LIMIT_STORAGE_URI: str | None = Field(
        default=None, description="Shared limiter storage (e.g. redis://...); in-memory if unset"
    )

    def resolved_cors_origins(self) -> list[str]:
        return self.CORS_ORIGINS or get_cors_origins_for_environment(self.ENVIRONMENT.value)

    def resolved_domain_patterns(self) -> list[str]:
        return self.DOMAIN_PATTERNS or get_domain_patterns_for_environment(self.ENVIRONMENT.value)

    def manifest_path(self, application_id: str | None = None) -> Path:
        return self.MANIFESTS_DIR / (application_id or self.APP_ID) / "manifest.json"


# Global settings instance
settings = Settings()
