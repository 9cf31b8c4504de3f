"""
Protocols for Template Gateway Service.

Defines the interfaces used for dependency injection. Routes and the
dispatcher depend on these protocols, not on concrete implementations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

import httpx
from fastapi import Request, Response
from prometheus_client import Counter, Histogram

from services.template_gateway_service.models import (
    GatewayStats,
    InvocationResult,
    LogEntry,
    PermissionEntry,
    RequestTemplate,
    TemplateCatalog,
)


class HttpClientProtocol(Protocol):
    """Protocol for the outbound HTTP client."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        content: str | bytes | None = None,
        json: Any = None,
        timeout: float | httpx.Timeout | None = None,
    ) -> httpx.Response:
        """Send a request and return the raw httpx response."""
        ...


class TemplateStoreProtocol(Protocol):
    """Read-only store of request templates keyed by name."""

    def load(self) -> None:
        """Populate the store from its configuration source (idempotent)."""
        ...

    def get(self, name: str) -> RequestTemplate | None:
        """Return the template or None when absent."""
        ...

    def names(self) -> list[str]:
        ...


class PermissionRegistryProtocol(Protocol):
    """Per-application set of declared template names."""

    @property
    def application_id(self) -> str | None:
        ...

    def load(self, application_id: str) -> None:
        """Read the application's manifest and record its declared templates."""
        ...

    def is_declared(self, name: str) -> bool:
        ...

    def declared_names(self) -> list[str]:
        ...

    def entries(self) -> list[PermissionEntry]:
        ...


class TemplateProcessorProtocol(Protocol):
    def render(self, template: RequestTemplate, context: Any) -> RequestTemplate:
        """Return a deep copy of ``template`` with placeholders resolved from ``context``."""
        ...


class TemplateValidatorProtocol(Protocol):
    def validate(self, name: str) -> RequestTemplate:
        """Return the stored template or raise a TemplateGatewayError."""
        ...

    def list_templates(self) -> TemplateCatalog:
        ...


class TemplateDispatcherProtocol(Protocol):
    async def invoke(
        self,
        template_name: str,
        context: Any = None,
        body: Any = None,
        *,
        origin: str | None = None,
        api_key: str | None = None,
    ) -> InvocationResult:
        """Validate, render and dispatch a template; never raises for expected failures."""
        ...


class RequestLogProtocol(Protocol):
    """Fixed-capacity log of completed gateway calls."""

    @property
    def capacity(self) -> int:
        ...

    def now(self) -> datetime:
        """Timestamp source for new entries; injectable for tests."""
        ...

    def next_request_id(self) -> int:
        ...

    def record(self, entry: LogEntry) -> None:
        ...

    def stats(self, window_seconds: float = 3600) -> GatewayStats:
        ...

    def recent_logs(self, limit: int = 50) -> list[LogEntry]:
        ...


class DomainRegistryProtocol(Protocol):
    """Origin allow-list, API keys and runtime-registered domains."""

    @property
    def allowed_origins(self) -> list[str]:
        ...

    @property
    def domain_patterns(self) -> list[str]:
        ...

    def is_configured_origin(self, origin: str | None) -> bool:
        ...

    def matches_pattern(self, origin: str | None) -> bool:
        ...

    def is_registered(self, origin: str | None) -> bool:
        ...

    def is_origin_allowed(self, origin: str | None) -> bool:
        ...

    def validate_api_key(self, api_key: str | None) -> bool:
        ...

    def get_api_key_info(self, api_key: str | None) -> str:
        ...

    def register_domain(
        self, domain: str, api_key: str, metadata: dict[str, Any] | None = None
    ) -> bool:
        ...

    def unregister_domain(self, domain: str) -> bool:
        ...

    def get_registered_domains(self) -> dict[str, dict[str, Any]]:
        ...


class BackendProxyProtocol(Protocol):
    async def proxy(self, request: Request) -> Response:
        """Relay ``request`` to the backend and return the relayed response."""
        ...


class MetricsProtocol(Protocol):
    """Protocol for metrics collection matching GatewayMetrics."""

    @property
    def http_requests_total(self) -> Counter:
        ...

    @property
    def http_request_duration_seconds(self) -> Histogram:
        ...

    @property
    def downstream_service_calls_total(self) -> Counter:
        ...

    @property
    def downstream_service_call_duration_seconds(self) -> Histogram:
        ...

    @property
    def template_invocations_total(self) -> Counter:
        ...

    @property
    def api_errors_total(self) -> Counter:
        ...
