"""Middleware for Template Gateway Service."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp

from gateway_service_libs.error_handling import ErrorCode, create_error_detail
from gateway_service_libs.error_handling.fastapi import create_error_response
from gateway_service_libs.logging_utils import bind_request_context, create_service_logger
from services.template_gateway_service.config import Settings
from services.template_gateway_service.protocols import DomainRegistryProtocol
from services.template_gateway_service.utils.cors_utils import get_development_cors_headers

logger = create_service_logger("template_gateway.middleware")

PUBLIC_PATHS = frozenset({"/health", "/healthz", "/metrics", "/docs", "/redoc", "/openapi.json"})
PUBLIC_PREFIXES = ("/gateway/",)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Middleware to ensure every request has a correlation ID as UUID."""

    async def dispatch(self, request: Request, call_next):
        """Extract or generate correlation ID and store as UUID in request state."""
        x_correlation_id = request.headers.get("X-Correlation-ID")
        if x_correlation_id:
            try:
                correlation_id = UUID(x_correlation_id)
            except ValueError:
                logger.warning(
                    f"Invalid correlation ID format: {x_correlation_id}, generating new one"
                )
                correlation_id = uuid4()
        else:
            correlation_id = uuid4()

        request.state.correlation_id = correlation_id
        bind_request_context(str(correlation_id), path=request.url.path, method=request.method)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["X-Correlation-ID"] = str(correlation_id)
        return response


class DevelopmentMiddleware(BaseHTTPMiddleware):
    """Adds debug headers and request logging in the development environment."""

    def __init__(self, app: Any, settings: Settings | None = None) -> None:
        super().__init__(app)
        self.settings = settings

    def is_development_environment(self) -> bool:
        if not self.settings:
            return False
        return bool(self.settings.is_development())

    async def dispatch(self, request: Request, call_next):
        if not self.is_development_environment():
            return await call_next(request)

        request.state.development_mode = True
        origins = self.settings.resolved_cors_origins() if self.settings else []

        response = await call_next(request)

        for name, value in get_development_cors_headers(origins).items():
            response.headers[name] = value
        response.headers["X-Gateway-Service"] = getattr(
            self.settings, "SERVICE_NAME", "template-gateway-service"
        )

        logger.debug(
            f"Development request: {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )
        return response


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    """Authenticates callers by origin or ``X-API-Key``.

    Configured and pattern-matched origins pass without a key. Any other
    caller needs a known key; its origin is then registered on first sight.
    Caller details land on ``request.state`` for the rate limiter and routes.
    """

    def __init__(self, app: ASGIApp, domain_registry: DomainRegistryProtocol, service_name: str):
        super().__init__(app)
        self.domain_registry = domain_registry
        self.service_name = service_name

    @staticmethod
    def is_public_path(path: str) -> bool:
        return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        api_key = request.headers.get("x-api-key")
        client_domain = request.headers.get("x-client-domain")

        request.state.origin = origin
        request.state.client_domain = client_domain

        if self.is_public_path(request.url.path):
            return await call_next(request)

        if self.domain_registry.is_configured_origin(origin):
            logger.debug(f"Pre-configured origin authenticated: {origin}")
            return await call_next(request)

        if self.domain_registry.matches_pattern(origin):
            logger.debug(f"Pattern-matched origin authenticated: {origin}")
            return await call_next(request)

        correlation_id = getattr(request.state, "correlation_id", None) or uuid4()

        if not api_key:
            logger.info(f"Authentication failed: no API key provided for origin {origin}")
            return self._reject(
                ErrorCode.AUTHENTICATION_ERROR,
                "API key is required for this origin",
                correlation_id,
                origin,
            )

        if not self.domain_registry.validate_api_key(api_key):
            logger.info(f"Authentication failed: invalid API key for origin {origin}")
            return self._reject(
                ErrorCode.INVALID_API_KEY,
                "The provided API key is not valid",
                correlation_id,
                origin,
            )

        if origin and not self.domain_registry.is_registered(origin):
            self.domain_registry.register_domain(
                origin,
                api_key,
                {
                    "user_agent": request.headers.get("user-agent"),
                    "first_seen": datetime.now(UTC).isoformat(),
                    "client_domain": client_domain,
                },
            )

        request.state.api_key = api_key
        request.state.app_name = self.domain_registry.get_api_key_info(api_key)
        logger.info(
            f"Authenticated request: {request.method} {request.url.path} "
            f"| App: {request.state.app_name} | Origin: {origin}"
        )
        return await call_next(request)

    def _reject(self, code: ErrorCode, message: str, correlation_id: UUID, origin: str | None):
        detail = create_error_detail(
            error_code=code,
            message=message,
            service=self.service_name,
            operation="authenticate",
            correlation_id=correlation_id,
            details={"origin": origin or "unknown"},
        )
        return create_error_response(detail)


class DynamicCORSMiddleware(CORSMiddleware):
    """Starlette CORS with origin checks delegated to the domain registry.

    Domains registered at runtime become allowed without rebuilding the app.
    """

    def __init__(self, app: ASGIApp, domain_registry: DomainRegistryProtocol, **kwargs: Any):
        super().__init__(app, allow_origins=(), **kwargs)
        self.domain_registry = domain_registry

    def is_allowed_origin(self, origin: str) -> bool:
        allowed = self.domain_registry.is_origin_allowed(origin)
        if not allowed:
            logger.info(f"CORS blocked origin: {origin}")
        return allowed
