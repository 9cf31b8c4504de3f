from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import uuid4

from dishka import Provider
from fastapi import FastAPI
from prometheus_client import CollectorRegistry
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from gateway_service_libs.error_handling import ErrorCode, create_error_detail
from gateway_service_libs.error_handling.fastapi import (
    create_error_response,
    register_error_handlers as register_fastapi_error_handlers,
)
from services.template_gateway_service.app.di import (
    TemplateGatewayProvider,
    build_domain_registry,
)
from services.template_gateway_service.app.startup_setup import (
    configure_logging,
    create_di_container,
    load_template_configuration,
    setup_dependency_injection,
    shutdown_services,
)
from services.template_gateway_service.config import Settings, settings

from ..routers import gateway_routes, proxy_routes
from ..routers.health_routes import router as health_router
from .middleware import (
    ApiKeyAuthMiddleware,
    CorrelationIDMiddleware,
    DevelopmentMiddleware,
    DynamicCORSMiddleware,
)
from .rate_limiter import limiter

AVAILABLE_ENDPOINTS = [
    "GET /health",
    "GET /metrics",
    "GET /gateway/info",
    "GET /gateway/stats",
    "GET /gateway/logs",
    "GET /gateway/domains",
    "GET /gateway/templates",
    "POST /gateway/invoke-template",
    "POST /gateway/register-domain",
    "POST /gateway/generate-key (dev only)",
    "ALL /api* (proxied to backend)",
]


def create_app(
    config: Settings | None = None,
    *,
    registry: CollectorRegistry | None = None,
    providers: Sequence[Provider] = (),
) -> FastAPI:
    """Build the gateway application.

    ``providers`` are registered after the default provider and override it;
    tests use this to swap the outbound HTTP client.
    """
    config = config or settings
    configure_logging(config)

    domain_registry = build_domain_registry(config)
    container = create_di_container(
        TemplateGatewayProvider(config=config, domain_registry=domain_registry, registry=registry),
        *providers,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await load_template_configuration(container)
        yield
        await shutdown_services(container)

    app = FastAPI(
        title=config.SERVICE_NAME,
        version=config.SERVICE_VERSION,
        description=(
            "Template Gateway - invokes declared request templates and proxies "
            "backend calls on behalf of embedded front-end applications"
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Register error handlers
    register_fastapi_error_handlers(app)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
        detail = create_error_detail(
            error_code=ErrorCode.RATE_LIMIT,
            message=f"Rate limit exceeded: {exc.detail}",
            service=config.SERVICE_NAME,
            operation="rate_limit",
            correlation_id=getattr(request.state, "correlation_id", None) or uuid4(),
            details={"limit": str(exc.detail)},
        )
        return create_error_response(detail)

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception):
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Not Found",
                "message": "API endpoint not found",
                "availableEndpoints": AVAILABLE_ENDPOINTS,
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    # Middleware runs outermost-last-added: CORS, correlation ID, development
    # headers, API key auth, rate limiting, then the routes.
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        ApiKeyAuthMiddleware,
        domain_registry=domain_registry,
        service_name=config.SERVICE_NAME,
    )

    if config.is_development():
        app.add_middleware(DevelopmentMiddleware, settings=config)

    app.add_middleware(CorrelationIDMiddleware)

    app.add_middleware(
        DynamicCORSMiddleware,
        domain_registry=domain_registry,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=config.CORS_ALLOW_METHODS,
        allow_headers=config.CORS_ALLOW_HEADERS,
    )

    # Include routers
    app.include_router(health_router, tags=["Health"])
    app.include_router(gateway_routes.router, prefix="/gateway", tags=["Gateway"])
    app.include_router(proxy_routes.router, tags=["Proxy"])

    # Setup Dishka DI
    setup_dependency_injection(app, container)

    # Store container reference for cleanup
    app.state.di_container = container
    app.state.domain_registry = domain_registry

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.template_gateway_service.app.main:app",
        host=settings.HTTP_HOST,
        port=settings.HTTP_PORT,
        reload=settings.is_development(),
    )
