"""Health and metrics routes for Template Gateway Service."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from dishka import FromDishka
from dishka.integrations.fastapi import inject
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.config import Settings
from services.template_gateway_service.protocols import (
    PermissionRegistryProtocol,
    TemplateStoreProtocol,
)

router = APIRouter(tags=["Health"])
logger = create_service_logger("template_gateway_service.routers.health")


@router.get("/health")
@router.get("/healthz")
@inject
async def health_check(
    config: FromDishka[Settings],
    store: FromDishka[TemplateStoreProtocol],
    permissions: FromDishka[PermissionRegistryProtocol],
) -> dict[str, Any]:
    """Liveness plus a summary of the loaded template configuration."""
    logger.debug("Health check requested")
    configured = len(store.names())
    declared = len(permissions.declared_names())
    return {
        "service": config.SERVICE_NAME,
        "status": "healthy",
        "message": "Template Gateway Service is healthy",
        "version": config.SERVICE_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": config.ENVIRONMENT.value,
        "port": config.HTTP_PORT,
        "backendUrl": config.BACKEND_URL,
        "checks": {
            "service_responsive": True,
            "templates_loaded": configured > 0,
            "manifest_loaded": declared > 0,
        },
        "templates": {"configured": configured, "declared": declared},
    }


@router.get("/metrics", response_class=PlainTextResponse)
@inject
async def metrics(registry: FromDishka[CollectorRegistry]):
    """Prometheus metrics endpoint."""
    try:
        metrics_data = generate_latest(registry)
        return PlainTextResponse(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        logger.error(f"Error generating metrics: {e}", exc_info=True)
        return PlainTextResponse(content="Error generating metrics", status_code=500)
