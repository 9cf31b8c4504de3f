"""
Gateway management and template invocation routes.

Management endpoints (info, stats, logs, domains, key generation) mirror the
gateway's operational surface; ``/invoke-template`` is the template path.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from gateway_service_libs.error_handling import (
    raise_authorization_error,
    raise_invalid_api_key,
    raise_validation_error,
)
from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.config import Settings
from services.template_gateway_service.implementations.domain_registry import generate_api_key
from services.template_gateway_service.models import (
    CallerIdentity,
    GenerateKeyRequest,
    InvocationErrorKind,
    InvokeTemplateRequest,
    RegisterDomainRequest,
)
from services.template_gateway_service.protocols import (
    DomainRegistryProtocol,
    MetricsProtocol,
    RequestLogProtocol,
    TemplateDispatcherProtocol,
    TemplateValidatorProtocol,
)

router = APIRouter(route_class=DishkaRoute)
logger = create_service_logger("template_gateway.gateway_routes")

INVOCATION_ERROR_STATUS: dict[InvocationErrorKind, int] = {
    InvocationErrorKind.TEMPLATE_NOT_FOUND: 404,
    InvocationErrorKind.TEMPLATE_NOT_DECLARED: 403,
    InvocationErrorKind.TEMPLATE_MALFORMED: 422,
    InvocationErrorKind.TRANSPORT_FAILURE: 502,
}


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


@router.get("/info", summary="Gateway configuration and statistics")
async def gateway_info(
    config: FromDishka[Settings],
    domains: FromDishka[DomainRegistryProtocol],
    request_log: FromDishka[RequestLogProtocol],
) -> dict[str, Any]:
    return {
        "success": True,
        "gateway": {
            "version": config.SERVICE_VERSION,
            "environment": config.ENVIRONMENT.value,
            "backendUrl": config.BACKEND_URL,
            "allowedOrigins": domains.allowed_origins,
            "domainPatterns": domains.domain_patterns,
        },
        "registeredDomains": domains.get_registered_domains(),
        "stats": request_log.stats(config.STATS_WINDOW_SECONDS).model_dump(by_alias=True),
    }


@router.get("/stats", summary="Rolling request statistics")
async def gateway_stats(
    config: FromDishka[Settings],
    request_log: FromDishka[RequestLogProtocol],
    window_seconds: int | None = Query(default=None, gt=0),
) -> dict[str, Any]:
    stats = request_log.stats(window_seconds or config.STATS_WINDOW_SECONDS)
    return {
        "success": True,
        "stats": stats.model_dump(by_alias=True),
        "timestamp": _timestamp(),
    }


@router.get("/logs", summary="Most recent request log entries, newest first")
async def gateway_logs(
    request_log: FromDishka[RequestLogProtocol],
    limit: int = Query(default=50, ge=1),
) -> dict[str, Any]:
    return {
        "success": True,
        "logs": [
            entry.model_dump(mode="json", by_alias=True) for entry in request_log.recent_logs(limit)
        ],
        "timestamp": _timestamp(),
    }


@router.get("/domains", summary="Configured, pattern and registered domains")
async def gateway_domains(domains: FromDishka[DomainRegistryProtocol]) -> dict[str, Any]:
    return {
        "success": True,
        "configuredOrigins": domains.allowed_origins,
        "domainPatterns": domains.domain_patterns,
        "registeredDomains": domains.get_registered_domains(),
        "timestamp": _timestamp(),
    }


@router.post("/register-domain", summary="Register a domain for CORS with an API key")
async def register_domain(
    registration: RegisterDomainRequest,
    config: FromDishka[Settings],
    domains: FromDishka[DomainRegistryProtocol],
    correlation_id: FromDishka[UUID],
) -> dict[str, Any]:
    if not registration.domain or not registration.api_key:
        raise_validation_error(
            service=config.SERVICE_NAME,
            operation="register_domain",
            field="domain" if not registration.domain else "apiKey",
            message="Domain and API key are required",
            correlation_id=correlation_id,
        )

    if not domains.register_domain(
        registration.domain, registration.api_key, registration.metadata
    ):
        raise_invalid_api_key(
            service=config.SERVICE_NAME,
            operation="register_domain",
            message="The provided API key is not valid",
            correlation_id=correlation_id,
            domain=registration.domain,
        )

    return {
        "success": True,
        "message": "Domain registered successfully",
        "domain": registration.domain,
        "appName": domains.get_api_key_info(registration.api_key),
        "timestamp": _timestamp(),
    }


@router.post("/generate-key", summary="Generate an API key (development only)")
async def generate_key(
    config: FromDishka[Settings],
    correlation_id: FromDishka[UUID],
    key_request: GenerateKeyRequest | None = None,
) -> dict[str, Any]:
    if not config.is_development():
        raise_authorization_error(
            service=config.SERVICE_NAME,
            operation="generate_key",
            message="Key generation is only available in development mode",
            correlation_id=correlation_id,
        )

    key_request = key_request or GenerateKeyRequest()
    api_key = generate_api_key(key_request.prefix)
    logger.info(f"Generated development API key with prefix '{key_request.prefix}'")
    return {
        "success": True,
        "apiKey": api_key,
        "description": key_request.description or "Generated API key",
        "timestamp": _timestamp(),
        "note": "This key is for development use only",
    }


@router.get("/templates", summary="Configured, declared and invocable templates")
async def list_templates(validator: FromDishka[TemplateValidatorProtocol]) -> dict[str, Any]:
    return {"success": True, "templates": validator.list_templates().model_dump()}


@router.post("/invoke-template", summary="Invoke a declared request template")
async def invoke_template(
    invocation: InvokeTemplateRequest,
    dispatcher: FromDishka[TemplateDispatcherProtocol],
    caller: FromDishka[CallerIdentity],
    metrics: FromDishka[MetricsProtocol],
) -> JSONResponse:
    endpoint = "/gateway/invoke-template"
    with metrics.http_request_duration_seconds.labels(method="POST", endpoint=endpoint).time():
        result = await dispatcher.invoke(
            invocation.template_name,
            invocation.context,
            invocation.body,
            origin=caller.origin,
            api_key=caller.api_key,
        )

    status_code = 200
    if result.error_kind is not None:
        status_code = INVOCATION_ERROR_STATUS[result.error_kind]
        metrics.api_errors_total.labels(
            endpoint=endpoint, error_type=result.error_kind.value.lower()
        ).inc()

    metrics.http_requests_total.labels(
        method="POST", endpoint=endpoint, http_status=str(status_code)
    ).inc()
    return JSONResponse(status_code=status_code, content=result.to_response())
