"""FastAPI integration for structured error handling."""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..logging_utils import create_service_logger
from .error_detail import ErrorDetail, create_error_detail
from .error_enums import ErrorCode
from .gateway_error import GatewayServiceError

logger = create_service_logger("gateway_service_libs.error_handling")

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.MISSING_REQUIRED_FIELD: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.AUTHENTICATION_ERROR: 401,
    ErrorCode.INVALID_API_KEY: 401,
    ErrorCode.AUTHORIZATION_ERROR: 403,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.RATE_LIMIT: 429,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.INVALID_CONFIGURATION: 500,
    ErrorCode.PROCESSING_ERROR: 500,
    ErrorCode.UNKNOWN_ERROR: 500,
    ErrorCode.CONNECTION_ERROR: 502,
    ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.TIMEOUT: 504,
}


def status_code_for(error_code: ErrorCode) -> int:
    return ERROR_CODE_TO_STATUS.get(error_code, 500)


def create_error_response(error_detail: ErrorDetail, status_code: int | None = None) -> JSONResponse:
    """Render an ErrorDetail as a JSON response (usable from middleware)."""
    error = GatewayServiceError(error_detail)
    return JSONResponse(
        status_code=status_code or status_code_for(error_detail.error_code),
        content={"error": error.to_dict()},
        headers={"X-Correlation-ID": error.correlation_id},
    )


def _request_correlation_id(request: Request) -> UUID:
    correlation_id = getattr(request.state, "correlation_id", None)
    return correlation_id if isinstance(correlation_id, UUID) else uuid4()


def register_error_handlers(app: FastAPI) -> None:
    """Register handlers turning service errors into ``{"error": {...}}`` responses."""

    @app.exception_handler(GatewayServiceError)
    async def handle_gateway_service_error(
        request: Request, exc: GatewayServiceError
    ) -> JSONResponse:
        logger.warning(
            f"{exc.error_code} in {exc.service}.{exc.operation}: {exc.error_detail.message}",
            path=request.url.path,
            correlation_id=exc.correlation_id,
        )
        return create_error_response(exc.error_detail)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = _request_correlation_id(request)
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=True,
            correlation_id=str(correlation_id),
        )
        detail = create_error_detail(
            error_code=ErrorCode.UNKNOWN_ERROR,
            message="Internal server error",
            service=app.title,
            operation=f"{request.method} {request.url.path}",
            correlation_id=correlation_id,
            details={"error_type": type(exc).__name__},
        )
        return create_error_response(detail)
