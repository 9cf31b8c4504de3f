"""
Factory functions raising :class:`GatewayServiceError` with a structured ErrorDetail.

Every factory takes the reporting ``service`` and ``operation`` plus the request
``correlation_id``; extra keyword arguments end up in ``ErrorDetail.details``.
"""

from __future__ import annotations

from typing import Any, NoReturn
from uuid import UUID

from .error_detail import create_error_detail
from .error_enums import ErrorCode
from .gateway_error import GatewayServiceError


def _raise(
    error_code: ErrorCode,
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    details: dict[str, Any],
) -> NoReturn:
    raise GatewayServiceError(
        create_error_detail(
            error_code=error_code,
            message=message,
            service=service,
            operation=operation,
            correlation_id=correlation_id,
            details=details,
        )
    )


def raise_unknown_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(ErrorCode.UNKNOWN_ERROR, service, operation, message, correlation_id, additional_context)


def raise_validation_error(
    service: str,
    operation: str,
    field: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.VALIDATION_ERROR,
        service,
        operation,
        message,
        correlation_id,
        {"field": field, **additional_context},
    )


def raise_resource_not_found(
    service: str,
    operation: str,
    resource_type: str,
    resource_id: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.RESOURCE_NOT_FOUND,
        service,
        operation,
        f"{resource_type} '{resource_id}' not found",
        correlation_id,
        {"resource_type": resource_type, "resource_id": resource_id, **additional_context},
    )


def raise_configuration_error(
    service: str,
    operation: str,
    config_key: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.CONFIGURATION_ERROR,
        service,
        operation,
        message,
        correlation_id,
        {"config_key": config_key, **additional_context},
    )


def raise_authentication_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.AUTHENTICATION_ERROR,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_authorization_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.AUTHORIZATION_ERROR,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_invalid_api_key(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(ErrorCode.INVALID_API_KEY, service, operation, message, correlation_id, additional_context)


def raise_rate_limit_error(
    service: str,
    operation: str,
    limit: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.RATE_LIMIT,
        service,
        operation,
        message,
        correlation_id,
        {"limit": limit, **additional_context},
    )


def raise_timeout_error(
    service: str,
    operation: str,
    timeout_seconds: float,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.TIMEOUT,
        service,
        operation,
        message,
        correlation_id,
        {"timeout_seconds": timeout_seconds, **additional_context},
    )


def raise_connection_error(
    service: str,
    operation: str,
    target: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.CONNECTION_ERROR,
        service,
        operation,
        message,
        correlation_id,
        {"target": target, **additional_context},
    )


def raise_external_service_error(
    service: str,
    operation: str,
    external_service: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        service,
        operation,
        message,
        correlation_id,
        {"external_service": external_service, **additional_context},
    )
