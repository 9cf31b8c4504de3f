"""Structured error handling for gateway services."""

from .error_detail import ErrorDetail, create_error_detail
from .error_enums import ErrorCode
from .factories import (
    raise_authentication_error,
    raise_authorization_error,
    raise_configuration_error,
    raise_connection_error,
    raise_external_service_error,
    raise_invalid_api_key,
    raise_rate_limit_error,
    raise_resource_not_found,
    raise_timeout_error,
    raise_unknown_error,
    raise_validation_error,
)
from .gateway_error import GatewayServiceError

__all__ = [
    "ErrorCode",
    "ErrorDetail",
    "GatewayServiceError",
    "create_error_detail",
    "raise_authentication_error",
    "raise_authorization_error",
    "raise_configuration_error",
    "raise_connection_error",
    "raise_external_service_error",
    "raise_invalid_api_key",
    "raise_rate_limit_error",
    "raise_resource_not_found",
    "raise_timeout_error",
    "raise_unknown_error",
    "raise_validation_error",
]
