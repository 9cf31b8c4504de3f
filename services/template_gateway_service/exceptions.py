"""Service-specific exceptions for Template Gateway Service."""

from gateway_service_libs.error_handling import ErrorCode

from services.template_gateway_service.models import InvocationErrorKind


class TemplateGatewayError(Exception):
    """Base exception for template validation failures."""

    error_kind: InvocationErrorKind

    def __init__(
        self, template_name: str, message: str, error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    ):
        self.template_name = template_name
        self.error_code = error_code
        super().__init__(message)


class TemplateNotFoundError(TemplateGatewayError):
    """Raised when the template store has no entry for the requested name."""

    error_kind = InvocationErrorKind.TEMPLATE_NOT_FOUND

    def __init__(self, template_name: str):
        super().__init__(
            template_name,
            f'Template "{template_name}" not found in request templates',
            ErrorCode.RESOURCE_NOT_FOUND,
        )


class TemplateNotDeclaredError(TemplateGatewayError):
    """Raised when the calling application's manifest does not declare the template."""

    error_kind = InvocationErrorKind.TEMPLATE_NOT_DECLARED

    def __init__(self, template_name: str):
        super().__init__(
            template_name,
            f'Template "{template_name}" not declared in manifest.json',
            ErrorCode.AUTHORIZATION_ERROR,
        )


class TemplateMalformedError(TemplateGatewayError):
    """Raised when a stored template lacks a required field."""

    error_kind = InvocationErrorKind.TEMPLATE_MALFORMED

    def __init__(self, template_name: str, missing_field: str):
        self.missing_field = missing_field
        super().__init__(
            template_name,
            f'Template "{template_name}" missing required field: {missing_field}',
            ErrorCode.INVALID_CONFIGURATION,
        )
