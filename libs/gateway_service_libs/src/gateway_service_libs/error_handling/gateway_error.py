"""Core exception carrying a structured ErrorDetail."""

from __future__ import annotations

from typing import Any

from .error_detail import ErrorDetail


class GatewayServiceError(Exception):
    """Exception wrapping an :class:`ErrorDetail`.

    Raised through the ``raise_*`` factories and rendered by the FastAPI
    error handlers as ``{"error": {...}}``.
    """

    def __init__(self, error_detail: ErrorDetail) -> None:
        self.error_detail = error_detail
        super().__init__(f"[{error_detail.error_code.value}] {error_detail.message}")

    @property
    def correlation_id(self) -> str:
        return str(self.error_detail.correlation_id)

    @property
    def error_code(self) -> str:
        return self.error_detail.error_code.value

    @property
    def service(self) -> str:
        return self.error_detail.service

    @property
    def operation(self) -> str:
        return self.error_detail.operation

    def add_detail(self, key: str, value: Any) -> None:
        """Attach an extra detail field (ErrorDetail is frozen, so it is replaced)."""
        details = dict(self.error_detail.details)
        details[key] = value
        self.error_detail = self.error_detail.model_copy(update={"details": details})

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for API responses."""
        return {
            "code": self.error_code,
            "message": self.error_detail.message,
            "correlation_id": self.correlation_id,
            "service": self.service,
            "operation": self.operation,
            "timestamp": self.error_detail.timestamp.isoformat(),
            "details": self.error_detail.details,
        }
