"""Structured error detail model shared by all error factories."""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .error_enums import ErrorCode


class ErrorDetail(BaseModel):
    """Immutable description of a service error."""

    model_config = ConfigDict(frozen=True)

    error_code: ErrorCode
    message: str
    correlation_id: UUID
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    service: str
    operation: str
    details: dict[str, Any] = Field(default_factory=dict)
    stack_trace: str | None = None


def create_error_detail(
    error_code: ErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID,
    details: dict[str, Any] | None = None,
    capture_stack: bool = False,
) -> ErrorDetail:
    """Build an ErrorDetail, optionally capturing the current stack."""
    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id,
        service=service,
        operation=operation,
        details=details or {},
        stack_trace="".join(traceback.format_stack()) if capture_stack else None,
    )
