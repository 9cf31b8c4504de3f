"""Template invocation request/result models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InvocationErrorKind(str, Enum):
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_NOT_DECLARED = "TEMPLATE_NOT_DECLARED"
    TEMPLATE_MALFORMED = "TEMPLATE_MALFORMED"
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"


class InvocationResult(BaseModel):
    """Outcome of one template invocation.

    Any received upstream response is a success, whatever its status code;
    only validation errors and transport failures set ``success=False``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    status: int | None = None
    headers: dict[str, str] | None = None
    data: Any = None
    duration: int = Field(default=0, description="Elapsed milliseconds")
    error: str | None = None
    error_kind: InvocationErrorKind | None = None

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class InvokeTemplateRequest(BaseModel):
    """Body of ``POST /gateway/invoke-template``."""

    template_name: str = Field(
        min_length=1, validation_alias=AliasChoices("templateName", "template_name")
    )
    context: dict[str, Any] = Field(default_factory=dict)
    body: Any = None
