"""Domain registration models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class RegisteredDomain(BaseModel):
    domain: str
    api_key: str
    registered_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class RegisterDomainRequest(BaseModel):
    """Body of ``POST /gateway/register-domain``; missing fields are reported by the route."""

    domain: str | None = None
    api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("apiKey", "api_key")
    )
    metadata: dict[str, Any] = Field(default_factory=dict)


class GenerateKeyRequest(BaseModel):
    prefix: str = "sdk"
    description: str | None = None
