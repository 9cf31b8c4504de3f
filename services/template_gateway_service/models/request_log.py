"""Request log entry and statistics models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LogEntry(BaseModel):
    """One completed gateway call. ``status`` is None on transport failure."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    request_id: int
    method: str
    path: str
    origin: str | None = None
    api_key: str | None = None
    status: int | None = None
    duration_ms: int | None = None
    timestamp: datetime
    template_name: str | None = None
    error: str | None = None


class GatewayStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_requests: int = 0
    recent_requests: int = 0
    average_response_time: int = 0
    success_rate: int = 0
    top_origins: dict[str, int] = Field(default_factory=dict)
    top_api_keys: dict[str, int] = Field(default_factory=dict)
    status_codes: dict[str, int] = Field(default_factory=dict)
