"""Identity of the caller as established by the authentication middleware."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CallerIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin: str | None = None
    api_key: str | None = None
    client_domain: str | None = None
    app_name: str | None = None
