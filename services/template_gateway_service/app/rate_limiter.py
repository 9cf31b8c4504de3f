from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from services.template_gateway_service.config import settings


def get_api_key_or_address(request: Request) -> str:
    # api_key is set on request.state by ApiKeyAuthMiddleware
    api_key = getattr(request.state, "api_key", None) or request.headers.get("x-api-key")
    if api_key:
        return f"key:{api_key}"
    return get_remote_address(request)


def build_default_limit(requests: int, window_seconds: int) -> str:
    return f"{requests} per {window_seconds} seconds"


limiter: Limiter
if settings.RATE_LIMIT_STORAGE_URI:
    # Shared storage (e.g. Redis) for multi-instance deployments
    limiter = Limiter(
        key_func=get_api_key_or_address,
        default_limits=[build_default_limit(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW)],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    )
else:
    limiter = Limiter(
        key_func=get_api_key_or_address,
        default_limits=[build_default_limit(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW)],
    )
