"""Transparent ``/api/*`` relay to the configured backend."""

from __future__ import annotations

import time
from uuid import UUID, uuid4

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from gateway_service_libs.error_handling import raise_connection_error, raise_timeout_error
from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.config import Settings
from services.template_gateway_service.implementations.request_log import (
    NO_API_KEY,
    UNKNOWN_ORIGIN,
)
from services.template_gateway_service.models import LogEntry
from services.template_gateway_service.protocols import (
    BackendProxyProtocol,
    HttpClientProtocol,
    MetricsProtocol,
    RequestLogProtocol,
)

logger = create_service_logger("template_gateway.backend_proxy")

USER_AGENT = "Template-Gateway/1.0.0"
SKIPPED_RESPONSE_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})
CUSTOM_HEADER_PREFIX = "x-custom-"


def prepare_headers(request: Request) -> dict[str, str]:
    """Headers sent upstream: gateway identity, forwarding info and pass-through auth."""
    state = request.state
    origin = getattr(state, "origin", None) or request.headers.get("origin")
    api_key = getattr(state, "api_key", None) or request.headers.get("x-api-key")
    client_domain = getattr(state, "client_domain", None) or request.headers.get(
        "x-client-domain"
    )

    headers = {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
        "X-Forwarded-For": request.client.host if request.client else "",
        "X-Forwarded-Proto": request.url.scheme,
        "X-Forwarded-Host": request.headers.get("host", ""),
        "X-Gateway-Origin": origin or UNKNOWN_ORIGIN,
        "X-Gateway-API-Key": api_key or NO_API_KEY,
    }
    headers["X-Gateway-Client-Domain"] = client_domain or origin or UNKNOWN_ORIGIN
    if authorization := request.headers.get("authorization"):
        headers["Authorization"] = authorization

    for name, value in request.headers.items():
        if name.lower().startswith(CUSTOM_HEADER_PREFIX):
            headers[name] = value

    return headers


class BackendProxyHandler(BackendProxyProtocol):
    """Relays a request to ``BACKEND_URL`` and logs it in the shared request log."""

    def __init__(
        self,
        http_client: HttpClientProtocol,
        request_log: RequestLogProtocol,
        settings: Settings,
        metrics: MetricsProtocol,
    ) -> None:
        self.http_client = http_client
        self.request_log = request_log
        self.settings = settings
        self.metrics = metrics

    async def proxy(self, request: Request) -> Response:
        request_id = self.request_log.next_request_id()
        gateway_request_id = f"req-{request_id}-{int(time.time() * 1000)}"
        path = request.url.path
        target_url = f"{self.settings.BACKEND_URL.rstrip('/')}{path}"
        method = request.method
        origin = getattr(request.state, "origin", None) or request.headers.get("origin")
        api_key = getattr(request.state, "api_key", None) or request.headers.get("x-api-key")
        correlation_id = getattr(request.state, "correlation_id", None)
        if not isinstance(correlation_id, UUID):
            correlation_id = uuid4()

        body = await request.body()
        logger.info(
            f"Proxying {method} {path} to {self.settings.BACKEND_URL}",
            request_id=gateway_request_id,
        )

        start = time.perf_counter()
        try:
            upstream = await self.http_client.request(
                method,
                target_url,
                headers=prepare_headers(request),
                params=dict(request.query_params),
                content=body or None,
                timeout=self.settings.HTTP_CLIENT_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as e:
            duration = int((time.perf_counter() - start) * 1000)
            message = str(e) or e.__class__.__name__
            self._record(request_id, method, path, origin, api_key, None, duration, message)
            self._observe(method, "error", start)
            logger.error(
                f"Proxy error for {method} {path}: {message}",
                request_id=gateway_request_id,
                duration_ms=duration,
            )
            if isinstance(e, httpx.TimeoutException):
                raise_timeout_error(
                    service=self.settings.SERVICE_NAME,
                    operation="proxy_request",
                    timeout_seconds=self.settings.HTTP_CLIENT_TIMEOUT_SECONDS,
                    message=f"Backend request timed out: {message}",
                    correlation_id=correlation_id,
                    target=target_url,
                )
            raise_connection_error(
                service=self.settings.SERVICE_NAME,
                operation="proxy_request",
                target=self.settings.BACKEND_URL,
                message=f"Backend request failed: {message}",
                correlation_id=correlation_id,
            )

        duration = int((time.perf_counter() - start) * 1000)
        self._record(request_id, method, path, origin, api_key, upstream.status_code, duration, None)
        self._observe(method, str(upstream.status_code), start)
        logger.info(
            f"Proxy response {upstream.status_code} for {method} {path} ({duration}ms)",
            request_id=gateway_request_id,
        )

        try:
            data = upstream.json()
        except ValueError:
            data = {"data": upstream.text}

        response = JSONResponse(status_code=upstream.status_code, content=data)
        for name, value in upstream.headers.items():
            if name.lower() in SKIPPED_RESPONSE_HEADERS or name.lower() == "content-type":
                continue
            response.headers[name] = value
        response.headers["X-Gateway-Request-ID"] = gateway_request_id
        response.headers["X-Gateway-Duration"] = f"{duration}ms"
        response.headers["X-Proxied-From"] = self.settings.BACKEND_URL
        return response

    def _observe(self, method: str, status: str, start: float) -> None:
        self.metrics.downstream_service_calls_total.labels(
            target="backend", method=method, status_code=status
        ).inc()
        self.metrics.downstream_service_call_duration_seconds.labels(
            target="backend", method=method
        ).observe(time.perf_counter() - start)

    def _record(
        self,
        request_id: int,
        method: str,
        path: str,
        origin: str | None,
        api_key: str | None,
        status: int | None,
        duration: int,
        error: str | None,
    ) -> None:
        self.request_log.record(
            LogEntry(
                request_id=request_id,
                method=method,
                path=path,
                origin=origin,
                api_key=api_key,
                status=status,
                duration_ms=duration,
                timestamp=self.request_log.now(),
                error=error,
            )
        )
