"""Async client for the Template Gateway.

Embedded applications use :class:`GatewayClient` to invoke templates and to
reach the backend through ``/api``. Failed calls are retried per a
:class:`RetryPolicy`; observers receive request, response and error events.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from gateway_service_libs.logging_utils import create_service_logger

logger = create_service_logger("template_gateway.client")

SDK_VERSION = "1.0.0"
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class GatewayClientError(Exception):
    """Raised when a gateway call fails or the gateway reports ``success: false``."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.status_code in RETRYABLE_STATUS_CODES


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    The delay before attempt ``n + 1`` is ``base_delay * multiplier ** (n - 1)``,
    capped at ``max_delay``.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.base_delay, exp_base=self.multiplier, max=self.max_delay
            ),
            retry=retry_if_exception(is_retryable),
            reraise=True,
        )


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    return isinstance(error, GatewayClientError) and error.retryable


@dataclass(frozen=True)
class RequestEvent:
    request_id: str
    method: str
    url: str


@dataclass(frozen=True)
class ResponseEvent:
    request_id: str
    url: str
    status: int
    data: Any
    attempt: int


@dataclass(frozen=True)
class ErrorEvent:
    request_id: str
    url: str
    error: BaseException
    attempts: int


class GatewayClientObserver(Protocol):
    def on_request(self, event: RequestEvent) -> None: ...

    def on_response(self, event: ResponseEvent) -> None: ...

    def on_error(self, event: ErrorEvent) -> None: ...


@dataclass
class _CallState:
    attempts: int = 0
    status: int = 0
    data: Any = None


def _new_request_id() -> str:
    return f"req-{int(time.time() * 1000)}-{secrets.token_hex(5)}"


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("message"):
            return str(data["message"])
        if isinstance(error, str):
            return error
    return "Unknown error"


class GatewayClient:
    """Client for one gateway, usable as an async context manager."""

    def __init__(
        self,
        gateway_url: str,
        *,
        api_key: str | None = None,
        client_domain: str | None = None,
        timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.gateway_url = gateway_url.rstrip("/")
        self.api_key = api_key
        self.client_domain = client_domain
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._observers: list[GatewayClientObserver] = []

    async def __aenter__(self) -> GatewayClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def add_observer(self, observer: GatewayClientObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: GatewayClientObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, method_name: str, event: Any) -> None:
        for observer in list(self._observers):
            try:
                getattr(observer, method_name)(event)
            except Exception as e:
                logger.error(f"Gateway client observer {method_name} failed: {e}", exc_info=True)

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.client_domain:
            headers["X-Client-Domain"] = self.client_domain
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if extra:
            headers.update(extra)
        return headers

    async def _send_once(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Any,
        state: _CallState,
        request_id: str,
    ) -> Any:
        state.attempts += 1
        logger.debug(f"[{request_id}] Gateway request attempt {state.attempts}: {method} {url}")
        kwargs: dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if body is not None and method != "GET":
            if isinstance(body, (str, bytes)):
                kwargs["content"] = body
            else:
                kwargs["json"] = body

        response = await self._client.request(method, url, **kwargs)
        try:
            data = response.json()
        except ValueError:
            data = response.text

        if not response.is_success:
            raise GatewayClientError(
                f"API request failed: {response.status_code} - "
                f"{_error_message(data)}",
                status_code=response.status_code,
                payload=data,
            )
        state.status = response.status_code
        state.data = data
        return data

    async def _execute(
        self,
        method: str,
        url: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        request_id = _new_request_id()
        request_headers = self._headers({"X-Request-ID": request_id, **(headers or {})})
        state = _CallState()
        self._notify("on_request", RequestEvent(request_id=request_id, method=method, url=url))

        try:
            async for attempt in self.retry_policy.retrying():
                with attempt:
                    await self._send_once(method, url, request_headers, body, state, request_id)
        except (httpx.HTTPError, GatewayClientError) as e:
            logger.warning(
                f"[{request_id}] Gateway request failed after {state.attempts} attempt(s): {e}"
            )
            self._notify(
                "on_error",
                ErrorEvent(request_id=request_id, url=url, error=e, attempts=state.attempts),
            )
            raise

        self._notify(
            "on_response",
            ResponseEvent(
                request_id=request_id,
                url=url,
                status=state.status,
                data=state.data,
                attempt=state.attempts,
            ),
        )
        return state.data

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Call ``/api{endpoint}`` through the gateway's backend proxy."""
        return await self._execute(method.upper(), f"{self.gateway_url}/api{endpoint}", body, headers)

    async def get(self, endpoint: str, headers: dict[str, str] | None = None) -> Any:
        return await self.request(endpoint, "GET", headers=headers)

    async def post(self, endpoint: str, body: Any = None, headers: dict[str, str] | None = None) -> Any:
        return await self.request(endpoint, "POST", body, headers)

    async def put(self, endpoint: str, body: Any = None, headers: dict[str, str] | None = None) -> Any:
        return await self.request(endpoint, "PUT", body, headers)

    async def delete(self, endpoint: str, headers: dict[str, str] | None = None) -> Any:
        return await self.request(endpoint, "DELETE", headers=headers)

    async def invoke_template(
        self, name: str, context: dict[str, Any] | None = None, body: Any = None
    ) -> dict[str, Any]:
        """Invoke a declared template; returns the gateway's invocation result."""
        payload = {"templateName": name, "context": context or {}, "body": body}
        try:
            result = await self._execute(
                "POST", f"{self.gateway_url}/gateway/invoke-template", payload
            )
        except GatewayClientError as e:
            if isinstance(e.payload, dict) and "errorKind" in e.payload:
                raise GatewayClientError(
                    str(e.payload.get("error") or e), status_code=e.status_code, payload=e.payload
                ) from e
            raise

        if not isinstance(result, dict) or not result.get("success"):
            message = result.get("error") if isinstance(result, dict) else None
            raise GatewayClientError(message or "Template invocation failed", payload=result)
        return result

    async def get_templates(self) -> dict[str, Any]:
        return await self._execute("GET", f"{self.gateway_url}/gateway/templates")

    async def health_check(self) -> dict[str, Any]:
        return await self._execute("GET", f"{self.gateway_url}/health")

    async def get_gateway_info(self) -> dict[str, Any]:
        return await self._execute("GET", f"{self.gateway_url}/gateway/info")

    async def get_gateway_stats(self) -> dict[str, Any]:
        return await self._execute("GET", f"{self.gateway_url}/gateway/stats")

    async def register_domain(self, metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        """Register ``client_domain`` with the gateway using ``api_key``."""
        if not self.api_key or not self.client_domain:
            raise GatewayClientError("api_key and client_domain are required to register")
        payload = {
            "domain": self.client_domain,
            "apiKey": self.api_key,
            "metadata": {"sdkVersion": SDK_VERSION, **(metadata or {})},
        }
        return await self._execute("POST", f"{self.gateway_url}/gateway/register-domain", payload)
