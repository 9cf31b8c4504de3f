"""HTTP client implementation for Template Gateway service.

Wraps an ``httpx.AsyncClient`` behind the gateway's HttpClientProtocol, which
returns raw httpx.Response objects rather than parsed content.
"""

from __future__ import annotations

from typing import Any

import httpx

from services.template_gateway_service.protocols import HttpClientProtocol


class GatewayHttpClient(HttpClientProtocol):
    """Outbound HTTP client shared by the dispatcher and the backend proxy."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize the HTTP client.

        Args:
            client: The underlying httpx AsyncClient to use
        """
        self._client = client

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        content: str | bytes | None = None,
        json: Any = None,
        timeout: float | httpx.Timeout | None = None,
    ) -> httpx.Response:
        """Send a request with any method.

        Args:
            method: HTTP method, e.g. ``GET``
            url: Absolute target URL
            headers: Additional HTTP headers (optional)
            params: Query string parameters (optional)
            content: Raw request body (optional)
            json: Body to encode as JSON when ``content`` is not given (optional)
            timeout: Request timeout (optional); the client default applies otherwise

        Returns:
            Raw httpx Response object
        """
        kwargs: dict[str, Any] = {"headers": headers, "params": params}
        if content is not None:
            kwargs["content"] = content
        elif json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout
        return await self._client.request(method, url, **kwargs)
