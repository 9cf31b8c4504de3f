"""Unit tests for the gateway client SDK."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import httpx
import pytest
from respx import MockRouter

from services.template_gateway_service.client import (
    ErrorEvent,
    GatewayClient,
    GatewayClientError,
    RequestEvent,
    ResponseEvent,
    RetryPolicy,
)

GATEWAY_URL = "http://gateway.test"
NO_WAIT = RetryPolicy(max_attempts=3, base_delay=0.0)


class RecordingObserver:
    def __init__(self) -> None:
        self.events: list[object] = []

    def on_request(self, event: RequestEvent) -> None:
        self.events.append(event)

    def on_response(self, event: ResponseEvent) -> None:
        self.events.append(event)

    def on_error(self, event: ErrorEvent) -> None:
        self.events.append(event)


@pytest.fixture
async def gateway_client() -> AsyncIterator[GatewayClient]:
    """Client sharing a real httpx client for respx mocking."""
    async with httpx.AsyncClient() as http_client:
        yield GatewayClient(
            GATEWAY_URL,
            api_key="development-key-1",
            client_domain="partner.io",
            retry_policy=NO_WAIT,
            http_client=http_client,
        )


class TestRetryPolicy:
    def test_delays_grow_and_cap(self) -> None:
        policy = RetryPolicy(base_delay=1.0, multiplier=2.0, max_delay=5.0)

        assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]

    def test_at_least_one_attempt(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestInvokeTemplate:
    async def test_success(self, gateway_client: GatewayClient, respx_mock: MockRouter) -> None:
        route = respx_mock.post(f"{GATEWAY_URL}/gateway/invoke-template").mock(
            return_value=httpx.Response(
                200, json={"success": True, "status": 200, "data": {"id": 7}, "duration": 12}
            )
        )

        result = await gateway_client.invoke_template("getUser", {"userId": 7})

        assert result["data"] == {"id": 7}
        sent = route.calls.last.request
        assert json.loads(sent.content) == {
            "templateName": "getUser",
            "context": {"userId": 7},
            "body": None,
        }
        assert sent.headers["X-API-Key"] == "development-key-1"
        assert sent.headers["X-Client-Domain"] == "partner.io"
        assert sent.headers["X-Request-ID"].startswith("req-")

    async def test_rejected_template_raises_with_gateway_message(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        route = respx_mock.post(f"{GATEWAY_URL}/gateway/invoke-template").mock(
            return_value=httpx.Response(
                404,
                json={
                    "success": False,
                    "duration": 0,
                    "error": 'Template "nope" not found in request templates',
                    "errorKind": "TEMPLATE_NOT_FOUND",
                },
            )
        )

        with pytest.raises(GatewayClientError) as exc_info:
            await gateway_client.invoke_template("nope")

        assert str(exc_info.value) == 'Template "nope" not found in request templates'
        assert exc_info.value.status_code == 404
        assert exc_info.value.payload["errorKind"] == "TEMPLATE_NOT_FOUND"
        assert route.call_count == 1

    async def test_unsuccessful_result_raises(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        respx_mock.post(f"{GATEWAY_URL}/gateway/invoke-template").mock(
            return_value=httpx.Response(200, json={"success": False, "error": "odd"})
        )

        with pytest.raises(GatewayClientError, match="odd"):
            await gateway_client.invoke_template("getUser")


class TestRetries:
    async def test_retries_server_errors_then_succeeds(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        route = respx_mock.get(f"{GATEWAY_URL}/api/users").mock(
            side_effect=[
                httpx.Response(503, json={"message": "busy"}),
                httpx.Response(200, json=[{"id": 1}]),
            ]
        )

        result = await gateway_client.get("/users")

        assert result == [{"id": 1}]
        assert route.call_count == 2

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    async def test_client_errors_are_not_retried(
        self, gateway_client: GatewayClient, respx_mock: MockRouter, status: int
    ) -> None:
        route = respx_mock.get(f"{GATEWAY_URL}/api/users").mock(
            return_value=httpx.Response(status, json={"error": {"message": "denied"}})
        )

        with pytest.raises(GatewayClientError) as exc_info:
            await gateway_client.get("/users")

        assert str(exc_info.value) == f"API request failed: {status} - denied"
        assert route.call_count == 1

    async def test_transport_errors_exhaust_attempts(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        route = respx_mock.get(f"{GATEWAY_URL}/api/users").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(httpx.ConnectError):
            await gateway_client.get("/users")

        assert route.call_count == 3


class TestObservers:
    async def test_one_request_and_one_response_event(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        respx_mock.get(f"{GATEWAY_URL}/api/users").mock(
            side_effect=[httpx.Response(502), httpx.Response(200, json={"ok": True})]
        )
        observer = RecordingObserver()
        gateway_client.add_observer(observer)

        await gateway_client.get("/users")

        request_event, response_event = observer.events
        assert isinstance(request_event, RequestEvent)
        assert request_event.method == "GET"
        assert request_event.url == f"{GATEWAY_URL}/api/users"
        assert isinstance(response_event, ResponseEvent)
        assert response_event.request_id == request_event.request_id
        assert response_event.status == 200
        assert response_event.attempt == 2

    async def test_one_error_event_after_final_failure(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        respx_mock.get(f"{GATEWAY_URL}/api/users").mock(return_value=httpx.Response(500))
        observer = RecordingObserver()
        gateway_client.add_observer(observer)

        with pytest.raises(GatewayClientError):
            await gateway_client.get("/users")

        request_event, error_event = observer.events
        assert isinstance(error_event, ErrorEvent)
        assert error_event.attempts == 3
        assert isinstance(error_event.error, GatewayClientError)

    async def test_failing_observer_does_not_break_the_call(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        respx_mock.get(f"{GATEWAY_URL}/api/users").mock(return_value=httpx.Response(200, json=[]))

        class Broken:
            def on_request(self, event: RequestEvent) -> None:
                raise RuntimeError("observer bug")

            def on_response(self, event: ResponseEvent) -> None:
                raise RuntimeError("observer bug")

            def on_error(self, event: ErrorEvent) -> None:
                raise RuntimeError("observer bug")

        recorder = RecordingObserver()
        gateway_client.add_observer(Broken())
        gateway_client.add_observer(recorder)

        assert await gateway_client.get("/users") == []
        assert len(recorder.events) == 2

    async def test_removed_observer_is_not_notified(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        respx_mock.get(f"{GATEWAY_URL}/health").mock(return_value=httpx.Response(200, json={}))
        observer = RecordingObserver()
        gateway_client.add_observer(observer)
        gateway_client.remove_observer(observer)

        await gateway_client.health_check()

        assert observer.events == []


class TestEndpoints:
    async def test_proxy_methods_use_api_prefix(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        post = respx_mock.post(f"{GATEWAY_URL}/api/items").mock(
            return_value=httpx.Response(201, json={"id": 1})
        )
        put = respx_mock.put(f"{GATEWAY_URL}/api/items/1").mock(
            return_value=httpx.Response(200, json={"id": 1})
        )
        delete = respx_mock.delete(f"{GATEWAY_URL}/api/items/1").mock(
            return_value=httpx.Response(204)
        )

        await gateway_client.post("/items", {"name": "a"})
        await gateway_client.put("/items/1", {"name": "b"})
        await gateway_client.delete("/items/1")

        assert json.loads(post.calls.last.request.content) == {"name": "a"}
        assert json.loads(put.calls.last.request.content) == {"name": "b"}
        assert delete.called

    async def test_management_endpoints(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        respx_mock.get(f"{GATEWAY_URL}/gateway/templates").mock(
            return_value=httpx.Response(200, json={"templates": {"valid": ["getUser"]}})
        )
        respx_mock.get(f"{GATEWAY_URL}/gateway/info").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        respx_mock.get(f"{GATEWAY_URL}/gateway/stats").mock(
            return_value=httpx.Response(200, json={"stats": {"totalRequests": 3}})
        )

        assert (await gateway_client.get_templates())["templates"]["valid"] == ["getUser"]
        assert (await gateway_client.get_gateway_info())["success"] is True
        assert (await gateway_client.get_gateway_stats())["stats"]["totalRequests"] == 3

    async def test_register_domain(
        self, gateway_client: GatewayClient, respx_mock: MockRouter
    ) -> None:
        route = respx_mock.post(f"{GATEWAY_URL}/gateway/register-domain").mock(
            return_value=httpx.Response(200, json={"success": True})
        )

        await gateway_client.register_domain({"team": "support"})

        assert json.loads(route.calls.last.request.content) == {
            "domain": "partner.io",
            "apiKey": "development-key-1",
            "metadata": {"sdkVersion": "1.0.0", "team": "support"},
        }

    async def test_register_domain_requires_credentials(self, respx_mock: MockRouter) -> None:
        async with GatewayClient(GATEWAY_URL) as client:
            with pytest.raises(GatewayClientError):
                await client.register_domain()

        assert len(respx_mock.calls) == 0

    async def test_trailing_slash_in_gateway_url(self, respx_mock: MockRouter) -> None:
        route = respx_mock.get(f"{GATEWAY_URL}/health").mock(
            return_value=httpx.Response(200, json={"status": "healthy"})
        )

        async with GatewayClient(f"{GATEWAY_URL}/", retry_policy=NO_WAIT) as client:
            result = await client.health_check()

        assert result == {"status": "healthy"}
        assert route.called
