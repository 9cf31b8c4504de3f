"""
Tests for the middleware chain: API key authentication, dynamic CORS,
correlation IDs, development headers and the rate limit key function.
"""

from __future__ import annotations

from types import SimpleNamespace
from uuid import UUID

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from services.template_gateway_service.app.middleware import ApiKeyAuthMiddleware
from services.template_gateway_service.app.rate_limiter import (
    build_default_limit,
    get_api_key_or_address,
)
from services.template_gateway_service.tests.conftest import TEST_API_KEY


@pytest.fixture
def backend(respx_mock: respx.MockRouter) -> respx.Route:
    return respx_mock.get("http://backend.test/api/test").mock(
        return_value=httpx.Response(200, json={"ok": True})
    )


class TestApiKeyAuth:
    @pytest.mark.parametrize(
        "path", ["/health", "/healthz", "/metrics", "/openapi.json", "/gateway/info"]
    )
    def test_public_paths_skip_auth(self, client: TestClient, path: str) -> None:
        response = client.get(path, headers={"Origin": "https://unknown.io"})

        assert response.status_code == 200

    def test_public_path_detection(self) -> None:
        assert ApiKeyAuthMiddleware.is_public_path("/gateway/stats")
        assert not ApiKeyAuthMiddleware.is_public_path("/api/test")
        assert not ApiKeyAuthMiddleware.is_public_path("/gateway")

    def test_configured_origin_needs_no_key(self, client: TestClient, backend: respx.Route) -> None:
        response = client.get("/api/test", headers={"Origin": "http://localhost:3000"})

        assert response.status_code == 200
        assert backend.called

    def test_pattern_origin_needs_no_key(self, client: TestClient, backend: respx.Route) -> None:
        response = client.get("/api/test", headers={"Origin": "https://app.company.com"})

        assert response.status_code == 200

    def test_missing_key_is_rejected(self, client: TestClient, backend: respx.Route) -> None:
        response = client.get("/api/test", headers={"Origin": "https://unknown.io"})

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "AUTHENTICATION_ERROR"
        assert error["message"] == "API key is required for this origin"
        assert error["details"] == {"origin": "https://unknown.io"}
        assert not backend.called

    def test_missing_origin_and_key_is_rejected(self, client: TestClient) -> None:
        response = client.get("/api/test")

        assert response.status_code == 401
        assert response.json()["error"]["details"] == {"origin": "unknown"}

    def test_invalid_key_is_rejected(self, client: TestClient, backend: respx.Route) -> None:
        response = client.get(
            "/api/test", headers={"Origin": "https://unknown.io", "X-API-Key": "bogus"}
        )

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "INVALID_API_KEY"
        assert error["message"] == "The provided API key is not valid"
        assert not backend.called

    def test_rejection_carries_correlation_id(self, client: TestClient) -> None:
        correlation_id = "6f1c3c1e-7a55-4d8f-9d6c-2f0a4b1e9c77"

        response = client.get("/api/test", headers={"X-Correlation-ID": correlation_id})

        assert response.headers["X-Correlation-ID"] == correlation_id
        assert response.json()["error"]["correlation_id"] == correlation_id

    def test_valid_key_registers_origin(self, client: TestClient, backend: respx.Route) -> None:
        response = client.get(
            "/api/test",
            headers={
                "Origin": "https://partner.io",
                "X-API-Key": TEST_API_KEY,
                "X-Client-Domain": "partner.io",
                "User-Agent": "widget/2.0",
            },
        )

        assert response.status_code == 200
        registered = client.get("/gateway/domains").json()["registeredDomains"]
        info = registered["https://partner.io"]
        assert info["app_name"] == "App 1 Development"
        assert info["metadata"]["client_domain"] == "partner.io"
        assert info["metadata"]["user_agent"] == "widget/2.0"
        assert "first_seen" in info["metadata"]

    def test_valid_key_without_origin_registers_nothing(
        self, client: TestClient, backend: respx.Route
    ) -> None:
        response = client.get("/api/test", headers={"X-API-Key": TEST_API_KEY})

        assert response.status_code == 200
        assert client.get("/gateway/domains").json()["registeredDomains"] == {}


class TestCorrelationId:
    def test_generated_when_missing(self, client: TestClient) -> None:
        response = client.get("/health")

        UUID(response.headers["X-Correlation-ID"])

    def test_echoed_when_valid(self, client: TestClient) -> None:
        correlation_id = "0b7b8a0c-1a7e-4c4f-8a49-6a1d3b0f2c11"

        response = client.get("/health", headers={"X-Correlation-ID": correlation_id})

        assert response.headers["X-Correlation-ID"] == correlation_id

    def test_replaced_when_invalid(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Correlation-ID": "not-a-uuid"})

        assert response.headers["X-Correlation-ID"] != "not-a-uuid"
        UUID(response.headers["X-Correlation-ID"])


class TestDynamicCors:
    def test_allowed_origin_gets_cors_headers(self, client: TestClient) -> None:
        response = client.get("/health", headers={"Origin": "http://localhost:3000"})

        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_pattern_origin_gets_cors_headers(self, client: TestClient) -> None:
        response = client.get("/health", headers={"Origin": "https://shop.company.com"})

        assert response.headers["access-control-allow-origin"] == "https://shop.company.com"

    def test_unknown_origin_gets_no_cors_headers(self, client: TestClient) -> None:
        response = client.get("/health", headers={"Origin": "https://evil.io"})

        assert "access-control-allow-origin" not in response.headers

    def test_preflight_for_allowed_origin(self, client: TestClient) -> None:
        response = client.options(
            "/api/test",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-API-Key",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_preflight_for_unknown_origin_is_refused(self, client: TestClient) -> None:
        response = client.options(
            "/api/test",
            headers={"Origin": "https://evil.io", "Access-Control-Request-Method": "GET"},
        )

        assert response.status_code == 400

    def test_registered_domain_becomes_allowed(self, client: TestClient) -> None:
        before = client.get("/health", headers={"Origin": "https://partner.io"})
        assert "access-control-allow-origin" not in before.headers

        client.post(
            "/gateway/register-domain",
            json={"domain": "https://partner.io", "apiKey": TEST_API_KEY},
        )
        after = client.get("/health", headers={"Origin": "https://partner.io"})

        assert after.headers["access-control-allow-origin"] == "https://partner.io"


class TestDevelopmentHeaders:
    def test_development_headers_present(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.headers["X-Gateway-Environment"] == "development"
        assert response.headers["X-Gateway-Dev-Mode"] == "enabled"
        assert response.headers["X-Gateway-CORS-Origins"] == "http://localhost:3000"
        assert response.headers["X-Gateway-Service"] == "template-gateway-service-test"


class TestRateLimitKey:
    @staticmethod
    def _request(state: dict, headers: dict[str, str] | None = None) -> SimpleNamespace:
        return SimpleNamespace(
            state=SimpleNamespace(**state),
            headers=headers or {},
            client=SimpleNamespace(host="10.0.0.5"),
        )

    def test_authenticated_key_from_state(self) -> None:
        request = self._request({"api_key": "k1"})

        assert get_api_key_or_address(request) == "key:k1"

    def test_key_from_header(self) -> None:
        request = self._request({}, {"x-api-key": "k2"})

        assert get_api_key_or_address(request) == "key:k2"

    def test_falls_back_to_client_address(self) -> None:
        assert get_api_key_or_address(self._request({})) == "10.0.0.5"

    def test_default_limit_string(self) -> None:
        assert build_default_limit(1000, 900) == "1000 per 900 seconds"
