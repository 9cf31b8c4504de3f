"""
Tests for health and metrics routes in Template Gateway Service.

Tests the /health, /healthz and /metrics endpoints through the full
application with an isolated Prometheus registry.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from services.template_gateway_service.config import Settings


class TestHealthRoutes:
    """Test suite for health check endpoints."""

    def test_health_endpoint_returns_healthy_status(self, client: TestClient) -> None:
        """Health check reports identity, environment and loaded configuration."""
        # Act
        response = client.get("/health")

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "template-gateway-service-test"
        assert data["status"] == "healthy"
        assert data["message"] == "Template Gateway Service is healthy"
        assert data["version"] == "1.0.0"
        assert data["environment"] == "development"
        assert data["backendUrl"] == "http://backend.test"
        assert data["checks"] == {
            "service_responsive": True,
            "templates_loaded": True,
            "manifest_loaded": True,
        }
        assert data["templates"] == {"configured": 6, "declared": 6}

    def test_healthz_alias(self, client: TestClient) -> None:
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_is_public_for_unknown_origins(self, client: TestClient) -> None:
        response = client.get("/health", headers={"Origin": "https://unknown.io"})

        assert response.status_code == 200

    def test_health_reports_missing_configuration(
        self,
        app_factory: Callable[..., FastAPI],
        test_settings: Settings,
        tmp_path: Path,
    ) -> None:
        """Missing template and manifest files still yield a healthy, empty gateway."""
        config = test_settings.model_copy(
            update={
                "REQUEST_TEMPLATES_PATH": tmp_path / "absent.json",
                "MANIFESTS_DIR": tmp_path / "no-manifests",
            }
        )

        with TestClient(app_factory(config)) as client:
            data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["checks"]["templates_loaded"] is False
        assert data["checks"]["manifest_loaded"] is False
        assert data["templates"] == {"configured": 0, "declared": 0}


class TestMetricsRoute:
    """Test suite for the Prometheus metrics endpoint."""

    def test_metrics_endpoint_exposes_gateway_metrics(self, client: TestClient) -> None:
        # Arrange: an invocation resolves and increments the gateway metrics
        client.post("/gateway/invoke-template", json={"templateName": "nope"})

        # Act
        response = client.get("/metrics")

        # Assert
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "template_gateway_template_invocations_total" in response.text
        assert 'outcome="template_not_found"' in response.text

    def test_metrics_endpoint_handles_generation_errors(self, client: TestClient) -> None:
        with patch(
            "services.template_gateway_service.routers.health_routes.generate_latest",
            side_effect=RuntimeError("registry broken"),
        ):
            response = client.get("/metrics")

        assert response.status_code == 500
        assert response.text == "Error generating metrics"
