"""
Shared test configuration for Template Gateway Service.

Builds settings that point at per-test template and manifest files, an
isolated Prometheus registry, and an application wired through the real
providers (outbound HTTP is intercepted with respx).
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from services.template_gateway_service.app.metrics import GatewayMetrics
from services.template_gateway_service.config import Settings

SAMPLE_TEMPLATES: dict[str, Any] = {
    "getUser": {
        "method": "GET",
        "protocol": "http",
        "host": "backend.test",
        "path": "/api/users/<%= context.userId %>",
        "headers": {"Authorization": "Bearer <%= context.apiKey %>"},
    },
    "searchTickets": {
        "method": "GET",
        "host": "support.test",
        "path": "/tickets",
        "query": {"status": "<%= context.status %>"},
    },
    "createTicket": {
        "method": "POST",
        "host": "support.test",
        "path": "/tickets",
        "headers": {"Content-Type": "application/json"},
    },
    "undeclared": {"method": "GET", "host": "backend.test", "path": "/secret"},
    "missingMethod": {"host": "backend.test", "path": "/broken"},
    "missingHost": {"method": "GET", "path": "/broken"},
}

SAMPLE_MANIFEST: dict[str, Any] = {
    "product": {
        "support_widget": {
            "requests": {
                "getUser": {},
                "searchTickets": {},
                "createTicket": {},
                "missingMethod": {},
                "missingHost": {},
                "declaredOnly": {},
            }
        }
    }
}

TEST_API_KEY = "development-key-1"


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def templates_path(tmp_path: Path) -> Path:
    return write_json(tmp_path / "request_templates" / "requests.json", SAMPLE_TEMPLATES)


@pytest.fixture
def manifests_dir(tmp_path: Path) -> Path:
    write_json(tmp_path / "manifests" / "app2" / "manifest.json", SAMPLE_MANIFEST)
    return tmp_path / "manifests"


@pytest.fixture
def test_settings(templates_path: Path, manifests_dir: Path) -> Settings:
    return Settings(
        SERVICE_NAME="template-gateway-service-test",
        ENVIRONMENT="development",
        REQUEST_TEMPLATES_PATH=templates_path,
        MANIFESTS_DIR=manifests_dir,
        APP_ID="app2",
        BACKEND_URL="http://backend.test",
        CORS_ORIGINS=["http://localhost:3000"],
        DOMAIN_PATTERNS=["https://*.company.com"],
        API_KEYS={TEST_API_KEY: "App 1 Development"},
    )


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """Fresh Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def gateway_metrics(metrics_registry: CollectorRegistry) -> GatewayMetrics:
    return GatewayMetrics(registry=metrics_registry)


@pytest.fixture(autouse=True)
def _disable_rate_limiter(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "services.template_gateway_service.app.rate_limiter.limiter.enabled", False
    )


@pytest.fixture
def app_factory(
    test_settings: Settings, metrics_registry: CollectorRegistry
) -> Callable[..., FastAPI]:
    from services.template_gateway_service.app.main import create_app

    def _build(config: Settings | None = None, providers: tuple = ()) -> FastAPI:
        return create_app(config or test_settings, registry=metrics_registry, providers=providers)

    return _build


@pytest.fixture
def client(app_factory: Callable[..., FastAPI]) -> Iterator[TestClient]:
    with TestClient(app_factory()) as test_client:
        yield test_client
