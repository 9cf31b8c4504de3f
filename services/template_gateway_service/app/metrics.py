"""Metrics definitions for the Template Gateway Service."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class GatewayMetrics:
    """A container for all Prometheus metrics for the Template Gateway Service."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics with optional registry for test isolation."""
        if registry is None:
            registry = REGISTRY
        self.http_requests_total = Counter(
            "template_gateway_http_requests_total",
            "Total number of HTTP requests for Template Gateway Service.",
            ["method", "endpoint", "http_status"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "template_gateway_http_request_duration_seconds",
            "HTTP request duration in seconds for Template Gateway Service.",
            ["method", "endpoint"],
            registry=registry,
        )
        self.downstream_service_calls_total = Counter(
            "template_gateway_downstream_calls_total",
            "Total number of outbound calls made by the gateway.",
            ["target", "method", "status_code"],
            registry=registry,
        )
        self.downstream_service_call_duration_seconds = Histogram(
            "template_gateway_downstream_call_duration_seconds",
            "Duration of outbound calls in seconds.",
            ["target", "method"],
            registry=registry,
        )
        self.template_invocations_total = Counter(
            "template_gateway_template_invocations_total",
            "Template invocations by template and outcome.",
            ["template", "outcome"],
            registry=registry,
        )
        self.api_errors_total = Counter(
            "template_gateway_api_errors_total",
            "Total number of API errors.",
            ["endpoint", "error_type"],
            registry=registry,
        )
