"""Template invocation: validate, render, send, record."""

from __future__ import annotations

import time
from typing import Any

import httpx

from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.config import Settings
from services.template_gateway_service.exceptions import TemplateGatewayError
from services.template_gateway_service.models import (
    InvocationErrorKind,
    InvocationResult,
    LogEntry,
    RequestTemplate,
)
from services.template_gateway_service.protocols import (
    HttpClientProtocol,
    MetricsProtocol,
    RequestLogProtocol,
    TemplateDispatcherProtocol,
    TemplateProcessorProtocol,
    TemplateValidatorProtocol,
)

logger = create_service_logger("template_gateway.template_dispatcher")

# Raised by httpx for unreachable hosts and for rendered values it cannot send
# (an invalid host or port, non-ASCII header values).
OUTBOUND_ERRORS = (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError)


def build_url(template: RequestTemplate, default_protocol: str) -> str:
    return f"{template.protocol or default_protocol}://{template.host}{template.path}"


def parse_response_body(response: httpx.Response) -> Any:
    """Parsed JSON when possible, otherwise the body text."""
    try:
        return response.json()
    except ValueError:
        return response.text


class TemplateDispatcherImpl(TemplateDispatcherProtocol):
    """Sends a validated, rendered template and records the call in the request log.

    Validation errors are reported without a network call or a log entry.
    Any upstream response, whatever its status, is a success; only transport
    failures produce ``TRANSPORT_FAILURE``.
    """

    def __init__(
        self,
        validator: TemplateValidatorProtocol,
        processor: TemplateProcessorProtocol,
        http_client: HttpClientProtocol,
        request_log: RequestLogProtocol,
        settings: Settings,
        metrics: MetricsProtocol,
    ) -> None:
        self.validator = validator
        self.processor = processor
        self.http_client = http_client
        self.request_log = request_log
        self.settings = settings
        self.metrics = metrics

    async def invoke(
        self,
        template_name: str,
        context: Any = None,
        body: Any = None,
        *,
        origin: str | None = None,
        api_key: str | None = None,
    ) -> InvocationResult:
        try:
            template = self.validator.validate(template_name)
        except TemplateGatewayError as e:
            logger.warning(
                f"Template invocation rejected: {e}",
                template_name=template_name,
                error_kind=e.error_kind.value,
            )
            self.metrics.template_invocations_total.labels(
                template=template_name, outcome=e.error_kind.value.lower()
            ).inc()
            return InvocationResult(success=False, error=str(e), error_kind=e.error_kind)

        rendered = self.processor.render(template, context if context is not None else {})
        url = build_url(rendered, self.settings.DEFAULT_PROTOCOL)
        method = (rendered.method or "GET").upper()
        request_id = self.request_log.next_request_id()

        content: str | bytes | None = None
        json_body: Any = None
        if isinstance(body, (str, bytes)):
            content = body
        elif body is not None:
            json_body = body

        logger.info(f"Invoking template {template_name}: {method} {url}", request_id=request_id)
        start = time.perf_counter()
        try:
            response = await self.http_client.request(
                method,
                url,
                headers=rendered.headers,
                params=rendered.query,
                content=content,
                json=json_body,
                timeout=self.settings.HTTP_CLIENT_TIMEOUT_SECONDS,
            )
        except OUTBOUND_ERRORS as e:
            duration = self._elapsed_ms(start)
            message = str(e) or e.__class__.__name__
            logger.error(
                f"Template {template_name} request failed: {message}",
                request_id=request_id,
                duration_ms=duration,
            )
            self._observe(rendered, method, "error", start)
            self.metrics.template_invocations_total.labels(
                template=template_name, outcome="transport_failure"
            ).inc()
            self._record(
                request_id, method, rendered, template_name, origin, api_key, None, duration, message
            )
            return InvocationResult(
                success=False,
                duration=duration,
                error=message,
                error_kind=InvocationErrorKind.TRANSPORT_FAILURE,
            )

        duration = self._elapsed_ms(start)
        self._observe(rendered, method, str(response.status_code), start)
        self.metrics.template_invocations_total.labels(
            template=template_name, outcome="success"
        ).inc()
        self._record(
            request_id,
            method,
            rendered,
            template_name,
            origin,
            api_key,
            response.status_code,
            duration,
            None,
        )
        logger.info(
            f"Template {template_name} completed with status {response.status_code}",
            request_id=request_id,
            duration_ms=duration,
        )
        return InvocationResult(
            success=True,
            status=response.status_code,
            headers=dict(response.headers),
            data=parse_response_body(response),
            duration=duration,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)

    def _observe(self, template: RequestTemplate, method: str, status: str, start: float) -> None:
        target = template.host or "unknown"
        self.metrics.downstream_service_calls_total.labels(
            target=target, method=method, status_code=status
        ).inc()
        self.metrics.downstream_service_call_duration_seconds.labels(
            target=target, method=method
        ).observe(time.perf_counter() - start)

    def _record(
        self,
        request_id: int,
        method: str,
        template: RequestTemplate,
        template_name: str,
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
                path=template.path or "/",
                origin=origin,
                api_key=api_key,
                status=status,
                duration_ms=duration,
                timestamp=self.request_log.now(),
                template_name=template_name,
                error=error,
            )
        )
