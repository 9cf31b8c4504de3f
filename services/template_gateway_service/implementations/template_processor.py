"""Placeholder substitution for request templates.

Markers have the form ``<%= dotted.path %>``. A marker whose path cannot be
resolved is left in place verbatim and a warning is logged.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.models import (
    LiteralSegment,
    PlaceholderSegment,
    RequestTemplate,
    TemplateSegment,
)
from services.template_gateway_service.protocols import TemplateProcessorProtocol

logger = create_service_logger("template_gateway.template_processor")

PLACEHOLDER_PATTERN = re.compile(r"<%=\s*([^%]+?)\s*%>")

_MISSING = object()


def parse_template_string(text: str) -> list[TemplateSegment]:
    """Split ``text`` into literal and placeholder segments, in order."""
    segments: list[TemplateSegment] = []
    position = 0
    for match in PLACEHOLDER_PATTERN.finditer(text):
        if match.start() > position:
            segments.append(LiteralSegment(text=text[position : match.start()]))
        segments.append(PlaceholderSegment(raw=match.group(0), expression=match.group(1).strip()))
        position = match.end()
    if position < len(text):
        segments.append(LiteralSegment(text=text[position:]))
    return segments


def _step(current: Any, key: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(key, _MISSING)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        try:
            return current[int(key)]
        except (ValueError, IndexError):
            return _MISSING
    return _MISSING


def resolve_placeholder(path: list[str], context: Any) -> Any:
    """Walk ``path`` through ``context`` and return the value found.

    A leading ``context`` segment names the context object itself unless the
    context has its own ``context`` key. Raises ``LookupError`` when any step
    is missing.
    """
    current = context
    steps = list(path)
    if steps and steps[0] == "context":
        if not (isinstance(context, Mapping) and "context" in context):
            steps = steps[1:]

    for key in steps:
        current = _step(current, key)
        if current is _MISSING:
            raise LookupError(".".join(path))
    return current


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def render_string(text: str, context: Any) -> str:
    parts: list[str] = []
    for segment in parse_template_string(text):
        if isinstance(segment, LiteralSegment):
            parts.append(segment.text)
            continue
        try:
            parts.append(stringify(resolve_placeholder(segment.path, context)))
        except LookupError:
            logger.warning(f"Template variable not found: {segment.expression}")
            parts.append(segment.raw)
    return "".join(parts)


class TemplateProcessorImpl(TemplateProcessorProtocol):
    """Renders every string field of a template against a context."""

    def render(self, template: RequestTemplate, context: Any) -> RequestTemplate:
        rendered = template.model_copy(deep=True)
        if context is None:
            context = {}

        for field in ("method", "protocol", "host", "path"):
            value = getattr(rendered, field)
            if isinstance(value, str):
                setattr(rendered, field, render_string(value, context))

        if rendered.headers is not None:
            rendered.headers = {
                key: render_string(value, context) for key, value in rendered.headers.items()
            }
        if rendered.query is not None:
            rendered.query = {
                key: render_string(value, context) for key, value in rendered.query.items()
            }
        return rendered
