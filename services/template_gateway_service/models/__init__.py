"""
Data models for Template Gateway Service.

Contains Pydantic models for request templates, permissions, invocation
results, request log entries and domain registration.
"""

from .caller import CallerIdentity
from .domains import GenerateKeyRequest, RegisteredDomain, RegisterDomainRequest
from .invocation import InvocationErrorKind, InvocationResult, InvokeTemplateRequest
from .request_log import GatewayStats, LogEntry
from .templates import (
    LiteralSegment,
    PermissionEntry,
    PlaceholderSegment,
    RequestTemplate,
    TemplateCatalog,
    TemplateSegment,
)

__all__ = [
    "CallerIdentity",
    "GatewayStats",
    "GenerateKeyRequest",
    "InvocationErrorKind",
    "InvocationResult",
    "InvokeTemplateRequest",
    "LiteralSegment",
    "LogEntry",
    "PermissionEntry",
    "PlaceholderSegment",
    "RegisterDomainRequest",
    "RegisteredDomain",
    "RequestTemplate",
    "TemplateCatalog",
    "TemplateSegment",
]
