"""Async client SDK for the Template Gateway."""

from .gateway_client import (
    ErrorEvent,
    GatewayClient,
    GatewayClientError,
    GatewayClientObserver,
    RequestEvent,
    ResponseEvent,
    RetryPolicy,
)

__all__ = [
    "ErrorEvent",
    "GatewayClient",
    "GatewayClientError",
    "GatewayClientObserver",
    "RequestEvent",
    "ResponseEvent",
    "RetryPolicy",
]
