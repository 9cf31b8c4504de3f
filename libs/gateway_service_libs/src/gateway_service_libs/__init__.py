"""
Gateway Service Libraries Package.

Shared utilities used by the template gateway service and its client SDK:
structured logging, settings base classes and structured error handling.
"""

from .logging_utils import configure_service_logging, create_service_logger

__all__ = ["configure_service_logging", "create_service_logger"]

# Framework-specific error handlers should be imported directly from:
# - gateway_service_libs.error_handling.fastapi
