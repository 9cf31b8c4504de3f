"""Configuration utilities for gateway services."""

from .secure_base import Environment, SecureServiceSettings

__all__ = ["Environment", "SecureServiceSettings"]
