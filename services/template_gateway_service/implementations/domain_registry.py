"""Dynamic CORS domain registry and API key helpers."""

from __future__ import annotations

import re
import secrets
import threading
import time
from datetime import UTC, datetime
from typing import Any

from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.models import RegisteredDomain
from services.template_gateway_service.protocols import DomainRegistryProtocol

logger = create_service_logger("template_gateway.domain_registry")

UNKNOWN_APPLICATION = "Unknown"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_DEVELOPMENT_KEY = re.compile(r"^development-key-\d+$")
_GENERATED_KEY = re.compile(r"^[a-z]+-[a-z0-9]+-[a-z0-9]+$")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_api_key(prefix: str = "sdk") -> str:
    """Return ``<prefix>-<base36 epoch ms>-<random base36>``."""
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"{prefix}-{timestamp}-{random_part}"


def is_valid_api_key_format(api_key: str | None) -> bool:
    if not api_key:
        return False
    return bool(_DEVELOPMENT_KEY.match(api_key) or _GENERATED_KEY.match(api_key))


def compile_domain_pattern(pattern: str) -> re.Pattern[str]:
    """``*`` matches any run of non-dot characters; the match is anchored."""
    regex = re.escape(pattern).replace(r"\*", "[^.]*")
    return re.compile(f"^{regex}$")


class DomainRegistryImpl(DomainRegistryProtocol):
    """Origin allow-list plus domains registered at runtime with a valid API key."""

    def __init__(
        self,
        allowed_origins: list[str],
        domain_patterns: list[str],
        api_keys: dict[str, str],
    ) -> None:
        self._allowed_origins = list(allowed_origins)
        self._domain_patterns = list(domain_patterns)
        self._compiled_patterns = [compile_domain_pattern(p) for p in self._domain_patterns]
        self._api_keys = dict(api_keys)
        self._registered: dict[str, RegisteredDomain] = {}
        self._lock = threading.Lock()

    @property
    def allowed_origins(self) -> list[str]:
        return list(self._allowed_origins)

    @property
    def domain_patterns(self) -> list[str]:
        return list(self._domain_patterns)

    def is_configured_origin(self, origin: str | None) -> bool:
        return origin is not None and origin in self._allowed_origins

    def matches_pattern(self, origin: str | None) -> bool:
        if not origin:
            return False
        return any(pattern.match(origin) for pattern in self._compiled_patterns)

    def is_registered(self, origin: str | None) -> bool:
        if not origin:
            return False
        with self._lock:
            return origin in self._registered

    def is_origin_allowed(self, origin: str | None) -> bool:
        # Same-origin and non-browser requests carry no Origin header
        if not origin:
            return True
        return (
            self.is_configured_origin(origin)
            or self.is_registered(origin)
            or self.matches_pattern(origin)
        )

    def validate_api_key(self, api_key: str | None) -> bool:
        return api_key is not None and api_key in self._api_keys

    def get_api_key_info(self, api_key: str | None) -> str:
        if api_key is None:
            return UNKNOWN_APPLICATION
        return self._api_keys.get(api_key, UNKNOWN_APPLICATION)

    def register_domain(
        self, domain: str, api_key: str, metadata: dict[str, Any] | None = None
    ) -> bool:
        if not self.validate_api_key(api_key):
            logger.warning(f"Rejected domain registration for {domain}: invalid API key")
            return False

        registration = RegisteredDomain(
            domain=domain,
            api_key=api_key,
            registered_at=datetime.now(UTC),
            metadata=dict(metadata or {}),
        )
        with self._lock:
            self._registered[domain] = registration
        logger.info(
            f"Registered domain {domain} for {self.get_api_key_info(api_key)}",
            domain=domain,
        )
        return True

    def unregister_domain(self, domain: str) -> bool:
        with self._lock:
            removed = self._registered.pop(domain, None)
        if removed is not None:
            logger.info(f"Unregistered domain {domain}")
        return removed is not None

    def get_registered_domains(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            registrations = list(self._registered.values())
        return {
            registration.domain: {
                "app_name": self.get_api_key_info(registration.api_key),
                "registered_at": registration.registered_at.isoformat(),
                "metadata": registration.metadata,
            }
            for registration in registrations
        }
