"""CORS utilities for environment-specific origin management.

Provides the per-environment allow-lists and wildcard origin patterns used
when the service settings do not override them.
"""

_BASE_ORIGINS: dict[str, list[str]] = {
    "development": [
        "http://localhost:3000",  # App 1
        "http://localhost:3001",  # App 2
        "http://localhost:3002",  # Widget / alternative port
    ],
    "staging": [
        "https://app1-staging.company.com",
        "https://widget-staging.company.com",
    ],
    "production": [
        "https://app1.company.com",
        "https://widget.company.com",
    ],
}

_DOMAIN_PATTERNS: dict[str, list[str]] = {
    "development": ["http://localhost:*"],
    "staging": ["https://*-staging.company.com"],
    "production": ["https://*.company.com", "https://*.trusted-partner.com"],
}


def get_cors_origins_for_environment(
    env_type: str, custom_origins: list[str] | None = None
) -> list[str]:
    """Get CORS origins based on environment type.

    Args:
        env_type: Environment type (development, staging, production)
        custom_origins: Additional origins to include

    Returns:
        List of allowed CORS origins for the specified environment

    Example:
        >>> get_cors_origins_for_environment("development")
        ['http://localhost:3000', 'http://localhost:3001', 'http://localhost:3002']

        >>> get_cors_origins_for_environment("production", ["https://custom.domain.com"])
        ['https://app1.company.com', 'https://widget.company.com', 'https://custom.domain.com']
    """
    # Default to development if environment not recognized; copy so callers can extend
    origins = list(_BASE_ORIGINS.get(env_type.lower(), _BASE_ORIGINS["development"]))

    if custom_origins:
        origins.extend(custom_origins)

    # Remove duplicates while preserving order
    return list(dict.fromkeys(origins))


def get_domain_patterns_for_environment(env_type: str) -> list[str]:
    """Get wildcard origin patterns (``*`` matches one DNS label or port)."""
    return list(_DOMAIN_PATTERNS.get(env_type.lower(), _DOMAIN_PATTERNS["development"]))


def get_development_cors_headers(cors_origins: list[str]) -> dict[str, str]:
    """Get development-specific CORS debug headers."""
    return {
        "X-Gateway-Environment": "development",
        "X-Gateway-Dev-Mode": "enabled",
        "X-Gateway-CORS-Origins": ",".join(cors_origins),
    }
