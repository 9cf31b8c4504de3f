"""Base settings class shared by gateway services."""

from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Defines application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class SecureServiceSettings(BaseSettings):
    """Common settings with environment helpers.

    Services subclass this and add their own ``model_config`` with an
    ``env_prefix``. ``ENVIRONMENT`` is read from the unprefixed global variable.
    """

    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias="ENVIRONMENT",
        description="Runtime environment for the service",
    )

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_staging(self) -> bool:
        return self.ENVIRONMENT == Environment.STAGING

    def is_testing(self) -> bool:
        return self.ENVIRONMENT == Environment.TESTING
