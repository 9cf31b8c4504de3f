"""Startup setup for Template Gateway Service."""

from __future__ import annotations

from dishka import AsyncContainer, Provider, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from gateway_service_libs.logging_utils import configure_service_logging, create_service_logger
from services.template_gateway_service.app.di import (
    RequestContextProvider,
    TemplateGatewayProvider,
)
from services.template_gateway_service.config import Settings
from services.template_gateway_service.protocols import (
    PermissionRegistryProtocol,
    TemplateStoreProtocol,
)

logger = create_service_logger("template_gateway_service.startup")


def configure_logging(config: Settings) -> None:
    configure_service_logging(
        config.SERVICE_NAME,
        environment=config.ENVIRONMENT.value,
        log_level=config.LOG_LEVEL,
    )


def create_di_container(*providers: Provider) -> AsyncContainer:
    """Create and configure the DI container.

    Providers given here are registered after the defaults and override them.
    """
    try:
        logger.info("Creating DI container...")
        container = make_async_container(
            *(providers or (TemplateGatewayProvider(),)),
            RequestContextProvider(),
            FastapiProvider(),  # Provides Request object to context
        )
        logger.info("DI container created successfully")
        return container
    except Exception as e:
        logger.critical(f"Failed to create DI container: {e}", exc_info=True)
        raise


def setup_dependency_injection(app: FastAPI, container: AsyncContainer) -> None:
    """Setup Dishka integration with FastAPI."""
    try:
        logger.info("Setting up dependency injection...")
        setup_dishka(container, app)
        logger.info("Dependency injection setup completed")
    except Exception as e:
        logger.critical(f"Failed to setup dependency injection: {e}", exc_info=True)
        raise


async def load_template_configuration(container: AsyncContainer) -> None:
    """Resolve the template store and permission registry so both load at startup."""
    store = await container.get(TemplateStoreProtocol)
    registry = await container.get(PermissionRegistryProtocol)
    logger.info(
        "Template configuration loaded",
        configured_templates=len(store.names()),
        declared_templates=len(registry.declared_names()),
        application_id=registry.application_id,
    )


async def shutdown_services(container: AsyncContainer) -> None:
    """Gracefully shutdown all services."""
    await container.close()
    logger.info("Template Gateway Service shutdown completed")
