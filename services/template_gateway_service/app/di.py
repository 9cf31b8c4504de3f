from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import UUID, uuid4

import httpx
from dishka import Provider, Scope, provide
from fastapi import Request
from prometheus_client import REGISTRY, CollectorRegistry

from services.template_gateway_service.app.metrics import GatewayMetrics
from services.template_gateway_service.config import Settings, settings
from services.template_gateway_service.implementations.backend_proxy import BackendProxyHandler
from services.template_gateway_service.implementations.domain_registry import (
    DomainRegistryImpl,
)
from services.template_gateway_service.implementations.http_client import GatewayHttpClient
from services.template_gateway_service.implementations.permission_registry import (
    ManifestPermissionRegistry,
)
from services.template_gateway_service.implementations.request_log import RequestLogImpl
from services.template_gateway_service.implementations.template_dispatcher import (
    TemplateDispatcherImpl,
)
from services.template_gateway_service.implementations.template_processor import (
    TemplateProcessorImpl,
)
from services.template_gateway_service.implementations.template_store import JsonTemplateStore
from services.template_gateway_service.implementations.template_validator import (
    TemplateValidatorImpl,
)
from services.template_gateway_service.models import CallerIdentity
from services.template_gateway_service.protocols import (
    BackendProxyProtocol,
    DomainRegistryProtocol,
    HttpClientProtocol,
    MetricsProtocol,
    PermissionRegistryProtocol,
    RequestLogProtocol,
    TemplateDispatcherProtocol,
    TemplateProcessorProtocol,
    TemplateStoreProtocol,
    TemplateValidatorProtocol,
)


def build_domain_registry(config: Settings) -> DomainRegistryImpl:
    return DomainRegistryImpl(
        allowed_origins=config.resolved_cors_origins(),
        domain_patterns=config.resolved_domain_patterns(),
        api_keys=config.API_KEYS,
    )


class TemplateGatewayProvider(Provider):
    """APP-scoped components of the gateway.

    ``domain_registry`` is shared with the CORS and auth middleware, which
    are built before the container, so ``create_app`` passes the same instance
    in here.
    """

    scope = Scope.APP

    def __init__(
        self,
        config: Settings | None = None,
        domain_registry: DomainRegistryProtocol | None = None,
        registry: CollectorRegistry | None = None,
    ) -> None:
        super().__init__()
        self._config = config or settings
        self._domain_registry = domain_registry
        self._registry = registry

    @provide
    def get_config(self) -> Settings:
        return self._config

    @provide
    def provide_registry(self) -> CollectorRegistry:
        return self._registry or REGISTRY

    @provide
    def provide_metrics(self, registry: CollectorRegistry) -> MetricsProtocol:
        return GatewayMetrics(registry=registry)

    @provide
    async def get_http_client(self, config: Settings) -> AsyncIterator[HttpClientProtocol]:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(
                config.HTTP_CLIENT_TIMEOUT_SECONDS,
                connect=config.HTTP_CLIENT_CONNECT_TIMEOUT_SECONDS,
            )
        ) as httpx_client:
            yield GatewayHttpClient(httpx_client)

    @provide
    def provide_template_store(self, config: Settings) -> TemplateStoreProtocol:
        store = JsonTemplateStore(config.REQUEST_TEMPLATES_PATH)
        store.load()
        return store

    @provide
    def provide_permission_registry(self, config: Settings) -> PermissionRegistryProtocol:
        registry = ManifestPermissionRegistry(config.MANIFESTS_DIR)
        registry.load(config.APP_ID)
        return registry

    @provide
    def provide_template_processor(self) -> TemplateProcessorProtocol:
        return TemplateProcessorImpl()

    @provide
    def provide_template_validator(
        self, store: TemplateStoreProtocol, registry: PermissionRegistryProtocol
    ) -> TemplateValidatorProtocol:
        return TemplateValidatorImpl(store, registry)

    @provide
    def provide_request_log(self, config: Settings) -> RequestLogProtocol:
        return RequestLogImpl(capacity=config.REQUEST_LOG_CAPACITY)

    @provide
    def provide_domain_registry(self, config: Settings) -> DomainRegistryProtocol:
        return self._domain_registry or build_domain_registry(config)

    @provide
    def provide_dispatcher(
        self,
        validator: TemplateValidatorProtocol,
        processor: TemplateProcessorProtocol,
        http_client: HttpClientProtocol,
        request_log: RequestLogProtocol,
        config: Settings,
        metrics: MetricsProtocol,
    ) -> TemplateDispatcherProtocol:
        return TemplateDispatcherImpl(
            validator=validator,
            processor=processor,
            http_client=http_client,
            request_log=request_log,
            settings=config,
            metrics=metrics,
        )

    @provide
    def provide_backend_proxy(
        self,
        http_client: HttpClientProtocol,
        request_log: RequestLogProtocol,
        config: Settings,
        metrics: MetricsProtocol,
    ) -> BackendProxyProtocol:
        return BackendProxyHandler(
            http_client=http_client,
            request_log=request_log,
            settings=config,
            metrics=metrics,
        )


class RequestContextProvider(Provider):
    """Per-request values set on ``request.state`` by the middleware chain.

    ``Request`` itself comes from dishka's ``FastapiProvider``.
    """

    @provide(scope=Scope.REQUEST)
    def provide_correlation_id(self, request: Request) -> UUID:
        """Provide correlation ID from request state as UUID."""
        return getattr(request.state, "correlation_id", None) or uuid4()

    @provide(scope=Scope.REQUEST)
    def provide_caller(self, request: Request) -> CallerIdentity:
        state = request.state
        return CallerIdentity(
            origin=getattr(state, "origin", None) or request.headers.get("origin"),
            api_key=getattr(state, "api_key", None) or request.headers.get("x-api-key"),
            client_domain=getattr(state, "client_domain", None),
            app_name=getattr(state, "app_name", None),
        )
