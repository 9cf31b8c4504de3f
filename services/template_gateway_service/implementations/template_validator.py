"""Template validation against the store and the permission registry."""

from __future__ import annotations

from services.template_gateway_service.exceptions import (
    TemplateMalformedError,
    TemplateNotDeclaredError,
    TemplateNotFoundError,
)
from services.template_gateway_service.models import RequestTemplate, TemplateCatalog
from services.template_gateway_service.protocols import (
    PermissionRegistryProtocol,
    TemplateStoreProtocol,
    TemplateValidatorProtocol,
)

REQUIRED_FIELDS = ("method", "host")


class TemplateValidatorImpl(TemplateValidatorProtocol):
    """Checks, in order: exists, declared, has method, has host."""

    def __init__(
        self, store: TemplateStoreProtocol, registry: PermissionRegistryProtocol
    ) -> None:
        self.store = store
        self.registry = registry

    def validate(self, name: str) -> RequestTemplate:
        template = self.store.get(name)
        if template is None:
            raise TemplateNotFoundError(name)

        if not self.registry.is_declared(name):
            raise TemplateNotDeclaredError(name)

        for field in REQUIRED_FIELDS:
            if not getattr(template, field):
                raise TemplateMalformedError(name, field)

        return template

    def list_templates(self) -> TemplateCatalog:
        configured = self.store.names()
        declared = self.registry.declared_names()
        declared_set = set(declared)
        return TemplateCatalog(
            configured=configured,
            declared=declared,
            valid=[name for name in configured if name in declared_set],
        )
