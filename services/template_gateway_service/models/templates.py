"""Request template, permission and placeholder segment models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RequestTemplate(BaseModel):
    """Declarative description of one outbound HTTP request.

    ``method`` and ``host`` are optional at load time so that incomplete
    templates can be reported as malformed by the validator instead of being
    silently dropped from the store.
    """

    model_config = ConfigDict(extra="ignore")

    method: str | None = None
    protocol: str | None = None
    host: str | None = None
    path: str = ""
    headers: dict[str, str] | None = None
    query: dict[str, str] | None = None


class PermissionEntry(BaseModel):
    """Grant for ``application_id`` to invoke ``template_name``."""

    model_config = ConfigDict(frozen=True)

    application_id: str
    template_name: str
    product: str
    declared: bool = True


class LiteralSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class PlaceholderSegment(BaseModel):
    """A ``<%= dotted.path %>`` marker; ``raw`` is the exact source text."""

    model_config = ConfigDict(frozen=True)

    raw: str
    expression: str

    @property
    def path(self) -> list[str]:
        return self.expression.split(".")


TemplateSegment = LiteralSegment | PlaceholderSegment


class TemplateCatalog(BaseModel):
    """Configured, declared and invocable template names."""

    configured: list[str] = Field(default_factory=list)
    declared: list[str] = Field(default_factory=list)
    valid: list[str] = Field(default_factory=list)
