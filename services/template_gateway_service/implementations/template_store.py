"""JSON-file backed request template store."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.models import RequestTemplate
from services.template_gateway_service.protocols import TemplateStoreProtocol

logger = create_service_logger("template_gateway.template_store")


class JsonTemplateStore(TemplateStoreProtocol):
    """Loads ``{name: {method, protocol?, host, path?, headers?, query?}}`` from a JSON file.

    A missing or malformed file leaves the store empty and logs a warning;
    every lookup then reports "not found".
    """

    def __init__(self, source_path: Path) -> None:
        self._source_path = source_path
        self._templates: dict[str, RequestTemplate] = {}
        self._loaded = False

    @property
    def source_path(self) -> Path:
        return self._source_path

    def load(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if not self._source_path.exists():
            logger.warning(f"No request templates found at {self._source_path}")
            return

        try:
            raw = json.loads(self._source_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Error loading request templates from {self._source_path}: {e}")
            return

        if not isinstance(raw, dict):
            logger.warning(
                f"Request templates at {self._source_path} must be a JSON object, "
                f"got {type(raw).__name__}"
            )
            return

        for name, config in raw.items():
            try:
                self._templates[name] = RequestTemplate.model_validate(config)
            except ValidationError as e:
                logger.warning(f"Skipping invalid request template '{name}': {e}")

        logger.info(
            f"Loaded {len(self._templates)} request templates from {self._source_path}"
        )

    def get(self, name: str) -> RequestTemplate | None:
        return self._templates.get(name)

    def names(self) -> list[str]:
        return list(self._templates)
