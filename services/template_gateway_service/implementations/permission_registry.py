"""Manifest-backed permission registry."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from gateway_service_libs.logging_utils import create_service_logger
from services.template_gateway_service.models import PermissionEntry
from services.template_gateway_service.protocols import PermissionRegistryProtocol

logger = create_service_logger("template_gateway.permission_registry")


class ManifestPermissionRegistry(PermissionRegistryProtocol):
    """Records the templates an application declares in ``<app_id>/manifest.json``.

    Manifest shape::

        {"product": {"<product>": {"requests": {"<templateName>": {...}}}}}

    Every key under ``requests`` is a declared template.
    """

    def __init__(self, manifests_dir: Path) -> None:
        self._manifests_dir = manifests_dir
        self._entries: dict[str, PermissionEntry] = {}
        self._application_id: str | None = None

    @property
    def application_id(self) -> str | None:
        return self._application_id

    def load(self, application_id: str) -> None:
        self._application_id = application_id
        self._entries = {}
        manifest_path = self._manifests_dir / application_id / "manifest.json"

        if not manifest_path.exists():
            logger.warning(f"No manifest.json found at {manifest_path}")
            return

        try:
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Error loading manifest for {application_id}: {e}")
            return

        products = manifest.get("product") if isinstance(manifest, dict) else None
        if not isinstance(products, dict):
            logger.warning(f"Manifest for {application_id} has no 'product' section")
            return

        self._record_products(application_id, products)
        logger.info(
            f"Loaded manifest permissions for {len(products)} products from "
            f"{application_id}/manifest.json",
            declared_templates=len(self._entries),
        )

    def _record_products(self, application_id: str, products: dict[str, Any]) -> None:
        for product_name, product_config in products.items():
            requests = product_config.get("requests") if isinstance(product_config, dict) else None
            if not isinstance(requests, dict):
                continue
            for template_name in requests:
                self._entries[template_name] = PermissionEntry(
                    application_id=application_id,
                    template_name=template_name,
                    product=product_name,
                )

    def is_declared(self, name: str) -> bool:
        return name in self._entries

    def declared_names(self) -> list[str]:
        return list(self._entries)

    def entries(self) -> list[PermissionEntry]:
        return list(self._entries.values())
