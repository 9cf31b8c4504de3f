"""Tests for manifest-backed template permissions."""

from __future__ import annotations

from pathlib import Path

from services.template_gateway_service.implementations.permission_registry import (
    ManifestPermissionRegistry,
)
from services.template_gateway_service.tests.conftest import write_json


def test_records_every_declared_request(manifests_dir: Path) -> None:
    registry = ManifestPermissionRegistry(manifests_dir)
    registry.load("app2")

    assert registry.application_id == "app2"
    assert registry.is_declared("getUser")
    assert registry.is_declared("declaredOnly")
    assert not registry.is_declared("undeclared")
    entry = next(e for e in registry.entries() if e.template_name == "getUser")
    assert entry.product == "support_widget"
    assert entry.application_id == "app2"
    assert entry.declared is True


def test_multiple_products_are_merged(tmp_path: Path) -> None:
    write_json(
        tmp_path / "app1" / "manifest.json",
        {
            "product": {
                "dashboard": {"requests": {"a": {}}},
                "reports": {"requests": {"b": {}}},
                "noRequests": {"location": "x"},
            }
        },
    )
    registry = ManifestPermissionRegistry(tmp_path)
    registry.load("app1")

    assert sorted(registry.declared_names()) == ["a", "b"]


def test_missing_manifest_gives_empty_registry(tmp_path: Path) -> None:
    registry = ManifestPermissionRegistry(tmp_path)
    registry.load("ghost")

    assert registry.declared_names() == []
    assert not registry.is_declared("getUser")


def test_malformed_manifest_gives_empty_registry(tmp_path: Path) -> None:
    manifest = tmp_path / "app1" / "manifest.json"
    manifest.parent.mkdir(parents=True)
    manifest.write_text("{", encoding="utf-8")
    registry = ManifestPermissionRegistry(tmp_path)
    registry.load("app1")

    assert registry.entries() == []


def test_manifest_without_product_section(tmp_path: Path) -> None:
    write_json(tmp_path / "app1" / "manifest.json", {"name": "app1"})
    registry = ManifestPermissionRegistry(tmp_path)
    registry.load("app1")

    assert registry.declared_names() == []
