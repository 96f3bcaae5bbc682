"""Tests for the component registry."""

import pytest
from unittest.mock import MagicMock

from artsite._storage.blob_memory import InMemoryBlobStorage
from artsite.backup.exporters import ExportContext, SettingsExporter
from artsite.backup.registry import ComponentRegistry, default_registry
from artsite.exceptions import ComponentNotFoundError


@pytest.fixture
def context():
    return ExportContext(store=MagicMock(), blobs=InMemoryBlobStorage(), queue=MagicMock())


def test_default_registry_lists_descriptors_only(context):
    registry = default_registry(context)

    listed = registry.list_components()

    assert [c.key for c in listed] == ["artworks", "settings", "profile"]
    assert set(listed[0].model_dump()) == {"key", "name", "description"}


def test_get_unknown_key_returns_none(context):
    registry = default_registry(context)
    assert registry.get("nope") is None
    assert "nope" not in registry


def test_require_unknown_key_raises(context):
    registry = default_registry(context)
    with pytest.raises(ComponentNotFoundError) as exc_info:
        registry.require("nope")
    assert exc_info.value.key == "nope"


def test_register_rejects_duplicates(context):
    registry = ComponentRegistry()
    registry.register(SettingsExporter(context))
    with pytest.raises(ValueError):
        registry.register(SettingsExporter(context))
    assert len(registry) == 1
    assert registry.keys() == ["settings"]
