"""Registry of restorable components."""

from typing import Dict, List, Optional

from ..exceptions import ComponentNotFoundError
from .exporters import (
    ArtworksExporter,
    BaseExporter,
    ExportContext,
    ProfileExporter,
    SettingsExporter,
)
from .models import ComponentInfo


class ComponentRegistry:
    """Closed set of exporters keyed by component key.

    Registration order is the order components are listed to clients.
    """

    def __init__(self):
        self._exporters: Dict[str, BaseExporter] = {}

    def register(self, exporter: BaseExporter) -> None:
        """Register an exporter under its ``key``.

        Raises:
            ValueError: If the key is empty or already taken
        """
        if not exporter.key:
            raise ValueError(f"{type(exporter).__name__} has no component key")
        if exporter.key in self._exporters:
            raise ValueError(f"Component already registered: {exporter.key}")
        self._exporters[exporter.key] = exporter

    def get(self, key: str) -> Optional[BaseExporter]:
        return self._exporters.get(key)

    def require(self, key: str) -> BaseExporter:
        exporter = self._exporters.get(key)
        if exporter is None:
            raise ComponentNotFoundError(key)
        return exporter

    def keys(self) -> List[str]:
        return list(self._exporters)

    def list_components(self) -> List[ComponentInfo]:
        return [exporter.info() for exporter in self._exporters.values()]

    def __contains__(self, key: str) -> bool:
        return key in self._exporters

    def __len__(self) -> int:
        return len(self._exporters)


def default_registry(context: ExportContext) -> ComponentRegistry:
    """Registry with every built-in component bound to ``context``."""
    registry = ComponentRegistry()
    registry.register(ArtworksExporter(context))
    registry.register(SettingsExporter(context))
    registry.register(ProfileExporter(context))
    return registry
