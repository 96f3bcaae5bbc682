"""Component exporters for backup/restore operations."""

from .base import BaseExporter, ComponentBackup, ComponentRestore, ExportContext
from .artworks_exporter import ArtworksExporter
from .profile_exporter import ProfileExporter
from .settings_exporter import SettingsExporter

__all__ = [
    "BaseExporter",
    "ComponentBackup",
    "ComponentRestore",
    "ExportContext",
    "ArtworksExporter",
    "ProfileExporter",
    "SettingsExporter",
]
