"""Component-based backup and restore for artsite accounts."""

from .archive import (
    MANIFEST_PATH,
    RESULTS_PATH,
    ArchiveWriter,
    BinaryEntry,
    DecodedArchive,
    TextEntry,
    decode_archive,
    encode_archive,
)
from .manager import BackupManager
from .models import (
    BackupArchive,
    BackupManifest,
    ComponentInfo,
    ImageOptimizationJob,
    ImageRestoreResult,
    RestoreMode,
    RestoreSummary,
)
from .queue import ImageOptimizationQueue
from .registry import ComponentRegistry, default_registry

__all__ = [
    "MANIFEST_PATH",
    "RESULTS_PATH",
    "ArchiveWriter",
    "BinaryEntry",
    "DecodedArchive",
    "TextEntry",
    "decode_archive",
    "encode_archive",
    "BackupManager",
    "BackupArchive",
    "BackupManifest",
    "ComponentInfo",
    "ImageOptimizationJob",
    "ImageRestoreResult",
    "RestoreMode",
    "RestoreSummary",
    "ImageOptimizationQueue",
    "ComponentRegistry",
    "default_registry",
]
