"""Shared contract for component exporters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..._storage import BaseBlobStorage, RelationalStore
from ..._utils import logger
from ...config import BackupConfig
from ...exceptions import BlobNotFoundError, InvalidPayloadError, StorageError
from ..archive import ArchiveEntry
from ..fetch import ImageFetcher
from ..models import ComponentInfo, ImageRestoreResult, RestoreMode
from ..queue import ImageOptimizationQueue


@dataclass
class ExportContext:
    """Collaborators handed to every exporter."""

    store: RelationalStore
    blobs: BaseBlobStorage
    queue: ImageOptimizationQueue
    config: BackupConfig = field(default_factory=BackupConfig)
    images_base_url: str = "/api/images"
    fetcher: Optional[ImageFetcher] = None


@dataclass
class ComponentBackup:
    """Entries produced by one component plus its result statistics."""

    entries: List[ArchiveEntry] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ComponentRestore:
    """Counters accumulated while restoring one component."""

    restored: int = 0
    skipped: int = 0
    deleted: int = 0
    total: int = 0
    mapping: Dict[str, str] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)

    def as_result(self, mode: RestoreMode) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": True,
            "restored": self.restored,
            "skipped": self.skipped,
            "deleted": self.deleted,
            "total": self.total,
            "mode": mode.value,
        }
        result.update(self.details)
        return result


class BaseExporter(ABC):
    """One restorable slice of an account's data.

    Subclasses set ``key``, ``name`` and ``description`` and implement the
    backup and both restore flavours. ``restore`` is the single-request
    variant that also writes embedded images; ``restore_metadata`` writes
    records only.
    """

    key: str = ""
    name: str = ""
    description: str = ""

    def __init__(self, context: ExportContext):
        self.context = context

    @property
    def store(self) -> RelationalStore:
        return self.context.store

    @property
    def blobs(self) -> BaseBlobStorage:
        return self.context.blobs

    def info(self) -> ComponentInfo:
        return ComponentInfo(key=self.key, name=self.name, description=self.description)

    @abstractmethod
    async def backup(self, account_id: str) -> ComponentBackup:
        """Produce this component's archive entries for ``account_id``."""

    @abstractmethod
    async def restore(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        """Restore records and any embedded binaries."""

    @abstractmethod
    async def restore_metadata(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        """Restore records only, leaving image fields empty."""

    async def restore_image(
        self, account_id: str, record_id: str, data: bytes, original_filename: str
    ) -> ImageRestoreResult:
        raise InvalidPayloadError(f"Component '{self.key}' has no image restore")

    async def _delete_blob(self, key: str) -> bool:
        """Best-effort blob removal.

        Returns:
            False only when the store reported a failure other than absence
        """
        try:
            await self.blobs.delete(key)
        except BlobNotFoundError:
            logger.debug(f"Blob already gone: {key}")
        except StorageError as e:
            logger.warning(f"Failed to delete blob {key}: {e}")
            return False
        return True
