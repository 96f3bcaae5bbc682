"""Data models for backup/restore operations."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RestoreMode(str, Enum):
    ADD = "add"
    REPLACE = "replace"


class BackupManifest(BaseModel):
    """Archive manifest stored as ``backup-metadata.json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    export_date: str = Field(..., description="ISO timestamp of the export")
    account_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("account_id", "user_id"),
        description="Account the backup was taken from",
    )
    components: List[str] = Field(default_factory=list, description="Component keys contained in the archive")
    version: str = Field(default="1.0", description="Archive format version")


class ComponentInfo(BaseModel):
    """Public description of a registered component."""

    key: str
    name: str
    description: str


class ImageJobType(str, Enum):
    ARTWORK = "artwork"
    AVATAR = "avatar"


class ImageJobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class ImageOptimizationJob(BaseModel):
    """One pending image post-processing job."""

    id: str
    artwork_id: Optional[str] = None
    account_id: str
    image_path: str
    image_url: str
    type: ImageJobType
    status: ImageJobStatus = ImageJobStatus.PENDING
    retry_count: int = 0
    created_at: str


class BackupArchive(BaseModel):
    """Encoded archive plus the per-component outcome."""

    filename: str
    content: bytes
    components: List[str]
    results: Dict[str, Dict[str, Any]]

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class RestoreSummary(BaseModel):
    """Aggregated outcome of a restore call."""

    results: Dict[str, Dict[str, Any]]
    backup_date: Optional[str] = None
    artwork_id_mapping: Dict[str, str] = Field(default_factory=dict)


class ImageRestoreResult(BaseModel):
    artwork_id: str
    image_url: str
    storage_path: str
