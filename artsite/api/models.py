"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from artsite.backup.models import ComponentInfo, RestoreMode


class ComponentListResponse(BaseModel):
    components: List[ComponentInfo]


class MetadataRestoreRequest(BaseModel):
    """JSON body of the metadata-only restore."""

    components: List[str] = Field(..., description="Component keys, as a list or comma-separated")
    restore_mode: str = RestoreMode.ADD.value
    backup_metadata: Optional[Dict[str, Any]] = None
    entries: Optional[Dict[str, Any]] = None

    @field_validator("components", mode="before")
    @classmethod
    def split_components(cls, v):
        if isinstance(v, str):
            return [key.strip() for key in v.split(",") if key.strip()]
        return v


class RestoreResponse(BaseModel):
    message: str = "Restore completed"
    results: Dict[str, Dict[str, Any]]
    backup_date: Optional[str] = None


class MetadataRestoreResponse(RestoreResponse):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Metadata restore completed"
    artwork_id_mapping: Dict[str, str] = Field(default_factory=dict, alias="artworkIdMapping")


class ImageRestoreResponse(BaseModel):
    message: str = "Image restored"
    artwork_id: str
    image_url: str
    storage_path: str


class HealthStatus(BaseModel):
    status: str  # "healthy", "degraded", "unhealthy"
    database: bool
    blob_storage: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ErrorResponse(BaseModel):
    error: str
    message: str
