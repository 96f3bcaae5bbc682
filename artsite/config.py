"""Configuration management for the artsite backup engine."""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class StorageConfig:
    """Relational and blob store configuration."""
    database_url: str = "sqlite+aiosqlite:///./artsite.db"
    blob_backend: str = "memory"  # memory, s3
    images_base_url: str = "/api/images"

    # S3-compatible (R2, MinIO, AWS) settings
    s3_bucket: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_region: str = "auto"
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        """Create config from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./artsite.db"),
            blob_backend=os.getenv("BLOB_BACKEND", "memory"),
            images_base_url=os.getenv("ARTWORK_IMAGES_BASE_URL", "/api/images"),
            s3_bucket=os.getenv("S3_BUCKET"),
            s3_endpoint_url=os.getenv("S3_ENDPOINT_URL"),
            s3_region=os.getenv("S3_REGION", "auto"),
            s3_access_key_id=os.getenv("S3_ACCESS_KEY_ID"),
            s3_secret_access_key=os.getenv("S3_SECRET_ACCESS_KEY"),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_blob_backends = {"memory", "s3"}
        if self.blob_backend not in valid_blob_backends:
            raise ValueError(f"Unknown blob backend: {self.blob_backend}. Available: {valid_blob_backends}")
        if self.blob_backend == "s3" and not self.s3_bucket:
            raise ValueError("s3_bucket is required when blob_backend is 's3'")
        if not self.database_url:
            raise ValueError("database_url must not be empty")


@dataclass(frozen=True)
class BackupConfig:
    """Archive format and image handling limits."""
    archive_prefix: str = "artsite-backup"
    format_version: str = "1.0"
    max_embedded_image_bytes: int = 5 * 1024 * 1024
    legacy_fetch_timeout: float = 30.0
    legacy_fetch_max_bytes: int = 20 * 1024 * 1024

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create config from environment variables."""
        return cls(
            archive_prefix=os.getenv("BACKUP_ARCHIVE_PREFIX", "artsite-backup"),
            format_version=os.getenv("BACKUP_FORMAT_VERSION", "1.0"),
            max_embedded_image_bytes=int(os.getenv("BACKUP_MAX_EMBEDDED_IMAGE_BYTES", str(5 * 1024 * 1024))),
            legacy_fetch_timeout=float(os.getenv("BACKUP_LEGACY_FETCH_TIMEOUT", "30.0")),
            legacy_fetch_max_bytes=int(os.getenv("BACKUP_LEGACY_FETCH_MAX_BYTES", str(20 * 1024 * 1024))),
        )

    def __post_init__(self):
        """Validate configuration."""
        if not self.archive_prefix:
            raise ValueError("archive_prefix must not be empty")
        if self.max_embedded_image_bytes <= 0:
            raise ValueError(f"max_embedded_image_bytes must be positive, got {self.max_embedded_image_bytes}")
        if self.legacy_fetch_timeout <= 0:
            raise ValueError(f"legacy_fetch_timeout must be positive, got {self.legacy_fetch_timeout}")
        if self.legacy_fetch_max_bytes <= 0:
            raise ValueError(f"legacy_fetch_max_bytes must be positive, got {self.legacy_fetch_max_bytes}")


@dataclass(frozen=True)
class ArtsiteConfig:
    """Main engine configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)

    @classmethod
    def from_env(cls) -> 'ArtsiteConfig':
        """Create complete config from environment variables."""
        return cls(
            storage=StorageConfig.from_env(),
            backup=BackupConfig.from_env(),
        )
