"""Storage factory for centralized backend creation."""

from typing import Callable, Dict, Type

from ..config import StorageConfig
from .base import BaseBlobStorage
from .sql import RelationalStore


class StorageFactory:
    """Factory for creating storage backends with validation and registration."""

    _blob_backends: Dict[str, Callable[[], Type[BaseBlobStorage]]] = {}

    ALLOWED_BLOB = {"memory", "s3"}

    @classmethod
    def register_blob(cls, name: str, backend_loader: Callable[[], Type[BaseBlobStorage]]) -> None:
        """Register a blob storage backend.

        Args:
            name: Backend name (must be in ALLOWED_BLOB)
            backend_loader: Function that returns the blob storage class

        Raises:
            ValueError: If backend name not in allowed list
        """
        if name not in cls.ALLOWED_BLOB:
            raise ValueError(f"Backend {name} not in allowed blob backends: {cls.ALLOWED_BLOB}")
        cls._blob_backends[name] = backend_loader

    @classmethod
    def create_blob_storage(cls, config: StorageConfig) -> BaseBlobStorage:
        """Create the blob storage selected by ``config.blob_backend``.

        Raises:
            ValueError: If backend not registered
        """
        backend = config.blob_backend
        if backend not in cls._blob_backends:
            _register_backends()
            if backend not in cls._blob_backends:
                raise ValueError(f"Unknown blob backend: {backend}. Available: {list(cls._blob_backends.keys())}")

        backend_class = cls._blob_backends[backend]()
        if backend == "s3":
            return backend_class(
                bucket=config.s3_bucket,
                endpoint_url=config.s3_endpoint_url,
                region=config.s3_region,
                access_key_id=config.s3_access_key_id,
                secret_access_key=config.s3_secret_access_key,
            )
        return backend_class()

    @classmethod
    def create_relational_store(cls, config: StorageConfig) -> RelationalStore:
        return RelationalStore(config.database_url)


def _get_memory_storage():
    """Lazy loader for in-memory blob storage."""
    from .blob_memory import InMemoryBlobStorage
    return InMemoryBlobStorage


def _get_s3_storage():
    """Lazy loader for S3 blob storage (imports aioboto3)."""
    from .blob_s3 import S3BlobStorage
    return S3BlobStorage


def _register_backends():
    """Register built-in backends with lazy loaders. Called when factory is first used."""
    if not StorageFactory._blob_backends:
        StorageFactory.register_blob("memory", _get_memory_storage)
        StorageFactory.register_blob("s3", _get_s3_storage)
