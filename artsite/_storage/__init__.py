"""Storage module with lazy loading support."""

from typing import TYPE_CHECKING

from .base import BaseBlobStorage, BlobObject
from .factory import StorageFactory, _register_backends
from .sql import RelationalStore

if TYPE_CHECKING:
    from .blob_memory import InMemoryBlobStorage
    from .blob_s3 import S3BlobStorage


def __getattr__(name):
    """Lazy import blob backends so aioboto3 is only loaded when used."""
    if name == "InMemoryBlobStorage":
        from .blob_memory import InMemoryBlobStorage
        return InMemoryBlobStorage
    elif name == "S3BlobStorage":
        from .blob_s3 import S3BlobStorage
        return S3BlobStorage
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "BaseBlobStorage",
    "BlobObject",
    "RelationalStore",
    "StorageFactory",
    "_register_backends",
    "InMemoryBlobStorage",
    "S3BlobStorage",
]
