"""Blob storage contract shared by all backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class BlobObject:
    """A stored object as returned by ``get``."""

    key: str
    data: bytes
    content_type: Optional[str] = None
    size: int = field(default=0)

    def __post_init__(self):
        if not self.size:
            self.size = len(self.data)


class BaseBlobStorage(ABC):
    """Key/bytes object store used for artwork images and avatars."""

    @abstractmethod
    async def get(self, key: str) -> Optional[BlobObject]:
        """Return the object stored at ``key`` or None if absent."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Store ``data`` at ``key``, overwriting any previous object."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete ``key``.

        Raises:
            BlobNotFoundError: If nothing is stored at ``key``
        """

    @abstractmethod
    async def list(self, prefix: str = "") -> List[str]:
        """Return all keys starting with ``prefix`` in lexical order."""

    async def check_health(self) -> bool:
        return True
