"""In-process blob storage for development and tests."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..exceptions import BlobNotFoundError
from .base import BaseBlobStorage, BlobObject


@dataclass
class InMemoryBlobStorage(BaseBlobStorage):
    """Dictionary-backed blob store."""

    objects: Dict[str, Tuple[bytes, Optional[str]]] = field(default_factory=dict)

    async def get(self, key: str) -> Optional[BlobObject]:
        stored = self.objects.get(key)
        if stored is None:
            return None
        data, content_type = stored
        return BlobObject(key=key, data=data, content_type=content_type)

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        self.objects[key] = (bytes(data), content_type)

    async def delete(self, key: str) -> None:
        if key not in self.objects:
            raise BlobNotFoundError(key)
        del self.objects[key]

    async def list(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self.objects if k.startswith(prefix))

    def reset(self) -> None:
        """Clear all stored objects (useful in tests)."""
        self.objects.clear()
