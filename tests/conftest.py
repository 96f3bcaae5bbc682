"""Global pytest configuration and fixtures."""

import pytest
import pytest_asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from artsite._storage import RelationalStore
from artsite._storage.blob_memory import InMemoryBlobStorage
from artsite.backup import BackupManager


@pytest_asyncio.fixture
async def store():
    """Fresh in-memory SQLite store with the full schema."""
    store = RelationalStore("sqlite+aiosqlite:///:memory:")
    await store.create_schema()
    yield store
    await store.close()


@pytest.fixture
def blobs():
    return InMemoryBlobStorage()


@pytest.fixture
def manager(store, blobs):
    return BackupManager(store, blobs)
