"""Health check endpoints."""

from fastapi import APIRouter, Depends
import asyncio

from ..models import HealthStatus
from ..dependencies import get_blob_storage, get_store
from artsite._storage import BaseBlobStorage, RelationalStore

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthStatus)
async def health_check(
    store: RelationalStore = Depends(get_store),
    blobs: BaseBlobStorage = Depends(get_blob_storage),
) -> HealthStatus:
    """Check connectivity of the relational and blob stores."""
    database_health, blob_health = await asyncio.gather(
        store.check_health(),
        blobs.check_health(),
        return_exceptions=True,
    )

    database_ok = database_health is True
    blob_ok = blob_health is True

    if database_ok and blob_ok:
        status = "healthy"
    elif not database_ok and not blob_ok:
        status = "unhealthy"
    else:
        status = "degraded"

    return HealthStatus(status=status, database=database_ok, blob_storage=blob_ok)

