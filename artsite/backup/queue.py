"""Append-only work queue for image post-processing jobs.

Rows are consumed by an external optimization worker; this module only
ever inserts. Duplicate jobs for the same image are acceptable because the
consumer is idempotent on ``(artwork_id, image_path)``.
"""

from typing import Optional, Union

from .._storage import RelationalStore
from .._utils import generate_id, logger, now_iso
from .models import ImageJobStatus, ImageJobType, ImageOptimizationJob

_INSERT_JOB = """
    INSERT INTO image_optimization_queue (
        id, artwork_id, account_id, image_path, image_url,
        type, status, created_at, retry_count
    ) VALUES (
        :id, :artwork_id, :account_id, :image_path, :image_url,
        :type, :status, :created_at, :retry_count
    )
"""


class ImageOptimizationQueue:
    """Inserts pending jobs into ``image_optimization_queue``."""

    def __init__(self, store: RelationalStore):
        self.store = store

    async def enqueue(self, job: ImageOptimizationJob) -> ImageOptimizationJob:
        """Append ``job`` as a fresh pending row."""
        job = job.model_copy(update={"status": ImageJobStatus.PENDING, "retry_count": 0})
        await self.store.execute(
            _INSERT_JOB,
            {
                "id": job.id,
                "artwork_id": job.artwork_id,
                "account_id": job.account_id,
                "image_path": job.image_path,
                "image_url": job.image_url,
                "type": job.type.value,
                "status": job.status.value,
                "created_at": job.created_at,
                "retry_count": job.retry_count,
            },
        )
        logger.info(f"Queued {job.type.value} optimization job {job.id} for {job.image_path}")
        return job

    async def enqueue_image(
        self,
        *,
        account_id: str,
        image_path: str,
        image_url: str,
        job_type: Union[ImageJobType, str] = ImageJobType.ARTWORK,
        artwork_id: Optional[str] = None,
    ) -> ImageOptimizationJob:
        job = ImageOptimizationJob(
            id=generate_id(),
            artwork_id=artwork_id,
            account_id=account_id,
            image_path=image_path,
            image_url=image_url,
            type=ImageJobType(job_type),
            created_at=now_iso(),
        )
        return await self.enqueue(job)
