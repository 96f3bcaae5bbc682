"""S3-compatible blob storage (Cloudflare R2, MinIO, AWS S3)."""

from typing import Any, List, Optional

import aioboto3
from botocore.exceptions import ClientError, ConnectionClosedError, EndpointConnectionError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from .._utils import logger
from ..exceptions import BlobNotFoundError, StorageError
from .base import BaseBlobStorage, BlobObject

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception_type((EndpointConnectionError, ConnectionClosedError)),
    reraise=True,
)


def _is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    return code in _NOT_FOUND_CODES


class S3BlobStorage(BaseBlobStorage):
    """Blob storage backed by an S3-compatible bucket via aioboto3."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        region: str = "auto",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session = aioboto3.Session()

    def _client(self) -> Any:
        return self.session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
        )

    @_transient
    async def get(self, key: str) -> Optional[BlobObject]:
        async with self._client() as s3:
            try:
                response = await s3.get_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if _is_not_found(e):
                    return None
                raise StorageError(f"Failed to get {key}: {e}") from e
            data = await response["Body"].read()
            return BlobObject(
                key=key,
                data=data,
                content_type=response.get("ContentType"),
            )

    @_transient
    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        params = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        async with self._client() as s3:
            try:
                await s3.put_object(**params)
            except ClientError as e:
                raise StorageError(f"Failed to put {key}: {e}") from e
        logger.debug(f"Stored blob {key} ({len(data):,} bytes)")

    @_transient
    async def delete(self, key: str) -> None:
        # S3 deletes are idempotent, so probe first to surface a missing key
        async with self._client() as s3:
            try:
                await s3.head_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                if _is_not_found(e):
                    raise BlobNotFoundError(key) from e
                raise StorageError(f"Failed to delete {key}: {e}") from e
            try:
                await s3.delete_object(Bucket=self.bucket, Key=key)
            except ClientError as e:
                raise StorageError(f"Failed to delete {key}: {e}") from e

    @_transient
    async def list(self, prefix: str = "") -> List[str]:
        keys = []
        async with self._client() as s3:
            paginator = s3.get_paginator("list_objects_v2")
            try:
                async for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                    keys.extend(obj["Key"] for obj in page.get("Contents", []))
            except ClientError as e:
                raise StorageError(f"Failed to list {prefix}: {e}") from e
        return sorted(keys)

    async def check_health(self) -> bool:
        try:
            async with self._client() as s3:
                await s3.head_bucket(Bucket=self.bucket)
            return True
        except Exception as e:
            logger.warning(f"Blob storage health check failed: {e}")
            return False
