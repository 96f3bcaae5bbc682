"""Artwork records and their image files."""

import json
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import httpx

from ..._storage import BlobObject
from ..._utils import file_extension, generate_id, logger, now_iso
from ...exceptions import InvalidPayloadError, NotFoundOrForbiddenError, StorageError
from ..archive import ArchiveEntry, BinaryEntry, TextEntry, json_entry
from ..models import ImageJobType, ImageRestoreResult, RestoreMode
from ..utils import (
    ARTWORK_IMAGES_PREFIX,
    artwork_image_path,
    artwork_image_prefix,
    artwork_storage_path,
    content_type_for,
    key_from_image_url,
    parse_tags,
    public_url,
    thumbnail_path,
)
from .base import BaseExporter, ComponentBackup, ComponentRestore

ARTWORKS_PATH = "art/artworks.json"
OMITTED_IMAGES_PATH = "art/images-omitted.txt"

# Columns copied verbatim between the archive record and the table
_RECORD_FIELDS = (
    "title",
    "description",
    "medium",
    "dimensions",
    "year_created",
    "price",
    "status",
    "sort_order",
    "created_at",
    "updated_at",
)

_INSERT_ARTWORK = """
    INSERT INTO artworks (
        id, account_id, title, description, medium, dimensions, year_created,
        price, tags, image_url, thumbnail_url, original_url, storage_path,
        file_size, image_width, image_height, status, featured, sort_order,
        created_at, updated_at
    ) VALUES (
        :id, :account_id, :title, :description, :medium, :dimensions, :year_created,
        :price, :tags, NULL, NULL, NULL, NULL,
        NULL, NULL, NULL, :status, :featured, :sort_order,
        :created_at, :updated_at
    )
"""

_ATTACH_IMAGE = """
    UPDATE artworks
    SET image_url = :image_url, original_url = :image_url, storage_path = :storage_path,
        file_size = :file_size
    WHERE id = :id AND account_id = :account_id
"""


class ArtworksExporter(BaseExporter):
    """Backs up and restores the ``artworks`` table for one account."""

    key = "artworks"
    name = "Artworks"
    description = "All artwork records with their images"

    async def backup(self, account_id: str) -> ComponentBackup:
        rows = await self.store.query_all(
            "SELECT * FROM artworks WHERE account_id = :account_id ORDER BY created_at, id",
            {"account_id": account_id},
        )
        entries: List[ArchiveEntry] = [json_entry(ARTWORKS_PATH, [self._export_record(r) for r in rows])]

        images = 0
        omitted: List[str] = []
        limit = self.context.config.max_embedded_image_bytes
        for row in rows:
            storage_path = row.get("storage_path")
            if not storage_path:
                continue
            label = f"{row['id']} ({row['title']})"
            try:
                blob = await self.blobs.get(storage_path)
            except StorageError as e:
                logger.warning(f"Could not read image for artwork {label}: {e}")
                omitted.append(f"{label}: unreadable")
                continue
            if blob is None:
                logger.warning(f"Image missing from storage for artwork {label}: {storage_path}")
                omitted.append(f"{label}: missing")
                continue
            if blob.size > limit:
                logger.info(f"Skipping oversized image for artwork {label}: {blob.size:,} bytes")
                omitted.append(f"{label}: {blob.size:,} bytes")
                continue

            ext = file_extension(storage_path)
            entries.append(BinaryEntry(path=artwork_image_path(row["id"], row["title"], ext), data=blob.data))
            images += 1

        if omitted:
            note = (
                f"{len(omitted)} image(s) were larger than {limit:,} bytes or unavailable and were not "
                "embedded. They will be re-fetched from their image_url during restore.\n\n"
                + "\n".join(omitted)
                + "\n"
            )
            entries.append(TextEntry(path=OMITTED_IMAGES_PATH, text=note))

        logger.info(f"Artworks backup for {account_id}: {len(rows)} records, {images} images, {len(omitted)} omitted")
        return ComponentBackup(
            entries=entries,
            stats={"count": len(rows), "images": images, "omitted_images": len(omitted)},
        )

    async def restore(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        return await self._restore_records(account_id, entries, mode, with_images=True)

    async def restore_metadata(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        return await self._restore_records(account_id, entries, mode, with_images=False)

    async def restore_image(
        self, account_id: str, record_id: str, data: bytes, original_filename: str
    ) -> ImageRestoreResult:
        """Attach an uploaded image to an artwork owned by ``account_id``.

        Raises:
            InvalidPayloadError: If the upload is empty
            NotFoundOrForbiddenError: If the artwork is absent or owned by another account
        """
        if not data:
            raise InvalidPayloadError("No image file provided")

        row = await self.store.query_first(
            "SELECT id, account_id FROM artworks WHERE id = :id",
            {"id": record_id},
        )
        if row is None or row["account_id"] != account_id:
            raise NotFoundOrForbiddenError("Artwork not found or access denied")

        return await self._attach_image(account_id, record_id, data, original_filename)

    async def _restore_records(
        self,
        account_id: str,
        entries: Mapping[str, ArchiveEntry],
        mode: RestoreMode,
        with_images: bool,
    ) -> ComponentRestore:
        records = self._load_records(entries)
        result = ComponentRestore(total=len(records))

        # Read before the purge below can delete them
        local_images: Dict[str, Optional[BlobObject]] = {}
        if with_images and mode == RestoreMode.REPLACE:
            local_images = await self._preload_local_images(entries, records)

        if mode == RestoreMode.REPLACE:
            result.deleted, failures = await self._purge(account_id)
            if failures:
                result.details["blob_delete_failures"] = failures

        archive_ids: Set[str] = {str(r["id"]) for r in records if isinstance(r, dict) and r.get("id")}
        images_restored = 0
        images_fetched = 0
        images_failed = 0

        for record in records:
            try:
                if not isinstance(record, dict):
                    raise ValueError("artwork record is not an object")
                old_id = str(record.get("id") or "")
                title = record.get("title")
                if not isinstance(title, str) or not title:
                    raise ValueError("artwork record has no title")

                if mode == RestoreMode.ADD:
                    existing = await self.store.query_first(
                        "SELECT id FROM artworks WHERE account_id = :account_id AND title = :title",
                        {"account_id": account_id, "title": title},
                    )
                    if existing is not None:
                        if old_id:
                            result.mapping[old_id] = existing["id"]
                        result.skipped += 1
                        continue

                new_id = generate_id()
                while new_id in archive_ids:
                    new_id = generate_id()

                await self.store.execute(_INSERT_ARTWORK, self._insert_params(account_id, new_id, record))
                if old_id:
                    result.mapping[old_id] = new_id
                result.restored += 1
            except Exception as e:
                logger.error(f"Failed to restore artwork {record.get('id') if isinstance(record, dict) else '?'}: {e}")
                result.skipped += 1
                continue

            if not with_images:
                continue

            image = self._find_image(entries, old_id, title)
            if image is not None:
                try:
                    await self._attach_image(account_id, new_id, image.data, image.path)
                    images_restored += 1
                except StorageError as e:
                    logger.error(f"Failed to store image for artwork {new_id}: {e}")
                    images_failed += 1
            elif record.get("image_url"):
                if await self._restore_image_from_url(account_id, new_id, record["image_url"], local_images):
                    images_fetched += 1
                else:
                    images_failed += 1

        if with_images:
            result.details.update(
                images_restored=images_restored,
                images_fetched=images_fetched,
                images_failed=images_failed,
            )
        return result

    async def _purge(self, account_id: str) -> Tuple[int, int]:
        """Delete every artwork of the account plus its image and thumbnail blobs."""
        rows = await self.store.query_all(
            "SELECT id, storage_path FROM artworks WHERE account_id = :account_id",
            {"account_id": account_id},
        )
        failures = 0
        for row in rows:
            storage_path = row.get("storage_path")
            if not storage_path:
                continue
            for key in (storage_path, thumbnail_path(storage_path)):
                if key and not await self._delete_blob(key):
                    failures += 1

        await self.store.execute(
            "DELETE FROM artworks WHERE account_id = :account_id",
            {"account_id": account_id},
        )
        logger.info(f"Purged {len(rows)} artworks for {account_id} ({failures} blob delete failures)")
        return len(rows), failures

    async def _attach_image(
        self, account_id: str, artwork_id: str, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> ImageRestoreResult:
        ext = file_extension(filename)
        storage_path = artwork_storage_path(account_id, artwork_id, ext)
        image_url = public_url(self.context.images_base_url, storage_path)

        await self.blobs.put(storage_path, data, content_type or content_type_for(filename))
        await self.store.execute(
            _ATTACH_IMAGE,
            {
                "id": artwork_id,
                "account_id": account_id,
                "image_url": image_url,
                "storage_path": storage_path,
                "file_size": len(data),
            },
        )

        try:
            await self.context.queue.enqueue_image(
                account_id=account_id,
                artwork_id=artwork_id,
                image_path=storage_path,
                image_url=image_url,
                job_type=ImageJobType.ARTWORK,
            )
        except StorageError as e:
            logger.warning(f"Could not queue optimization for artwork {artwork_id}: {e}")

        return ImageRestoreResult(artwork_id=artwork_id, image_url=image_url, storage_path=storage_path)

    async def _restore_image_from_url(
        self,
        account_id: str,
        artwork_id: str,
        url: str,
        local_images: Dict[str, Optional[BlobObject]],
    ) -> bool:
        """Copy an image served by this deployment, else download it."""
        key = self._local_image_key(url)
        if key is not None:
            blob = local_images[key] if key in local_images else await self._read_local_image(key)
            if blob is not None:
                try:
                    await self._attach_image(account_id, artwork_id, blob.data, key, blob.content_type)
                except StorageError as e:
                    logger.error(f"Failed to copy image {key} for artwork {artwork_id}: {e}")
                    return False
                return True
        return await self._fetch_remote_image(account_id, artwork_id, url)

    async def _preload_local_images(
        self, entries: Mapping[str, ArchiveEntry], records: List[Any]
    ) -> Dict[str, Optional[BlobObject]]:
        images: Dict[str, Optional[BlobObject]] = {}
        for record in records:
            if not isinstance(record, dict) or not record.get("image_url"):
                continue
            if self._find_image(entries, str(record.get("id") or ""), record.get("title") or ""):
                continue
            key = self._local_image_key(record["image_url"])
            if key is not None and key not in images:
                images[key] = await self._read_local_image(key)
        return images

    async def _read_local_image(self, key: str) -> Optional[BlobObject]:
        try:
            return await self.blobs.get(key)
        except StorageError as e:
            logger.warning(f"Could not read stored image {key}: {e}")
            return None

    def _local_image_key(self, url: str) -> Optional[str]:
        base = self.context.images_base_url.rstrip("/") + "/"
        if not url.startswith(base):
            return None
        return key_from_image_url(url, marker=base)

    async def _fetch_remote_image(self, account_id: str, artwork_id: str, url: str) -> bool:
        fetcher = self.context.fetcher
        if fetcher is None:
            logger.debug(f"No fetcher configured, leaving artwork {artwork_id} without image")
            return False
        try:
            fetched = await fetcher.fetch(url)
            await self._attach_image(account_id, artwork_id, fetched.data, url, fetched.content_type)
        except (httpx.HTTPError, ValueError, StorageError) as e:
            logger.warning(f"Failed to fetch image for artwork {artwork_id} from {url}: {e}")
            return False
        return True

    @staticmethod
    def _load_records(entries: Mapping[str, ArchiveEntry]) -> List[Any]:
        entry = entries.get(ARTWORKS_PATH)
        if entry is None:
            return []
        if not isinstance(entry, TextEntry):
            raise ValueError(f"{ARTWORKS_PATH} is not a text entry")
        records = entry.json()
        if not isinstance(records, list):
            raise ValueError(f"{ARTWORKS_PATH} must contain a list of artworks")
        return records

    @staticmethod
    def _find_image(entries: Mapping[str, ArchiveEntry], old_id: str, title: str) -> Optional[BinaryEntry]:
        if not old_id:
            return None
        prefix = artwork_image_prefix(old_id, title)
        for path, entry in entries.items():
            if path.startswith(prefix) and isinstance(entry, BinaryEntry):
                return entry
        # Hand-built archives may slug titles differently; match on id alone
        id_prefix = f"{ARTWORK_IMAGES_PREFIX}{old_id}-"
        for path, entry in entries.items():
            if path.startswith(id_prefix) and isinstance(entry, BinaryEntry):
                return entry
        return None

    @staticmethod
    def _export_record(row: Dict[str, Any]) -> Dict[str, Any]:
        record = {k: v for k, v in row.items() if k != "account_id"}
        record["tags"] = parse_tags(row.get("tags"))
        record["featured"] = bool(row.get("featured"))
        return record

    @staticmethod
    def _insert_params(account_id: str, new_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        params = {name: record.get(name) for name in _RECORD_FIELDS}
        if params["year_created"] not in (None, ""):
            params["year_created"] = int(params["year_created"])
        else:
            params["year_created"] = None
        if params["price"] is not None:
            params["price"] = str(params["price"])
        params["status"] = params["status"] or "published"
        params["sort_order"] = int(params["sort_order"] or 0)
        params["created_at"] = params["created_at"] or now_iso()
        params["updated_at"] = params["updated_at"] or params["created_at"]
        params.update(
            id=new_id,
            account_id=account_id,
            tags=json.dumps(parse_tags(record.get("tags"))),
            featured=bool(record.get("featured")),
        )
        return params


__all__ = ["ArtworksExporter", "ARTWORKS_PATH", "OMITTED_IMAGES_PATH", "ARTWORK_IMAGES_PREFIX"]
