"""Artist profile exporter, including an uploaded avatar image."""

import json
from typing import Any, Dict, Mapping, Optional, Tuple

from ..._utils import file_extension, logger, now_iso
from ...exceptions import StorageError
from ..archive import ArchiveEntry, BinaryEntry, TextEntry, json_entry
from ..models import ImageJobType, RestoreMode
from ..utils import avatar_storage_path, content_type_for, key_from_image_url, public_url
from .base import BaseExporter, ComponentBackup, ComponentRestore

PROFILE_PATH = "profile/profile.json"
AVATAR_PREFIX = "profile/avatar."

# Identity fields from another account are never written back
_IDENTITY_FIELDS = ("id", "account_id", "user_id")


class ProfileExporter(BaseExporter):
    """Profile document plus the avatar file when it was uploaded."""

    key = "profile"
    name = "Artist Profile"
    description = "Artist profile information and avatar"

    async def backup(self, account_id: str) -> ComponentBackup:
        profile = await self._load(account_id)
        if profile is None:
            return ComponentBackup(
                entries=[json_entry(PROFILE_PATH, {})],
                stats={"has_profile": False, "avatar_backed_up": False},
            )

        entries = [json_entry(PROFILE_PATH, profile)]
        avatar = await self._read_avatar(profile)
        if avatar is not None:
            entries.append(avatar)

        logger.info(f"Profile backup for {account_id}: avatar={'yes' if avatar else 'no'}")
        return ComponentBackup(
            entries=entries,
            stats={"has_profile": True, "avatar_backed_up": avatar is not None},
        )

    async def restore(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        return await self._restore(account_id, entries, mode, with_avatar=True)

    async def restore_metadata(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        return await self._restore(account_id, entries, mode, with_avatar=False)

    async def _restore(
        self,
        account_id: str,
        entries: Mapping[str, ArchiveEntry],
        mode: RestoreMode,
        with_avatar: bool,
    ) -> ComponentRestore:
        entry = entries.get(PROFILE_PATH)
        if entry is None:
            return ComponentRestore(details={"message": "No profile data in backup"})
        if not isinstance(entry, TextEntry):
            raise ValueError(f"{PROFILE_PATH} is not a text entry")

        profile = entry.json()
        if not isinstance(profile, dict):
            raise ValueError("Profile backup must be a JSON object")
        existing = await self._load(account_id)
        if not profile:
            result = ComponentRestore(details={"message": "No profile data in backup"})
            if existing is not None and mode == RestoreMode.REPLACE:
                await self._delete_existing(account_id, existing)
                result.deleted = 1
            return result

        result = ComponentRestore(total=1)
        if existing is not None:
            if mode == RestoreMode.ADD:
                logger.info(f"Profile already exists for {account_id}, skipping")
                result.skipped = 1
                return result
            await self._delete_existing(account_id, existing)
            result.deleted = 1

        record = {k: v for k, v in profile.items() if k not in _IDENTITY_FIELDS}
        record.pop("avatar_path", None)
        avatar_restored = False
        if record.get("avatar_type") == "uploaded":
            # The archived URL points at the source account's storage
            record["avatar_url"] = None
            avatar = self._find_avatar(entries) if with_avatar else None
            if avatar is not None:
                record["avatar_path"], record["avatar_url"] = await self._write_avatar(account_id, avatar)
                avatar_restored = True

        await self.store.execute(
            "INSERT INTO profiles (id, record, created_at) VALUES (:id, :record, :created_at)",
            {"id": account_id, "record": json.dumps(record), "created_at": now_iso()},
        )
        result.restored = 1
        if with_avatar:
            result.details["avatar_restored"] = avatar_restored
        return result

    async def _delete_existing(self, account_id: str, profile: Dict[str, Any]) -> None:
        key = self._avatar_key(profile)
        if key and not await self._delete_blob(key):
            logger.warning(f"Old avatar for {account_id} left in storage: {key}")
        await self.store.execute("DELETE FROM profiles WHERE id = :id", {"id": account_id})

    async def _read_avatar(self, profile: Dict[str, Any]) -> Optional[BinaryEntry]:
        key = self._avatar_key(profile)
        if not key:
            return None
        try:
            blob = await self.blobs.get(key)
        except StorageError as e:
            logger.warning(f"Could not read avatar {key}: {e}")
            return None
        if blob is None:
            logger.warning(f"Avatar missing from storage: {key}")
            return None
        if blob.size > self.context.config.max_embedded_image_bytes:
            logger.info(f"Skipping oversized avatar {key}: {blob.size:,} bytes")
            return None
        return BinaryEntry(path=f"{AVATAR_PREFIX}{file_extension(key)}", data=blob.data)

    async def _write_avatar(self, account_id: str, avatar: BinaryEntry) -> Tuple[str, str]:
        storage_path = avatar_storage_path(account_id, file_extension(avatar.path))
        avatar_url = public_url(self.context.images_base_url, storage_path)
        await self.blobs.put(storage_path, avatar.data, content_type_for(avatar.path))
        try:
            await self.context.queue.enqueue_image(
                account_id=account_id,
                image_path=storage_path,
                image_url=avatar_url,
                job_type=ImageJobType.AVATAR,
            )
        except StorageError as e:
            logger.warning(f"Could not queue avatar optimization for {account_id}: {e}")
        return storage_path, avatar_url

    @staticmethod
    def _avatar_key(profile: Dict[str, Any]) -> Optional[str]:
        if profile.get("avatar_type") != "uploaded":
            return None
        return profile.get("avatar_path") or key_from_image_url(profile.get("avatar_url") or "")

    @staticmethod
    def _find_avatar(entries: Mapping[str, ArchiveEntry]) -> Optional[BinaryEntry]:
        for path, entry in entries.items():
            if path.startswith(AVATAR_PREFIX) and isinstance(entry, BinaryEntry):
                return entry
        return None

    async def _load(self, account_id: str) -> Optional[Dict[str, Any]]:
        row = await self.store.query_first(
            "SELECT record FROM profiles WHERE id = :id",
            {"id": account_id},
        )
        if row is None:
            return None
        return json.loads(row["record"] or "{}")
