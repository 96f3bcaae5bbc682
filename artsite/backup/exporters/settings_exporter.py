"""Site settings exporter."""

import json
from typing import Any, Dict, Mapping, Optional

from ..._utils import logger, now_iso
from ..archive import ArchiveEntry, TextEntry, json_entry
from ..models import RestoreMode
from .base import BaseExporter, ComponentBackup, ComponentRestore

SETTINGS_PATH = "site/settings.json"


class SettingsExporter(BaseExporter):
    """The account's settings object, stored as one JSON document."""

    key = "settings"
    name = "Site Settings"
    description = "Site configuration and preferences"

    async def backup(self, account_id: str) -> ComponentBackup:
        settings = await self._load(account_id) or {}
        logger.info(f"Settings backup for {account_id}: {len(settings)} keys")
        return ComponentBackup(
            entries=[json_entry(SETTINGS_PATH, settings)],
            stats={"count": len(settings)},
        )

    async def restore(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        return await self.restore_metadata(account_id, entries, mode)

    async def restore_metadata(
        self, account_id: str, entries: Mapping[str, ArchiveEntry], mode: RestoreMode
    ) -> ComponentRestore:
        entry = entries.get(SETTINGS_PATH)
        if entry is None:
            return ComponentRestore(details={"message": "No settings data in backup"})
        if not isinstance(entry, TextEntry):
            raise ValueError(f"{SETTINGS_PATH} is not a text entry")

        settings = entry.json()
        if not isinstance(settings, dict):
            raise ValueError("Settings backup must be a JSON object")

        result = ComponentRestore(total=1)
        existing = await self._load(account_id)
        if existing is not None:
            if mode == RestoreMode.ADD:
                logger.info(f"Settings already exist for {account_id}, skipping")
                result.skipped = 1
                return result
            await self.store.execute(
                "DELETE FROM settings WHERE account_id = :account_id",
                {"account_id": account_id},
            )
            result.deleted = 1

        await self.store.execute(
            "INSERT INTO settings (account_id, settings, updated_at) VALUES (:account_id, :settings, :updated_at)",
            {"account_id": account_id, "settings": json.dumps(settings), "updated_at": now_iso()},
        )
        result.restored = 1
        return result

    async def _load(self, account_id: str) -> Optional[Dict[str, Any]]:
        row = await self.store.query_first(
            "SELECT settings FROM settings WHERE account_id = :account_id",
            {"account_id": account_id},
        )
        if row is None:
            return None
        return json.loads(row["settings"] or "{}")
