"""Test utilities for artsite tests."""

import json
from typing import Any, Dict, List, Optional

from artsite._storage import RelationalStore
from artsite._utils import generate_id, now_iso


async def seed_artwork(
    store: RelationalStore,
    account_id: str,
    title: str,
    artwork_id: Optional[str] = None,
    **fields: Any,
) -> str:
    """Insert one artwork row and return its id."""
    row: Dict[str, Any] = {
        "id": artwork_id or generate_id(),
        "account_id": account_id,
        "title": title,
        "description": None,
        "medium": None,
        "dimensions": None,
        "year_created": None,
        "price": None,
        "tags": "[]",
        "image_url": None,
        "thumbnail_url": None,
        "original_url": None,
        "storage_path": None,
        "file_size": None,
        "image_width": None,
        "image_height": None,
        "status": "published",
        "featured": False,
        "sort_order": 0,
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    row.update(fields)
    columns = ", ".join(row)
    params = ", ".join(f":{name}" for name in row)
    await store.execute(f"INSERT INTO artworks ({columns}) VALUES ({params})", row)
    return row["id"]


async def seed_settings(store: RelationalStore, account_id: str, settings: Dict[str, Any]) -> None:
    await store.execute(
        "INSERT INTO settings (account_id, settings, updated_at) VALUES (:account_id, :settings, :updated_at)",
        {"account_id": account_id, "settings": json.dumps(settings), "updated_at": now_iso()},
    )


async def seed_profile(store: RelationalStore, account_id: str, profile: Dict[str, Any]) -> None:
    await store.execute(
        "INSERT INTO profiles (id, record, created_at) VALUES (:id, :record, :created_at)",
        {"id": account_id, "record": json.dumps(profile), "created_at": now_iso()},
    )


async def artworks_for(store: RelationalStore, account_id: str) -> List[Dict[str, Any]]:
    return await store.query_all(
        "SELECT * FROM artworks WHERE account_id = :account_id ORDER BY title",
        {"account_id": account_id},
    )


async def queued_jobs(store: RelationalStore) -> List[Dict[str, Any]]:
    return await store.query_all("SELECT * FROM image_optimization_queue ORDER BY created_at")
