"""Utility functions for backup/restore operations."""

import json
import mimetypes
from typing import Any, Iterable, List, Optional

from .._utils import file_extension, slugify_title, today_stamp

ARTWORK_IMAGES_PREFIX = "art/images/"

mimetypes.add_type("image/webp", ".webp")


def backup_filename(prefix: str, components: Iterable[str], date: Optional[str] = None) -> str:
    """Build the download filename.

    Returns:
        ``<prefix>-<component>-<component>-<YYYY-MM-DD>.zip``
    """
    names = "-".join(components)
    return f"{prefix}-{names}-{date or today_stamp()}.zip"


def parse_component_keys(raw: Optional[str]) -> List[str]:
    """Split a comma-separated component list, dropping blanks and repeats."""
    keys: List[str] = []
    for part in (raw or "").split(","):
        key = part.strip()
        if key and key not in keys:
            keys.append(key)
    return keys


def artwork_image_path(artwork_id: str, title: str, ext: str = "jpg") -> str:
    """Archive path of an artwork's embedded image."""
    return f"{ARTWORK_IMAGES_PREFIX}{artwork_id}-{slugify_title(title)}.{ext}"


def artwork_image_prefix(artwork_id: str, title: str) -> str:
    """Archive path of an artwork image without its extension."""
    return f"{ARTWORK_IMAGES_PREFIX}{artwork_id}-{slugify_title(title)}."


def artwork_storage_path(account_id: str, artwork_id: str, ext: str = "jpg") -> str:
    """Blob key for a restored artwork image."""
    return f"artworks/{account_id}/{artwork_id}/restored.{ext}"


def avatar_storage_path(account_id: str, ext: str) -> str:
    return f"avatars/{account_id}/restored.{ext}"


def thumbnail_path(storage_path: str) -> Optional[str]:
    """Derived thumbnail key for an ``images/`` storage path, if any."""
    if storage_path and storage_path.startswith("images/"):
        return "thumbnails/" + storage_path[len("images/"):]
    return None


def content_type_for(name: str, default: str = "image/jpeg") -> str:
    guessed, _ = mimetypes.guess_type(f"file.{file_extension(name)}")
    return guessed or default


def public_url(base_url: str, storage_path: str) -> str:
    return f"{base_url.rstrip('/')}/{storage_path}"


def parse_tags(raw: Any) -> List[str]:
    """Normalize stored tags (JSON text, list or None) into a list."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return [str(t) for t in raw]
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return [t.strip() for t in raw.split(",") if t.strip()]
        if isinstance(parsed, list):
            return [str(t) for t in parsed]
        return [str(parsed)]
    return [str(raw)]


def key_from_image_url(image_url: str, marker: str = "/api/images/") -> Optional[str]:
    """Extract the blob key from a served image URL."""
    if not image_url or marker not in image_url:
        return None
    key = image_url.split(marker, 1)[1].split("?", 1)[0]
    return key or None
