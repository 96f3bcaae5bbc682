"""Shared helpers for the artsite backend."""

import logging
import re
import uuid
from datetime import datetime, timezone

logger = logging.getLogger("artsite")

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def generate_id() -> str:
    """Mint a fresh record identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_stamp() -> str:
    """Current UTC date as YYYY-MM-DD."""
    return utc_now().strftime("%Y-%m-%d")


def slugify_title(title: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _NON_ALNUM.sub("_", title or "")


def file_extension(name: str, default: str = "jpg") -> str:
    """Lower-cased extension of a filename or key, without the dot."""
    base = (name or "").rsplit("/", 1)[-1]
    if "." not in base:
        return default
    ext = base.rsplit(".", 1)[-1].lower()
    return ext or default
