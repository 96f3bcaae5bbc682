"""Tests for the relational store."""

import pytest

from artsite._storage.sql import normalize_database_url
from artsite.exceptions import StorageError


@pytest.mark.parametrize("raw,expected", [
    ("sqlite:///./a.db", "sqlite+aiosqlite:///./a.db"),
    ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
    ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
])
def test_normalize_database_url(raw, expected):
    assert normalize_database_url(raw) == expected


def test_normalize_database_url_rejects_empty():
    with pytest.raises(ValueError):
        normalize_database_url("  ")


@pytest.mark.asyncio
async def test_execute_and_query(store):
    count = await store.execute(
        "INSERT INTO settings (account_id, settings) VALUES (:account_id, :settings)",
        {"account_id": "acct", "settings": "{}"},
    )
    assert count == 1

    row = await store.query_first("SELECT * FROM settings WHERE account_id = :a", {"a": "acct"})
    assert row["settings"] == "{}"
    assert await store.query_first("SELECT * FROM settings WHERE account_id = :a", {"a": "none"}) is None
    assert len(await store.query_all("SELECT * FROM settings")) == 1


@pytest.mark.asyncio
async def test_queue_constraints_enforced(store):
    with pytest.raises(StorageError):
        await store.execute(
            "INSERT INTO image_optimization_queue (id, account_id, image_path, image_url, type, status, created_at) "
            "VALUES ('j1', 'acct', 'p', 'u', 'thumbnail', 'pending', '2024-01-01')"
        )


@pytest.mark.asyncio
async def test_driver_errors_become_storage_errors(store):
    with pytest.raises(StorageError):
        await store.query_all("SELECT * FROM no_such_table")


@pytest.mark.asyncio
async def test_check_health(store):
    assert await store.check_health() is True
