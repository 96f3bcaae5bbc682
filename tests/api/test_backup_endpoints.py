"""Tests for backup API endpoints."""

import pytest
from fastapi.testclient import TestClient

from artsite.api.app import create_app
from artsite.api.auth import JWTIdentityResolver
from artsite.api.config import Settings
from artsite.backup import decode_archive, encode_archive
from artsite.backup.archive import MANIFEST_PATH, json_entry

SECRET = "test-secret"

ARTWORKS = [
    {"id": "old-1", "title": "Sunset", "description": "Warm", "tags": ["oil"], "year_created": 2021},
    {"id": "old-2", "title": "Harbor", "description": "Cold", "tags": [], "year_created": 2022},
]


def _auth(account_id: str) -> dict:
    token = JWTIdentityResolver(SECRET).create_token(account_id)
    return {"Authorization": f"Bearer {token}"}


def _meta_body(components="artworks", mode="add", **overrides):
    body = {
        "components": components,
        "restore_mode": mode,
        "backup_metadata": {"export_date": "2024-03-01T00:00:00.000Z", "components": ["artworks", "settings"]},
        "entries": {
            "art/artworks.json": ARTWORKS,
            "site/settings.json": {"theme": "light"},
        },
    }
    body.update(overrides)
    return body


@pytest.fixture
def client():
    """Test client with in-memory stores and legacy fetching disabled."""
    settings = Settings(
        jwt_secret=SECRET,
        database_url="sqlite+aiosqlite:///:memory:",
        blob_backend="memory",
        legacy_image_fetch=False,
    )
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def test_requires_bearer_token(client):
    response = client.get("/api/backup/components")
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"

    response = client.get("/api/backup/components", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_token_signed_with_other_secret_rejected(client):
    token = JWTIdentityResolver("other-secret").create_token("acct-a")
    response = client.get("/api/backup/components", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_list_components(client):
    response = client.get("/api/backup/components", headers=_auth("acct-a"))

    assert response.status_code == 200
    components = response.json()["components"]
    assert [c["key"] for c in components] == ["artworks", "settings", "profile"]
    assert set(components[0]) == {"key", "name", "description"}


def test_create_backup_without_components(client):
    response = client.get("/api/backup/create", headers=_auth("acct-a"))

    assert response.status_code == 400
    assert response.json() == {
        "error": "No components selected",
        "message": "No components selected for backup",
    }


def test_restore_meta_returns_mapping(client):
    response = client.post("/api/backup/restore-meta", json=_meta_body("artworks,settings"), headers=_auth("acct-a"))

    assert response.status_code == 200
    data = response.json()
    assert data["backup_date"] == "2024-03-01T00:00:00.000Z"
    assert data["results"]["artworks"]["restored"] == 2
    assert data["results"]["settings"]["restored"] == 1
    assert set(data["artworkIdMapping"]) == {"old-1", "old-2"}
    assert not set(data["artworkIdMapping"].values()) & {"old-1", "old-2"}


def test_restore_meta_component_not_in_backup(client):
    response = client.post("/api/backup/restore-meta", json=_meta_body(["profile"]), headers=_auth("acct-a"))

    assert response.status_code == 200
    assert response.json()["results"]["profile"] == {"success": False, "error": "Component not found in backup"}


def test_restore_meta_missing_manifest(client):
    body = _meta_body(backup_metadata=None)
    response = client.post("/api/backup/restore-meta", json=body, headers=_auth("acct-a"))

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid payload"


def test_restore_meta_invalid_mode(client):
    response = client.post("/api/backup/restore-meta", json=_meta_body(mode="merge"), headers=_auth("acct-a"))
    assert response.status_code == 400


def test_download_and_full_restore(client):
    client.post("/api/backup/restore-meta", json=_meta_body("artworks,settings"), headers=_auth("acct-a"))

    response = client.get("/api/backup/create?components=artworks,settings", headers=_auth("acct-a"))

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="artsite-backup-artworks-settings-')
    archive = decode_archive(response.content)
    assert archive.manifest.components == ["artworks", "settings"]
    assert len(archive.get("art/artworks.json").json()) == 2

    response = client.post(
        "/api/backup/restore",
        files={"backup": ("backup.zip", response.content, "application/zip")},
        data={"components": "artworks,settings", "restore_mode": "add"},
        headers=_auth("acct-b"),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Restore completed"
    assert data["results"]["artworks"]["restored"] == 2
    assert data["results"]["settings"]["restored"] == 1
    assert data["backup_date"] == archive.manifest.export_date


def test_full_restore_rejects_malformed_archive(client):
    response = client.post(
        "/api/backup/restore",
        files={"backup": ("backup.zip", b"definitely not a zip", "application/zip")},
        data={"components": "artworks", "restore_mode": "replace"},
        headers=_auth("acct-a"),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Failed to process backup file"


def test_full_restore_requires_file(client):
    response = client.post(
        "/api/backup/restore",
        data={"components": "artworks", "restore_mode": "add"},
        headers=_auth("acct-a"),
    )
    assert response.status_code == 400


def test_full_restore_without_images_leaves_blobs_empty(client):
    data = encode_archive([
        json_entry(MANIFEST_PATH, {"export_date": "2024-01-01", "components": ["artworks"]}),
        json_entry("art/artworks.json", [{"id": "x1", "title": "Night"}]),
    ])
    blobs = client.app.state.blobs

    response = client.post(
        "/api/backup/restore",
        files={"backup": ("b.zip", data, "application/zip")},
        data={"components": "artworks", "restore_mode": "add"},
        headers=_auth("acct-a"),
    )

    assert response.status_code == 200
    assert response.json()["results"]["artworks"]["restored"] == 1
    assert blobs.objects == {}


def test_restore_image_flow(client):
    mapping = client.post(
        "/api/backup/restore-meta", json=_meta_body(), headers=_auth("acct-a")
    ).json()["artworkIdMapping"]
    new_id = mapping["old-1"]

    response = client.post(
        "/api/backup/restore-image",
        files={"image": ("old-1-Sunset.png", b"\x89PNG....", "image/png")},
        data={"artwork_id": new_id, "original_filename": "old-1-Sunset.png"},
        headers=_auth("acct-a"),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["artwork_id"] == new_id
    assert data["storage_path"] == f"artworks/acct-a/{new_id}/restored.png"
    assert data["image_url"] == f"/api/images/{data['storage_path']}"
    assert client.app.state.blobs.objects[data["storage_path"]][0] == b"\x89PNG...."


def test_restore_image_other_account_forbidden(client):
    mapping = client.post(
        "/api/backup/restore-meta", json=_meta_body(), headers=_auth("acct-a")
    ).json()["artworkIdMapping"]

    response = client.post(
        "/api/backup/restore-image",
        files={"image": ("a.jpg", b"jpeg", "image/jpeg")},
        data={"artwork_id": mapping["old-1"]},
        headers=_auth("acct-b"),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Not found"
    assert client.app.state.blobs.objects == {}


def test_restore_image_requires_fields(client):
    response = client.post(
        "/api/backup/restore-image",
        data={"artwork_id": "whatever"},
        headers=_auth("acct-a"),
    )
    assert response.status_code == 400


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] is True
    assert data["blob_storage"] is True


def test_health_serves_only_status_route(client):
    assert client.get("/api/health/ready").status_code == 404
    assert client.get("/api/health/live").status_code == 404
