"""Tests for backup utility functions."""

import pytest

from artsite.backup.utils import (
    artwork_image_path,
    artwork_storage_path,
    backup_filename,
    content_type_for,
    key_from_image_url,
    parse_component_keys,
    parse_tags,
    public_url,
    thumbnail_path,
)


def test_backup_filename():
    assert backup_filename("artsite-backup", ["artworks", "settings"], "2024-05-01") == \
        "artsite-backup-artworks-settings-2024-05-01.zip"


def test_parse_component_keys():
    assert parse_component_keys(" artworks, settings,,artworks ") == ["artworks", "settings"]
    assert parse_component_keys(None) == []
    assert parse_component_keys("") == []


def test_artwork_image_path_slugs_title():
    assert artwork_image_path("a1", "Blue Hour #2", "png") == "art/images/a1-Blue_Hour__2.png"


def test_storage_paths():
    assert artwork_storage_path("acct", "a1", "webp") == "artworks/acct/a1/restored.webp"
    assert thumbnail_path("images/acct/a.jpg") == "thumbnails/acct/a.jpg"
    assert thumbnail_path("artworks/acct/a1/restored.jpg") is None
    assert public_url("https://img.example.com/", "artworks/x.jpg") == "https://img.example.com/artworks/x.jpg"


@pytest.mark.parametrize("raw,expected", [
    (None, []),
    ("", []),
    ('["oil", "portrait"]', ["oil", "portrait"]),
    (["oil"], ["oil"]),
    ("oil, portrait", ["oil", "portrait"]),
    ('"single"', ["single"]),
])
def test_parse_tags(raw, expected):
    assert parse_tags(raw) == expected


def test_content_type_for():
    assert content_type_for("photo.PNG") == "image/png"
    assert content_type_for("noext") == "image/jpeg"


def test_key_from_image_url():
    assert key_from_image_url("https://site.ca/api/images/avatars/u/me.png?v=2") == "avatars/u/me.png"
    assert key_from_image_url("https://elsewhere.com/me.png") is None
