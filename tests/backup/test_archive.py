"""Tests for the ZIP archive codec."""

import io
import json
import zipfile

import pytest

from artsite.backup.archive import (
    MANIFEST_PATH,
    RESULTS_PATH,
    ArchiveWriter,
    BinaryEntry,
    TextEntry,
    decode_archive,
    encode_archive,
    entries_from_payload,
    is_text_path,
    json_entry,
    parse_manifest,
)
from artsite.exceptions import InvalidPayloadError, MalformedArchiveError


def _manifest(**overrides):
    payload = {
        "export_date": "2024-05-01T10:00:00.000Z",
        "account_id": "acct-1",
        "components": ["artworks"],
        "version": "1.0",
    }
    payload.update(overrides)
    return json_entry(MANIFEST_PATH, payload)


def _raw_zip(members):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in members:
            zf.writestr(name, data)
    return buffer.getvalue()


def test_text_paths_distinguished_by_suffix():
    assert is_text_path("art/artworks.json")
    assert is_text_path("art/images-omitted.txt")
    assert is_text_path("NOTES.TXT")
    assert not is_text_path("art/images/a-b.jpg")
    assert not is_text_path("art/images/a-json")


def test_encode_preserves_entry_order():
    entries = [
        _manifest(),
        json_entry("art/artworks.json", []),
        BinaryEntry("art/images/1-Sunset.png", b"\x89PNG"),
        json_entry(RESULTS_PATH, {}),
    ]
    data = encode_archive(entries)

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == [e.path for e in entries]


def test_encode_is_deterministic():
    entries = [_manifest(), BinaryEntry("art/images/1-a.jpg", b"abc")]
    assert encode_archive(entries) == encode_archive(entries)


def test_decode_separates_manifest_and_typed_entries():
    data = encode_archive([
        _manifest(components=["artworks", "settings"]),
        json_entry("art/artworks.json", [{"id": "a1", "title": "Sunset"}]),
        BinaryEntry("art/images/a1-Sunset.jpg", b"\xff\xd8\xff"),
        TextEntry("art/images-omitted.txt", "note"),
    ])

    archive = decode_archive(data)

    assert archive.manifest.components == ["artworks", "settings"]
    assert archive.manifest.account_id == "acct-1"
    assert MANIFEST_PATH not in archive
    assert isinstance(archive.get("art/artworks.json"), TextEntry)
    assert archive.get("art/artworks.json").json() == [{"id": "a1", "title": "Sunset"}]
    assert isinstance(archive.get("art/images/a1-Sunset.jpg"), BinaryEntry)
    assert archive.get("art/images/a1-Sunset.jpg").data == b"\xff\xd8\xff"
    assert archive.get("art/images-omitted.txt").text == "note"
    assert [e.path for e in archive.with_prefix("art/images/")] == ["art/images/a1-Sunset.jpg"]


def test_decode_preserves_unicode_text():
    data = encode_archive([_manifest(), json_entry("site/settings.json", {"tagline": "Café ✨"})])
    archive = decode_archive(data)
    assert archive.get("site/settings.json").json() == {"tagline": "Café ✨"}


def test_decode_skips_directory_entries():
    manifest = json.dumps({"export_date": "2024-01-01", "components": []})
    data = _raw_zip([("art/", b""), (MANIFEST_PATH, manifest), ("art/artworks.json", "[]")])

    archive = decode_archive(data)

    assert list(archive.entries) == ["art/artworks.json"]


def test_decode_missing_manifest_fails():
    data = _raw_zip([("art/artworks.json", "[]")])
    with pytest.raises(MalformedArchiveError):
        decode_archive(data)


@pytest.mark.parametrize("data", [b"", b"not a zip file"])
def test_decode_rejects_non_zip(data):
    with pytest.raises(MalformedArchiveError):
        decode_archive(data)


def test_decode_rejects_invalid_utf8_text():
    manifest = json.dumps({"export_date": "2024-01-01", "components": []})
    data = _raw_zip([(MANIFEST_PATH, manifest), ("art/artworks.json", b"\xff\xfe\xfa")])
    with pytest.raises(MalformedArchiveError):
        decode_archive(data)


def test_decode_rejects_invalid_manifest():
    data = _raw_zip([(MANIFEST_PATH, "{not json")])
    with pytest.raises(MalformedArchiveError):
        decode_archive(data)

    data = _raw_zip([(MANIFEST_PATH, json.dumps({"components": []}))])
    with pytest.raises(MalformedArchiveError):
        decode_archive(data)


def test_manifest_accepts_legacy_user_id():
    manifest = parse_manifest({"export_date": "2024-01-01", "user_id": "legacy-7", "components": ["artworks"]})
    assert manifest.account_id == "legacy-7"


def test_writer_rejects_duplicate_paths():
    with ArchiveWriter() as writer:
        writer.add(_manifest())
        with pytest.raises(ValueError):
            writer.add(json_entry(MANIFEST_PATH, {}))


def test_writer_add_all_rejects_batch_atomically():
    with ArchiveWriter() as writer:
        writer.add(_manifest())
        batch = [json_entry("art/artworks.json", []), BinaryEntry("art/artworks.json", b"x")]
        with pytest.raises(ValueError):
            writer.add_all(batch)
        assert writer.paths == [MANIFEST_PATH]


def test_writer_rejects_directory_paths():
    with ArchiveWriter() as writer:
        with pytest.raises(ValueError):
            writer.add(TextEntry("art/", ""))


def test_entries_from_payload_accepts_text_and_json_values():
    entries = entries_from_payload({
        MANIFEST_PATH: {"ignored": True},
        "art/artworks.json": [{"id": "a1"}],
        "site/settings.json": '{"theme": "dark"}',
    })

    assert set(entries) == {"art/artworks.json", "site/settings.json"}
    assert entries["art/artworks.json"].json() == [{"id": "a1"}]
    assert entries["site/settings.json"].json() == {"theme": "dark"}


def test_entries_from_payload_rejects_bad_shapes():
    with pytest.raises(InvalidPayloadError):
        entries_from_payload(["art/artworks.json"])
    with pytest.raises(InvalidPayloadError):
        entries_from_payload({"art/artworks.json": 42})
