"""ZIP container codec for backup archives.

An archive is an ordered set of entries. Members whose name ends in
``.json`` or ``.txt`` are UTF-8 text, everything else is binary. The
manifest ``backup-metadata.json`` is mandatory and is kept apart from the
component entries on decode.
"""

import io
import json
import zipfile
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from pydantic import ValidationError

from .._utils import logger
from ..exceptions import InvalidPayloadError, MalformedArchiveError
from .models import BackupManifest

MANIFEST_PATH = "backup-metadata.json"
RESULTS_PATH = "backup-results.json"
TEXT_SUFFIXES = (".json", ".txt")

# Fixed member timestamp keeps identical inputs byte-identical
_ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class TextEntry:
    path: str
    text: str

    def to_bytes(self) -> bytes:
        return self.text.encode("utf-8")

    def json(self) -> Any:
        return json.loads(self.text)


@dataclass(frozen=True)
class BinaryEntry:
    path: str
    data: bytes

    def to_bytes(self) -> bytes:
        return self.data


ArchiveEntry = Union[TextEntry, BinaryEntry]


def is_text_path(path: str) -> bool:
    return path.lower().endswith(TEXT_SUFFIXES)


def json_entry(path: str, payload: Any) -> TextEntry:
    """Build a pretty-printed JSON text entry."""
    return TextEntry(path=path, text=json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def entry_bytes(entry: ArchiveEntry) -> bytes:
    if isinstance(entry, TextEntry):
        return entry.to_bytes()
    if isinstance(entry, BinaryEntry):
        return entry.data
    raise TypeError(f"Unsupported archive entry: {type(entry).__name__}")


class ArchiveWriter:
    """Incrementally writes entries into an in-memory ZIP container.

    Entries are written as they are added, so callers can hand over one
    component's output and drop it before producing the next.
    """

    def __init__(self):
        self._buffer = io.BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, "w", compression=zipfile.ZIP_DEFLATED)
        self._paths: List[str] = []
        self._closed = False

    @property
    def paths(self) -> List[str]:
        return list(self._paths)

    def add(self, entry: ArchiveEntry) -> None:
        if self._closed:
            raise ValueError("Archive already finalized")
        if not entry.path or entry.path.endswith("/"):
            raise ValueError(f"Invalid entry path: {entry.path!r}")
        if entry.path in self._paths:
            raise ValueError(f"Duplicate archive path: {entry.path}")

        info = zipfile.ZipInfo(entry.path, date_time=_ZIP_DATE_TIME)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        self._zip.writestr(info, entry_bytes(entry))
        self._paths.append(entry.path)

    def add_all(self, entries: Iterable[ArchiveEntry]) -> None:
        """Add a batch of entries; the batch is rejected whole on a path clash."""
        entries = list(entries)
        seen = set(self._paths)
        for entry in entries:
            if entry.path in seen:
                raise ValueError(f"Duplicate archive path: {entry.path}")
            seen.add(entry.path)
        for entry in entries:
            self.add(entry)

    def close(self) -> bytes:
        """Finalize the container and return its bytes."""
        if not self._closed:
            self._zip.close()
            self._closed = True
        return self._buffer.getvalue()

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._closed:
            self._zip.close()
            self._closed = True


def encode_archive(entries: Iterable[ArchiveEntry]) -> bytes:
    """Encode entries, in the given order, into a ZIP container."""
    with ArchiveWriter() as writer:
        writer.add_all(entries)
        return writer.close()


@dataclass
class DecodedArchive:
    """Manifest plus component entries keyed by path."""

    manifest: BackupManifest
    entries: Dict[str, ArchiveEntry] = field(default_factory=dict)

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    def get(self, path: str) -> Optional[ArchiveEntry]:
        return self.entries.get(path)

    def with_prefix(self, prefix: str) -> Iterator[ArchiveEntry]:
        for path, entry in self.entries.items():
            if path.startswith(prefix):
                yield entry


def parse_manifest(payload: Any) -> BackupManifest:
    """Validate a manifest from raw JSON text or an already-parsed dict."""
    try:
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        if not isinstance(payload, dict):
            raise MalformedArchiveError("Backup metadata must be a JSON object")
        return BackupManifest.model_validate(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedArchiveError(f"Backup metadata is not valid JSON: {e}") from e
    except ValidationError as e:
        raise MalformedArchiveError(f"Invalid backup metadata: {e.errors()[0]['msg']}") from e


def decode_archive(data: bytes) -> DecodedArchive:
    """Decode an uploaded container.

    Decoding is all-or-nothing: every member is read and validated before
    anything is returned.

    Raises:
        MalformedArchiveError: Not a ZIP, missing or invalid manifest,
            duplicate paths, or undecodable text members
    """
    if not data:
        raise MalformedArchiveError("Backup file is empty")

    try:
        container = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise MalformedArchiveError(f"Invalid backup file: {e}") from e

    entries: Dict[str, ArchiveEntry] = {}
    manifest_raw: Optional[bytes] = None

    with container:
        if MANIFEST_PATH not in container.namelist():
            raise MalformedArchiveError("No backup metadata found in file")

        for info in container.infolist():
            if info.is_dir():
                continue
            path = info.filename
            if path in entries or (path == MANIFEST_PATH and manifest_raw is not None):
                raise MalformedArchiveError(f"Duplicate archive path: {path}")

            try:
                raw = container.read(info)
            except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError) as e:
                raise MalformedArchiveError(f"Failed to read {path}: {e}") from e

            if path == MANIFEST_PATH:
                manifest_raw = raw
            elif is_text_path(path):
                try:
                    entries[path] = TextEntry(path=path, text=raw.decode("utf-8"))
                except UnicodeDecodeError as e:
                    raise MalformedArchiveError(f"{path} is not valid UTF-8") from e
            else:
                entries[path] = BinaryEntry(path=path, data=raw)

    manifest = parse_manifest(manifest_raw)
    logger.debug(f"Decoded archive: {len(entries)} entries, components={manifest.components}")
    return DecodedArchive(manifest=manifest, entries=entries)


def entries_from_payload(payload: Dict[str, Any]) -> Dict[str, ArchiveEntry]:
    """Build text entries from an already-parsed JSON ``entries`` object.

    Values may be JSON text or decoded JSON values; the manifest key is
    ignored if present.
    """
    if not isinstance(payload, dict):
        raise InvalidPayloadError("entries must be an object keyed by archive path")

    entries: Dict[str, ArchiveEntry] = {}
    for path, value in payload.items():
        if path == MANIFEST_PATH:
            continue
        if isinstance(value, str):
            entries[path] = TextEntry(path=path, text=value)
        elif isinstance(value, (dict, list)):
            entries[path] = json_entry(path, value)
        else:
            raise InvalidPayloadError(f"Unsupported value for entry {path}")
    return entries
