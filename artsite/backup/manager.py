"""Backup and restore orchestration across registered components."""

from typing import Any, Dict, List, Mapping, Optional, Union

from .._storage import BaseBlobStorage, RelationalStore
from .._utils import logger, now_iso
from ..config import BackupConfig
from ..exceptions import InvalidPayloadError, MalformedArchiveError, NoComponentsSelectedError
from .archive import (
    MANIFEST_PATH,
    RESULTS_PATH,
    ArchiveEntry,
    ArchiveWriter,
    BinaryEntry,
    TextEntry,
    decode_archive,
    entries_from_payload,
    json_entry,
    parse_manifest,
)
from .exporters import ExportContext
from .fetch import ImageFetcher
from .models import (
    BackupArchive,
    BackupManifest,
    ComponentInfo,
    ImageRestoreResult,
    RestoreMode,
    RestoreSummary,
)
from .queue import ImageOptimizationQueue
from .registry import ComponentRegistry, default_registry
from .utils import backup_filename

NOT_IN_BACKUP = "Component not found in backup"
NO_HANDLER = "Restore handler not implemented"


class BackupManager:
    """Orchestrate backup and restore operations for one set of stores.

    A manager holds no per-account state: every call re-reads what it needs
    from the relational and blob stores, and components run sequentially.
    """

    def __init__(
        self,
        store: RelationalStore,
        blobs: BaseBlobStorage,
        config: Optional[BackupConfig] = None,
        images_base_url: str = "/api/images",
        fetcher: Optional[ImageFetcher] = None,
        registry: Optional[ComponentRegistry] = None,
    ):
        """Initialize backup manager.

        Args:
            store: Relational store holding artworks, profiles, settings and the image queue
            blobs: Blob store holding image files
            config: Archive format and image limits
            images_base_url: Public prefix for URLs of restored images
            fetcher: Downloader for images referenced only by URL; None disables fetching
            registry: Component registry; defaults to the built-in components
        """
        self.store = store
        self.blobs = blobs
        self.config = config or BackupConfig()
        self.queue = ImageOptimizationQueue(store)
        context = ExportContext(
            store=store,
            blobs=blobs,
            queue=self.queue,
            config=self.config,
            images_base_url=images_base_url,
            fetcher=fetcher,
        )
        self.registry = registry or default_registry(context)

    def list_components(self) -> List[ComponentInfo]:
        return self.registry.list_components()

    async def create_backup(self, account_id: str, components: List[str]) -> BackupArchive:
        """Create an archive of the selected components.

        Args:
            account_id: Account whose data is exported
            components: Component keys, in the order they should appear in the archive

        Returns:
            BackupArchive with the encoded ZIP bytes and per-component results

        Raises:
            NoComponentsSelectedError: If ``components`` is empty
        """
        if not components:
            raise NoComponentsSelectedError()

        logger.info(f"Starting backup for {account_id}: {components}")
        manifest = BackupManifest(
            export_date=now_iso(),
            account_id=account_id,
            components=[key for key in components if key in self.registry],
            version=self.config.format_version,
        )
        results: Dict[str, Dict[str, Any]] = {}

        with ArchiveWriter() as writer:
            writer.add(json_entry(MANIFEST_PATH, manifest.model_dump(mode="json")))

            for key in components:
                exporter = self.registry.get(key)
                if exporter is None:
                    logger.warning(f"Unknown component requested for backup: {key}")
                    results[key] = {"success": False, "error": f"Unknown component: {key}"}
                    continue

                try:
                    output = await exporter.backup(account_id)
                    writer.add_all(output.entries)
                    results[key] = {"success": True, **output.stats}
                except Exception as e:
                    logger.error(f"Backup of component {key} failed: {e}")
                    results[key] = {"success": False, "error": str(e)}

            writer.add(json_entry(RESULTS_PATH, results))
            content = writer.close()

        filename = backup_filename(self.config.archive_prefix, components)
        logger.info(f"Backup complete: {filename} ({len(content):,} bytes)")
        return BackupArchive(filename=filename, content=content, components=components, results=results)

    async def restore_backup(
        self,
        account_id: str,
        data: bytes,
        components: List[str],
        mode: Union[RestoreMode, str] = RestoreMode.ADD,
    ) -> RestoreSummary:
        """Restore records and embedded images from an uploaded archive in one call.

        The archive is fully decoded before any store is touched.

        Raises:
            InvalidPayloadError: If the archive is empty or the mode is unknown
            NoComponentsSelectedError: If ``components`` is empty
            MalformedArchiveError: If the archive cannot be decoded
        """
        if not data:
            raise InvalidPayloadError("No backup file provided")
        if not components:
            raise NoComponentsSelectedError("No components selected for restore")
        mode = self._coerce_mode(mode)

        archive = decode_archive(data)
        return await self._restore(account_id, archive.manifest, archive.entries, components, mode, full=True)

    async def restore_metadata(
        self,
        account_id: str,
        manifest: Union[BackupManifest, Dict[str, Any], None],
        entries: Optional[Mapping[str, Any]],
        components: List[str],
        mode: Union[RestoreMode, str] = RestoreMode.ADD,
    ) -> RestoreSummary:
        """Restore records only; image fields stay empty until ``restore_image``.

        Args:
            account_id: Target account
            manifest: Parsed ``backup-metadata.json``
            entries: Archive entries keyed by path, as entry objects or decoded JSON values
            components: Component keys to restore
            mode: ``add`` or ``replace``

        Returns:
            RestoreSummary including the artwork id mapping the caller needs for the image phase

        Raises:
            InvalidPayloadError: If manifest or entries are missing or malformed
            NoComponentsSelectedError: If ``components`` is empty
        """
        if manifest is None or entries is None:
            raise InvalidPayloadError("Missing backup metadata or entries")
        if not components:
            raise NoComponentsSelectedError("No components selected for restore")
        mode = self._coerce_mode(mode)

        if not isinstance(manifest, BackupManifest):
            try:
                manifest = parse_manifest(manifest)
            except MalformedArchiveError as e:
                raise InvalidPayloadError(str(e)) from e

        return await self._restore(
            account_id, manifest, self._coerce_entries(entries), components, mode, full=False
        )

    async def restore_image(
        self,
        account_id: str,
        artwork_id: str,
        data: bytes,
        original_filename: str,
        component: str = "artworks",
    ) -> ImageRestoreResult:
        """Attach one image to a record created by the metadata phase.

        Raises:
            InvalidPayloadError: If the id or payload is missing
            ComponentNotFoundError: If ``component`` is not registered
            NotFoundOrForbiddenError: If the record is absent or owned by another account
        """
        if not artwork_id:
            raise InvalidPayloadError("artwork_id is required")
        if not data:
            raise InvalidPayloadError("No image file provided")

        exporter = self.registry.require(component)
        result = await exporter.restore_image(account_id, artwork_id, data, original_filename or "")
        logger.info(f"Restored image for {component} {artwork_id}: {result.storage_path}")
        return result

    async def _restore(
        self,
        account_id: str,
        manifest: BackupManifest,
        entries: Mapping[str, ArchiveEntry],
        components: List[str],
        mode: RestoreMode,
        full: bool,
    ) -> RestoreSummary:
        logger.info(f"Starting {'full' if full else 'metadata'} restore for {account_id}: {components} ({mode.value})")
        results: Dict[str, Dict[str, Any]] = {}
        mappings: Dict[str, Dict[str, str]] = {}

        for key in components:
            if key not in manifest.components:
                results[key] = {"success": False, "error": NOT_IN_BACKUP}
                continue

            exporter = self.registry.get(key)
            if exporter is None:
                results[key] = {"success": False, "error": NO_HANDLER}
                continue

            try:
                if full:
                    outcome = await exporter.restore(account_id, entries, mode)
                else:
                    outcome = await exporter.restore_metadata(account_id, entries, mode)
            except Exception as e:
                logger.error(f"Restore of component {key} failed: {e}")
                results[key] = {"success": False, "error": str(e)}
                continue

            results[key] = outcome.as_result(mode)
            mappings[key] = outcome.mapping
            logger.info(
                f"Restored {key}: {outcome.restored} restored, {outcome.skipped} skipped, "
                f"{outcome.deleted} deleted of {outcome.total}"
            )

        return RestoreSummary(
            results=results,
            backup_date=manifest.export_date,
            artwork_id_mapping=mappings.get("artworks", {}),
        )

    @staticmethod
    def _coerce_mode(mode: Union[RestoreMode, str, None]) -> RestoreMode:
        try:
            return RestoreMode(mode or RestoreMode.ADD)
        except ValueError as e:
            raise InvalidPayloadError(f"Invalid restore_mode: {mode}. Expected 'add' or 'replace'") from e

    @staticmethod
    def _coerce_entries(entries: Mapping[str, Any]) -> Dict[str, ArchiveEntry]:
        if not isinstance(entries, Mapping):
            raise InvalidPayloadError("entries must be an object keyed by archive path")
        if all(isinstance(v, (TextEntry, BinaryEntry)) for v in entries.values()):
            return {path: entry for path, entry in entries.items() if path != MANIFEST_PATH}
        return entries_from_payload(dict(entries))
