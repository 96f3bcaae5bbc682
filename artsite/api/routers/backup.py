"""Backup and restore API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response

from ..auth import Account
from ..dependencies import get_backup_manager, get_current_account
from ..models import (
    ComponentListResponse,
    ImageRestoreResponse,
    MetadataRestoreRequest,
    MetadataRestoreResponse,
    RestoreResponse,
)
from artsite._utils import logger
from artsite.backup import BackupManager
from artsite.backup.utils import parse_component_keys
from artsite.exceptions import InvalidPayloadError

router = APIRouter(prefix="/backup", tags=["backup"])


@router.get("/components", response_model=ComponentListResponse)
async def list_components(
    account: Account = Depends(get_current_account),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> ComponentListResponse:
    """List the components that can be backed up and restored."""
    return ComponentListResponse(components=backup_manager.list_components())


@router.get("/create")
async def create_backup(
    components: Optional[str] = Query(None, description="Comma-separated component keys"),
    account: Account = Depends(get_current_account),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> Response:
    """Download a ZIP archive of the selected components."""
    archive = await backup_manager.create_backup(account.account_id, parse_component_keys(components))
    logger.info(f"Serving backup {archive.filename} to {account.account_id} ({archive.size_bytes:,} bytes)")

    return Response(
        content=archive.content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{archive.filename}"'},
    )


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    backup: Optional[UploadFile] = File(None),
    components: Optional[str] = Form(None),
    restore_mode: str = Form("add"),
    account: Account = Depends(get_current_account),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> RestoreResponse:
    """Restore an uploaded archive, images included, in a single request."""
    if backup is None:
        raise InvalidPayloadError("No backup file provided")

    content = await backup.read()
    logger.info(f"Uploaded backup {backup.filename} from {account.account_id} ({len(content):,} bytes)")

    summary = await backup_manager.restore_backup(
        account.account_id, content, parse_component_keys(components), restore_mode
    )
    return RestoreResponse(results=summary.results, backup_date=summary.backup_date)


@router.post("/restore-meta", response_model=MetadataRestoreResponse)
async def restore_metadata(
    payload: MetadataRestoreRequest,
    account: Account = Depends(get_current_account),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> MetadataRestoreResponse:
    """Restore records only.

    The client unpacks the archive itself, sends the JSON entries here, then
    uploads each image to ``/backup/restore-image`` using the returned
    ``artworkIdMapping``.
    """
    summary = await backup_manager.restore_metadata(
        account.account_id,
        payload.backup_metadata,
        payload.entries,
        payload.components,
        payload.restore_mode,
    )
    return MetadataRestoreResponse(
        results=summary.results,
        backup_date=summary.backup_date,
        artwork_id_mapping=summary.artwork_id_mapping,
    )


@router.post("/restore-image", response_model=ImageRestoreResponse)
async def restore_image(
    artwork_id: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    original_filename: Optional[str] = Form(None),
    account: Account = Depends(get_current_account),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> ImageRestoreResponse:
    """Attach one image to an artwork created by ``/backup/restore-meta``."""
    if not artwork_id or image is None:
        raise InvalidPayloadError("artwork_id and image are required")

    data = await image.read()
    result = await backup_manager.restore_image(
        account.account_id,
        artwork_id,
        data,
        original_filename or image.filename or "",
    )
    return ImageRestoreResponse(
        artwork_id=result.artwork_id,
        image_url=result.image_url,
        storage_path=result.storage_path,
    )
