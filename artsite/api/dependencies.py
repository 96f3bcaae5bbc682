"""Dependency injection for FastAPI."""

from typing import Optional

from fastapi import Depends, Request

from artsite._storage import BaseBlobStorage, RelationalStore
from artsite.backup import BackupManager
from artsite.backup.fetch import ImageFetcher
from artsite.config import ArtsiteConfig

from .auth import Account, JWTIdentityResolver


async def get_store(request: Request) -> RelationalStore:
    """Get relational store from app state."""
    return request.app.state.store


async def get_blob_storage(request: Request) -> BaseBlobStorage:
    """Get blob storage from app state."""
    return request.app.state.blobs


async def get_fetcher(request: Request) -> Optional[ImageFetcher]:
    """Get the legacy image fetcher from app state if enabled."""
    return getattr(request.app.state, "fetcher", None)


async def get_identity_resolver(request: Request) -> JWTIdentityResolver:
    return request.app.state.identity_resolver


async def get_current_account(
    request: Request,
    resolver: JWTIdentityResolver = Depends(get_identity_resolver),
) -> Account:
    """Resolve the calling account or fail with ``UnauthorizedError``."""
    return resolver.authenticate(request)


async def get_backup_manager(
    request: Request,
    store: RelationalStore = Depends(get_store),
    blobs: BaseBlobStorage = Depends(get_blob_storage),
    fetcher: Optional[ImageFetcher] = Depends(get_fetcher),
) -> BackupManager:
    """Build a BackupManager for this request."""
    config: ArtsiteConfig = request.app.state.config
    return BackupManager(
        store,
        blobs,
        config=config.backup,
        images_base_url=config.storage.images_base_url,
        fetcher=fetcher,
    )
