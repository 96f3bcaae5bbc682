"""FastAPI application for the artsite backend."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import dataclasses
import logging
import os
import sys

from artsite._storage import StorageFactory
from artsite.backup.fetch import ImageFetcher
from artsite.config import ArtsiteConfig
from .auth import JWTIdentityResolver
from .config import Settings, settings
from .exceptions import register_exception_handlers
from .routers import backup, health

# App-managed logging: our own stdout handler, independent of uvicorn's config
artsite_logger = logging.getLogger("artsite")
artsite_logger.setLevel(logging.INFO)
artsite_logger.propagate = False
artsite_logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
formatter = logging.Formatter(
    '%(asctime)s - [%(name)s] - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
console_handler.setFormatter(formatter)
artsite_logger.addHandler(console_handler)

if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
    artsite_logger.handlers.clear()
    artsite_logger.propagate = True

logger = logging.getLogger(__name__)


def build_config(api_settings: Settings) -> ArtsiteConfig:
    """Engine config from the environment, with API settings taking precedence for stores."""
    config = ArtsiteConfig.from_env()
    storage_config = dataclasses.replace(
        config.storage,
        database_url=api_settings.database_url,
        blob_backend=api_settings.blob_backend,
        images_base_url=api_settings.artwork_images_base_url,
        s3_bucket=api_settings.s3_bucket,
        s3_endpoint_url=api_settings.s3_endpoint_url,
        s3_region=api_settings.s3_region,
        s3_access_key_id=api_settings.s3_access_key_id,
        s3_secret_access_key=api_settings.s3_secret_access_key,
    )
    return dataclasses.replace(config, storage=storage_config)


def create_app(api_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    api_settings = api_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the stores for the lifetime of the application."""
        config = build_config(api_settings)
        app.state.config = config

        try:
            app.state.store = StorageFactory.create_relational_store(config.storage)
            await app.state.store.create_schema()
            app.state.blobs = StorageFactory.create_blob_storage(config.storage)
            logger.info(f"Stores initialized (blob backend: {config.storage.blob_backend})")
        except Exception as e:
            logger.error(f"Failed to initialize stores: {e}")
            raise

        app.state.identity_resolver = JWTIdentityResolver(api_settings.jwt_secret, api_settings.jwt_algorithm)
        if api_settings.legacy_image_fetch:
            app.state.fetcher = ImageFetcher(
                timeout=config.backup.legacy_fetch_timeout,
                max_bytes=config.backup.legacy_fetch_max_bytes,
            )
        else:
            app.state.fetcher = None

        yield

        logger.info("Shutting down stores...")
        await app.state.store.close()

    app = FastAPI(
        title=api_settings.api_title,
        version=api_settings.api_version,
        lifespan=lifespan,
        docs_url=f"{api_settings.api_prefix}/docs",
        openapi_url=f"{api_settings.api_prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(backup.router, prefix=api_settings.api_prefix)
    app.include_router(health.router, prefix=api_settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": api_settings.api_title,
            "version": api_settings.api_version,
            "docs": f"{api_settings.api_prefix}/docs"
        }

    return app


# Create default app instance
app = create_app()
