"""Relational store over an SQLAlchemy async engine."""

from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from .._utils import logger
from ..exceptions import StorageError

metadata = MetaData()

artworks_table = Table(
    "artworks",
    metadata,
    Column("id", String, primary_key=True),
    Column("account_id", String, nullable=False, index=True),
    Column("title", String, nullable=False),
    Column("description", Text),
    Column("medium", String),
    Column("dimensions", String),
    Column("year_created", Integer),
    Column("price", String),
    Column("tags", Text),
    Column("image_url", String),
    Column("thumbnail_url", String),
    Column("original_url", String),
    Column("storage_path", String),
    Column("file_size", Integer),
    Column("image_width", Integer),
    Column("image_height", Integer),
    Column("status", String, server_default="published"),
    Column("featured", Boolean, server_default="0"),
    Column("sort_order", Integer, server_default="0"),
    Column("created_at", String),
    Column("updated_at", String),
)

settings_table = Table(
    "settings",
    metadata,
    Column("account_id", String, primary_key=True),
    Column("settings", Text, nullable=False),
    Column("updated_at", String),
)

profiles_table = Table(
    "profiles",
    metadata,
    Column("id", String, primary_key=True),
    Column("record", Text, nullable=False),
    Column("created_at", String),
)

image_optimization_queue_table = Table(
    "image_optimization_queue",
    metadata,
    Column("id", String, primary_key=True),
    Column("artwork_id", String),
    Column("account_id", String, nullable=False),
    Column("image_path", String, nullable=False),
    Column("image_url", String, nullable=False),
    Column("type", String, nullable=False),
    Column("status", String, nullable=False, server_default="pending"),
    Column("created_at", String, nullable=False),
    Column("processed_at", String),
    Column("retry_count", Integer, nullable=False, server_default="0"),
    Column("error_message", Text),
    CheckConstraint("type IN ('artwork', 'avatar')", name="ck_image_queue_type"),
    CheckConstraint(
        "status IN ('pending', 'processing', 'done', 'failed')",
        name="ck_image_queue_status",
    ),
    Index("idx_image_queue_status_created", "status", "created_at"),
    Index("idx_image_queue_account", "account_id"),
)


def normalize_database_url(raw: str) -> str:
    """Map sync driver URLs onto their async counterparts.

    - sqlite://... -> sqlite+aiosqlite://...
    - postgresql://... -> postgresql+asyncpg://...
    """
    url = str(raw or "").strip()
    if not url:
        raise ValueError("Empty database URL")
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


class RelationalStore:
    """Parameterized ``execute``/``query_first``/``query_all`` over one engine.

    Statements use named bind parameters (``:account_id``). Every driver
    failure surfaces as ``StorageError``.
    """

    def __init__(self, database_url: str, echo: bool = False):
        url = normalize_database_url(database_url)
        kwargs: Dict[str, Any] = {"echo": echo}
        if ":memory:" in url:
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        else:
            kwargs["pool_pre_ping"] = True
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Database schema ready")

    async def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> int:
        """Run a write statement and return the affected row count."""
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(text(sql), params or {})
                return result.rowcount
        except SQLAlchemyError as e:
            raise StorageError(f"Statement failed: {e}") from e

    async def query_first(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(sql), params or {})
                row = result.mappings().first()
                return dict(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Query failed: {e}") from e

    async def query_all(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(sql), params or {})
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Query failed: {e}") from e

    async def check_health(self) -> bool:
        try:
            await self.query_first("SELECT 1 AS ok")
            return True
        except StorageError as e:
            logger.warning(f"Relational store health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
