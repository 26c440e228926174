"""
Database session management for the relational catalog backend.

Provides the SQLAlchemy declarative base, the catalog table, and async
engine/session factories built from explicit settings.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import NullPool

from access_control.config.settings import Settings


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for catalog SQLAlchemy models."""

    pass


class CatalogRow(Base):
    """
    One catalog record.

    Every tenant shares this table; the partition column carries the tenant
    (SYSTIVA#systiva or <ACCOUNT_NAME>#<account_id>). Relationships between
    records live inside the JSON payload, so there are no foreign keys.
    """

    __tablename__ = "catalog_records"

    # Composite primary key: (tenant partition, kind, tenant-scoped id)
    partition: Mapped[str] = mapped_column(String(255), primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), primary_key=True)
    record_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<CatalogRow({self.partition}, {self.kind}, {self.record_id})>"


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    postgresql:// URLs are rewritten to use asyncpg. Pooling is disabled for
    SQLite and in the test environment.
    """
    url = settings.async_database_url
    options: dict[str, Any] = {"echo": settings.sql_echo, "pool_pre_ping": True}

    if url.startswith("sqlite") or settings.environment == "test":
        options["poolclass"] = NullPool
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow

    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the async session factory used by the SQL catalog store."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database schema.

    Creates the catalog table if it does not exist.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine) -> None:
    """
    Drop all catalog tables.

    WARNING: This will delete all data!
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def close_db(engine: AsyncEngine) -> None:
    """Dispose the engine and its connections."""
    await engine.dispose()
