"""
Relational catalog store.

Stores each record as one row of catalog_records. Every call runs in its own
session and commits at most one row, which is the same single-item atomicity
the key-value backend offers.
"""

import logging
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from access_control.domain.errors import StoreError
from access_control.domain.models.catalog import EntityKind
from access_control.domain.models.tenant import TenantKey
from access_control.infrastructure.database import CatalogRow
from access_control.infrastructure.store.base import CatalogStore

logger = logging.getLogger(__name__)


class SqlCatalogStore(CatalogStore):
    """Catalog store backed by SQLAlchemy (PostgreSQL in production, SQLite in tests)"""

    backend_name = "sql"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize catalog store.

        Args:
            session_factory: Async session factory bound to the catalog database
        """
        self.session_factory = session_factory

    async def _load(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str
    ) -> Optional[dict[str, Any]]:
        try:
            async with self.session_factory() as session:
                row = await session.get(CatalogRow, (tenant.partition, kind.value, entity_id))
                return dict(row.payload) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {kind.value} {entity_id} from {tenant}: {e}")
            raise StoreError(f"Failed to load {kind.value} {entity_id}") from e

    async def _save(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str, payload: dict[str, Any]
    ) -> None:
        try:
            async with self.session_factory() as session:
                row = await session.get(CatalogRow, (tenant.partition, kind.value, entity_id))
                if row is None:
                    session.add(
                        CatalogRow(
                            partition=tenant.partition,
                            kind=kind.value,
                            record_id=entity_id,
                            payload=payload,
                        )
                    )
                else:
                    # Reassign so the JSON column is flagged dirty
                    row.payload = payload
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save {kind.value} {entity_id} to {tenant}: {e}")
            raise StoreError(f"Failed to save {kind.value} {entity_id}") from e

    async def _remove(self, tenant: TenantKey, kind: EntityKind, entity_id: str) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(
                    delete(CatalogRow).where(
                        CatalogRow.partition == tenant.partition,
                        CatalogRow.kind == kind.value,
                        CatalogRow.record_id == entity_id,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete {kind.value} {entity_id} from {tenant}: {e}")
            raise StoreError(f"Failed to delete {kind.value} {entity_id}") from e

    async def _scan(self, tenant: TenantKey, kind: EntityKind) -> list[dict[str, Any]]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(CatalogRow).where(
                        CatalogRow.partition == tenant.partition,
                        CatalogRow.kind == kind.value,
                    )
                )
                return [dict(row.payload) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list {kind.value} records in {tenant}: {e}")
            raise StoreError(f"Failed to list {kind.value} records") from e

    async def health_check(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(select(1))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False
