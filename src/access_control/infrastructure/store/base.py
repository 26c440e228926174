"""Abstract catalog store interface.

Defines the get/list/create/update/delete contract every persistence backend
implements. The backend is chosen at startup and handed to the engine; the
engine never assumes more than single-item atomicity.

Backends implement four primitives keyed by (tenant partition, kind, id):
_load, _save, _remove and _scan. Id assignment, timestamps, required-field
checks and partial merging live here so every backend behaves the same.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from access_control.domain.models.catalog import (
    CatalogRecord,
    EntityKind,
    record_from_dict,
    to_json_compatible,
    utc_now,
)
from access_control.domain.models.tenant import TenantKey
from access_control.domain.models.updates import merge_partial

logger = logging.getLogger(__name__)


class CatalogStore(ABC):
    """Per-tenant CRUD for users, groups and roles.

    No cross-entity integrity is enforced at this layer.

    Example:
        store = RedisCatalogStore(redis_client)
        group = await store.create(tenant.key, EntityKind.GROUP, {"name": "Ops"})
        same = await store.get(tenant.key, EntityKind.GROUP, group.id)
    """

    backend_name = "abstract"

    async def get(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str
    ) -> Optional[CatalogRecord]:
        """Get a record by id.

        Args:
            tenant: Catalog to read from
            kind: Record type
            entity_id: Tenant-scoped identifier

        Returns:
            Record if found, None otherwise
        """
        if not entity_id:
            return None
        payload = await self._load(tenant, kind, entity_id)
        if payload is None:
            return None
        return record_from_dict(kind, payload)

    async def list(self, tenant: TenantKey, kind: EntityKind) -> List[CatalogRecord]:
        """List every record of one kind in a catalog (unordered)."""
        payloads = await self._scan(tenant, kind)
        return [record_from_dict(kind, payload) for payload in payloads]

    async def create(
        self, tenant: TenantKey, kind: EntityKind, data: dict[str, Any]
    ) -> CatalogRecord:
        """Create a record with a fresh tenant-scoped id.

        Args:
            tenant: Catalog to write to
            kind: Record type
            data: Record fields; any id supplied here is ignored

        Returns:
            Created record

        Raises:
            ValidationError: If a required field is missing
            StoreError: If the backend write fails
        """
        entity_id = str(uuid.uuid4())
        now = to_json_compatible(utc_now())
        payload = {**data, "id": entity_id, "created_at": now, "updated_at": now}

        # Round-trip through the model so missing required fields fail before the write
        record = record_from_dict(kind, payload)
        await self._save(tenant, kind, entity_id, record.to_dict())

        logger.info(f"Created {kind.value} {entity_id} in {tenant}")
        return record

    async def update(
        self,
        tenant: TenantKey,
        kind: EntityKind,
        entity_id: str,
        changes: dict[str, Any],
    ) -> Optional[CatalogRecord]:
        """Merge the supplied fields into a stored record.

        Untouched fields keep their prior values; id and created_at are never
        overwritten.

        Returns:
            Updated record, or None if the record does not exist
        """
        current = await self._load(tenant, kind, entity_id)
        if current is None:
            return None

        merged = merge_partial(current, changes)
        merged["updated_at"] = to_json_compatible(utc_now())
        record = record_from_dict(kind, merged)
        await self._save(tenant, kind, entity_id, record.to_dict())

        logger.debug(f"Updated {kind.value} {entity_id} in {tenant}: {sorted(changes)}")
        return record

    async def delete(self, tenant: TenantKey, kind: EntityKind, entity_id: str) -> bool:
        """Delete a record.

        Returns:
            True if the record existed and was removed
        """
        if await self._load(tenant, kind, entity_id) is None:
            return False
        await self._remove(tenant, kind, entity_id)
        logger.info(f"Deleted {kind.value} {entity_id} from {tenant}")
        return True

    async def health_check(self) -> bool:
        """Check the backend is reachable."""
        return True

    @abstractmethod
    async def _load(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str
    ) -> Optional[dict[str, Any]]:
        """Read one stored payload, or None."""
        pass

    @abstractmethod
    async def _save(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str, payload: dict[str, Any]
    ) -> None:
        """Write one payload (insert or replace)."""
        pass

    @abstractmethod
    async def _remove(self, tenant: TenantKey, kind: EntityKind, entity_id: str) -> None:
        """Remove one payload."""
        pass

    @abstractmethod
    async def _scan(self, tenant: TenantKey, kind: EntityKind) -> List[dict[str, Any]]:
        """Read every payload of one kind in a catalog."""
        pass
