"""In-process catalog store for development and tests"""

import copy
import logging
from typing import Any, Optional

from access_control.domain.models.catalog import EntityKind
from access_control.domain.models.tenant import TenantKey
from access_control.infrastructure.store.base import CatalogStore

logger = logging.getLogger(__name__)


class InMemoryCatalogStore(CatalogStore):
    """Catalog store holding payloads in a dict keyed by (partition, kind, id)

    Payloads are deep-copied on the way in and out so callers never share
    state with the store.
    """

    backend_name = "memory"

    def __init__(self):
        self._records: dict[tuple[str, EntityKind, str], dict[str, Any]] = {}

    async def _load(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str
    ) -> Optional[dict[str, Any]]:
        payload = self._records.get((tenant.partition, kind, entity_id))
        return copy.deepcopy(payload) if payload is not None else None

    async def _save(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str, payload: dict[str, Any]
    ) -> None:
        self._records[(tenant.partition, kind, entity_id)] = copy.deepcopy(payload)

    async def _remove(self, tenant: TenantKey, kind: EntityKind, entity_id: str) -> None:
        self._records.pop((tenant.partition, kind, entity_id), None)

    async def _scan(self, tenant: TenantKey, kind: EntityKind) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(payload)
            for (partition, record_kind, _), payload in self._records.items()
            if partition == tenant.partition and record_kind == kind
        ]
