"""Redis Catalog Store

Purpose: Key-value persistence for tenant catalogs

Each catalog record is one JSON value. A per-catalog set indexes the ids of
each kind so a catalog can be listed without a keyspace scan.

Storage Schema:
- {prefix}:{partition}:{kind}:{id} -> {record_json}
- {prefix}:{partition}:{kind}_list -> {id, ...}

where partition is SYSTIVA#systiva for the Global catalog and
<ACCOUNT_NAME>#<account_id> for account catalogs.

Redis offers no multi-key transaction here: a record write and its index
update are two commands. A failure between them leaves an index entry
without a record, which _scan skips.
"""

import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from access_control.domain.errors import StoreError
from access_control.domain.models.catalog import EntityKind
from access_control.domain.models.tenant import TenantKey
from access_control.infrastructure.store.base import CatalogStore

logger = logging.getLogger(__name__)


class RedisCatalogStore(CatalogStore):
    """Catalog store backed by Redis

    Redis errors are logged and re-raised as StoreError. Nothing is retried
    here.
    """

    backend_name = "redis"

    def __init__(self, redis_client: Redis, key_prefix: str = "ac"):
        """Initialize catalog store

        Args:
            redis_client: Redis connection for catalog storage
            key_prefix: Namespace prepended to every key
        """
        self.redis = redis_client
        self.key_prefix = key_prefix

        # Redis key patterns
        self.record_key_pattern = "{}:{}:{}:{}"
        self.index_key_pattern = "{}:{}:{}_list"

    def record_key(self, tenant: TenantKey, kind: EntityKind, entity_id: str) -> str:
        return self.record_key_pattern.format(self.key_prefix, tenant.partition, kind.value, entity_id)

    def index_key(self, tenant: TenantKey, kind: EntityKind) -> str:
        return self.index_key_pattern.format(self.key_prefix, tenant.partition, kind.value)

    async def _load(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str
    ) -> Optional[dict[str, Any]]:
        data = await self._redis_get(self.record_key(tenant, kind, entity_id))
        if not data:
            return None
        return json.loads(data)

    async def _save(
        self, tenant: TenantKey, kind: EntityKind, entity_id: str, payload: dict[str, Any]
    ) -> None:
        await self._redis_set(self.record_key(tenant, kind, entity_id), json.dumps(payload))
        await self._redis_sadd(self.index_key(tenant, kind), entity_id)

    async def _remove(self, tenant: TenantKey, kind: EntityKind, entity_id: str) -> None:
        await self._redis_delete(self.record_key(tenant, kind, entity_id))
        await self._redis_srem(self.index_key(tenant, kind), entity_id)

    async def _scan(self, tenant: TenantKey, kind: EntityKind) -> list[dict[str, Any]]:
        entity_ids = await self._redis_smembers(self.index_key(tenant, kind))

        payloads = []
        for entity_id in entity_ids:
            payload = await self._load(tenant, kind, entity_id)
            if payload is None:
                logger.warning(
                    f"Index {self.index_key(tenant, kind)} references missing {kind.value} {entity_id}"
                )
                continue
            payloads.append(payload)
        return payloads

    async def health_check(self) -> bool:
        """Check Redis connection health"""
        try:
            await self.redis.ping()
            return True
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    # Redis async wrapper methods
    async def _redis_set(self, key: str, value: str) -> None:
        """Set Redis key"""
        try:
            await self.redis.set(key, value)
        except RedisError as e:
            logger.error(f"Redis SET failed for key {key}: {e}")
            raise StoreError(f"Redis SET failed for key {key}") from e

    async def _redis_get(self, key: str) -> Optional[str]:
        """Get Redis key value"""
        try:
            result = await self.redis.get(key)
            return result if result else None
        except RedisError as e:
            logger.error(f"Redis GET failed for key {key}: {e}")
            raise StoreError(f"Redis GET failed for key {key}") from e

    async def _redis_delete(self, key: str) -> None:
        """Delete Redis key"""
        try:
            await self.redis.delete(key)
        except RedisError as e:
            logger.error(f"Redis DELETE failed for key {key}: {e}")
            raise StoreError(f"Redis DELETE failed for key {key}") from e

    async def _redis_sadd(self, key: str, value: str) -> None:
        """Add to Redis set"""
        try:
            await self.redis.sadd(key, value)
        except RedisError as e:
            logger.error(f"Redis SADD failed for key {key}: {e}")
            raise StoreError(f"Redis SADD failed for key {key}") from e

    async def _redis_srem(self, key: str, value: str) -> None:
        """Remove from Redis set"""
        try:
            await self.redis.srem(key, value)
        except RedisError as e:
            logger.error(f"Redis SREM failed for key {key}: {e}")
            raise StoreError(f"Redis SREM failed for key {key}") from e

    async def _redis_smembers(self, key: str) -> list[str]:
        """Get Redis set members"""
        try:
            members = await self.redis.smembers(key)
        except RedisError as e:
            logger.error(f"Redis SMEMBERS failed for key {key}: {e}")
            raise StoreError(f"Redis SMEMBERS failed for key {key}") from e
        return [member.decode() if isinstance(member, bytes) else str(member) for member in members]
