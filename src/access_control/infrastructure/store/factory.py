"""Catalog store factory.

Builds the backend named by Settings.storage_backend. The caller (bootstrap
code or a test) owns the connections and passes them in; nothing here reads
environment state or caches an instance.
"""

import logging
from typing import Optional

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from access_control.config.settings import Settings

from .base import CatalogStore

logger = logging.getLogger(__name__)


def create_catalog_store(
    settings: Settings,
    redis_client: Optional[Redis] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> CatalogStore:
    """Create the configured catalog store.

    Backend is selected by settings.storage_backend:
    - redis: key-value store, requires redis_client
    - sql: relational store, requires session_factory
    - memory: in-process store for development and tests

    Returns:
        Configured CatalogStore instance

    Raises:
        ValueError: If the backend is unknown or its connection is missing
    """
    mode = settings.storage_backend.lower()
    logger.info(f"Initializing catalog store: {mode}")

    if mode == "redis":
        if redis_client is None:
            raise ValueError("Redis catalog store requires a connected Redis client")
        from .redis_store import RedisCatalogStore
        store: CatalogStore = RedisCatalogStore(redis_client, key_prefix=settings.redis_key_prefix)

    elif mode == "sql":
        if session_factory is None:
            raise ValueError("SQL catalog store requires a session factory")
        from .sql_store import SqlCatalogStore
        store = SqlCatalogStore(session_factory)

    elif mode == "memory":
        from .memory_store import InMemoryCatalogStore
        store = InMemoryCatalogStore()

    else:
        raise ValueError(
            f"Unknown storage backend: {mode}. "
            f"Valid options: redis, sql, memory"
        )

    logger.info(f"Catalog store initialized: {store.__class__.__name__}")
    return store
