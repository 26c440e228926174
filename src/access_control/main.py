"""Access Control Engine bootstrap

Builds an AccessControlEngine from Settings: configures logging, opens the
storage connection for the selected backend and closes it on exit.

Usage:
    settings = get_settings()
    configure_logging(settings)
    async with build_engine(settings) as engine:
        tenant = resolve_tenant(account_id, account_name)
        await engine.assign_groups(tenant, user_id, group_ids)
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from access_control.config.settings import Settings
from access_control.domain.services.engine import AccessControlEngine
from access_control.infrastructure.database import (
    close_db,
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from access_control.infrastructure.redis.client import RedisClient
from access_control.infrastructure.store.factory import create_catalog_store

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line"""

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings (level and text/json format)"""
    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logging.basicConfig(level=settings.log_level.upper(), handlers=[handler], force=True)


@asynccontextmanager
async def build_engine(settings: Settings) -> AsyncIterator[AccessControlEngine]:
    """Open the configured backend and yield an engine bound to it"""
    logger.info(f"Starting {settings.service_name} v{settings.service_version}")
    logger.info(f"Environment: {settings.environment}, storage: {settings.storage_backend}")

    redis_client = None
    db_engine = None
    try:
        if settings.storage_backend == "redis":
            redis_client = RedisClient(settings)
            try:
                await redis_client.connect()
            except Exception as e:
                logger.error(f"Failed to connect to Redis: {e}")
                raise
            store = create_catalog_store(settings, redis_client=redis_client.get_client())

        elif settings.storage_backend == "sql":
            db_engine = create_engine_from_settings(settings)
            await init_db(db_engine)
            logger.info("Database schema ready")
            store = create_catalog_store(
                settings, session_factory=create_session_factory(db_engine)
            )

        else:
            store = create_catalog_store(settings)

        yield AccessControlEngine(store)

    finally:
        logger.info(f"Shutting down {settings.service_name}")
        if redis_client is not None:
            await redis_client.disconnect()
        if db_engine is not None:
            await close_db(db_engine)
            logger.info("Database connections closed")
