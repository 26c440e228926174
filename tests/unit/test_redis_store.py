"""Unit tests for RedisCatalogStore

Tests catalog storage operations with mocked Redis.
No external dependencies - uses unittest.mock for Redis operations.
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from access_control.domain.errors import StoreError, ValidationError
from access_control.domain.models.catalog import EntityKind, Group
from access_control.domain.models.tenant import TenantKey
from access_control.infrastructure.store.redis_store import RedisCatalogStore

ACME = TenantKey("42", "Acme")


@pytest.fixture
def mock_redis():
    """Mock Redis client"""
    redis = AsyncMock()
    redis.set = AsyncMock(return_value=True)
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock(return_value=1)
    redis.sadd = AsyncMock(return_value=1)
    redis.srem = AsyncMock(return_value=1)
    redis.smembers = AsyncMock(return_value=set())
    redis.ping = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def catalog_store(mock_redis):
    """Create catalog store with mocked Redis"""
    return RedisCatalogStore(mock_redis, key_prefix="ac")


def stored_group(group_id="g1", name="Ops", **fields):
    return json.dumps(Group(id=group_id, name=name, **fields).to_dict())


@pytest.mark.unit
class TestKeys:
    """Test key layout"""

    def test_record_key_includes_partition(self, catalog_store):
        assert catalog_store.record_key(ACME, EntityKind.GROUP, "g1") == "ac:ACME#42:group:g1"

    def test_global_record_key(self, catalog_store):
        key = catalog_store.record_key(TenantKey.GLOBAL, EntityKind.USER, "u1")

        assert key == "ac:SYSTIVA#systiva:user:u1"

    def test_index_key(self, catalog_store):
        assert catalog_store.index_key(ACME, EntityKind.ROLE) == "ac:ACME#42:role_list"


@pytest.mark.unit
class TestCreate:
    """Test record creation"""

    @pytest.mark.asyncio
    async def test_create_group_success(self, catalog_store, mock_redis):
        """Happy path: create stores the record and indexes its id"""
        # Act
        group = await catalog_store.create(ACME, EntityKind.GROUP, {"name": "Ops"})

        # Assert
        assert group.name == "Ops"
        assert group.id

        key, value = mock_redis.set.call_args.args
        assert key == f"ac:ACME#42:group:{group.id}"
        assert json.loads(value)["name"] == "Ops"
        mock_redis.sadd.assert_called_once_with("ac:ACME#42:group_list", group.id)

    @pytest.mark.asyncio
    async def test_create_ignores_supplied_id(self, catalog_store):
        """Edge case: ids are always assigned by the store"""
        group = await catalog_store.create(ACME, EntityKind.GROUP, {"id": "client-id", "name": "Ops"})

        assert group.id != "client-id"

    @pytest.mark.asyncio
    async def test_create_missing_required_field(self, catalog_store, mock_redis):
        """Bad input: nothing is written when a required field is missing"""
        with pytest.raises(ValidationError):
            await catalog_store.create(ACME, EntityKind.GROUP, {"description": "no name"})

        mock_redis.set.assert_not_called()


@pytest.mark.unit
class TestReadUpdateDelete:
    """Test get, update, delete and list"""

    @pytest.mark.asyncio
    async def test_get_existing(self, catalog_store, mock_redis):
        """Happy path: stored JSON is decoded into a record"""
        mock_redis.get.return_value = stored_group()

        group = await catalog_store.get(ACME, EntityKind.GROUP, "g1")

        assert group.id == "g1"
        mock_redis.get.assert_called_once_with("ac:ACME#42:group:g1")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, catalog_store):
        assert await catalog_store.get(ACME, EntityKind.GROUP, "nope") is None

    @pytest.mark.asyncio
    async def test_get_empty_id_returns_none(self, catalog_store, mock_redis):
        """Edge case: empty id is never looked up"""
        assert await catalog_store.get(ACME, EntityKind.GROUP, "") is None
        mock_redis.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, catalog_store, mock_redis):
        """Happy path: untouched fields keep their values"""
        mock_redis.get.return_value = stored_group(description="old", product="P1")

        group = await catalog_store.update(ACME, EntityKind.GROUP, "g1", {"description": "new"})

        assert group.description == "new"
        assert group.product == "P1"
        saved = json.loads(mock_redis.set.call_args.args[1])
        assert saved["description"] == "new"
        assert saved["product"] == "P1"

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, catalog_store, mock_redis):
        assert await catalog_store.update(ACME, EntityKind.GROUP, "nope", {"name": "x"}) is None
        mock_redis.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_existing(self, catalog_store, mock_redis):
        mock_redis.get.return_value = stored_group()

        assert await catalog_store.delete(ACME, EntityKind.GROUP, "g1") is True
        mock_redis.delete.assert_called_once_with("ac:ACME#42:group:g1")
        mock_redis.srem.assert_called_once_with("ac:ACME#42:group_list", "g1")

    @pytest.mark.asyncio
    async def test_delete_missing(self, catalog_store, mock_redis):
        assert await catalog_store.delete(ACME, EntityKind.GROUP, "nope") is False
        mock_redis.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_skips_dangling_index_entries(self, catalog_store, mock_redis):
        """Edge case: an index entry without a record is skipped"""
        # Arrange
        mock_redis.smembers.return_value = {b"g1", "g2"}
        records = {"ac:ACME#42:group:g1": stored_group("g1", "Ops")}
        mock_redis.get.side_effect = lambda key: records.get(key)

        # Act
        groups = await catalog_store.list(ACME, EntityKind.GROUP)

        # Assert
        assert [g.id for g in groups] == ["g1"]


@pytest.mark.unit
class TestErrors:
    """Test Redis failure handling"""

    @pytest.mark.asyncio
    async def test_get_failure_raises_store_error(self, catalog_store, mock_redis):
        """Bad input: connection failures surface as StoreError"""
        mock_redis.get.side_effect = RedisConnectionError("down")

        with pytest.raises(StoreError, match="GET"):
            await catalog_store.get(ACME, EntityKind.GROUP, "g1")

    @pytest.mark.asyncio
    async def test_set_failure_raises_store_error(self, catalog_store, mock_redis):
        mock_redis.set.side_effect = RedisConnectionError("down")

        with pytest.raises(StoreError, match="SET"):
            await catalog_store.create(ACME, EntityKind.GROUP, {"name": "Ops"})

    @pytest.mark.asyncio
    async def test_health_check(self, catalog_store, mock_redis):
        assert await catalog_store.health_check() is True

        mock_redis.ping.side_effect = RedisConnectionError("down")
        assert await catalog_store.health_check() is False
