"""
Pytest configuration and shared fixtures.

Provides fixtures for:
- In-memory catalog store and engine
- Global, account and enterprise-filtered tenant contexts
- A seeder that writes records straight to the store
"""

import pytest
import pytest_asyncio

from access_control.domain.models.catalog import EntityKind
from access_control.domain.models.tenant import TenantContext, resolve_tenant
from access_control.domain.services.engine import AccessControlEngine
from access_control.infrastructure.store.memory_store import InMemoryCatalogStore


class CatalogSeeder:
    """Writes users, groups and roles directly, bypassing engine validation."""

    def __init__(self, store):
        self.store = store

    async def user(self, tenant: TenantContext, email: str = "ada@acme.test", **fields):
        data = {"first_name": "Ada", "last_name": "Lovelace", "email_address": email, **fields}
        return await self.store.create(tenant.key, EntityKind.USER, data)

    async def group(self, tenant: TenantContext, name: str, **fields):
        return await self.store.create(tenant.key, EntityKind.GROUP, {"name": name, **fields})

    async def role(self, tenant: TenantContext, name: str, **fields):
        return await self.store.create(tenant.key, EntityKind.ROLE, {"name": name, **fields})


@pytest.fixture
def store() -> InMemoryCatalogStore:
    """Fresh in-process catalog store."""
    return InMemoryCatalogStore()


@pytest.fixture
def seed(store) -> CatalogSeeder:
    return CatalogSeeder(store)


@pytest.fixture
def engine(store) -> AccessControlEngine:
    """Engine bound to the in-memory store."""
    return AccessControlEngine(store)


@pytest.fixture
def global_tenant() -> TenantContext:
    return resolve_tenant(None, None)


@pytest.fixture
def account_tenant() -> TenantContext:
    return resolve_tenant("42", "Acme")


@pytest.fixture
def other_account_tenant() -> TenantContext:
    return resolve_tenant("77", "Globex")


@pytest.fixture
def enterprise_tenant() -> TenantContext:
    """Acme account narrowed to the Retail enterprise."""
    return resolve_tenant("42", "Acme", "ent-retail", "Retail")


@pytest_asyncio.fixture
async def account_user(seed, account_tenant):
    """User stored in the Acme account catalog."""
    return await seed.user(account_tenant)
