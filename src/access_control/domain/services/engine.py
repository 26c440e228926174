"""Access Control Engine

Purpose: Single entry point for user, group and role operations

The transport layer resolves a TenantContext (see resolve_tenant) and calls
one method per operation. The engine holds no state between calls; every
method reads and writes through the injected CatalogStore.

Key Operations:
- CRUD for users, groups and roles inside one tenant catalog
- Group membership (single add, authoritative replace, removal)
- Role membership of groups
- Scope validation and same-name fallback
- Create-and-assign-by-name bulk workflow

Error mapping for transports: NotFoundError -> 404, ValidationError -> 400,
ScopeViolation / BatchAssignmentError -> 400 or 409, StoreError -> 503.
"""

import logging
from typing import Any, Optional, Union

from access_control.domain.errors import (
    BatchAssignmentError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from access_control.domain.models.catalog import (
    EntityKind,
    Group,
    Role,
    User,
    UserStatus,
    to_json_compatible,
    utc_now,
)
from access_control.domain.models.results import (
    AssignmentResult,
    BulkAssignmentResult,
    ScopeValidationResult,
)
from access_control.domain.models.tenant import TenantContext
from access_control.domain.models.updates import (
    GroupCreate,
    GroupSpec,
    GroupUpdate,
    RoleCreate,
    RoleUpdate,
    UserCreate,
    UserUpdate,
    changes_of,
)
from access_control.domain.services.bulk_assignment import BulkAssignmentOrchestrator
from access_control.domain.services.membership import MembershipManager, dedupe
from access_control.domain.services.scope_validator import ScopeValidator
from access_control.infrastructure.store.base import CatalogStore

logger = logging.getLogger(__name__)


class AccessControlEngine:
    """Tenant-scoped user, group and role management

    Example:
        engine = AccessControlEngine(InMemoryCatalogStore())
        tenant = resolve_tenant("42", "Acme")
        user = await engine.create_user(tenant, UserCreate(...))
        result = await engine.assign_groups(tenant, user.id, ["g2"])
    """

    def __init__(self, store: CatalogStore):
        """Initialize engine

        Args:
            store: Catalog store selected at startup
        """
        self.store = store
        self.validator = ScopeValidator(store)
        self.membership = MembershipManager(store, self.validator)
        self.bulk = BulkAssignmentOrchestrator(store, self.validator, self.membership)

    # ==========================================
    # USER OPERATIONS
    # ==========================================

    async def create_user(self, tenant: TenantContext, data: UserCreate) -> User:
        """Create a user in the tenant's catalog

        Groups supplied at creation go through the same validation as
        assign_groups; rejected ids are logged and dropped.

        Raises:
            ConflictError: If the email is already used in this tenant
            BatchAssignmentError: If groups were supplied and none validated
        """
        await self._ensure_email_free(tenant, data.email_address)

        payload = data.model_dump(mode="json", exclude={"assigned_groups"})
        if data.assigned_groups:
            validated, warnings = await self.membership.resolve_group_ids(
                tenant, data.assigned_groups
            )
            for warning in warnings:
                logger.warning(f"Creating user {data.email_address}: {warning}")
            if not validated:
                raise BatchAssignmentError(
                    f"None of the {len(data.assigned_groups)} requested group(s) can be "
                    f"assigned in {tenant.key}",
                    warnings,
                )
            payload["assigned_groups"] = validated

        user = await self.store.create(
            tenant.key, EntityKind.USER, {**payload, **tenant.enterprise_tags()}
        )
        logger.info(f"Created user {user.id} ({user.email_address}) in {tenant.key}")
        return user

    async def get_user(self, tenant: TenantContext, user_id: str) -> User:
        user = await self.store.get(tenant.key, EntityKind.USER, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    async def list_users(
        self,
        tenant: TenantContext,
        status: Optional[UserStatus] = None,
        search: Optional[str] = None,
    ) -> list[User]:
        """List users of a tenant

        Args:
            tenant: Tenant context; its enterprise filter applies
            status: Keep only users with this status
            search: Case-insensitive match on first name, last name or email
        """
        users = self._apply_enterprise_filter(
            tenant, await self.store.list(tenant.key, EntityKind.USER)
        )
        if status is not None:
            users = [u for u in users if u.status == status]
        if search:
            needle = search.lower()
            users = [
                u
                for u in users
                if needle in u.first_name.lower()
                or needle in u.last_name.lower()
                or needle in u.email_address.lower()
            ]
        return sorted(users, key=lambda u: (u.last_name.lower(), u.first_name.lower()))

    async def update_user(self, tenant: TenantContext, user_id: str, data: UserUpdate) -> User:
        """Apply a partial update to a user

        Membership is not changed here; use the group operations.
        """
        changes = changes_of(data)
        current = await self.get_user(tenant, user_id)

        email = changes.get("email_address")
        if email and email != current.email_address:
            await self._ensure_email_free(tenant, email, exclude_id=user_id)

        user = await self.store.update(tenant.key, EntityKind.USER, user_id, changes)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    async def delete_user(self, tenant: TenantContext, user_id: str) -> None:
        if not await self.store.delete(tenant.key, EntityKind.USER, user_id):
            raise NotFoundError("user", user_id)

    # ==========================================
    # GROUP OPERATIONS
    # ==========================================

    async def create_group(self, tenant: TenantContext, data: GroupCreate) -> Group:
        """Create a group; its name must be unused in this tenant

        Raises:
            ConflictError: If the tenant already has a group with this name
            ValidationError: If an assigned role does not exist in the tenant
        """
        await self._ensure_group_name_free(tenant, data.name)

        payload = data.model_dump(mode="json")
        payload["assigned_roles"] = await self._checked_role_ids(tenant, data.assigned_roles)

        return await self.store.create(
            tenant.key, EntityKind.GROUP, {**payload, **tenant.enterprise_tags()}
        )

    async def get_group(self, tenant: TenantContext, group_id: str) -> Group:
        group = await self.store.get(tenant.key, EntityKind.GROUP, group_id)
        if group is None:
            raise NotFoundError("group", group_id)
        return group

    async def list_groups(self, tenant: TenantContext) -> list[Group]:
        """List a tenant's groups sorted by name (enterprise filter applies)"""
        groups = self._apply_enterprise_filter(
            tenant, await self.store.list(tenant.key, EntityKind.GROUP)
        )
        return sorted(groups, key=lambda g: g.name.casefold())

    async def update_group(self, tenant: TenantContext, group_id: str, data: GroupUpdate) -> Group:
        changes = changes_of(data)
        current = await self.get_group(tenant, group_id)

        name = changes.get("name")
        if name and name != current.name:
            await self._ensure_group_name_free(tenant, name, exclude_id=group_id)

        if "assigned_roles" in changes:
            changes["assigned_roles"] = await self._checked_role_ids(
                tenant, changes["assigned_roles"] or []
            )

        group = await self.store.update(tenant.key, EntityKind.GROUP, group_id, changes)
        if group is None:
            raise NotFoundError("group", group_id)
        return group

    async def delete_group(self, tenant: TenantContext, group_id: str) -> None:
        """Delete a group; user references to it are left in place"""
        if not await self.store.delete(tenant.key, EntityKind.GROUP, group_id):
            raise NotFoundError("group", group_id)

    # ==========================================
    # ROLE OPERATIONS
    # ==========================================

    async def create_role(self, tenant: TenantContext, data: RoleCreate) -> Role:
        payload = data.model_dump(mode="json")
        return await self.store.create(
            tenant.key, EntityKind.ROLE, {**payload, **tenant.enterprise_tags()}
        )

    async def get_role(self, tenant: TenantContext, role_id: str) -> Role:
        role = await self.store.get(tenant.key, EntityKind.ROLE, role_id)
        if role is None:
            raise NotFoundError("role", role_id)
        return role

    async def list_roles(self, tenant: TenantContext) -> list[Role]:
        roles = self._apply_enterprise_filter(
            tenant, await self.store.list(tenant.key, EntityKind.ROLE)
        )
        return sorted(roles, key=lambda r: r.name.casefold())

    async def update_role(self, tenant: TenantContext, role_id: str, data: RoleUpdate) -> Role:
        role = await self.store.update(tenant.key, EntityKind.ROLE, role_id, changes_of(data))
        if role is None:
            raise NotFoundError("role", role_id)
        return role

    async def delete_role(self, tenant: TenantContext, role_id: str) -> None:
        """Delete a role; group references to it are left in place"""
        if not await self.store.delete(tenant.key, EntityKind.ROLE, role_id):
            raise NotFoundError("role", role_id)

    async def update_role_scope(
        self, tenant: TenantContext, role_id: str, scope_config: dict[str, Any]
    ) -> Role:
        """Replace a role's scope configuration and mark it configured"""
        config = {
            **scope_config,
            "configured": True,
            "updated_at": to_json_compatible(utc_now()),
        }
        role = await self.store.update(
            tenant.key, EntityKind.ROLE, role_id, {"scope_config": config}
        )
        if role is None:
            raise NotFoundError("role", role_id)
        return role

    async def get_role_scope(self, tenant: TenantContext, role_id: str) -> Optional[dict[str, Any]]:
        role = await self.get_role(tenant, role_id)
        return role.scope_config

    # ==========================================
    # MEMBERSHIP OPERATIONS
    # ==========================================

    async def assign_group(
        self, tenant: TenantContext, user_id: str, group_id: str
    ) -> AssignmentResult:
        return await self.membership.assign_group(tenant, user_id, group_id)

    async def assign_groups(
        self, tenant: TenantContext, user_id: str, group_ids: list[str]
    ) -> AssignmentResult:
        return await self.membership.assign_groups(tenant, user_id, group_ids)

    async def remove_group(self, tenant: TenantContext, user_id: str, group_id: str) -> User:
        return await self.membership.remove_group(tenant, user_id, group_id)

    async def remove_groups(
        self, tenant: TenantContext, user_id: str, group_ids: list[str]
    ) -> User:
        return await self.membership.remove_groups(tenant, user_id, group_ids)

    async def assign_role(
        self, tenant: TenantContext, group_id: str, role_id: str
    ) -> AssignmentResult:
        return await self.membership.assign_role(tenant, group_id, role_id)

    async def assign_roles(
        self, tenant: TenantContext, group_id: str, role_ids: list[str]
    ) -> AssignmentResult:
        return await self.membership.assign_roles(tenant, group_id, role_ids)

    async def remove_role(self, tenant: TenantContext, group_id: str, role_id: str) -> Group:
        return await self.membership.remove_role(tenant, group_id, role_id)

    async def remove_roles(
        self, tenant: TenantContext, group_id: str, role_ids: list[str]
    ) -> Group:
        return await self.membership.remove_roles(tenant, group_id, role_ids)

    async def get_user_groups(self, tenant: TenantContext, user_id: str) -> list[Group]:
        return await self.membership.get_user_groups(tenant, user_id)

    async def get_group_roles(self, tenant: TenantContext, group_id: str) -> list[Role]:
        return await self.membership.get_group_roles(tenant, group_id)

    async def get_user_with_hierarchy(self, tenant: TenantContext, user_id: str) -> dict[str, Any]:
        """User payload with its groups, each carrying its roles"""
        user = await self.get_user(tenant, user_id)
        groups = []
        for group in await self.membership.get_user_groups(tenant, user_id):
            roles = await self.membership.get_group_roles(tenant, group.id)
            groups.append({**group.to_dict(), "roles": [role.to_dict() for role in roles]})
        return {**user.to_dict(), "groups": groups}

    # ==========================================
    # SCOPE AND BULK OPERATIONS
    # ==========================================

    async def validate_group_scope(
        self, tenant: TenantContext, group_id: str
    ) -> ScopeValidationResult:
        return await self.validator.validate_group_scope(group_id, tenant)

    async def find_account_specific_group_by_name(
        self, tenant: TenantContext, name: str
    ) -> Optional[Group]:
        return await self.validator.find_account_specific_group_by_name(name, tenant)

    async def create_and_assign_by_name(
        self,
        tenant: TenantContext,
        user_id: str,
        specs: list[Union[GroupSpec, dict[str, Any]]],
    ) -> BulkAssignmentResult:
        return await self.bulk.create_and_assign_by_name(tenant, user_id, specs)

    async def assign_groups_by_request(
        self,
        tenant: TenantContext,
        user_id: str,
        group_id: Optional[str] = None,
        group_ids: Optional[list[str]] = None,
        groups: Optional[list[Union[GroupSpec, dict[str, Any]]]] = None,
    ) -> Union[AssignmentResult, BulkAssignmentResult]:
        return await self.bulk.assign_groups_by_request(
            tenant, user_id, group_id=group_id, group_ids=group_ids, groups=groups
        )

    # ==========================================
    # HELPERS
    # ==========================================

    @staticmethod
    def _apply_enterprise_filter(tenant: TenantContext, records: list) -> list:
        if tenant.enterprise is None:
            return records
        return [r for r in records if r.enterprise_id == tenant.enterprise_id]

    async def _ensure_email_free(
        self, tenant: TenantContext, email: str, exclude_id: Optional[str] = None
    ) -> None:
        email = email.lower()
        for user in await self.store.list(tenant.key, EntityKind.USER):
            if user.id != exclude_id and user.email_address.lower() == email:
                raise ConflictError(f"Email '{email}' already exists in {tenant.key}")

    async def _ensure_group_name_free(
        self, tenant: TenantContext, name: str, exclude_id: Optional[str] = None
    ) -> None:
        # Uniqueness is per tenant, across every enterprise in it
        folded = name.casefold()
        for group in await self.store.list(tenant.key, EntityKind.GROUP):
            if group.id != exclude_id and group.name.casefold() == folded:
                raise ConflictError(f"Group '{name}' already exists in {tenant.key}")

    async def _checked_role_ids(self, tenant: TenantContext, role_ids: list[str]) -> list[str]:
        validated, warnings = await self.membership.filter_role_ids(tenant, role_ids)
        if warnings:
            raise ValidationError("; ".join(warnings))
        return dedupe(validated)
