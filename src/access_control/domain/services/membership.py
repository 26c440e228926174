"""Group and Role Membership Management

Purpose: Maintain the embedded membership arrays

- User.assigned_groups: ids of the groups a user belongs to
- Group.assigned_roles: ids of the roles a group grants

Two write styles are offered and callers pick the one matching their intent:
- assign_group / assign_role append one id (idempotent)
- assign_groups / assign_roles replace the whole array (authoritative)

Every write deduplicates, whatever the input. Group ids pass through the
scope validator before they are written; role ids must exist in the group's
own catalog.

Consistency: each call is a read-modify-write against the store (get the
record, compute the new array, put the record). There is no conditional
write, so concurrent writers to the same record race and the last put wins.
"""

import logging
from typing import Iterable, Optional

from access_control.domain.errors import (
    BatchAssignmentError,
    NotFoundError,
    ScopeViolation,
)
from access_control.domain.models.catalog import EntityKind, Group, Role, User
from access_control.domain.models.results import AssignmentResult, ScopeType
from access_control.domain.models.tenant import TenantContext
from access_control.domain.services.scope_validator import ScopeValidator
from access_control.infrastructure.store.base import CatalogStore

logger = logging.getLogger(__name__)


def dedupe(ids: Iterable[str]) -> list[str]:
    """Drop repeated and empty ids, keeping first-seen order"""
    seen = set()
    unique = []
    for entity_id in ids:
        if not entity_id or entity_id in seen:
            continue
        seen.add(entity_id)
        unique.append(entity_id)
    return unique


def add_ids(current: Iterable[str], ids: Iterable[str]) -> list[str]:
    return dedupe([*current, *ids])


def remove_ids(current: Iterable[str], ids: Iterable[str]) -> list[str]:
    removed = set(ids)
    return [entity_id for entity_id in dedupe(current) if entity_id not in removed]


class MembershipManager:
    """Add, replace and remove group and role memberships"""

    def __init__(self, store: CatalogStore, validator: ScopeValidator):
        self.store = store
        self.validator = validator

    # ------------------------------------------------------------------
    # User <-> Group
    # ------------------------------------------------------------------

    async def assign_group(
        self, tenant: TenantContext, user_id: str, group_id: str
    ) -> AssignmentResult:
        """Add one group to a user

        A Global group requested in an account tenant is replaced by the
        account's group of the same name when one exists.

        Raises:
            NotFoundError: If the user, or the group in every searched catalog,
                does not exist
            ScopeViolation: If the group may not be assigned in this tenant
        """
        user = await self._require_user(tenant, user_id)

        resolution = await self.validator.resolve_assignable_group(group_id, tenant)
        if not resolution.is_valid:
            if resolution.scope_type == ScopeType.NOT_FOUND:
                raise NotFoundError("group", group_id, resolution.warning)
            raise ScopeViolation(group_id, resolution.warning)

        warnings = [resolution.warning] if resolution.warning else []
        user = await self._write_groups(
            tenant, user, add_ids(user.assigned_groups, [resolution.group_id])
        )
        return AssignmentResult(
            record=user, requested_count=1, assigned_ids=[resolution.group_id], warnings=warnings
        )

    async def assign_groups(
        self, tenant: TenantContext, user_id: str, group_ids: list[str]
    ) -> AssignmentResult:
        """Replace a user's groups with the validated, deduplicated input

        Ids that fail validation are dropped with a warning. An explicitly
        empty list clears the membership.

        Raises:
            NotFoundError: If the user does not exist
            BatchAssignmentError: If ids were requested but none validated;
                the user is left untouched
        """
        user = await self._require_user(tenant, user_id)

        validated, warnings = await self.resolve_group_ids(tenant, group_ids)
        if group_ids and not validated:
            raise BatchAssignmentError(
                f"None of the {len(group_ids)} requested group(s) can be assigned in {tenant.key}",
                warnings,
            )

        user = await self._write_groups(tenant, user, validated)
        logger.info(
            f"Assigned {len(validated)}/{len(group_ids)} group(s) to user {user_id} in {tenant.key}"
        )
        return AssignmentResult(
            record=user,
            requested_count=len(group_ids),
            assigned_ids=validated,
            warnings=warnings,
        )

    async def resolve_group_ids(
        self, tenant: TenantContext, group_ids: list[str]
    ) -> tuple[list[str], list[str]]:
        """Validate group ids for a tenant, applying the same-name fallback

        Returns:
            (validated ids without duplicates, warnings)
        """
        validated: list[str] = []
        warnings: list[str] = []
        for group_id in dedupe(group_ids):
            resolution = await self.validator.resolve_assignable_group(group_id, tenant)
            if resolution.warning:
                warnings.append(resolution.warning)
            if resolution.is_valid:
                validated.append(resolution.group_id)
        return dedupe(validated), warnings

    async def remove_group(self, tenant: TenantContext, user_id: str, group_id: str) -> User:
        """Remove one group from a user (no-op when absent)"""
        return await self.remove_groups(tenant, user_id, [group_id])

    async def remove_groups(
        self, tenant: TenantContext, user_id: str, group_ids: list[str]
    ) -> User:
        """Remove groups from a user (set difference)"""
        user = await self._require_user(tenant, user_id)
        return await self._write_groups(tenant, user, remove_ids(user.assigned_groups, group_ids))

    async def get_user_groups(self, tenant: TenantContext, user_id: str) -> list[Group]:
        """Resolve a user's group ids to groups

        Ids whose group no longer exists are skipped; a deleted group does not
        remove the references to it.
        """
        user = await self._require_user(tenant, user_id)

        groups = []
        for group_id in dedupe(user.assigned_groups):
            found = await self.validator.find_group(group_id, tenant)
            if found is None:
                logger.debug(f"User {user_id} references removed group {group_id}")
                continue
            groups.append(found[0])
        return groups

    # ------------------------------------------------------------------
    # Group <-> Role
    # ------------------------------------------------------------------

    async def assign_role(
        self, tenant: TenantContext, group_id: str, role_id: str
    ) -> AssignmentResult:
        """Add one role to a group

        Raises:
            NotFoundError: If the group or the role does not exist in the
                tenant's catalog
        """
        group = await self._require_group(tenant, group_id)
        if await self.store.get(tenant.key, EntityKind.ROLE, role_id) is None:
            raise NotFoundError("role", role_id, f"Role {role_id} not found in {tenant.key}")

        group = await self._write_roles(tenant, group, add_ids(group.assigned_roles, [role_id]))
        return AssignmentResult(record=group, requested_count=1, assigned_ids=[role_id])

    async def assign_roles(
        self, tenant: TenantContext, group_id: str, role_ids: list[str]
    ) -> AssignmentResult:
        """Replace a group's roles with the existing, deduplicated input

        Raises:
            NotFoundError: If the group does not exist
            BatchAssignmentError: If roles were requested but none exist
        """
        group = await self._require_group(tenant, group_id)

        validated, warnings = await self.filter_role_ids(tenant, role_ids)
        if role_ids and not validated:
            raise BatchAssignmentError(
                f"None of the {len(role_ids)} requested role(s) exist in {tenant.key}", warnings
            )

        group = await self._write_roles(tenant, group, validated)
        return AssignmentResult(
            record=group,
            requested_count=len(role_ids),
            assigned_ids=validated,
            warnings=warnings,
        )

    async def filter_role_ids(
        self, tenant: TenantContext, role_ids: list[str]
    ) -> tuple[list[str], list[str]]:
        """Keep the role ids that exist in the tenant's catalog

        Returns:
            (existing ids without duplicates, warnings for the rest)
        """
        validated: list[str] = []
        warnings: list[str] = []
        for role_id in dedupe(role_ids):
            if await self.store.get(tenant.key, EntityKind.ROLE, role_id) is None:
                warnings.append(f"Role {role_id} not found in {tenant.key}")
                continue
            validated.append(role_id)
        return validated, warnings

    async def remove_role(self, tenant: TenantContext, group_id: str, role_id: str) -> Group:
        """Remove one role from a group (no-op when absent)"""
        return await self.remove_roles(tenant, group_id, [role_id])

    async def remove_roles(
        self, tenant: TenantContext, group_id: str, role_ids: list[str]
    ) -> Group:
        """Remove roles from a group (set difference)"""
        group = await self._require_group(tenant, group_id)
        return await self._write_roles(tenant, group, remove_ids(group.assigned_roles, role_ids))

    async def get_group_roles(self, tenant: TenantContext, group_id: str) -> list[Role]:
        """Resolve a group's role ids to roles, skipping removed roles

        The group is looked up in the tenant's catalog then Global; its roles
        are read from the catalog the group was found in.
        """
        found = await self.validator.find_group(group_id, tenant)
        if found is None:
            raise NotFoundError("group", group_id)
        group, ref = found

        roles = []
        for role_id in dedupe(group.assigned_roles):
            role = await self.store.get(ref.tenant, EntityKind.ROLE, role_id)
            if role is None:
                logger.debug(f"Group {group_id} references removed role {role_id}")
                continue
            roles.append(role)
        return roles

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_user(self, tenant: TenantContext, user_id: str) -> User:
        user = await self.store.get(tenant.key, EntityKind.USER, user_id)
        if user is None:
            raise NotFoundError("user", user_id, f"User {user_id} not found in {tenant.key}")
        return user

    async def _require_group(self, tenant: TenantContext, group_id: str) -> Group:
        group = await self.store.get(tenant.key, EntityKind.GROUP, group_id)
        if group is None:
            raise NotFoundError("group", group_id, f"Group {group_id} not found in {tenant.key}")
        return group

    async def _write_groups(self, tenant: TenantContext, user: User, group_ids: list[str]) -> User:
        group_ids = dedupe(group_ids)
        if group_ids == user.assigned_groups:
            return user
        updated: Optional[User] = await self.store.update(
            tenant.key, EntityKind.USER, user.id, {"assigned_groups": group_ids}
        )
        if updated is None:
            raise NotFoundError("user", user.id, f"User {user.id} was deleted during the update")
        return updated

    async def _write_roles(self, tenant: TenantContext, group: Group, role_ids: list[str]) -> Group:
        role_ids = dedupe(role_ids)
        if role_ids == group.assigned_roles:
            return group
        updated: Optional[Group] = await self.store.update(
            tenant.key, EntityKind.GROUP, group.id, {"assigned_roles": role_ids}
        )
        if updated is None:
            raise NotFoundError("group", group.id, f"Group {group.id} was deleted during the update")
        return updated
