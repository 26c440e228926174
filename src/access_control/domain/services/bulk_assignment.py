"""Bulk Group Assignment

Purpose: Create-and-assign groups by name for one user

Clients send group specifications carrying a display name and optional
details. Any id on a specification may be a client-side placeholder, so
groups are matched by name only: existing groups are reused (and patched
with whatever non-empty details differ), missing ones are created, and the
resulting ids replace the user's group membership.

Failure handling:
- a specification that cannot be parsed, created or updated becomes a
  warning and the batch continues
- a specification resolving to a group already seen in the batch is skipped
- if nothing survives, the request fails and the user's membership is left
  alone rather than replaced with an empty set

Specifications are processed one at a time in input order because later
ones depend on the dedup state left by earlier ones. Groups created or
updated before a failure are not rolled back.
"""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from access_control.domain.errors import (
    AccessControlError,
    BatchAssignmentError,
    NotFoundError,
    ValidationError,
)
from access_control.domain.models.catalog import EntityKind, Group
from access_control.domain.models.results import AssignmentResult, BulkAssignmentResult
from access_control.domain.models.tenant import TenantContext
from access_control.domain.models.updates import GroupSpec
from access_control.domain.services.membership import MembershipManager, dedupe
from access_control.domain.services.scope_validator import ScopeValidator
from access_control.infrastructure.store.base import CatalogStore

logger = logging.getLogger(__name__)

# Group fields a specification may patch on an existing group
PATCHABLE_FIELDS = ("description", "entity", "product", "service")


class BulkAssignmentOrchestrator:
    """Create-and-assign-by-name workflow"""

    def __init__(
        self, store: CatalogStore, validator: ScopeValidator, membership: MembershipManager
    ):
        self.store = store
        self.validator = validator
        self.membership = membership

    async def create_and_assign_by_name(
        self,
        tenant: TenantContext,
        user_id: str,
        specs: list[Union[GroupSpec, dict[str, Any]]],
    ) -> BulkAssignmentResult:
        """Resolve group specifications by name and make them the user's groups

        Args:
            tenant: Tenant the user and groups belong to
            user_id: User whose membership is replaced
            specs: Group specifications, as models or raw dicts

        Returns:
            BulkAssignmentResult with counts, ids and per-item warnings

        Raises:
            ValidationError: If no specifications were supplied
            NotFoundError: If the user does not exist
            BatchAssignmentError: If no specification could be resolved
        """
        if not specs:
            raise ValidationError("At least one group specification is required")

        if await self.store.get(tenant.key, EntityKind.USER, user_id) is None:
            raise NotFoundError("user", user_id, f"User {user_id} not found in {tenant.key}")

        resolved_ids: list[str] = []
        created_ids: list[str] = []
        updated_ids: list[str] = []
        warnings: list[str] = []
        seen: set[str] = set()

        for position, raw in enumerate(specs, start=1):
            spec = self._parse_spec(position, raw, warnings)
            if spec is None:
                continue

            try:
                group, action = await self._upsert_by_name(tenant, spec, warnings)
            except AccessControlError as e:
                message = f"Failed to create or update group \"{spec.name}\": {e}"
                logger.warning(message)
                warnings.append(message)
                continue

            if group.id in seen:
                logger.info(
                    f"Skipping group specification #{position} \"{spec.name}\": "
                    f"group {group.id} already resolved in this batch"
                )
                continue

            seen.add(group.id)
            resolved_ids.append(group.id)
            if action == "created":
                created_ids.append(group.id)
            elif action == "updated":
                updated_ids.append(group.id)

        if not resolved_ids:
            raise BatchAssignmentError(
                f"None of the {len(specs)} group specification(s) could be resolved; "
                f"group membership of user {user_id} left unchanged",
                warnings,
            )

        assignment = await self.membership.assign_groups(tenant, user_id, resolved_ids)
        warnings.extend(assignment.warnings)

        logger.info(
            f"Bulk assignment for user {user_id} in {tenant.key}: "
            f"{assignment.validated_count}/{len(specs)} assigned, "
            f"{len(created_ids)} created, {len(updated_ids)} updated, {len(warnings)} warning(s)"
        )
        return BulkAssignmentResult(
            user=assignment.record,
            requested_count=len(specs),
            assigned_ids=assignment.assigned_ids,
            created_ids=created_ids,
            updated_ids=updated_ids,
            warnings=warnings,
        )

    async def assign_groups_by_request(
        self,
        tenant: TenantContext,
        user_id: str,
        group_id: Optional[str] = None,
        group_ids: Optional[list[str]] = None,
        groups: Optional[list[Union[GroupSpec, dict[str, Any]]]] = None,
    ) -> Union[AssignmentResult, BulkAssignmentResult]:
        """Dispatch the three accepted request shapes

        - group_id: add one group
        - group_ids: replace membership with these ids
        - groups: create-and-assign by name

        Raises:
            ValidationError: If none of the three is supplied
        """
        if groups:
            return await self.create_and_assign_by_name(tenant, user_id, groups)
        if group_ids is not None:
            return await self.membership.assign_groups(tenant, user_id, group_ids)
        if group_id:
            return await self.membership.assign_group(tenant, user_id, group_id)
        raise ValidationError("One of groupId, groupIds or groups is required")

    def _parse_spec(
        self, position: int, raw: Union[GroupSpec, dict[str, Any]], warnings: list[str]
    ) -> Optional[GroupSpec]:
        if isinstance(raw, GroupSpec):
            return raw
        try:
            return GroupSpec.model_validate(raw)
        except PydanticValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            message = f"Group specification #{position} is invalid: {errors}"
            logger.warning(message)
            warnings.append(message)
            return None

    async def _upsert_by_name(
        self, tenant: TenantContext, spec: GroupSpec, warnings: list[str]
    ) -> tuple[Group, str]:
        """Reuse the tenant's group with this name, or create it

        Group names are unique across the whole tenant, so the lookup ignores
        the enterprise filter. A reused group tagged with another enterprise
        is then rejected by assign_groups with a warning.

        Returns:
            (group, action) where action is "created", "updated" or "unchanged"
        """
        existing = await self.validator.find_group_by_name(spec.name, tenant.without_enterprise())

        if existing is None:
            role_ids: list[str] = []
            if spec.assigned_roles:
                role_ids, role_warnings = await self.membership.filter_role_ids(
                    tenant, spec.assigned_roles
                )
                warnings.extend(role_warnings)

            group = await self.store.create(
                tenant.key,
                EntityKind.GROUP,
                {
                    "name": spec.name,
                    "description": spec.description or "",
                    "entity": spec.entity or "",
                    "product": spec.product or "",
                    "service": spec.service or "",
                    "assigned_roles": role_ids,
                    **tenant.enterprise_tags(),
                },
            )
            logger.info(f"Created group \"{group.name}\" ({group.id}) in {tenant.key}")
            return group, "created"

        changes = await self._sparse_changes(tenant, existing, spec, warnings)
        if not changes:
            return existing, "unchanged"

        updated = await self.store.update(tenant.key, EntityKind.GROUP, existing.id, changes)
        if updated is None:
            raise NotFoundError("group", existing.id, f"Group {existing.id} was deleted during the update")
        logger.info(f"Updated group \"{updated.name}\" ({updated.id}): {sorted(changes)}")
        return updated, "updated"

    async def _sparse_changes(
        self, tenant: TenantContext, existing: Group, spec: GroupSpec, warnings: list[str]
    ) -> dict[str, Any]:
        """Fields that differ from the stored group and are non-empty

        A blank value never overwrites a stored one; stale or partial client
        payloads must not wipe details.
        """
        changes: dict[str, Any] = {}
        for field_name in PATCHABLE_FIELDS:
            value = getattr(spec, field_name)
            if value is None or not value.strip():
                continue
            if value != getattr(existing, field_name):
                changes[field_name] = value

        if spec.assigned_roles:
            role_ids, role_warnings = await self.membership.filter_role_ids(
                tenant, spec.assigned_roles
            )
            warnings.extend(role_warnings)
            if role_ids and set(role_ids) != set(dedupe(existing.assigned_roles)):
                changes["assigned_roles"] = role_ids

        return changes
