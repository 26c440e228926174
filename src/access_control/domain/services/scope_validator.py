"""Group Scope Validation

Purpose: Decide whether a group may be assigned inside a tenant

A group id only means something inside the catalog that created it, so a
lookup has to try the two catalogs an id could plausibly belong to: the
target tenant's own catalog, then Global.

Rules:
- found in the target tenant's own catalog -> assignable
- found in Global while the target is Global -> assignable
- found in Global while the target is an account -> not assignable
  (cross-tenant leakage); the fallback resolver may substitute the account's
  own group of the same name
- found nowhere -> not assignable
"""

import logging
from typing import Optional

from access_control.domain.models.catalog import EntityKind, Group
from access_control.domain.models.results import ScopeType, ScopeValidationResult
from access_control.domain.models.tenant import CatalogRef, TenantContext, TenantKey
from access_control.infrastructure.store.base import CatalogStore

logger = logging.getLogger(__name__)


class ScopeValidator:
    """Validates group/tenant pairings and resolves same-name fallbacks

    Store errors are not caught here; they abort the calling operation.
    """

    def __init__(self, store: CatalogStore):
        self.store = store

    async def find_group(
        self, group_id: str, tenant: TenantContext
    ) -> Optional[tuple[Group, CatalogRef]]:
        """Locate a group in the tenant's own catalog, then in Global

        Returns:
            (group, composite reference) if found, None otherwise
        """
        if not tenant.is_global:
            group = await self.store.get(tenant.key, EntityKind.GROUP, group_id)
            if group:
                return group, CatalogRef(tenant.key, group_id)

        group = await self.store.get(TenantKey.GLOBAL, EntityKind.GROUP, group_id)
        if group:
            return group, CatalogRef(TenantKey.GLOBAL, group_id)

        return None

    async def validate_group_scope(
        self, group_id: str, tenant: TenantContext
    ) -> ScopeValidationResult:
        """Check whether a group may be assigned in the target tenant

        Args:
            group_id: Group identifier as supplied by the caller
            tenant: Target tenant context

        Returns:
            ScopeValidationResult
        """
        logger.debug(f"Validating group scope for {group_id} in {tenant}")

        found = await self.find_group(group_id, tenant)
        if found is None:
            return ScopeValidationResult(
                is_valid=False,
                scope_type=ScopeType.NOT_FOUND,
                warning=f"Group {group_id} not found in {tenant.key} or Global catalogs",
            )

        group, ref = found

        if ref.tenant == tenant.key:
            if tenant.is_global:
                return ScopeValidationResult(
                    is_valid=True, scope_type=ScopeType.GLOBAL, group=group, ref=ref
                )

            if (
                tenant.enterprise is not None
                and group.enterprise_id
                and group.enterprise_id != tenant.enterprise_id
            ):
                return ScopeValidationResult(
                    is_valid=False,
                    scope_type=ScopeType.ACCOUNT,
                    group=group,
                    ref=ref,
                    warning=(
                        f"Group \"{group.name}\" belongs to enterprise "
                        f"{group.enterprise_name} ({group.enterprise_id}), expected "
                        f"{tenant.enterprise.enterprise_name} ({tenant.enterprise_id})"
                    ),
                )

            return ScopeValidationResult(
                is_valid=True, scope_type=ScopeType.ACCOUNT, group=group, ref=ref
            )

        # Global group requested inside an account tenant
        logger.warning(f"Global group {group.name} ({group.id}) requested in {tenant.key}")
        return ScopeValidationResult(
            is_valid=False,
            scope_type=ScopeType.GLOBAL,
            group=group,
            ref=ref,
            warning=(
                f"Attempting to assign Global group \"{group.name}\" ({group.id}) in account "
                f"context {tenant.key}. Use account-specific groups instead to maintain "
                f"data isolation."
            ),
        )

    async def find_group_by_name(self, name: str, tenant: TenantContext) -> Optional[Group]:
        """Find a group by name in the tenant's own catalog

        The enterprise filter, when present, keeps only groups whose stored
        enterprise tag matches. An exact name match wins over a
        case-insensitive one.
        """
        groups = await self.store.list(tenant.key, EntityKind.GROUP)
        if tenant.enterprise is not None:
            groups = [g for g in groups if g.enterprise_id == tenant.enterprise_id]

        for group in groups:
            if group.name == name:
                return group

        folded = name.casefold()
        for group in groups:
            if group.name.casefold() == folded:
                return group

        return None

    async def find_account_specific_group_by_name(
        self, name: str, tenant: TenantContext
    ) -> Optional[Group]:
        """Find an account-owned group with the given name

        Returns None for the Global tenant, which has no account catalog.
        """
        if tenant.is_global:
            return None

        group = await self.find_group_by_name(name, tenant)
        if group:
            logger.debug(f"Found account-specific group {group.name} ({group.id}) in {tenant.key}")
        else:
            logger.debug(f"No account-specific group named \"{name}\" in {tenant.key}")
        return group

    async def resolve_assignable_group(
        self, group_id: str, tenant: TenantContext
    ) -> ScopeValidationResult:
        """Validate a group and apply the same-name fallback

        When a Global group is requested inside an account tenant, the
        account's own group with the same name is substituted. Without such a
        group the result stays invalid and says the group was dropped.
        """
        result = await self.validate_group_scope(group_id, tenant)
        if result.is_valid or result.scope_type != ScopeType.GLOBAL:
            return result

        global_group = result.group
        substitute = await self.find_account_specific_group_by_name(global_group.name, tenant)
        if substitute is None:
            return ScopeValidationResult(
                is_valid=False,
                scope_type=ScopeType.GLOBAL,
                group=global_group,
                ref=result.ref,
                warning=(
                    f"Dropped Global group \"{global_group.name}\" ({global_group.id}): "
                    f"no group with that name exists in {tenant.key}"
                ),
            )

        warning = (
            f"Replaced Global group \"{global_group.name}\" ({global_group.id}) with account "
            f"group \"{substitute.name}\" ({substitute.id})"
        )
        logger.warning(warning)
        return ScopeValidationResult(
            is_valid=True,
            scope_type=ScopeType.ACCOUNT,
            group=substitute,
            ref=CatalogRef(tenant.key, substitute.id),
            warning=warning,
            substituted_from=global_group.id,
        )
