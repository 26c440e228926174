"""Domain models for the Access Control Engine"""

from access_control.domain.models.catalog import (
    CatalogRecord,
    EntityKind,
    Group,
    Role,
    User,
    UserStatus,
    parse_utc_timestamp,
    record_from_dict,
    to_json_compatible,
    utc_now,
)
from access_control.domain.models.results import (
    AssignmentResult,
    BulkAssignmentResult,
    ScopeType,
    ScopeValidationResult,
)
from access_control.domain.models.tenant import (
    AccountScope,
    CatalogRef,
    EnterpriseFilter,
    TenantContext,
    TenantKey,
    resolve_tenant,
    tenant_from_params,
)
from access_control.domain.models.updates import (
    GroupCreate,
    GroupSpec,
    GroupUpdate,
    RoleCreate,
    RoleUpdate,
    UserCreate,
    UserUpdate,
    changes_of,
    merge_partial,
)

__all__ = [
    # Catalog records
    "CatalogRecord",
    "EntityKind",
    "Group",
    "Role",
    "User",
    "UserStatus",
    "parse_utc_timestamp",
    "record_from_dict",
    "to_json_compatible",
    "utc_now",
    # Tenancy
    "AccountScope",
    "CatalogRef",
    "EnterpriseFilter",
    "TenantContext",
    "TenantKey",
    "resolve_tenant",
    "tenant_from_params",
    # Payloads
    "GroupCreate",
    "GroupSpec",
    "GroupUpdate",
    "RoleCreate",
    "RoleUpdate",
    "UserCreate",
    "UserUpdate",
    "changes_of",
    "merge_partial",
    # Results
    "AssignmentResult",
    "BulkAssignmentResult",
    "ScopeType",
    "ScopeValidationResult",
]
