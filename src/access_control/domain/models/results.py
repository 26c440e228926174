"""Result types for scope validation and membership operations"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from access_control.domain.models.catalog import Group, User
from access_control.domain.models.tenant import CatalogRef


class ScopeType(str, Enum):
    """Catalog a group was found in, relative to the target tenant"""
    GLOBAL = "systiva"
    ACCOUNT = "account"
    NOT_FOUND = "not_found"


@dataclass
class ScopeValidationResult:
    """Outcome of checking whether a group may be assigned in a tenant

    Attributes:
        is_valid: True when the group may be assigned
        scope_type: Catalog the group was found in
        group: The group that was found (or its substitute), if any
        ref: Composite reference of the returned group
        warning: Explanation for rejections and substitutions
        substituted_from: Original group id when a same-named local group
            replaced a Global one
    """
    is_valid: bool
    scope_type: ScopeType
    group: Optional[Group] = None
    ref: Optional[CatalogRef] = None
    warning: Optional[str] = None
    substituted_from: Optional[str] = None

    @property
    def group_id(self) -> Optional[str]:
        return self.group.id if self.group else None


@dataclass
class AssignmentResult:
    """Outcome of a membership write

    Attributes:
        record: Updated user or group
        requested_count: Number of ids the caller asked for
        assigned_ids: Ids that passed validation and were written
        warnings: Per-item problems that did not fail the operation
    """
    record: object
    requested_count: int
    assigned_ids: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def validated_count(self) -> int:
        return len(self.assigned_ids)

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)


@dataclass
class BulkAssignmentResult:
    """Outcome of a create-and-assign-by-name request"""
    user: User
    requested_count: int
    assigned_ids: list[str] = field(default_factory=list)
    created_ids: list[str] = field(default_factory=list)
    updated_ids: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def validated_count(self) -> int:
        return len(self.assigned_ids)

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)
