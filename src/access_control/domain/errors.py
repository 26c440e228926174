"""Access control error types

NotFound is normally a result variant (stores return None); NotFoundError is
raised only where a caller asked for one specific entity. Scope violations and
per-item bulk failures are downgraded to warnings by the bulk flows.
"""

from typing import Optional


class AccessControlError(Exception):
    """Base class for all engine errors"""


class NotFoundError(AccessControlError):
    """Requested user, group or role does not exist in the searched catalog(s)"""

    def __init__(self, kind: str, entity_id: str, message: Optional[str] = None):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(message or f"{kind.capitalize()} {entity_id} not found")


class ValidationError(AccessControlError):
    """Malformed input; surfaced immediately with no partial processing"""


class ConflictError(ValidationError):
    """A name or email that must be unique within a tenant is already taken"""


class ScopeViolation(AccessControlError):
    """A group is not assignable in the target tenant and no fallback exists"""

    def __init__(self, group_id: str, message: str):
        self.group_id = group_id
        super().__init__(message)


class BatchAssignmentError(AccessControlError):
    """Every item of a non-empty bulk request was rejected

    Raised instead of performing an authoritative replace with an empty set.
    """

    def __init__(self, message: str, warnings: Optional[list[str]] = None):
        self.warnings = list(warnings or [])
        super().__init__(message)


class StoreError(AccessControlError):
    """The backing store is unreachable or returned an unexpected error"""
