"""Create, partial-update and bulk specification payloads

Partial updates are explicit: every field is optional and only the fields a
caller actually set are applied. merge_partial() is the one place where a
set of changes is folded into a stored record.
"""

from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from access_control.domain.models.catalog import UserStatus

# Fields a partial update may never overwrite
PROTECTED_FIELDS = frozenset({"id", "created_at"})


def _strip_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _normalize_email(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if value is not None else value


Name = Annotated[str, AfterValidator(_strip_name)]
Email = Annotated[
    str,
    BeforeValidator(_normalize_email),
    Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$"),
]


class UserCreate(BaseModel):
    """Schema for creating a user"""

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email_address: Email
    middle_name: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    technical_user: bool = False
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_groups: list[str] = Field(default_factory=list)


class UserUpdate(BaseModel):
    """Schema for updating a user"""

    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    email_address: Optional[Email] = None
    middle_name: Optional[str] = None
    status: Optional[UserStatus] = None
    technical_user: Optional[bool] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class GroupCreate(BaseModel):
    """Schema for creating a group"""

    name: Name
    description: str = ""
    entity: str = ""
    product: str = ""
    service: str = ""
    assigned_roles: list[str] = Field(default_factory=list)


class GroupUpdate(BaseModel):
    """Schema for updating a group"""

    name: Optional[Name] = None
    description: Optional[str] = None
    entity: Optional[str] = None
    product: Optional[str] = None
    service: Optional[str] = None
    assigned_roles: Optional[list[str]] = None


class RoleCreate(BaseModel):
    """Schema for creating a role"""

    name: Name
    description: str = ""
    entity: str = ""
    product: str = ""
    service: str = ""
    scope_config: Optional[dict[str, Any]] = None


class RoleUpdate(BaseModel):
    """Schema for updating a role"""

    name: Optional[Name] = None
    description: Optional[str] = None
    entity: Optional[str] = None
    product: Optional[str] = None
    service: Optional[str] = None
    scope_config: Optional[dict[str, Any]] = None


class GroupSpec(BaseModel):
    """One entry of a create-and-assign-by-name request

    The id, when present, is a client-side placeholder and is never used to
    look a group up.
    """

    model_config = ConfigDict(extra="ignore")

    name: Name
    id: Optional[str] = None
    description: Optional[str] = None
    entity: Optional[str] = None
    product: Optional[str] = None
    service: Optional[str] = None
    assigned_roles: Optional[list[str]] = None


def changes_of(update: BaseModel) -> dict[str, Any]:
    """Fields the caller explicitly set on a partial update"""
    return update.model_dump(mode="json", exclude_unset=True)


def merge_partial(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Fold changes into a stored record payload

    Only keys present in changes are replaced; untouched keys keep their
    prior values. Protected keys are ignored.

    Args:
        current: Stored record payload
        changes: Fields to overwrite

    Returns:
        New payload dict (current is not modified)
    """
    merged = dict(current)
    for key, value in changes.items():
        if key in PROTECTED_FIELDS:
            continue
        merged[key] = value
    return merged
