"""Catalog Data Models

Purpose: Define the records held in a tenant catalog

Key Components:
- User: account holder, member of groups via assigned_groups
- Group: named set of roles via assigned_roles, name unique per tenant
- Role: named permission set with an opaque scope configuration
- EntityKind: discriminator used by catalog stores

Membership is embedded: a user stores the ids of its groups and a group the
ids of its roles. There are no back-references and no foreign keys, so a
stored id may outlive the record it names.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from access_control.domain.errors import ValidationError


def utc_now() -> datetime:
    """Return current UTC time (timezone-aware)"""
    return datetime.now(timezone.utc)


def parse_utc_timestamp(value) -> Optional[datetime]:
    """Parse a UTC timestamp string to a datetime object"""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def to_json_compatible(value):
    """Convert datetime to JSON-compatible ISO format string"""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _require(data: dict, kind: str, *names: str) -> None:
    missing = [name for name in names if data.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"{kind} is missing required field(s): {', '.join(missing)}")


class EntityKind(str, Enum):
    """Record types held in a catalog"""
    USER = "user"
    GROUP = "group"
    ROLE = "role"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


@dataclass
class User:
    """User account owned by one tenant

    Attributes:
        id: Tenant-scoped identifier
        first_name: Given name
        last_name: Family name
        email_address: Lower-cased email, unique within the tenant
        middle_name: Optional middle name
        status: ACTIVE or INACTIVE
        technical_user: Flag for service accounts
        start_date: Optional access start date (ISO string)
        end_date: Optional access end date (ISO string)
        assigned_groups: Group ids, no duplicates
        enterprise_id: Enterprise tag used by listing filters
        enterprise_name: Enterprise display name
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """
    id: str
    first_name: str
    last_name: str
    email_address: str
    middle_name: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    technical_user: bool = False
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_groups: list[str] = field(default_factory=list)
    enterprise_id: Optional[str] = None
    enterprise_name: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    kind = EntityKind.USER

    @property
    def display_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "middle_name": self.middle_name,
            "last_name": self.last_name,
            "email_address": self.email_address,
            "status": self.status.value,
            "technical_user": self.technical_user,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "assigned_groups": list(self.assigned_groups),
            "enterprise_id": self.enterprise_id,
            "enterprise_name": self.enterprise_name,
            "created_at": to_json_compatible(self.created_at),
            "updated_at": to_json_compatible(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Create from dictionary (JSON deserialization)"""
        _require(data, "User", "id", "first_name", "last_name", "email_address")
        return cls(
            id=data["id"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            email_address=data["email_address"],
            middle_name=data.get("middle_name"),
            status=UserStatus(data.get("status") or UserStatus.ACTIVE.value),
            technical_user=bool(data.get("technical_user", False)),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            assigned_groups=list(data.get("assigned_groups") or []),
            enterprise_id=data.get("enterprise_id"),
            enterprise_name=data.get("enterprise_name"),
            created_at=parse_utc_timestamp(data.get("created_at")) or utc_now(),
            updated_at=parse_utc_timestamp(data.get("updated_at")) or utc_now(),
        )


@dataclass
class Group:
    """Group owned by one tenant

    The name is unique within the owning tenant only. Two catalogs may each
    hold a group called "Administrators"; cross-tenant fallback matching relies
    on exactly that.
    """
    id: str
    name: str
    description: str = ""
    entity: str = ""
    product: str = ""
    service: str = ""
    assigned_roles: list[str] = field(default_factory=list)
    enterprise_id: Optional[str] = None
    enterprise_name: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    kind = EntityKind.GROUP

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "entity": self.entity,
            "product": self.product,
            "service": self.service,
            "assigned_roles": list(self.assigned_roles),
            "enterprise_id": self.enterprise_id,
            "enterprise_name": self.enterprise_name,
            "created_at": to_json_compatible(self.created_at),
            "updated_at": to_json_compatible(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Group":
        """Create from dictionary (JSON deserialization)"""
        _require(data, "Group", "id", "name")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description") or "",
            entity=data.get("entity") or "",
            product=data.get("product") or "",
            service=data.get("service") or "",
            assigned_roles=list(data.get("assigned_roles") or []),
            enterprise_id=data.get("enterprise_id"),
            enterprise_name=data.get("enterprise_name"),
            created_at=parse_utc_timestamp(data.get("created_at")) or utc_now(),
            updated_at=parse_utc_timestamp(data.get("updated_at")) or utc_now(),
        )


@dataclass
class Role:
    """Role owned by one tenant

    scope_config is stored as given; the engine only stamps its
    configured/updated_at markers.
    """
    id: str
    name: str
    description: str = ""
    entity: str = ""
    product: str = ""
    service: str = ""
    scope_config: Optional[dict[str, Any]] = None
    enterprise_id: Optional[str] = None
    enterprise_name: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    kind = EntityKind.ROLE

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "entity": self.entity,
            "product": self.product,
            "service": self.service,
            "scope_config": dict(self.scope_config) if self.scope_config is not None else None,
            "enterprise_id": self.enterprise_id,
            "enterprise_name": self.enterprise_name,
            "created_at": to_json_compatible(self.created_at),
            "updated_at": to_json_compatible(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Role":
        """Create from dictionary (JSON deserialization)"""
        _require(data, "Role", "id", "name")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description") or "",
            entity=data.get("entity") or "",
            product=data.get("product") or "",
            service=data.get("service") or "",
            scope_config=data.get("scope_config"),
            enterprise_id=data.get("enterprise_id"),
            enterprise_name=data.get("enterprise_name"),
            created_at=parse_utc_timestamp(data.get("created_at")) or utc_now(),
            updated_at=parse_utc_timestamp(data.get("updated_at")) or utc_now(),
        )


CatalogRecord = Union[User, Group, Role]

RECORD_TYPES: dict[EntityKind, type] = {
    EntityKind.USER: User,
    EntityKind.GROUP: Group,
    EntityKind.ROLE: Role,
}


def record_from_dict(kind: EntityKind, data: dict) -> CatalogRecord:
    """Deserialize a stored payload into the record type for kind"""
    return RECORD_TYPES[kind].from_dict(data)
