"""Tenant Context Models

Purpose: Decide which catalog a request operates against

Every user, group and role lives in exactly one catalog: the single Global
("Systiva") catalog or one account's catalog. An enterprise is a listing
filter inside a catalog, not a separate partition.

Upstream clients do not reliably omit empty fields, so a tenant may arrive as
empty strings, the literal "null", or the Global account name itself.
resolve_tenant() is the only place those sentinel values are interpreted.
"""

from dataclasses import dataclass
from typing import Any, Mapping, NamedTuple, Optional

GLOBAL_ACCOUNT_ID = "systiva"
GLOBAL_ACCOUNT_NAME = "SYSTIVA"
GLOBAL_ENTERPRISE_NAME = "global"

_NULL_LITERAL = "null"


def _is_absent(value: Optional[str]) -> bool:
    """True for None, the empty string and the literal "null" """
    return value is None or value == "" or value == _NULL_LITERAL


@dataclass(frozen=True)
class TenantKey:
    """Storage identity of a catalog

    Global is represented by account_id=None. Two contexts are the same
    tenant exactly when their keys are equal.
    """
    account_id: Optional[str] = None
    account_name: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.account_id is None

    @property
    def partition(self) -> str:
        """Partition prefix, e.g. SYSTIVA#systiva or ACME#42"""
        if self.is_global:
            return f"{GLOBAL_ACCOUNT_NAME}#{GLOBAL_ACCOUNT_ID}"
        return f"{self.account_name.upper()}#{self.account_id}"

    def __str__(self) -> str:
        return "Global" if self.is_global else f"Account({self.account_id}, {self.account_name})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TenantKey):
            return NotImplemented
        # Account names are upper-cased in the partition, ids identify the account
        return self.account_id == other.account_id and (
            self.is_global or self.account_name.upper() == other.account_name.upper()
        )

    def __hash__(self) -> int:
        return hash(self.partition)


TenantKey.GLOBAL = TenantKey()


class CatalogRef(NamedTuple):
    """Composite (tenant, local id) reference to a catalog record

    Ids are only meaningful inside the catalog that created them; the same
    bare string may name different entities in different catalogs.
    """
    tenant: TenantKey
    local_id: str


@dataclass(frozen=True)
class AccountScope:
    account_id: str
    account_name: str


@dataclass(frozen=True)
class EnterpriseFilter:
    """Narrows listing operations to records tagged with this enterprise"""
    enterprise_id: str
    enterprise_name: str


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant for one request

    Attributes:
        account: Account scope, or None for the Global catalog
        enterprise: Optional enterprise listing filter
    """
    account: Optional[AccountScope] = None
    enterprise: Optional[EnterpriseFilter] = None

    @classmethod
    def global_(cls, enterprise: Optional[EnterpriseFilter] = None) -> "TenantContext":
        return cls(account=None, enterprise=enterprise)

    @classmethod
    def for_account(
        cls,
        account_id: str,
        account_name: str,
        enterprise: Optional[EnterpriseFilter] = None,
    ) -> "TenantContext":
        return cls(account=AccountScope(account_id, account_name), enterprise=enterprise)

    @property
    def is_global(self) -> bool:
        return self.account is None

    @property
    def key(self) -> TenantKey:
        if self.account is None:
            return TenantKey.GLOBAL
        return TenantKey(self.account.account_id, self.account.account_name)

    @property
    def enterprise_id(self) -> Optional[str]:
        return self.enterprise.enterprise_id if self.enterprise else None

    def same_tenant(self, other: "TenantContext") -> bool:
        """Compare scope only; the enterprise filter does not change the tenant"""
        return self.key == other.key

    def without_enterprise(self) -> "TenantContext":
        return TenantContext(account=self.account)

    def enterprise_tags(self) -> dict[str, Optional[str]]:
        """Enterprise fields stamped on records created under this context"""
        if self.enterprise is None:
            return {"enterprise_id": None, "enterprise_name": None}
        return {
            "enterprise_id": self.enterprise.enterprise_id,
            "enterprise_name": self.enterprise.enterprise_name,
        }

    def __str__(self) -> str:
        if self.enterprise:
            return f"{self.key} [enterprise={self.enterprise.enterprise_id}]"
        return str(self.key)


def resolve_tenant(
    account_id: Optional[str] = None,
    account_name: Optional[str] = None,
    enterprise_id: Optional[str] = None,
    enterprise_name: Optional[str] = None,
) -> TenantContext:
    """Resolve a tenant context from optional request fields

    The context is Global when account_id or account_name is missing, empty,
    the string "null", or when account_name is "systiva" in any case.
    An enterprise filter is attached only when both enterprise fields are
    present and enterprise_name is not "global" in any case.

    Args:
        account_id: Account identifier from the request
        account_name: Account name from the request
        enterprise_id: Enterprise identifier from the request
        enterprise_name: Enterprise name from the request

    Returns:
        TenantContext
    """
    enterprise = None
    if not _is_absent(enterprise_id) and not _is_absent(enterprise_name):
        if enterprise_name.lower() != GLOBAL_ENTERPRISE_NAME:
            enterprise = EnterpriseFilter(enterprise_id, enterprise_name)

    if (
        _is_absent(account_id)
        or _is_absent(account_name)
        or account_name.lower() == GLOBAL_ACCOUNT_ID
    ):
        return TenantContext.global_(enterprise)

    return TenantContext.for_account(account_id, account_name, enterprise)


def tenant_from_params(params: Mapping[str, Any]) -> TenantContext:
    """Resolve a tenant from request query or body fields

    Reads accountId, accountName, enterpriseId and enterpriseName.
    """

    def _field(name: str) -> Optional[str]:
        value = params.get(name)
        return None if value is None else str(value)

    return resolve_tenant(
        account_id=_field("accountId"),
        account_name=_field("accountName"),
        enterprise_id=_field("enterpriseId"),
        enterprise_name=_field("enterpriseName"),
    )
