"""Unit tests for tenant resolution

Covers the sentinel handling of resolve_tenant and the identity of
TenantKey. No external dependencies.
"""

import pytest

from access_control.domain.models.tenant import (
    CatalogRef,
    TenantContext,
    TenantKey,
    resolve_tenant,
    tenant_from_params,
)


@pytest.mark.unit
class TestResolveTenant:
    """Test resolve_tenant sentinel rules"""

    @pytest.mark.parametrize(
        "account_id,account_name",
        [
            (None, None),
            ("", ""),
            ("null", "null"),
            ("42", None),
            (None, "Acme"),
            ("42", ""),
            ("null", "Acme"),
        ],
    )
    def test_missing_account_resolves_global(self, account_id, account_name):
        """Edge case: absent, empty or "null" account fields mean Global"""
        tenant = resolve_tenant(account_id, account_name)

        assert tenant.is_global is True
        assert tenant.key == TenantKey.GLOBAL

    @pytest.mark.parametrize("name", ["systiva", "Systiva", "SYSTIVA"])
    def test_systiva_account_name_resolves_global(self, name):
        """Edge case: the Global account name in any case means Global"""
        tenant = resolve_tenant("acct-1", name)

        assert tenant.is_global is True

    def test_account_context(self):
        """Happy path: both account fields present give an account tenant"""
        tenant = resolve_tenant("42", "Acme")

        assert tenant.is_global is False
        assert tenant.key.account_id == "42"
        assert tenant.key.partition == "ACME#42"
        assert tenant.enterprise is None

    def test_enterprise_filter_attached(self):
        """Happy path: enterprise fields narrow listings"""
        tenant = resolve_tenant("42", "Acme", "ent-1", "Retail")

        assert tenant.enterprise is not None
        assert tenant.enterprise_id == "ent-1"
        assert tenant.enterprise.enterprise_name == "Retail"

    @pytest.mark.parametrize("name", ["global", "GLOBAL", "Global"])
    def test_global_enterprise_means_no_filter(self, name):
        """Edge case: enterprise named "global" in any case is no filter"""
        tenant = resolve_tenant("42", "Acme", "ent-1", name)

        assert tenant.enterprise is None
        assert tenant.is_global is False

    @pytest.mark.parametrize("enterprise_id,enterprise_name", [("ent-1", None), ("null", "Retail"), ("", "")])
    def test_incomplete_enterprise_means_no_filter(self, enterprise_id, enterprise_name):
        """Edge case: enterprise filter needs both fields"""
        tenant = resolve_tenant("42", "Acme", enterprise_id, enterprise_name)

        assert tenant.enterprise is None

    @pytest.mark.parametrize("account_id,account_name", [("  ", "Acme"), ("42", "  ")])
    def test_whitespace_account_fields_are_not_absent(self, account_id, account_name):
        """Edge case: only None, "" and "null" count as absent"""
        tenant = resolve_tenant(account_id, account_name)

        assert tenant.is_global is False
        assert tenant.key.account_id == account_id

    def test_enterprise_filter_kept_in_global(self):
        """Edge case: Global tenant may still carry an enterprise filter"""
        tenant = resolve_tenant(None, None, "ent-1", "Retail")

        assert tenant.is_global is True
        assert tenant.enterprise_id == "ent-1"


@pytest.mark.unit
class TestTenantFromParams:
    """Test request field extraction"""

    def test_reads_camel_case_fields(self):
        """Happy path: accountId/accountName/enterpriseId/enterpriseName are read"""
        tenant = tenant_from_params(
            {"accountId": 42, "accountName": "Acme", "enterpriseId": "e1", "enterpriseName": "Retail"}
        )

        assert tenant.key == TenantKey("42", "Acme")
        assert tenant.enterprise_id == "e1"

    def test_empty_params_resolve_global(self):
        """Edge case: no fields at all"""
        assert tenant_from_params({}).is_global is True


@pytest.mark.unit
class TestTenantKey:
    """Test tenant identity"""

    def test_global_partition(self):
        assert TenantKey.GLOBAL.partition == "SYSTIVA#systiva"
        assert str(TenantKey.GLOBAL) == "Global"

    def test_account_name_case_does_not_change_identity(self):
        """Edge case: partition upper-cases the account name"""
        assert TenantKey("42", "acme") == TenantKey("42", "ACME")
        assert hash(TenantKey("42", "acme")) == hash(TenantKey("42", "ACME"))

    def test_different_accounts_differ(self):
        assert TenantKey("42", "Acme") != TenantKey("77", "Acme")
        assert TenantKey("42", "Acme") != TenantKey.GLOBAL

    def test_enterprise_does_not_change_tenant(self):
        """Edge case: enterprise is a filter, not a partition"""
        plain = resolve_tenant("42", "Acme")
        filtered = resolve_tenant("42", "Acme", "ent-1", "Retail")

        assert plain.same_tenant(filtered)
        assert filtered.without_enterprise() == plain

    def test_catalog_refs_with_same_local_id_differ_by_tenant(self):
        """Edge case: ids are tenant-scoped"""
        assert CatalogRef(TenantKey.GLOBAL, "g1") != CatalogRef(TenantKey("42", "Acme"), "g1")

    def test_enterprise_tags(self):
        tenant = resolve_tenant("42", "Acme", "ent-1", "Retail")

        assert tenant.enterprise_tags() == {"enterprise_id": "ent-1", "enterprise_name": "Retail"}
        assert TenantContext.global_().enterprise_tags() == {
            "enterprise_id": None,
            "enterprise_name": None,
        }
