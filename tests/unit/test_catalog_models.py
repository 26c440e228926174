"""Unit tests for catalog records and update payloads

Tests serialization, required-field checks and partial-update merging.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from access_control.domain.errors import ValidationError
from access_control.domain.models.catalog import (
    EntityKind,
    Group,
    Role,
    User,
    UserStatus,
    record_from_dict,
)
from access_control.domain.models.updates import (
    GroupSpec,
    GroupUpdate,
    UserCreate,
    UserUpdate,
    changes_of,
    merge_partial,
)


@pytest.mark.unit
class TestUserModel:
    """Test User serialization"""

    def test_user_round_trip(self):
        """Happy path: to_dict/from_dict preserve fields"""
        # Arrange
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        user = User(
            id="u1",
            first_name="Ada",
            last_name="Lovelace",
            email_address="ada@acme.test",
            status=UserStatus.INACTIVE,
            assigned_groups=["g1", "g2"],
            created_at=created,
            updated_at=created,
        )

        # Act
        restored = User.from_dict(user.to_dict())

        # Assert
        assert restored == user
        assert user.to_dict()["status"] == "INACTIVE"
        assert user.to_dict()["created_at"] == "2024-01-02T03:04:05+00:00"

    def test_user_missing_required_fields(self):
        """Bad input: missing email is rejected"""
        with pytest.raises(ValidationError, match="email_address"):
            User.from_dict({"id": "u1", "first_name": "Ada", "last_name": "Lovelace"})

    def test_display_name_skips_missing_middle_name(self):
        user = User(id="u1", first_name="Ada", last_name="Lovelace", email_address="a@b.c")

        assert user.display_name == "Ada Lovelace"

    def test_zulu_timestamps_parsed(self):
        """Edge case: stored timestamps may use the Z suffix"""
        user = User.from_dict(
            {
                "id": "u1",
                "first_name": "Ada",
                "last_name": "Lovelace",
                "email_address": "a@b.c",
                "created_at": "2024-01-02T03:04:05Z",
            }
        )

        assert user.created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.mark.unit
class TestGroupAndRoleModels:
    """Test Group and Role serialization"""

    def test_group_defaults(self):
        """Edge case: optional text fields default to empty strings"""
        group = Group.from_dict({"id": "g1", "name": "Ops", "description": None})

        assert group.description == ""
        assert group.assigned_roles == []

    def test_group_requires_name(self):
        """Bad input: group without a name"""
        with pytest.raises(ValidationError, match="name"):
            Group.from_dict({"id": "g1", "name": ""})

    def test_role_scope_config_kept_opaque(self):
        role = Role.from_dict({"id": "r1", "name": "Viewer", "scope_config": {"a": [1, 2]}})

        assert role.to_dict()["scope_config"] == {"a": [1, 2]}

    def test_record_from_dict_dispatches_on_kind(self):
        record = record_from_dict(EntityKind.ROLE, {"id": "r1", "name": "Viewer"})

        assert isinstance(record, Role)
        assert record.kind == EntityKind.ROLE


@pytest.mark.unit
class TestUpdatePayloads:
    """Test create/update schemas and partial merge"""

    def test_user_create_normalizes_email(self):
        """Happy path: email is trimmed and lower-cased"""
        data = UserCreate(first_name="Ada", last_name="Lovelace", email_address=" Ada@Acme.TEST ")

        assert data.email_address == "ada@acme.test"

    def test_user_create_rejects_bad_email(self):
        """Bad input: malformed email"""
        with pytest.raises(PydanticValidationError):
            UserCreate(first_name="Ada", last_name="Lovelace", email_address="not-an-email")

    def test_user_create_requires_names(self):
        """Bad input: empty first name"""
        with pytest.raises(PydanticValidationError):
            UserCreate(first_name="", last_name="Lovelace", email_address="a@b.c")

    def test_changes_of_only_includes_set_fields(self):
        """Happy path: unset fields are not part of the change set"""
        changes = changes_of(UserUpdate(last_name="Byron"))

        assert changes == {"last_name": "Byron"}

    def test_changes_of_keeps_explicit_none(self):
        """Edge case: explicitly clearing a field is a change"""
        changes = changes_of(UserUpdate(middle_name=None))

        assert changes == {"middle_name": None}

    def test_group_name_is_stripped(self):
        assert GroupUpdate(name="  Ops  ").name == "Ops"

    def test_blank_group_name_rejected(self):
        """Bad input: whitespace-only name"""
        with pytest.raises(PydanticValidationError):
            GroupSpec(name="   ")

    def test_group_spec_ignores_unknown_fields(self):
        spec = GroupSpec.model_validate({"name": "Ops", "id": "tmp-1", "color": "red"})

        assert spec.name == "Ops"
        assert spec.id == "tmp-1"

    def test_merge_partial_leaves_untouched_fields(self):
        """Happy path: only supplied keys change"""
        current = {"id": "u1", "first_name": "Ada", "last_name": "Lovelace"}

        merged = merge_partial(current, {"last_name": "Byron"})

        assert merged == {"id": "u1", "first_name": "Ada", "last_name": "Byron"}
        assert current["last_name"] == "Lovelace"

    def test_merge_partial_ignores_protected_fields(self):
        """Edge case: id and created_at cannot be overwritten"""
        current = {"id": "u1", "created_at": "2024-01-01T00:00:00+00:00"}

        merged = merge_partial(current, {"id": "other", "created_at": "2025-01-01T00:00:00+00:00"})

        assert merged == current
