import pytest

from accounts.permissions import (
    Resource,
    Role,
    assignable_roles,
    authorize,
    can_assign_role,
    can_edit_user,
    can_manage_users,
    can_view_commission_stats,
    parse_role,
)


@pytest.mark.parametrize(
    "role, expected",
    [("AGENT", False), ("MANAGER", True), ("ADMIN", True)],
)
def test_commission_stats_require_manager(role, expected):
    assert can_view_commission_stats(role) is expected


@pytest.mark.parametrize(
    "role, expected",
    [("AGENT", False), ("MANAGER", True), ("ADMIN", True)],
)
def test_user_management_requires_manager(role, expected):
    assert can_manage_users(role) is expected


@pytest.mark.parametrize(
    "acting, target, expected",
    [
        ("ADMIN", "ADMIN", True),
        ("ADMIN", "MANAGER", True),
        ("ADMIN", "AGENT", True),
        ("MANAGER", "ADMIN", False),
        ("MANAGER", "MANAGER", True),
        ("MANAGER", "AGENT", True),
        ("AGENT", "AGENT", False),
        ("AGENT", "MANAGER", False),
        ("AGENT", "ADMIN", False),
    ],
)
def test_assign_role_follows_hierarchy(acting, target, expected):
    assert can_assign_role(acting, target) is expected


def test_manager_can_never_touch_admin_accounts():
    assert can_edit_user("MANAGER", "ADMIN", "ADMIN") is False
    assert can_edit_user("MANAGER", "ADMIN", "AGENT") is False


def test_edit_user():
    assert can_edit_user("ADMIN", "ADMIN", "AGENT") is True
    assert can_edit_user("MANAGER", "AGENT", "MANAGER") is True
    assert can_edit_user("MANAGER", "MANAGER", "ADMIN") is False
    assert can_edit_user("AGENT", "AGENT", "AGENT") is False


def test_unknown_roles_get_nothing():
    assert parse_role("superuser") is None
    assert can_view_commission_stats("superuser") is False
    assert can_assign_role("ADMIN", "superuser") is False
    assert can_manage_users(None) is False

    decision = authorize("superuser", Resource.SYSTEM_SETTINGS)
    assert not decision.allowed
    assert decision.reason


def test_roles_are_parsed_case_insensitively():
    assert parse_role(" manager ") == Role.MANAGER
    assert can_view_commission_stats("admin") is True


def test_assignable_roles():
    assert [value for value, _ in assignable_roles("ADMIN")] == ["AGENT", "MANAGER", "ADMIN"]
    assert [value for value, _ in assignable_roles("MANAGER")] == ["AGENT", "MANAGER"]
    assert assignable_roles("AGENT") == []


def test_authorize_commission_stats_denial_has_reason():
    decision = authorize(Role.AGENT, Resource.COMMISSION_STATS)

    assert decision.allowed is False
    assert not decision
    assert "managers and administrators" in decision.reason
    assert authorize(Role.MANAGER, "commission-stats").allowed


def test_authorize_user_accounts_with_target_and_existing_roles():
    assert authorize("MANAGER", Resource.USER_ACCOUNTS, target_role="AGENT").allowed

    promote = authorize("MANAGER", Resource.USER_ACCOUNTS, target_role="ADMIN")
    assert not promote.allowed
    assert "Admin" in promote.reason

    touch_admin = authorize(
        "MANAGER", Resource.USER_ACCOUNTS, target_role="AGENT", existing_role="ADMIN"
    )
    assert not touch_admin.allowed
    assert touch_admin.reason == "Only Admin users can edit other Admin users."


def test_settings_and_reference_data_reads_are_open_writes_are_not():
    for resource in (Resource.SYSTEM_SETTINGS, Resource.REFERENCE_DATA):
        assert authorize("AGENT", resource).allowed
        assert not authorize("AGENT", resource, write=True).allowed
        assert authorize("MANAGER", resource, write=True).allowed
        assert authorize("ADMIN", resource, write=True).allowed
