"""
accounts/permissions.py

Single decision point for role-based access.

Every screen and every mutation asks this module BEFORE talking to the
API. The remote API still enforces its own rules; a mismatch surfaces as
an "access denied" message, never as placeholder data.
"""

from dataclasses import dataclass

from django.db import models


# ============================================================
# ROLES (AGENT < MANAGER < ADMIN)
# ============================================================
class Role(models.TextChoices):
    AGENT = "AGENT", "Agent"
    MANAGER = "MANAGER", "Manager"
    ADMIN = "ADMIN", "Admin"


ROLE_RANK = {
    Role.AGENT: 1,
    Role.MANAGER: 2,
    Role.ADMIN: 3,
}


def parse_role(value):
    """
    Normalise a role string coming from the API.
    Returns None for anything unknown (unknown roles get no permissions).
    """
    if value is None:
        return None
    try:
        return Role(str(value).strip().upper())
    except ValueError:
        return None


def role_at_least(acting_role, minimum):
    role = parse_role(acting_role)
    if role is None:
        return False
    return ROLE_RANK[role] >= ROLE_RANK[minimum]


# ============================================================
# RESOURCES
# ============================================================
class Resource(models.TextChoices):
    COMMISSION_STATS = "commission-stats", "Commission statistics"
    USER_ACCOUNTS = "user-accounts", "User accounts"
    SYSTEM_SETTINGS = "system-settings", "System settings"
    REFERENCE_DATA = "reference-data", "Reference data"


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str | None = None

    def __bool__(self):
        return self.allowed


ALLOW = AuthorizationDecision(True)

DENIAL_MESSAGES = {
    Resource.COMMISSION_STATS: (
        "Commission statistics are only available to managers and administrators."
    ),
    Resource.USER_ACCOUNTS: (
        "You are not authorized to view or manage users. "
        "Please contact your administrator."
    ),
    Resource.SYSTEM_SETTINGS: (
        "You are not authorized to view or change system settings. "
        "Please contact your administrator."
    ),
    Resource.REFERENCE_DATA: (
        "You are not authorized to change parishes or budget tiers. "
        "Please contact your administrator."
    ),
}


def deny(reason):
    return AuthorizationDecision(False, reason)


# ============================================================
# PREDICATES
# ============================================================
def can_view_commission_stats(acting_role):
    return role_at_least(acting_role, Role.MANAGER)


def can_manage_users(acting_role):
    return role_at_least(acting_role, Role.MANAGER)


def can_assign_role(acting_role, target_role):
    """
    AGENT / MANAGER: assignable by MANAGER or ADMIN.
    ADMIN:           assignable by ADMIN only.
    """
    target = parse_role(target_role)
    if target is None or not can_manage_users(acting_role):
        return False

    if target == Role.ADMIN:
        return parse_role(acting_role) == Role.ADMIN

    return True


def can_edit_user(acting_role, existing_user_role, new_role):
    if not can_manage_users(acting_role):
        return False

    # Non-admins never touch admin accounts, even to leave them unchanged
    if parse_role(existing_user_role) == Role.ADMIN and parse_role(acting_role) != Role.ADMIN:
        return False

    return can_assign_role(acting_role, new_role)


def assignable_roles(acting_role):
    """Role choices a user form may offer to the acting user."""
    return [
        (role.value, role.label)
        for role in Role
        if can_assign_role(acting_role, role)
    ]


# ============================================================
# DECISION ENTRY POINT
# ============================================================
def authorize(
    acting_role,
    resource,
    *,
    write=False,
    target_role=None,
    existing_role=None,
):
    """
    Return an AuthorizationDecision for acting_role on resource.

    - commission-stats:  MANAGER or above
    - user-accounts:     MANAGER or above; with target_role the role
                         hierarchy applies (and existing_role for edits)
    - system-settings /
      reference-data:    anyone may read, MANAGER or above may write
    """
    resource = Resource(resource)

    if parse_role(acting_role) is None:
        return deny("Your account has no recognised role. Please contact your administrator.")

    if resource == Resource.COMMISSION_STATS:
        if can_view_commission_stats(acting_role):
            return ALLOW
        return deny(DENIAL_MESSAGES[resource])

    if resource == Resource.USER_ACCOUNTS:
        if not can_manage_users(acting_role):
            return deny(DENIAL_MESSAGES[resource])

        if existing_role is not None and parse_role(existing_role) == Role.ADMIN:
            if parse_role(acting_role) != Role.ADMIN:
                return deny("Only Admin users can edit other Admin users.")

        if target_role is not None and not can_assign_role(acting_role, target_role):
            if parse_role(target_role) == Role.ADMIN:
                return deny("Only Admin users can create or promote users to Admin.")
            return deny(f"You may not assign the role {target_role!r}.")

        return ALLOW

    # SYSTEM_SETTINGS / REFERENCE_DATA
    if not write or role_at_least(acting_role, Role.MANAGER):
        return ALLOW
    return deny(DENIAL_MESSAGES[resource])
