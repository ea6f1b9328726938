"""User roles and the permissions attached to each one."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role stored on every user record and carried in access tokens."""

    ADMIN = "Admin"
    VOTER = "Voter"


class Permission(str, Enum):
    MANAGE_ELECTIONS = "manage_elections"
    MANAGE_CANDIDATES = "manage_candidates"
    VIEW_WITHDRAWN_CANDIDATES = "view_withdrawn_candidates"
    MODERATE_FEEDBACK = "moderate_feedback"
    VOTE = "vote"


ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.VOTER: frozenset({Permission.VOTE}),
}


def parse_role(value: str | Role | None) -> Role | None:
    """Return the Role for ``value`` or None when it is not a known role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value))
    except ValueError:
        return None


def has_permission(role: Role | str | None, permission: Permission) -> bool:
    """Check whether ``role`` grants ``permission``."""
    parsed = parse_role(role)
    if parsed is None:
        return False
    return permission in ROLE_PERMISSIONS[parsed]
