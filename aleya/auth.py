"""
Role Capability Checks.

Authentication happens upstream (Supabase Auth); the service layer only
needs to know whether an actor may cancel, approve or reject expenses.

Usage::

    from aleya.auth import is_privileged

    if is_privileged(current_user.role):
        ...
"""

from __future__ import annotations

from typing import Optional

from aleya.models.enums import SuperAdminRole
from aleya.models.user import User

# Alias kept so service signatures read ``current_user: CurrentUser``.
CurrentUser = User

_PRIVILEGED_ROLES: frozenset[str] = frozenset(role.value for role in SuperAdminRole)


def is_privileged(role: Optional[str]) -> bool:
    """Return ``True`` when *role* is one of the super-admin labels.

    Exact, case-sensitive membership test against
    :class:`~aleya.models.enums.SuperAdminRole`.
    """
    return role in _PRIVILEGED_ROLES
