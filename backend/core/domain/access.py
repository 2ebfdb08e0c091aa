"""
core.domain.access — Role lookup and role guards shared by service layers.

Access control in this project is role-based: every user holds exactly
one ``accounts.Role`` and each service declares which role codes may call
each operation.  This module provides:

  1) ``get_user_role_name``: the caller's role code.
  2) ``require_role``: guard raising ``Forbidden``.
  3) ``participant_role_for``: collapse a role into the two conversation
     sides (``citizen`` / ``operator``).

Usage in an app's service layer::

    from core.domain.access import require_role

    ALLOWED_HANDOFFS = {
        "technician": {RoleCode.MUNICIPAL_PR_OFFICER, RoleCode.ADMIN},
    }

    require_role(user, *ALLOWED_HANDOFFS["technician"])
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.constants import RoleCode
from core.domain.exceptions import Forbidden

if TYPE_CHECKING:
    from accounts.models import User

PARTICIPANT_CITIZEN = "citizen"
PARTICIPANT_OPERATOR = "operator"


def get_user_role_name(user: User) -> str | None:
    """
    Return the role code for a user, or ``None`` if unassigned.

    Superusers are always treated as ``admin``.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if user.is_superuser:
        return RoleCode.ADMIN
    role = getattr(user, "role", None)
    if role is None:
        return None
    return role.code


def require_role(user: User, *allowed_roles: str, message: str = "") -> str:
    """
    Guard that raises ``Forbidden`` if the user's role is not among
    ``allowed_roles``.

    Returns:
        The caller's role code, so callers can branch on it afterwards.
    """
    role_name = get_user_role_name(user)
    if role_name not in allowed_roles:
        raise Forbidden(
            message
            or f"Role '{role_name}' is not permitted for this operation. "
            f"Required: {', '.join(sorted(allowed_roles))}."
        )
    return role_name


def participant_role_for(user: User) -> str:
    """Map a user onto the citizen / operator side of a conversation."""
    if get_user_role_name(user) == RoleCode.CITIZEN:
        return PARTICIPANT_CITIZEN
    return PARTICIPANT_OPERATOR
