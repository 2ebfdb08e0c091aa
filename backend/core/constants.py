"""
Core constants — **Single Source of Truth** for role codes and limits.

Role codes are the stable identifiers stored on ``accounts.Role.code``;
display names may change freely without touching access rules.
"""

from django.conf import settings


class RoleCode:
    """Stable role identifiers used by every access check."""

    CITIZEN = "citizen"
    ADMIN = "admin"
    MUNICIPAL_PR_OFFICER = "municipal_public_relations_officer"
    MUNICIPAL_ADMINISTRATOR = "municipal_administrator"
    TECHNICAL_STAFF = "technical_office_staff_member"
    EXTERNAL_MAINTAINER = "external_maintainer"


# code → (display name, description)
ROLE_CATALOG: dict[str, tuple[str, str]] = {
    RoleCode.CITIZEN: ("Citizen", "Registered resident who submits reports."),
    RoleCode.ADMIN: ("Admin", "Full administrative access."),
    RoleCode.MUNICIPAL_PR_OFFICER: (
        "Municipal Public Relations Officer",
        "Reviews incoming reports and routes them to technical staff.",
    ),
    RoleCode.MUNICIPAL_ADMINISTRATOR: (
        "Municipal Administrator",
        "Manages municipal accounts; does not act on reports.",
    ),
    RoleCode.TECHNICAL_STAFF: (
        "Technical Office Staff Member",
        "Works on assigned reports and can hand off to maintainers.",
    ),
    RoleCode.EXTERNAL_MAINTAINER: (
        "External Maintainer",
        "Contractor from an external company who resolves reports.",
    ),
}

OPERATOR_ROLES: frozenset[str] = frozenset(
    code for code in ROLE_CATALOG if code != RoleCode.CITIZEN
)

# Roles that physically work a report and take part in its conversation.
FIELD_OPERATOR_ROLES: frozenset[str] = frozenset({
    RoleCode.TECHNICAL_STAFF,
    RoleCode.EXTERNAL_MAINTAINER,
})

# ── Notifications ───────────────────────────────────────────────────
NOTIFICATION_LIST_LIMIT: int = getattr(settings, "NOTIFICATION_LIST_LIMIT", 50)
