"""
Offices app services — **Service Layer**.

Two read-only lookups used by the report workflow:

* ``CategoryOfficeResolver`` — which office owns a category.
* ``OfficeRosterService`` — which operators can take a report, and who
  among them currently carries the lightest load.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING

from django.apps import apps
from django.db.models import Count, Q, QuerySet

from core.constants import RoleCode
from core.domain.exceptions import NotFound

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)

# Reverse accessor on ``User`` for each assignable role.
_ASSIGNMENT_RELATION: dict[str, str] = {
    RoleCode.TECHNICAL_STAFF: "technician_reports",
    RoleCode.EXTERNAL_MAINTAINER: "maintainer_reports",
}


class CategoryOfficeResolver:
    """Pure lookup: category id → office id."""

    @staticmethod
    def resolve(category_id: int) -> int:
        """
        Return the id of the office owning ``category_id``.

        Raises:
            NotFound: If the category does not exist.
        """
        from offices.models import Category

        office_id = (
            Category.objects
            .filter(pk=category_id)
            .values_list("office_id", flat=True)
            .first()
        )
        if office_id is None:
            raise NotFound(f"Category {category_id} does not exist.")
        return office_id


class OfficeRosterService:
    """
    Candidate selection for automatic hand-offs.

    An operator is eligible when they belong to the report's office or
    explicitly handle its category.  Load is the number of reports
    currently assigned to them in a non-terminal status.
    """

    @staticmethod
    def candidates(office_id: int, category_id: int, role_code: str) -> QuerySet:
        """
        Eligible operators holding ``role_code``, annotated with
        ``active_reports`` and ordered lightest first.
        """
        from reports.models import OPEN_STATUSES

        relation = _ASSIGNMENT_RELATION.get(role_code)
        if relation is None:
            raise ValueError(f"Role '{role_code}' is not assignable.")

        User = apps.get_model("accounts", "User")
        return (
            User.objects
            .filter(role__code=role_code, is_active=True)
            .filter(Q(office_id=office_id) | Q(categories__pk=category_id))
            .annotate(
                active_reports=Count(
                    relation,
                    filter=Q(**{f"{relation}__status_id__in": OPEN_STATUSES}),
                    distinct=True,
                )
            )
            .order_by("active_reports", "pk")
        )

    @staticmethod
    def pick_least_loaded(office_id: int, category_id: int, role_code: str) -> User | None:
        """
        Choose one operator with the minimum active load.

        Ties are broken uniformly at random.  Returns ``None`` when nobody
        is eligible.
        """
        roster = list(OfficeRosterService.candidates(office_id, category_id, role_code))
        if not roster:
            return None

        lightest = roster[0].active_reports
        tied = [user for user in roster if user.active_reports == lightest]
        chosen = secrets.choice(tied)
        logger.info(
            "Roster pick for office %s / category %s (%s): user %s with %d active report(s), %d tied",
            office_id,
            category_id,
            role_code,
            chosen.pk,
            lightest,
            len(tied),
        )
        return chosen
