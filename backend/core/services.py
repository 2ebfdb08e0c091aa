"""
Core app services — **Service Layer**.

Hosts the citizen notification inbox.  Notification *creation* lives in
``core.domain.notifications`` because every app triggers it; reading and
acknowledging notifications is a core concern and lives here.

Cross-app import rule: never import models from other apps at module
level; use ``django.apps.apps.get_model`` or a local import inside the
method that needs them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.db.models import QuerySet

from core.constants import NOTIFICATION_LIST_LIMIT, RoleCode
from core.domain.access import require_role
from core.domain.exceptions import InvalidArgument

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Notification Service
# ═══════════════════════════════════════════════════════════════════

class NotificationService:
    """
    Lists and acknowledges notifications for one citizen.

    Only citizens own notifications; other roles are rejected up front.
    """

    def __init__(self, user: User) -> None:
        require_role(user, RoleCode.CITIZEN, message="Only citizens have notifications.")
        self.user = user

    def _queryset(self) -> QuerySet:
        from core.models import Notification

        return Notification.objects.filter(citizen=self.user)

    def list_notifications(self, limit: int = NOTIFICATION_LIST_LIMIT) -> QuerySet:
        """Return the citizen's most recent notifications, newest first."""
        return (
            self._queryset()
            .select_related("report")
            .order_by("-sent_at", "-id")[:limit]
        )

    def unread_count(self) -> int:
        return self._queryset().filter(seen=False).count()

    def mark_seen(self, notification_id: Any) -> Notification | None:
        """
        Mark one notification as seen.

        Ownership is part of the lookup: a notification belonging to
        another citizen is indistinguishable from a missing one.

        Returns:
            The updated notification, or ``None`` if no match.
        """
        try:
            notification_id = int(notification_id)
        except (TypeError, ValueError):
            raise InvalidArgument("Notification id must be an integer.")

        notification = self._queryset().filter(pk=notification_id).first()
        if notification is None:
            return None
        if not notification.seen:
            notification.seen = True
            notification.save(update_fields=["seen"])
        return notification

    def mark_all_seen(self) -> int:
        """Mark every unseen notification as seen; returns the count touched."""
        updated = self._queryset().filter(seen=False).update(seen=True)
        logger.info("Citizen %s marked %d notification(s) as seen", self.user.pk, updated)
        return updated
