"""
core.domain.notifications — Citizen notifications and live push.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Delivery
--------
The ``Notification`` row is written in the caller's transaction.  Live
delivery runs from ``transaction.on_commit``, so a rolled-back change
never pushes.  Push failures are logged and ignored.

A push channel is any object with ``emit(room, event, payload)``;
``get_push_channel`` builds one from ``settings.PUSH_CHANNEL_BACKEND``.

Usage::

    from core.domain.notifications import NotificationDispatcher

    NotificationDispatcher.create(
        citizen_id=report.citizen_id,
        report_id=report.pk,
        message=status_message(ReportStatus.RESOLVED),
        push_channel=push_channel,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

if TYPE_CHECKING:
    from core.models import Notification

logger = logging.getLogger(__name__)

EVENT_NEW_NOTIFICATION = "new_notification"
EVENT_NEW_MESSAGE = "new_message"

# ── Status id → citizen-facing text ─────────────────────────────────
# Pending Approval (1) is the initial status and never announced.
_STATUS_TEMPLATES: dict[int, str] = {
    2: "Your report has been assigned to a technical officer",
    3: "Work on your report is now in progress",
    4: "Your report has been temporarily suspended",
    5: "Your report was rejected",
    6: "Great news! Your report has been resolved!",
}


def status_message(status_id: int, rejection_reason: str | None = None) -> str | None:
    """Return the notification text for a status, or ``None`` if silent."""
    message = _STATUS_TEMPLATES.get(status_id)
    if message is not None and status_id == 5 and rejection_reason:
        message = f"{message}: {rejection_reason}"
    return message


class PushChannel(Protocol):
    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None: ...


class LoggingPushChannel:
    """Push channel that only logs; handy for local development."""

    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None:
        logger.info("push %s -> %s: %s", event, room, payload)


def get_push_channel() -> PushChannel | None:
    """Instantiate the configured push backend, or ``None`` when unset."""
    backend = getattr(settings, "PUSH_CHANNEL_BACKEND", None)
    if not backend:
        return None
    return import_string(backend)()


def citizen_room(citizen_id: int) -> str:
    return f"citizen:{citizen_id}"


def operator_room(operator_id: int) -> str:
    return f"operator:{operator_id}"


def report_room(report_id: int) -> str:
    return f"report:{report_id}"


def deliver(push_channel: PushChannel | None, room: str, event: str, payload: dict[str, Any]) -> bool:
    """
    Emit one event, swallowing transport failures.

    Returns:
        ``True`` if the channel accepted the event.
    """
    if push_channel is None:
        return False
    try:
        push_channel.emit(room, event, payload)
    except Exception:
        logger.warning("Push of %s to %s failed", event, room, exc_info=True)
        return False
    return True


def deliver_on_commit(push_channel: PushChannel | None, room: str, event: str, payload: dict[str, Any]) -> None:
    """Schedule ``deliver`` for after the current transaction commits."""
    if push_channel is None:
        return
    transaction.on_commit(lambda: deliver(push_channel, room, event, payload))


def notification_payload(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.pk,
        "report_id": notification.report_id,
        "message": notification.message,
        "sent_at": notification.sent_at.isoformat(),
        "seen": notification.seen,
    }


class NotificationDispatcher:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods.
    """

    @classmethod
    def create(
        cls,
        *,
        citizen_id: int,
        report_id: int,
        message: str,
        push_channel: PushChannel | None = None,
    ) -> Notification:
        """
        Persist a notification and schedule its live push.

        Args:
            citizen_id:   Recipient citizen.
            report_id:    Report the notice is about.
            message:      Text shown to the citizen.
            push_channel: Optional transport; ``None`` skips live delivery.

        Returns:
            The created ``Notification`` (``seen`` is ``False``).
        """
        from core.models import Notification  # lazy import

        notification = Notification.objects.create(
            citizen_id=citizen_id,
            report_id=report_id,
            message=message,
        )
        deliver_on_commit(
            push_channel,
            citizen_room(citizen_id),
            EVENT_NEW_NOTIFICATION,
            notification_payload(notification),
        )
        logger.info(
            "Notification #%d created for citizen %s on report #%s",
            notification.pk,
            citizen_id,
            report_id,
        )
        return notification
