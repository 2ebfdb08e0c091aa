"""
Chats app Service Layer.

Architecture
------------
- ``ConversationService``    — Append-only message store and thread listings.
- ``ReadWatermarkService``   — Per-viewer read watermarks and unread counts.
- ``ChatService``            — Participant checks, bundled "open thread",
                               sending with live push.
- ``InternalCommentService`` — Operator-only notes on a report.

The two stores do not check who is calling; ``ChatService`` is the layer
that decides whether a user takes part in a conversation.

Unread semantics
----------------
A message is unread for a viewer when its ``sender_type`` differs from
the viewer's side (``citizen`` / ``operator``; system messages count for
both) and it was sent strictly after the viewer's watermark, or at any
time if the viewer never opened the thread.  Counts are recomputed on
every call.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING, Any

from django.apps import apps
from django.db import transaction
from django.db.models import (
    Count,
    DateTimeField,
    F,
    IntegerField,
    OuterRef,
    Q,
    QuerySet,
    Subquery,
    Value,
)
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.constants import FIELD_OPERATOR_ROLES, RoleCode
from core.domain.access import (
    PARTICIPANT_CITIZEN,
    get_user_role_name,
    participant_role_for,
    require_role,
)
from core.domain.exceptions import Forbidden, InvalidArgument, NotFound
from core.domain.notifications import (
    EVENT_NEW_MESSAGE,
    PushChannel,
    citizen_room,
    deliver_on_commit,
    operator_room,
    report_room,
)
from core.domain.transactions import storage_guard

from .models import ChatRead, InternalComment, Message, ParticipantRole, SenderType

if TYPE_CHECKING:
    from accounts.models import User
    from reports.models import Report

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)


def _report_model():
    return apps.get_model("reports", "Report")


def _participant_role(value: Any) -> str:
    if value not in ParticipantRole.values:
        raise InvalidArgument(
            f"Participant role must be one of {ParticipantRole.values}, got {value!r}."
        )
    return value


def _positive_id(value: Any, label: str) -> int:
    from reports.services import positive_int

    return positive_int(value, label)


def project_message(message: Message) -> dict[str, Any]:
    return {
        "id": message.pk,
        "report_id": message.report_id,
        "sender_type": message.sender_type,
        "sender_id": message.sender_id,
        "sender_username": message.sender.username if message.sender_id else None,
        "content": message.content,
        "sent_at": message.sent_at,
    }


def _push_payload(message: Message) -> dict[str, Any]:
    return {
        "id": message.pk,
        "report_id": message.report_id,
        "sender_type": message.sender_type,
        "sender_id": message.sender_id,
        "content": message.content,
        "sent_at": message.sent_at.isoformat(),
    }


# ═══════════════════════════════════════════════════════════════════
#  Conversation Store
# ═══════════════════════════════════════════════════════════════════

class ConversationService:
    """Ordered, immutable messages attached to a report."""

    @staticmethod
    def append(report_id: Any, sender_type: str, sender_id: int | None, content: Any) -> Message:
        """
        Persist a message with a server-assigned timestamp.

        Raises:
            InvalidArgument: Unknown sender type, missing sender or empty content.
            NotFound:        The report does not exist.
        """
        report_id = _positive_id(report_id, "Report id")
        if sender_type not in SenderType.values:
            raise InvalidArgument(f"Unknown sender type {sender_type!r}.")
        if sender_type == SenderType.SYSTEM:
            sender_id = None
        elif sender_id is None:
            raise InvalidArgument("Citizen and operator messages need a sender.")

        text = content.strip() if isinstance(content, str) else ""
        if not text:
            raise InvalidArgument("Message content must not be empty.")

        with storage_guard("append message to report #%s", report_id):
            if not _report_model().objects.filter(pk=report_id).exists():
                raise NotFound(f"Report {report_id} does not exist.")
            message = Message.objects.create(
                report_id=report_id,
                sender_type=sender_type,
                sender_id=sender_id,
                content=text,
                sent_at=timezone.now(),
            )

        logger.info(
            "Message #%d (%s) appended to report #%d",
            message.pk,
            sender_type,
            report_id,
        )
        return message

    @staticmethod
    def append_system_message(report_id: Any, content: str) -> Message:
        return ConversationService.append(report_id, SenderType.SYSTEM, None, content)

    @staticmethod
    def list_messages(report_id: Any) -> list[dict[str, Any]]:
        """All messages of a report, oldest first.  Empty list when none."""
        report_id = _positive_id(report_id, "Report id")
        qs = (
            Message.objects
            .filter(report_id=report_id)
            .select_related("sender")
            .order_by("sent_at", "id")
        )
        return [project_message(message) for message in qs]

    @staticmethod
    def list_threads_for(user: User) -> list[dict[str, Any]]:
        """
        One row per conversation the user takes part in, most recent
        activity first.

        Citizens see the reports they filed.  External maintainers see
        reports assigned to them as maintainer; every other operator role
        sees reports assigned to them as technician.  Reports pending
        approval or rejected are left out.
        """
        from reports.models import CHAT_HIDDEN_STATUSES

        role = get_user_role_name(user)
        qs = _report_model().objects.all()
        if role == RoleCode.CITIZEN:
            qs = qs.filter(citizen=user)
        elif role == RoleCode.EXTERNAL_MAINTAINER:
            qs = qs.filter(assigned_maintainer=user)
        elif role is not None:
            qs = qs.filter(assigned_technician=user)
        else:
            raise Forbidden("Users without a role have no conversations.")

        participant = participant_role_for(user)
        latest = Message.objects.filter(report=OuterRef("pk")).order_by("-sent_at", "-id")
        message_count = (
            Message.objects
            .filter(report=OuterRef("pk"))
            .order_by()
            .values("report")
            .annotate(total=Count("pk"))
            .values("total")
        )

        qs = (
            qs.exclude(status_id__in=CHAT_HIDDEN_STATUSES)
            .select_related("status", "citizen")
            .annotate(
                last_message_content=Subquery(latest.values("content")[:1]),
                last_message_sender_type=Subquery(latest.values("sender_type")[:1]),
                last_message_at=Subquery(latest.values("sent_at")[:1]),
                message_count=Coalesce(
                    Subquery(message_count, output_field=IntegerField()),
                    Value(0),
                ),
                unread_count=ReadWatermarkService.unread_subquery(participant, user.pk),
            )
            .annotate(last_activity=Coalesce(F("last_message_at"), F("created_at")))
            .order_by("-last_activity", "-id")
        )

        threads = []
        for report in qs:
            last_message = None
            if report.last_message_at is not None:
                last_message = {
                    "content": report.last_message_content,
                    "sender_type": report.last_message_sender_type,
                    "sent_at": report.last_message_at,
                }
            citizen = None
            if participant != PARTICIPANT_CITIZEN:
                citizen = {
                    "id": report.citizen_id,
                    "username": report.citizen.username,
                    "first_name": report.citizen.first_name,
                    "last_name": report.citizen.last_name,
                }
            threads.append({
                "report_id": report.pk,
                "title": report.title,
                "status": {"id": report.status_id, "name": report.status.name},
                "created_at": report.created_at,
                "citizen": citizen,
                "last_message": last_message,
                "message_count": report.message_count,
                "last_activity": report.last_activity,
                "unread_count": report.unread_count,
            })
        return threads

    @staticmethod
    def get_chat_details(report: Report) -> dict[str, Any]:
        """Header block for one conversation: report, status and participants."""
        def _person(user):
            if user is None:
                return None
            return {"id": user.pk, "username": user.username}

        return {
            "report_id": report.pk,
            "title": report.title,
            "status": {"id": report.status_id, "name": report.status.name},
            "category": {"id": report.category_id, "name": report.category.name},
            "created_at": report.created_at,
            "citizen": _person(report.citizen),
            "assigned_technician": _person(report.assigned_technician),
            "assigned_maintainer": _person(report.assigned_maintainer),
        }


# ═══════════════════════════════════════════════════════════════════
#  Read Watermarks
# ═══════════════════════════════════════════════════════════════════

class ReadWatermarkService:
    """One last-read timestamp per (participant role, participant, report)."""

    @staticmethod
    def mark_read(participant_role: str, participant_id: Any, report_id: Any) -> ChatRead:
        """
        Upsert the watermark to *now*.

        Uses ``INSERT … ON CONFLICT DO UPDATE`` so concurrent calls for the
        same key never create duplicate rows.
        """
        participant_role = _participant_role(participant_role)
        participant_id = _positive_id(participant_id, "Participant id")
        report_id = _positive_id(report_id, "Report id")

        with storage_guard("mark report #%s read", report_id):
            if not _report_model().objects.filter(pk=report_id).exists():
                raise NotFound(f"Report {report_id} does not exist.")
            ChatRead.objects.bulk_create(
                [
                    ChatRead(
                        participant_role=participant_role,
                        participant_id=participant_id,
                        report_id=report_id,
                        last_read_at=timezone.now(),
                    )
                ],
                update_conflicts=True,
                unique_fields=["participant_role", "participant", "report"],
                update_fields=["last_read_at"],
            )
            return ChatRead.objects.get(
                participant_role=participant_role,
                participant_id=participant_id,
                report_id=report_id,
            )

    @staticmethod
    def unread_count(participant_role: str, participant_id: Any, report_id: Any) -> int:
        participant_role = _participant_role(participant_role)
        participant_id = _positive_id(participant_id, "Participant id")
        report_id = _positive_id(report_id, "Report id")

        watermark = (
            ChatRead.objects
            .filter(
                participant_role=participant_role,
                participant_id=participant_id,
                report_id=report_id,
            )
            .values_list("last_read_at", flat=True)
            .first()
        )
        return (
            Message.objects
            .filter(report_id=report_id, sent_at__gt=watermark or EPOCH)
            .exclude(sender_type=participant_role)
            .count()
        )

    @staticmethod
    def unread_subquery(participant_role: str, participant_id: int) -> Coalesce:
        """
        Correlated unread counter for annotating a ``Report`` queryset.

        The outer query must expose the report primary key as ``pk``.
        """
        watermark = ChatRead.objects.filter(
            participant_role=participant_role,
            participant_id=participant_id,
            report=OuterRef("report"),
        ).values("last_read_at")[:1]

        unread = (
            Message.objects
            .filter(report=OuterRef("pk"))
            .exclude(sender_type=participant_role)
            .filter(
                sent_at__gt=Coalesce(
                    Subquery(watermark, output_field=DateTimeField()),
                    Value(EPOCH, output_field=DateTimeField()),
                )
            )
            .order_by()
            .values("report")
            .annotate(total=Count("pk"))
            .values("total")
        )
        return Coalesce(Subquery(unread, output_field=IntegerField()), Value(0))

    @staticmethod
    def total_unread_count(participant_role: str, participant_id: Any) -> int:
        """
        Unread messages across every conversation of the participant.

        Citizens count the reports they filed; operators count reports
        where they are technician or maintainer.  Reports pending
        approval or rejected are left out.
        """
        from reports.models import CHAT_HIDDEN_STATUSES

        participant_role = _participant_role(participant_role)
        participant_id = _positive_id(participant_id, "Participant id")

        qs = _report_model().objects.exclude(status_id__in=CHAT_HIDDEN_STATUSES)
        if participant_role == ParticipantRole.CITIZEN:
            qs = qs.filter(citizen_id=participant_id)
        else:
            qs = qs.filter(
                Q(assigned_technician_id=participant_id)
                | Q(assigned_maintainer_id=participant_id)
            )

        counts = qs.annotate(
            unread=ReadWatermarkService.unread_subquery(participant_role, participant_id)
        ).values_list("unread", flat=True)
        return sum(counts)


# ═══════════════════════════════════════════════════════════════════
#  Chat orchestration
# ═══════════════════════════════════════════════════════════════════

class ChatService:
    """
    Conversation access for one user.

    A citizen takes part in the threads of reports they filed; an
    operator in those where they are the assigned technician or
    maintainer.  Access does not depend on the report's status.
    """

    def __init__(self, user: User, push_channel: PushChannel | None = None) -> None:
        self.user = user
        self.push_channel = push_channel
        self.role = get_user_role_name(user)
        self.participant_role = participant_role_for(user)

    def _participant_report(self, report_id: Any) -> Report:
        report_id = _positive_id(report_id, "Report id")
        report = (
            _report_model().objects
            .select_related(
                "status",
                "category",
                "citizen",
                "assigned_technician",
                "assigned_maintainer",
            )
            .filter(pk=report_id)
            .first()
        )
        if report is None:
            raise NotFound(f"Report {report_id} does not exist.")

        if self.role == RoleCode.CITIZEN:
            allowed = report.citizen_id == self.user.pk
        elif self.role is not None:
            allowed = self.user.pk in (
                report.assigned_technician_id,
                report.assigned_maintainer_id,
            )
        else:
            allowed = False
        if not allowed:
            raise Forbidden("You are not a participant in this conversation.")
        return report

    def list_threads(self) -> list[dict[str, Any]]:
        return ConversationService.list_threads_for(self.user)

    def open_chat(self, report_id: Any) -> dict[str, Any]:
        """Thread header plus messages; viewing marks the thread as read."""
        report = self._participant_report(report_id)
        with transaction.atomic():
            messages = ConversationService.list_messages(report.pk)
            ReadWatermarkService.mark_read(self.participant_role, self.user.pk, report.pk)
        return {**ConversationService.get_chat_details(report), "messages": messages}

    def list_messages(self, report_id: Any) -> list[dict[str, Any]]:
        report = self._participant_report(report_id)
        return ConversationService.list_messages(report.pk)

    def send_message(self, report_id: Any, content: Any) -> dict[str, Any]:
        report = self._participant_report(report_id)
        with transaction.atomic():
            message = ConversationService.append(
                report.pk, self.participant_role, self.user.pk, content,
            )
            ChatService.broadcast(report, message, self.push_channel)
        return project_message(message)

    def mark_read(self, report_id: Any) -> ChatRead:
        report = self._participant_report(report_id)
        return ReadWatermarkService.mark_read(self.participant_role, self.user.pk, report.pk)

    def unread_count(self, report_id: Any) -> int:
        report = self._participant_report(report_id)
        return ReadWatermarkService.unread_count(self.participant_role, self.user.pk, report.pk)

    def unread_total(self) -> int:
        return ReadWatermarkService.total_unread_count(self.participant_role, self.user.pk)

    @staticmethod
    def broadcast(report: Report, message: Message, push_channel: PushChannel | None) -> None:
        """
        Schedule ``new_message`` pushes for after commit.

        The report room always receives it; each participant's personal
        room receives it unless that participant wrote the message.
        """
        if push_channel is None:
            return

        payload = _push_payload(message)
        rooms = [report_room(report.pk)]
        if message.sender_type != SenderType.CITIZEN:
            rooms.append(citizen_room(report.citizen_id))
        for operator_id in (report.assigned_technician_id, report.assigned_maintainer_id):
            if operator_id is not None and operator_id != message.sender_id:
                rooms.append(operator_room(operator_id))

        for room in rooms:
            deliver_on_commit(push_channel, room, EVENT_NEW_MESSAGE, payload)


# ═══════════════════════════════════════════════════════════════════
#  Internal Comments
# ═══════════════════════════════════════════════════════════════════

class InternalCommentService:
    """Notes exchanged between technical staff and external maintainers."""

    @staticmethod
    def _checked_report_id(requesting_user: User, report_id: Any) -> int:
        require_role(
            requesting_user,
            *FIELD_OPERATOR_ROLES,
            message="Only technical staff and external maintainers can use internal comments.",
        )
        report_id = _positive_id(report_id, "Report id")
        if not _report_model().objects.filter(pk=report_id).exists():
            raise NotFound(f"Report {report_id} does not exist.")
        return report_id

    @staticmethod
    def add_comment(requesting_user: User, report_id: Any, content: Any) -> dict[str, Any]:
        report_id = InternalCommentService._checked_report_id(requesting_user, report_id)
        text = content.strip() if isinstance(content, str) else ""
        if not text:
            raise InvalidArgument("Comment content must not be empty.")

        with storage_guard("add internal comment to report #%s", report_id):
            comment = InternalComment.objects.create(
                report_id=report_id,
                sender=requesting_user,
                content=text,
            )
        logger.info("Internal comment #%d on report #%d by user %s", comment.pk, report_id, requesting_user.pk)
        return InternalCommentService._project(comment)

    @staticmethod
    def list_comments(requesting_user: User, report_id: Any) -> list[dict[str, Any]]:
        report_id = InternalCommentService._checked_report_id(requesting_user, report_id)
        qs: QuerySet = (
            InternalComment.objects
            .filter(report_id=report_id)
            .select_related("sender__role")
            .order_by("created_at", "id")
        )
        return [InternalCommentService._project(comment) for comment in qs]

    @staticmethod
    def _project(comment: InternalComment) -> dict[str, Any]:
        sender = comment.sender
        return {
            "id": comment.pk,
            "report_id": comment.report_id,
            "content": comment.content,
            "created_at": comment.created_at,
            "sender": {
                "id": sender.pk,
                "username": sender.username,
                "email": sender.email,
                "role": sender.role.name if sender.role_id else None,
            },
        }
