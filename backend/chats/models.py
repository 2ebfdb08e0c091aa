"""
Chats app models.

Each report owns one conversation thread between the citizen who filed it
and the operators working it.  Unread badges are derived from per-viewer
read watermarks rather than stored per message.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class SenderType(models.TextChoices):
    CITIZEN = "citizen", "Citizen"
    OPERATOR = "operator", "Operator"
    SYSTEM = "system", "System"


class ParticipantRole(models.TextChoices):
    """The two sides a viewer can read a thread from."""

    CITIZEN = "citizen", "Citizen"
    OPERATOR = "operator", "Operator"


class Message(models.Model):
    """
    Immutable, append-only thread entry.

    ``system`` messages are generated by the workflow (status
    announcements) and carry no sender.
    """

    report = models.ForeignKey(
        "reports.Report",
        on_delete=models.CASCADE,
        related_name="messages",
        verbose_name="Report",
    )
    sender_type = models.CharField(
        max_length=16,
        choices=SenderType.choices,
        verbose_name="Sender Type",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_messages",
        verbose_name="Sender",
    )
    content = models.TextField(verbose_name="Content")
    sent_at = models.DateTimeField(default=timezone.now, verbose_name="Sent At")

    class Meta:
        verbose_name = "Message"
        verbose_name_plural = "Messages"
        ordering = ["sent_at", "id"]
        indexes = [
            models.Index(fields=["report", "sent_at"]),
        ]

    def __str__(self):
        return f"[{self.sender_type}] report #{self.report_id}: {self.content[:40]}"


class ChatRead(models.Model):
    """
    Read watermark: the last moment a participant looked at a thread.

    One row per (participant_role, participant, report); upserted, never
    deleted.
    """

    participant_role = models.CharField(
        max_length=16,
        choices=ParticipantRole.choices,
        verbose_name="Participant Role",
    )
    participant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_reads",
        verbose_name="Participant",
    )
    report = models.ForeignKey(
        "reports.Report",
        on_delete=models.CASCADE,
        related_name="chat_reads",
        verbose_name="Report",
    )
    last_read_at = models.DateTimeField(default=timezone.now, verbose_name="Last Read At")

    class Meta:
        verbose_name = "Chat Read Watermark"
        verbose_name_plural = "Chat Read Watermarks"
        constraints = [
            models.UniqueConstraint(
                fields=["participant_role", "participant", "report"],
                name="unique_chat_read_per_participant",
            ),
        ]

    def __str__(self):
        return f"{self.participant_role}:{self.participant_id} read #{self.report_id} at {self.last_read_at}"


class InternalComment(models.Model):
    """Operator-only note on a report; never shown to the citizen."""

    report = models.ForeignKey(
        "reports.Report",
        on_delete=models.CASCADE,
        related_name="internal_comments",
        verbose_name="Report",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="internal_comments",
        verbose_name="Sender",
    )
    content = models.TextField(verbose_name="Content")
    created_at = models.DateTimeField(default=timezone.now, verbose_name="Created At")

    class Meta:
        verbose_name = "Internal Comment"
        verbose_name_plural = "Internal Comments"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"Comment by {self.sender_id} on report #{self.report_id}"
