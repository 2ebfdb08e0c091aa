"""
Core app models.

Provides the abstract timestamp base used across the project and the
citizen-facing ``Notification`` inbox.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class Notification(models.Model):
    """
    Durable notice addressed to the citizen who owns a report.

    Rows are written in the same transaction as the report change that
    triggered them; live delivery is a best-effort side channel.
    """

    citizen = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Citizen",
    )
    report = models.ForeignKey(
        "reports.Report",
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Report",
    )
    message = models.TextField(verbose_name="Message")
    sent_at = models.DateTimeField(default=timezone.now, verbose_name="Sent At")
    seen = models.BooleanField(default=False, verbose_name="Seen")

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-sent_at", "-id"]
        indexes = [
            models.Index(fields=["citizen", "seen"]),
        ]

    def __str__(self):
        return f"[{self.citizen}] report #{self.report_id}: {self.message[:40]}"
