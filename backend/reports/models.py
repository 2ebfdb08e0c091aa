"""
Reports app models.

A report is a geolocated civic issue submitted by a citizen.  It moves
through a fixed status catalogue while being handed from the municipal
reviewer to technical staff and, optionally, to an external maintainer.
Reports are never deleted.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Status catalogue
# ────────────────────────────────────────────────────────────────────

class ReportStatus(models.IntegerChoices):
    """
    Fixed status ids.  The integer value is the primary key of the
    matching ``Status`` row.
    """

    PENDING_APPROVAL = 1, "Pending Approval"
    ASSIGNED = 2, "Assigned"
    IN_PROGRESS = 3, "In Progress"
    SUSPENDED = 4, "Suspended"
    REJECTED = 5, "Rejected"
    RESOLVED = 6, "Resolved"


# Visible on the public map.
APPROVED_STATUSES: tuple[int, ...] = (
    ReportStatus.ASSIGNED,
    ReportStatus.IN_PROGRESS,
    ReportStatus.SUSPENDED,
)

# No work left to do.
TERMINAL_STATUSES: tuple[int, ...] = (
    ReportStatus.REJECTED,
    ReportStatus.RESOLVED,
)

OPEN_STATUSES: tuple[int, ...] = tuple(
    value for value in ReportStatus.values if value not in TERMINAL_STATUSES
)

# Left out of chat thread listings and unread totals.
CHAT_HIDDEN_STATUSES: tuple[int, ...] = (
    ReportStatus.PENDING_APPROVAL,
    ReportStatus.REJECTED,
)


class Status(models.Model):
    """
    Reference table mirroring ``ReportStatus``.

    Seeded with ``setup_statuses`` (or ``Status.sync_catalog()``).
    Report creation fails with a storage error if the initial status
    row is missing.
    """

    id = models.PositiveSmallIntegerField(primary_key=True, choices=ReportStatus.choices)
    name = models.CharField(max_length=50, unique=True, verbose_name="Status Name")

    class Meta:
        verbose_name = "Status"
        verbose_name_plural = "Statuses"
        ordering = ["id"]

    def __str__(self):
        return self.name

    @classmethod
    def sync_catalog(cls) -> int:
        """Create or rename every catalogue row; returns how many were created."""
        created_count = 0
        for value, label in ReportStatus.choices:
            _, created = cls.objects.update_or_create(pk=value, defaults={"name": label})
            created_count += int(created)
        return created_count


# ────────────────────────────────────────────────────────────────────
# Report
# ────────────────────────────────────────────────────────────────────

class Report(TimeStampedModel):
    """
    Civic issue report.

    ``office`` is resolved from the category once, at creation time, and
    never recomputed.  ``assigned_maintainer`` is only ever set while
    ``assigned_technician`` is set.  ``rejection_reason`` is only
    populated while the status is Rejected.
    """

    title = models.CharField(max_length=255, verbose_name="Title")
    description = models.TextField(verbose_name="Description")
    latitude = models.FloatField(verbose_name="Latitude")
    longitude = models.FloatField(verbose_name="Longitude")
    anonymous = models.BooleanField(
        default=False,
        verbose_name="Anonymous",
        help_text="Hide the citizen's identity in public listings.",
    )

    citizen = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="submitted_reports",
        verbose_name="Citizen",
    )
    category = models.ForeignKey(
        "offices.Category",
        on_delete=models.PROTECT,
        related_name="reports",
        verbose_name="Category",
    )
    office = models.ForeignKey(
        "offices.Office",
        on_delete=models.PROTECT,
        related_name="reports",
        verbose_name="Office",
    )
    status = models.ForeignKey(
        Status,
        on_delete=models.PROTECT,
        related_name="reports",
        verbose_name="Status",
    )
    rejection_reason = models.TextField(
        null=True,
        blank=True,
        verbose_name="Rejection Reason",
    )

    assigned_technician = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="technician_reports",
        verbose_name="Assigned Technician",
    )
    assigned_maintainer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="maintainer_reports",
        verbose_name="Assigned Maintainer",
    )

    class Meta:
        verbose_name = "Report"
        verbose_name_plural = "Reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["assigned_technician"]),
            models.Index(fields=["assigned_maintainer"]),
        ]

    def __str__(self):
        return f"Report #{self.pk}: {self.title}"


class Photo(models.Model):
    """Image reference attached to a report; ``position`` keeps submission order."""

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="photos",
        verbose_name="Report",
    )
    image_url = models.URLField(max_length=1024, verbose_name="Image URL")
    position = models.PositiveSmallIntegerField(default=0, verbose_name="Position")
    uploaded_at = models.DateTimeField(auto_now_add=True, verbose_name="Uploaded At")

    class Meta:
        verbose_name = "Photo"
        verbose_name_plural = "Photos"
        ordering = ["position", "id"]

    def __str__(self):
        return f"Photo {self.position} of report #{self.report_id}"
