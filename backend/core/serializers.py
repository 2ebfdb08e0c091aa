"""
Core app serializers.

**Response-only** serializers for the notification inbox.
"""

from __future__ import annotations

from rest_framework import serializers


class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.

    Used by the Notification ViewSet to list and acknowledge
    notifications for the authenticated citizen.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    report_id = serializers.IntegerField(
        read_only=True,
        help_text="Report the notification is about.",
    )
    report_title = serializers.CharField(
        source="report.title",
        read_only=True,
        help_text="Title of the related report.",
    )
    message = serializers.CharField(
        read_only=True,
        help_text="Notification text.",
    )
    sent_at = serializers.DateTimeField(
        read_only=True,
        help_text="When the notification was created.",
    )
    seen = serializers.BooleanField(
        read_only=True,
        help_text="Whether the citizen has acknowledged this notification.",
    )


class UnreadCountSerializer(serializers.Serializer):
    """Badge counter payload."""

    unread_count = serializers.IntegerField(read_only=True)


class MarkAllSeenSerializer(serializers.Serializer):
    success = serializers.BooleanField(read_only=True)
    updated = serializers.IntegerField(read_only=True)
