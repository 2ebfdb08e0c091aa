"""
Reports app serializers.

Organised into two sections:

1. **Request** serializers — validate incoming payloads before the
   service layer is called.
2. **Response** serializers — describe the dict projections returned by
   ``reports.services`` (also used for the OpenAPI schema).
"""

from __future__ import annotations

from rest_framework import serializers

from .models import ReportStatus

MIN_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10
MAX_PHOTOS = 3


# ═══════════════════════════════════════════════════════════════════
#  1. Request Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportCreateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/reports/``.

    Photos are uploaded beforehand; only their URLs travel here.
    """

    title = serializers.CharField(min_length=MIN_TITLE_LENGTH, max_length=255)
    description = serializers.CharField(min_length=MIN_DESCRIPTION_LENGTH)
    category_id = serializers.IntegerField(min_value=1)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    anonymous = serializers.BooleanField(required=False, default=False)
    image_urls = serializers.ListField(
        child=serializers.URLField(max_length=1024),
        min_length=1,
        max_length=MAX_PHOTOS,
        help_text=f"Between 1 and {MAX_PHOTOS} image URLs, in display order.",
    )


class StatusUpdateSerializer(serializers.Serializer):
    """
    Request body for ``PUT /api/reports/{id}/status/``.

    ``rejection_reason`` is only kept when ``status`` is Rejected.
    """

    status = serializers.ChoiceField(choices=ReportStatus.choices)
    rejection_reason = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=2000,
    )


class AssignOperatorSerializer(serializers.Serializer):
    """Request body for manual hand-offs; the role check happens in the service."""

    operator_id = serializers.IntegerField(min_value=1, help_text="PK of the operator to assign.")


# ═══════════════════════════════════════════════════════════════════
#  2. Response Serializers
# ═══════════════════════════════════════════════════════════════════


class NamedRefSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)


class CitizenSummarySerializer(serializers.Serializer):
    """``id`` and ``email`` are absent from public listings."""

    id = serializers.IntegerField(read_only=True)
    email = serializers.EmailField(read_only=True)
    username = serializers.CharField(read_only=True)
    first_name = serializers.CharField(read_only=True)
    last_name = serializers.CharField(read_only=True)


class OperatorSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    company = serializers.CharField(read_only=True, allow_null=True)


class PhotoSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    image_url = serializers.CharField(read_only=True)


class ReportSerializer(serializers.Serializer):
    """Hydrated report projection."""

    id = serializers.IntegerField(read_only=True)
    title = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    latitude = serializers.FloatField(read_only=True)
    longitude = serializers.FloatField(read_only=True)
    anonymous = serializers.BooleanField(read_only=True)
    rejection_reason = serializers.CharField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)
    status = NamedRefSerializer(read_only=True)
    category = NamedRefSerializer(read_only=True)
    office = NamedRefSerializer(read_only=True)
    citizen = CitizenSummarySerializer(read_only=True, allow_null=True)
    assigned_technician = OperatorSummarySerializer(read_only=True, allow_null=True)
    assigned_maintainer = OperatorSummarySerializer(read_only=True, allow_null=True)
    photos = PhotoSerializer(many=True, read_only=True)


class ApprovedReportSerializer(ReportSerializer):
    """Public map entry."""

    chat_started = serializers.BooleanField(
        read_only=True,
        help_text="Whether an operator has already written in the report's conversation.",
    )


class AssignmentRowSerializer(serializers.Serializer):
    report_id = serializers.IntegerField(read_only=True)
    citizen_id = serializers.IntegerField(read_only=True)
    assigned_technician_id = serializers.IntegerField(read_only=True, allow_null=True)
    assigned_maintainer_id = serializers.IntegerField(read_only=True, allow_null=True)
    status_id = serializers.IntegerField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class AutoAssignedOperatorSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    previous_active_reports = serializers.IntegerField(read_only=True)


class AutoAssignmentSerializer(serializers.Serializer):
    report = AssignmentRowSerializer(read_only=True)
    operator = AutoAssignedOperatorSerializer(read_only=True)
