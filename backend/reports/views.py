"""
Reports app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

ViewSets
--------
- ``ReportViewSet`` — listing, submission, status changes and hand-offs.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.notifications import get_push_channel

from .serializers import (
    ApprovedReportSerializer,
    AssignmentRowSerializer,
    AssignOperatorSerializer,
    AutoAssignmentSerializer,
    ReportCreateSerializer,
    ReportSerializer,
    StatusUpdateSerializer,
)
from .services import (
    ReportAssignmentService,
    ReportCreationService,
    ReportQueryService,
    ReportWorkflowService,
)


class ReportViewSet(viewsets.ViewSet):
    """
    Report endpoints.

    GET  /api/reports/                              → every report (reviewer / admin)
    POST /api/reports/                              → submit (verified citizen)
    GET  /api/reports/approved/                     → public map listing
    GET  /api/reports/assigned/                     → caller's work queue
    PUT  /api/reports/{id}/status/                  → change status
    POST /api/reports/{id}/assign-technician/
    POST /api/reports/{id}/auto-assign-technician/
    POST /api/reports/{id}/assign-maintainer/
    POST /api/reports/{id}/auto-assign-maintainer/
    """

    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action == "approved":
            return [AllowAny()]
        return super().get_permissions()

    # ── Collection ────────────────────────────────────────────────────

    @extend_schema(
        summary="List all reports",
        responses={200: ReportSerializer(many=True)},
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        reports = ReportQueryService.list_all(request.user)
        return Response(ReportSerializer(reports, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a report",
        request=ReportCreateSerializer,
        responses={
            201: OpenApiResponse(response=ReportSerializer, description="Report created in Pending Approval."),
            403: OpenApiResponse(description="Caller is not a verified citizen."),
            422: OpenApiResponse(description="Category does not resolve to an office."),
        },
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportCreationService.create_report(request.user, **serializer.validated_data)
        return Response(ReportSerializer(report).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Approved reports",
        description="Reports being worked on; anonymous reports hide the citizen.",
        responses={200: ApprovedReportSerializer(many=True)},
        tags=["Reports"],
    )
    @action(detail=False, methods=["get"], url_path="approved")
    def approved(self, request: Request) -> Response:
        reports = ReportQueryService.list_approved()
        return Response(ApprovedReportSerializer(reports, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="My assigned reports",
        responses={200: ReportSerializer(many=True)},
        tags=["Reports"],
    )
    @action(detail=False, methods=["get"], url_path="assigned")
    def assigned(self, request: Request) -> Response:
        reports = ReportQueryService.list_my_assignments(request.user)
        return Response(ReportSerializer(reports, many=True).data, status=status.HTTP_200_OK)

    # ── Workflow ──────────────────────────────────────────────────────

    @extend_schema(
        summary="Change report status",
        request=StatusUpdateSerializer,
        responses={
            200: OpenApiResponse(response=ReportSerializer, description="Updated report."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports – Workflow"],
    )
    @action(detail=True, methods=["put", "post"], url_path="status")
    def set_status(self, request: Request, pk: str = None) -> Response:
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.set_status(
            request.user,
            pk,
            serializer.validated_data["status"],
            rejection_reason=serializer.validated_data.get("rejection_reason"),
            push_channel=get_push_channel(),
        )
        if report is None:
            return Response({"detail": "Report not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(ReportSerializer(report).data, status=status.HTTP_200_OK)

    # ── Assignment ────────────────────────────────────────────────────

    @extend_schema(
        summary="Assign technical staff",
        request=AssignOperatorSerializer,
        responses={200: AssignmentRowSerializer},
        tags=["Reports – Assignment"],
    )
    @action(detail=True, methods=["post"], url_path="assign-technician")
    def assign_technician(self, request: Request, pk: str = None) -> Response:
        serializer = AssignOperatorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        row = ReportAssignmentService.assign_technician(
            request.user, pk, serializer.validated_data["operator_id"], get_push_channel(),
        )
        return Response(AssignmentRowSerializer(row).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Auto-assign technical staff",
        request=None,
        responses={200: AutoAssignmentSerializer},
        tags=["Reports – Assignment"],
    )
    @action(detail=True, methods=["post"], url_path="auto-assign-technician")
    def auto_assign_technician(self, request: Request, pk: str = None) -> Response:
        result = ReportAssignmentService.auto_assign_technician(request.user, pk, get_push_channel())
        return Response(AutoAssignmentSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Assign external maintainer",
        request=AssignOperatorSerializer,
        responses={200: AssignmentRowSerializer},
        tags=["Reports – Assignment"],
    )
    @action(detail=True, methods=["post"], url_path="assign-maintainer")
    def assign_maintainer(self, request: Request, pk: str = None) -> Response:
        serializer = AssignOperatorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        row = ReportAssignmentService.assign_maintainer(
            request.user, pk, serializer.validated_data["operator_id"], get_push_channel(),
        )
        return Response(AssignmentRowSerializer(row).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Auto-assign external maintainer",
        request=None,
        responses={200: AutoAssignmentSerializer},
        tags=["Reports – Assignment"],
    )
    @action(detail=True, methods=["post"], url_path="auto-assign-maintainer")
    def auto_assign_maintainer(self, request: Request, pk: str = None) -> Response:
        result = ReportAssignmentService.auto_assign_maintainer(request.user, pk, get_push_channel())
        return Response(AutoAssignmentSerializer(result).data, status=status.HTTP_200_OK)
