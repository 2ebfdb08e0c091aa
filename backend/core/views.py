"""
Core app views — **Thin Views**.

Each view delegates all business logic to ``core.services``.  Views are
responsible only for:

1. Extracting parameters from the request.
2. Calling the service with the authenticated user and parameters.
3. Serialising the result and returning an HTTP ``Response``.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from drf_spectacular.utils import OpenApiResponse, extend_schema

from .serializers import (
    MarkAllSeenSerializer,
    NotificationSerializer,
    UnreadCountSerializer,
)
from .services import NotificationService


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API**: inbox for the authenticated citizen.

    Endpoints
    ---------
    GET  /api/core/notifications/               → latest notifications
    GET  /api/core/notifications/unread-count/  → unseen counter
    POST /api/core/notifications/{id}/read/     → mark one as seen
    POST /api/core/notifications/read-all/      → mark all as seen

    **Authentication**: Required (``IsAuthenticated``), citizens only.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List notifications",
        description="Return the latest notifications for the authenticated citizen.",
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Notification list.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        service = NotificationService(user=request.user)
        notifications = service.list_notifications()
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Unread notification count",
        responses={200: UnreadCountSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request: Request) -> Response:
        service = NotificationService(user=request.user)
        return Response({"unread_count": service.unread_count()}, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark notification as seen",
        description="Mark a single notification of the caller as seen.",
        request=None,
        responses={
            200: OpenApiResponse(response=NotificationSerializer, description="Updated notification."),
            404: OpenApiResponse(description="No such notification for this citizen."),
        },
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"], url_path="read")
    def mark_as_read(self, request: Request, pk: str = None) -> Response:
        """
        **POST /api/core/notifications/{id}/read/**

        Another citizen's notification answers 404, same as a missing one.
        """
        service = NotificationService(user=request.user)
        notification = service.mark_seen(notification_id=pk)
        if notification is None:
            return Response({"detail": "Notification not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark all notifications as seen",
        request=None,
        responses={200: MarkAllSeenSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def mark_all_as_read(self, request: Request) -> Response:
        service = NotificationService(user=request.user)
        updated = service.mark_all_seen()
        return Response({"success": True, "updated": updated}, status=status.HTTP_200_OK)
