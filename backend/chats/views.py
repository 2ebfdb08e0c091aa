"""
Chats app views — **Thin Views**.

Each action delegates to ``ChatService`` (citizen / operator
conversation) or ``InternalCommentService`` (operator-only notes) and
serialises the returned projection.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.notifications import get_push_channel

from .serializers import (
    ChatDetailSerializer,
    ChatReadSerializer,
    InternalCommentCreateSerializer,
    InternalCommentSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    ThreadSerializer,
    UnreadMessagesSerializer,
)
from .services import ChatService, InternalCommentService


class ChatViewSet(viewsets.ViewSet):
    """
    Report conversations.  The ``{id}`` in every route is the report id.

    GET  /api/chats/                          → caller's threads
    GET  /api/chats/unread-count/             → unread total
    GET  /api/chats/{id}/                     → open thread (marks it read)
    POST /api/chats/{id}/read/                → mark read
    GET  /api/chats/{id}/messages/            → messages
    POST /api/chats/{id}/messages/            → send
    GET  /api/chats/{id}/internal-comments/   → operator notes
    POST /api/chats/{id}/internal-comments/   → add operator note
    """

    permission_classes = [IsAuthenticated]

    def _service(self, request: Request) -> ChatService:
        return ChatService(request.user, push_channel=get_push_channel())

    @extend_schema(
        summary="List conversations",
        responses={200: ThreadSerializer(many=True)},
        tags=["Chats"],
    )
    def list(self, request: Request) -> Response:
        threads = self._service(request).list_threads()
        return Response(ThreadSerializer(threads, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Open a conversation",
        description="Return the conversation header and messages, and mark it as read.",
        responses={
            200: ChatDetailSerializer,
            403: OpenApiResponse(description="Caller is not a participant."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Chats"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        chat = self._service(request).open_chat(pk)
        return Response(ChatDetailSerializer(chat).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark conversation as read",
        request=None,
        responses={200: ChatReadSerializer},
        tags=["Chats"],
    )
    @action(detail=True, methods=["post"], url_path="read")
    def read(self, request: Request, pk: str = None) -> Response:
        watermark = self._service(request).mark_read(pk)
        return Response(ChatReadSerializer(watermark).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Unread messages across all conversations",
        responses={200: UnreadMessagesSerializer},
        tags=["Chats"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request: Request) -> Response:
        total = self._service(request).unread_total()
        return Response({"unread_count": total}, status=status.HTTP_200_OK)

    @extend_schema(
        methods=["GET"],
        summary="List messages",
        responses={200: MessageSerializer(many=True)},
        tags=["Chats"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Send a message",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
        tags=["Chats"],
    )
    @action(detail=True, methods=["get", "post"], url_path="messages")
    def messages(self, request: Request, pk: str = None) -> Response:
        service = self._service(request)
        if request.method == "GET":
            messages = service.list_messages(pk)
            return Response(MessageSerializer(messages, many=True).data, status=status.HTTP_200_OK)

        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = service.send_message(pk, serializer.validated_data["content"])
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        methods=["GET"],
        summary="List internal comments",
        responses={200: InternalCommentSerializer(many=True)},
        tags=["Chats – Internal"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Add an internal comment",
        request=InternalCommentCreateSerializer,
        responses={201: InternalCommentSerializer},
        tags=["Chats – Internal"],
    )
    @action(detail=True, methods=["get", "post"], url_path="internal-comments")
    def internal_comments(self, request: Request, pk: str = None) -> Response:
        if request.method == "GET":
            comments = InternalCommentService.list_comments(request.user, pk)
            return Response(InternalCommentSerializer(comments, many=True).data, status=status.HTTP_200_OK)

        serializer = InternalCommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = InternalCommentService.add_comment(
            request.user, pk, serializer.validated_data["content"],
        )
        return Response(InternalCommentSerializer(comment).data, status=status.HTTP_201_CREATED)
