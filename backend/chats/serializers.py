"""
Chats app serializers.

Request bodies are validated here; response serializers describe the
dict projections built by ``chats.services``.
"""

from __future__ import annotations

from rest_framework import serializers


MAX_MESSAGE_LENGTH = 5000


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=MAX_MESSAGE_LENGTH, trim_whitespace=True)


class InternalCommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=MAX_MESSAGE_LENGTH, trim_whitespace=True)


class _StatusRefSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)


class _PersonSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)


class MessageSerializer(serializers.Serializer):
    """A single conversation message."""

    id = serializers.IntegerField(read_only=True)
    report_id = serializers.IntegerField(read_only=True)
    sender_type = serializers.CharField(
        read_only=True,
        help_text="citizen, operator or system.",
    )
    sender_id = serializers.IntegerField(read_only=True, allow_null=True)
    sender_username = serializers.CharField(read_only=True, allow_null=True)
    content = serializers.CharField(read_only=True)
    sent_at = serializers.DateTimeField(read_only=True)


class LastMessageSerializer(serializers.Serializer):
    content = serializers.CharField(read_only=True)
    sender_type = serializers.CharField(read_only=True)
    sent_at = serializers.DateTimeField(read_only=True)


class ThreadCitizenSerializer(_PersonSerializer):
    first_name = serializers.CharField(read_only=True)
    last_name = serializers.CharField(read_only=True)


class ThreadSerializer(serializers.Serializer):
    """Row of the conversation list."""

    report_id = serializers.IntegerField(read_only=True)
    title = serializers.CharField(read_only=True)
    status = _StatusRefSerializer(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    citizen = ThreadCitizenSerializer(
        read_only=True,
        allow_null=True,
        help_text="Only filled in for operators.",
    )
    last_message = LastMessageSerializer(read_only=True, allow_null=True)
    message_count = serializers.IntegerField(read_only=True)
    last_activity = serializers.DateTimeField(read_only=True)
    unread_count = serializers.IntegerField(read_only=True)


class ChatDetailSerializer(serializers.Serializer):
    """Conversation header together with its messages."""

    report_id = serializers.IntegerField(read_only=True)
    title = serializers.CharField(read_only=True)
    status = _StatusRefSerializer(read_only=True)
    category = _StatusRefSerializer(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    citizen = _PersonSerializer(read_only=True, allow_null=True)
    assigned_technician = _PersonSerializer(read_only=True, allow_null=True)
    assigned_maintainer = _PersonSerializer(read_only=True, allow_null=True)
    messages = MessageSerializer(many=True, read_only=True)


class ChatReadSerializer(serializers.Serializer):
    report_id = serializers.IntegerField(read_only=True)
    participant_role = serializers.CharField(read_only=True)
    last_read_at = serializers.DateTimeField(read_only=True)


class UnreadMessagesSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField(read_only=True)


class CommentSenderSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    role = serializers.CharField(read_only=True, allow_null=True)


class InternalCommentSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    report_id = serializers.IntegerField(read_only=True)
    content = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    sender = CommentSenderSerializer(read_only=True)
