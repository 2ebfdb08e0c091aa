from django.contrib import admin

from .models import ChatRead, InternalComment, Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ["id", "report", "sender_type", "sender", "sent_at"]
    list_filter = ["sender_type"]
    search_fields = ["content"]
    raw_id_fields = ["report", "sender"]


@admin.register(ChatRead)
class ChatReadAdmin(admin.ModelAdmin):
    list_display = ["id", "participant_role", "participant", "report", "last_read_at"]
    list_filter = ["participant_role"]
    raw_id_fields = ["participant", "report"]


@admin.register(InternalComment)
class InternalCommentAdmin(admin.ModelAdmin):
    list_display = ["id", "report", "sender", "created_at"]
    search_fields = ["content"]
    raw_id_fields = ["report", "sender"]
