from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["id", "citizen", "report", "sent_at", "seen"]
    list_filter = ["seen"]
    search_fields = ["message", "citizen__username"]
    raw_id_fields = ["citizen", "report"]
