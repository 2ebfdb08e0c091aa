from django.contrib import admin

from .models import Photo, Report, Status


class PhotoInline(admin.TabularInline):
    model = Photo
    extra = 0
    readonly_fields = ("uploaded_at",)


@admin.register(Status)
class StatusAdmin(admin.ModelAdmin):
    list_display = ("id", "name")


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "status", "category", "office",
                    "assigned_technician", "assigned_maintainer", "created_at")
    list_filter = ("status", "office", "anonymous")
    search_fields = ("title", "description")
    raw_id_fields = ("citizen", "assigned_technician", "assigned_maintainer")
    inlines = [PhotoInline]
