from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "description")
    search_fields = ("name", "code")
    ordering = ("name",)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name",
                    "role", "office", "company", "is_verified", "is_active")
    search_fields = ("username", "email")
    list_filter = ("is_active", "is_verified", "role", "office")
    filter_horizontal = ("groups", "user_permissions", "categories")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Municipality", {"fields": ("role", "office", "company", "categories", "is_verified")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Municipality", {"fields": ("email", "first_name", "last_name",
                                     "role", "office", "company")}),
    )
