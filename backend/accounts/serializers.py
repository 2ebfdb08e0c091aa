"""
Accounts app serializers.
"""

from rest_framework import serializers

from .models import Role, User


class RoleListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ["id", "name", "code"]


class UserDetailSerializer(serializers.ModelSerializer):
    """Profile of the authenticated user, including the role a client needs to route its UI."""

    role_detail = RoleListSerializer(source="role", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "is_verified",
            "office",
            "company",
            "role_detail",
        ]
        read_only_fields = fields
