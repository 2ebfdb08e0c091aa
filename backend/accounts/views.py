"""
Accounts app views.

Credential handling itself is delegated to ``rest_framework_simplejwt``;
this module only exposes the caller's own profile.
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import extend_schema

from .serializers import UserDetailSerializer


class MeView(APIView):
    """
    GET /api/accounts/me/ → Retrieve current user profile.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: UserDetailSerializer}, tags=["Accounts"])
    def get(self, request: Request) -> Response:
        return Response(UserDetailSerializer(request.user).data)
