"""
Integration tests — token login and the current-profile endpoint.

Endpoints under test:
    POST /api/accounts/token/   (named URL: accounts:token-obtain)
    GET  /api/accounts/me/      (named URL: accounts:me)

Engineering constraints:
  * django.test.TestCase + rest_framework.test.APIClient.
  * Tests hit real endpoints via views/urls; no direct service calls.
  * Each test acquires its own token.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import Role
from core.constants import RoleCode

User = get_user_model()

_PASSWORD = "Str0ng!Pass77"


class TestMeEndpoint(TestCase):

    @classmethod
    def setUpTestData(cls) -> None:
        cls.citizen_role = Role.objects.create(name="Citizen", code=RoleCode.CITIZEN)
        cls.user = User.objects.create_user(
            username="me_test_user",
            email="me_test_user@example.com",
            password=_PASSWORD,
            first_name="Me",
            last_name="Tester",
            role=cls.citizen_role,
            is_verified=True,
        )

    def setUp(self) -> None:
        self.client = APIClient()
        self.token_url = reverse("accounts:token-obtain")
        self.me_url = reverse("accounts:me")

    def _login(self) -> str:
        response = self.client.post(
            self.token_url,
            {"username": self.user.username, "password": _PASSWORD},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("refresh", response.data)
        return response.data["access"]

    def test_me_authenticated_returns_profile(self):
        token = self._login()
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = self.client.get(self.me_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], self.user.pk)
        self.assertEqual(response.data["username"], "me_test_user")
        self.assertTrue(response.data["is_verified"])
        self.assertEqual(response.data["role_detail"]["code"], RoleCode.CITIZEN)

    def test_me_does_not_leak_password(self):
        token = self._login()
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = self.client.get(self.me_url)

        self.assertNotIn("password", response.data)

    def test_wrong_password_is_rejected(self):
        response = self.client.post(
            self.token_url,
            {"username": self.user.username, "password": "nope"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_unauthenticated_returns_401(self):
        response = self.client.get(self.me_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_invalid_token_returns_401(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = self.client.get(self.me_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
