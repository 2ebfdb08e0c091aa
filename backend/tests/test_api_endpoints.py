"""
End-to-end API flow — a report from submission to resolution.

Engineering constraints:
  * django.test.TestCase + rest_framework.test.APIClient.
  * Requests carry real JWT access tokens.
  * Assertions cover HTTP status mapping of domain errors as well as
    the happy path.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import Role
from core.constants import ROLE_CATALOG, RoleCode
from core.models import Notification
from offices.models import Category, Office
from reports.models import Report, ReportStatus, Status

User = get_user_model()


@override_settings(PUSH_CHANNEL_BACKEND="core.domain.notifications.LoggingPushChannel")
class TestReportLifecycleAPI(TestCase):

    @classmethod
    def setUpTestData(cls) -> None:
        Status.sync_catalog()
        roles = {
            code: Role.objects.create(code=code, name=name, description=description)
            for code, (name, description) in ROLE_CATALOG.items()
        }
        cls.office = Office.objects.create(name="Lighting Office")
        cls.category = Category.objects.create(name="Street Lighting", office=cls.office)

        def _user(username, role_code, **extra):
            extra.setdefault("is_verified", True)
            return User.objects.create_user(
                username=username,
                email=f"{username}@city.test",
                password="Pass!word123",
                role=roles[role_code],
                **extra,
            )

        cls.citizen = _user("sara", RoleCode.CITIZEN, first_name="Sara")
        cls.unverified = _user("newbie", RoleCode.CITIZEN, is_verified=False)
        cls.reviewer = _user("pr_officer", RoleCode.MUNICIPAL_PR_OFFICER)
        cls.technician = _user("electrician", RoleCode.TECHNICAL_STAFF, office=cls.office)

    def setUp(self) -> None:
        self.client = APIClient()

    def _as(self, user) -> None:
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")

    def _submit(self, **overrides):
        payload = {
            "title": "Lamp post flickering",
            "description": "The lamp post in front of the school flickers all night.",
            "category_id": self.category.pk,
            "latitude": 45.06,
            "longitude": 7.66,
            "anonymous": False,
            "image_urls": ["https://img.city.test/lamp.jpg"],
        }
        payload.update(overrides)
        return self.client.post(reverse("report-list"), payload, format="json")

    # ── Submission ───────────────────────────────────────────────────

    def test_citizen_submits_report(self):
        self._as(self.citizen)

        response = self._submit()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"]["id"], ReportStatus.PENDING_APPROVAL)
        self.assertEqual(response.data["office"]["id"], self.office.pk)
        self.assertEqual(len(response.data["photos"]), 1)

    def test_submission_errors_map_to_http(self):
        self._as(self.citizen)
        self.assertEqual(self._submit(category_id=9999).status_code, 422)
        self.assertEqual(self._submit(image_urls=[]).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._submit(title="").status_code, status.HTTP_400_BAD_REQUEST)

        self._as(self.unverified)
        self.assertEqual(self._submit().status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Report.objects.count(), 0)

    def test_anonymous_request_is_rejected(self):
        self.assertEqual(self._submit().status_code, status.HTTP_401_UNAUTHORIZED)

    # ── Full lifecycle ───────────────────────────────────────────────

    def test_report_lifecycle(self):
        self._as(self.citizen)
        report_id = self._submit(anonymous=True).data["id"]

        # Reviewer sees it and routes it automatically.
        self._as(self.reviewer)
        listing = self.client.get(reverse("report-list"))
        self.assertEqual([r["id"] for r in listing.data], [report_id])
        auto = self.client.post(reverse("report-auto-assign-technician", kwargs={"pk": report_id}))
        self.assertEqual(auto.status_code, status.HTTP_200_OK, auto.data)
        self.assertEqual(auto.data["operator"]["id"], self.technician.pk)
        self.assertEqual(auto.data["report"]["status_id"], ReportStatus.ASSIGNED)

        # Public map hides the anonymous citizen; no login needed.
        self.client.credentials()
        approved = self.client.get(reverse("report-approved"))
        self.assertEqual(approved.status_code, status.HTTP_200_OK)
        self.assertIsNone(approved.data[0]["citizen"])
        self.assertFalse(approved.data[0]["chat_started"])

        # Technician works the report and writes to the citizen.
        self._as(self.technician)
        assigned = self.client.get(reverse("report-assigned"))
        self.assertEqual([r["id"] for r in assigned.data], [report_id])
        sent = self.client.post(
            reverse("chat-messages", kwargs={"pk": report_id}),
            {"content": "We will fix it tomorrow."},
            format="json",
        )
        self.assertEqual(sent.status_code, status.HTTP_201_CREATED, sent.data)
        resolved = self.client.put(
            reverse("report-set-status", kwargs={"pk": report_id}),
            {"status": ReportStatus.RESOLVED},
            format="json",
        )
        self.assertEqual(resolved.data["status"]["name"], "Resolved")

        # Citizen reads notifications and the conversation.
        self._as(self.citizen)
        unread = self.client.get(reverse("core:notification-unread-count"))
        self.assertEqual(unread.data["unread_count"], 2)
        chats_unread = self.client.get(reverse("chat-unread-count"))
        self.assertEqual(chats_unread.status_code, status.HTTP_200_OK)
        chat = self.client.get(reverse("chat-detail", kwargs={"pk": report_id}))
        self.assertEqual(chat.status_code, status.HTTP_200_OK)
        self.assertIn("We will fix it tomorrow.", [m["content"] for m in chat.data["messages"]])
        read_all = self.client.post(reverse("core:notification-mark-all-as-read"))
        self.assertEqual(read_all.data, {"success": True, "updated": 2})

    # ── Error mapping ────────────────────────────────────────────────

    def test_assignment_errors_map_to_http(self):
        report = Report.objects.create(
            title="Dark street",
            description="Three lamps out in a row.",
            latitude=45.0,
            longitude=7.6,
            citizen=self.citizen,
            category=self.category,
            office=self.office,
            status_id=ReportStatus.RESOLVED,
        )
        url = reverse("report-assign-technician", kwargs={"pk": report.pk})

        self._as(self.citizen)
        self.assertEqual(
            self.client.post(url, {"operator_id": self.technician.pk}, format="json").status_code,
            status.HTTP_403_FORBIDDEN,
        )

        self._as(self.reviewer)
        self.assertEqual(
            self.client.post(url, {"operator_id": self.technician.pk}, format="json").status_code,
            status.HTTP_409_CONFLICT,
        )
        missing = reverse("report-assign-technician", kwargs={"pk": 99999})
        self.assertEqual(
            self.client.post(missing, {"operator_id": self.technician.pk}, format="json").status_code,
            status.HTTP_404_NOT_FOUND,
        )

    def test_status_of_missing_report_is_404(self):
        self._as(self.reviewer)
        response = self.client.put(
            reverse("report-set-status", kwargs={"pk": 99999}),
            {"status": ReportStatus.IN_PROGRESS},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_ascii_digit_id_is_400(self):
        self._as(self.reviewer)
        response = self.client.put(
            "/api/reports/%C2%B2/status/",
            {"status": ReportStatus.IN_PROGRESS},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_argument")

    def test_other_citizens_notification_is_404(self):
        other = User.objects.create_user(
            username="other", email="other@city.test", password="x",
            role=self.citizen.role, is_verified=True,
        )
        report = Report.objects.create(
            title="Dark street",
            description="Three lamps out in a row.",
            latitude=45.0,
            longitude=7.6,
            citizen=self.citizen,
            category=self.category,
            office=self.office,
            status_id=ReportStatus.ASSIGNED,
        )
        notification = Notification.objects.create(citizen=self.citizen, report=report, message="hi")

        self._as(other)
        response = self.client.post(
            reverse("core:notification-mark-as-read", kwargs={"pk": notification.pk}),
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
