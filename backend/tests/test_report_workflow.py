"""
Report status workflow and read projections.

``ReportWorkflowService.set_status`` and the three listings of
``ReportQueryService``.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from chats.models import Message, SenderType
from core.constants import RoleCode
from core.domain.exceptions import Forbidden, InvalidArgument
from core.models import Notification
from reports.models import Report, ReportStatus
from reports.services import ReportQueryService, ReportWorkflowService

pytestmark = pytest.mark.django_db


@pytest.fixture()
def citizen(create_user):
    return create_user(username="giulia", first_name="Giulia", role_code=RoleCode.CITIZEN)


@pytest.fixture()
def reviewer(create_user):
    return create_user(username="reviewer", role_code=RoleCode.MUNICIPAL_PR_OFFICER)


@pytest.fixture()
def technician(create_user, office):
    return create_user(username="tech", role_code=RoleCode.TECHNICAL_STAFF, office=office)


# ════════════════════════════════════════════════════════════════════
#  set_status
# ════════════════════════════════════════════════════════════════════

class TestSetStatus:

    def test_rejection_keeps_reason(self, reviewer, citizen, create_report):
        report = create_report(citizen)

        updated = ReportWorkflowService.set_status(
            reviewer, report.pk, ReportStatus.REJECTED, rejection_reason="Duplicate of #3",
        )

        assert updated["status"]["id"] == ReportStatus.REJECTED
        assert updated["rejection_reason"] == "Duplicate of #3"

    def test_leaving_rejected_clears_reason(self, reviewer, citizen, create_report):
        report = create_report(
            citizen, status=ReportStatus.REJECTED, rejection_reason="Out of scope",
        )

        updated = ReportWorkflowService.set_status(
            reviewer, report.pk, ReportStatus.IN_PROGRESS, rejection_reason="ignored",
        )

        assert updated["rejection_reason"] is None
        assert Report.objects.get(pk=report.pk).rejection_reason is None

    def test_reason_dropped_for_non_rejected_status(self, reviewer, citizen, create_report):
        report = create_report(citizen, status=ReportStatus.ASSIGNED)

        updated = ReportWorkflowService.set_status(
            reviewer, report.pk, ReportStatus.SUSPENDED, rejection_reason="why not",
        )

        assert updated["rejection_reason"] is None

    def test_missing_report_returns_none(self, reviewer, statuses):
        assert ReportWorkflowService.set_status(reviewer, 4040, ReportStatus.RESOLVED) is None

    def test_citizen_gets_notification_and_system_message(self, reviewer, citizen, create_report):
        report = create_report(citizen, status=ReportStatus.IN_PROGRESS)

        ReportWorkflowService.set_status(reviewer, report.pk, ReportStatus.RESOLVED)

        notification = Notification.objects.get(citizen=citizen, report=report)
        assert notification.message == "Great news! Your report has been resolved!"
        assert notification.seen is False
        system = Message.objects.get(report=report)
        assert system.sender_type == SenderType.SYSTEM
        assert system.sender_id is None
        assert system.content == notification.message

    def test_rejection_message_carries_reason(self, reviewer, citizen, create_report):
        report = create_report(citizen)

        ReportWorkflowService.set_status(
            reviewer, report.pk, ReportStatus.REJECTED, rejection_reason="Private property",
        )

        assert Notification.objects.get(report=report).message == (
            "Your report was rejected: Private property"
        )

    def test_unchanged_status_is_silent(self, reviewer, citizen, create_report):
        report = create_report(citizen, status=ReportStatus.IN_PROGRESS)

        ReportWorkflowService.set_status(reviewer, report.pk, ReportStatus.IN_PROGRESS)

        assert not Notification.objects.filter(report=report).exists()
        assert not Message.objects.filter(report=report).exists()

    def test_terminal_status_can_be_left(self, reviewer, citizen, create_report):
        report = create_report(citizen, status=ReportStatus.RESOLVED)

        updated = ReportWorkflowService.set_status(reviewer, report.pk, ReportStatus.IN_PROGRESS)

        assert updated["status"]["id"] == ReportStatus.IN_PROGRESS

    @pytest.mark.parametrize("role_code", [RoleCode.CITIZEN, RoleCode.MUNICIPAL_ADMINISTRATOR])
    def test_role_gate_leaves_report_untouched(self, create_user, citizen, create_report, role_code):
        report = create_report(citizen)
        caller = create_user(role_code=role_code)

        with pytest.raises(Forbidden):
            ReportWorkflowService.set_status(caller, report.pk, ReportStatus.RESOLVED)

        report.refresh_from_db()
        assert report.status_id == ReportStatus.PENDING_APPROVAL
        assert not Notification.objects.exists()

    @pytest.mark.parametrize("bad_status", [0, 7, "resolved", None])
    def test_unknown_status(self, reviewer, citizen, create_report, bad_status):
        report = create_report(citizen)
        with pytest.raises(InvalidArgument):
            ReportWorkflowService.set_status(reviewer, report.pk, bad_status)

    def test_technician_may_change_status(self, technician, citizen, create_report):
        report = create_report(citizen, status=ReportStatus.ASSIGNED, technician=technician)

        updated = ReportWorkflowService.set_status(technician, report.pk, ReportStatus.IN_PROGRESS)

        assert updated["status"]["name"] == "In Progress"


# ════════════════════════════════════════════════════════════════════
#  Listings
# ════════════════════════════════════════════════════════════════════

class TestListings:

    def test_list_all_is_for_reviewers(self, reviewer, citizen, create_report):
        create_report(citizen, title="first")
        create_report(citizen, title="second", status=ReportStatus.REJECTED)

        titles = [row["title"] for row in ReportQueryService.list_all(reviewer)]

        assert sorted(titles) == ["first", "second"]
        with pytest.raises(Forbidden):
            ReportQueryService.list_all(citizen)

    def test_list_approved_only_working_statuses(self, citizen, create_report, technician):
        create_report(citizen, title="pending")
        create_report(citizen, title="assigned", status=ReportStatus.ASSIGNED, technician=technician)
        create_report(citizen, title="progress", status=ReportStatus.IN_PROGRESS, technician=technician)
        create_report(citizen, title="suspended", status=ReportStatus.SUSPENDED, technician=technician)
        create_report(citizen, title="rejected", status=ReportStatus.REJECTED)
        create_report(citizen, title="resolved", status=ReportStatus.RESOLVED, technician=technician)

        titles = {row["title"] for row in ReportQueryService.list_approved()}

        assert titles == {"assigned", "progress", "suspended"}

    def test_list_approved_hides_anonymous_citizen(self, citizen, create_report, technician):
        create_report(
            citizen, title="anon", anonymous=True,
            status=ReportStatus.ASSIGNED, technician=technician,
        )
        create_report(
            citizen, title="named",
            status=ReportStatus.ASSIGNED, technician=technician,
        )

        rows = {row["title"]: row for row in ReportQueryService.list_approved()}

        assert rows["anon"]["citizen"] is None
        assert rows["named"]["citizen"]["first_name"] == "Giulia"
        assert "id" not in rows["named"]["citizen"]
        assert "email" not in rows["named"]["citizen"]

    def test_list_approved_flags_operator_chat(self, citizen, create_report, technician):
        report = create_report(citizen, status=ReportStatus.IN_PROGRESS, technician=technician)
        Message.objects.create(report=report, sender_type=SenderType.CITIZEN, sender=citizen, content="hi")

        assert ReportQueryService.list_approved()[0]["chat_started"] is False

        Message.objects.create(
            report=report, sender_type=SenderType.OPERATOR, sender=technician, content="on it",
        )
        assert ReportQueryService.list_approved()[0]["chat_started"] is True

    def test_list_assigned_to_covers_both_columns(self, create_user, citizen, create_report, technician):
        maintainer = create_user(role_code=RoleCode.EXTERNAL_MAINTAINER)
        other_tech = create_user(role_code=RoleCode.TECHNICAL_STAFF)
        mine = create_report(citizen, title="mine", status=ReportStatus.ASSIGNED, technician=technician)
        shared = create_report(
            citizen, title="shared", status=ReportStatus.IN_PROGRESS,
            technician=other_tech, maintainer=maintainer,
        )

        assert [r["id"] for r in ReportQueryService.list_assigned_to(technician.pk)] == [mine.pk]
        assert [r["id"] for r in ReportQueryService.list_assigned_to(maintainer.pk)] == [shared.pk]

    def test_list_assigned_to_most_recent_first(self, citizen, create_report, technician):
        older = create_report(citizen, title="older", status=ReportStatus.ASSIGNED, technician=technician)
        newer = create_report(citizen, title="newer", status=ReportStatus.ASSIGNED, technician=technician)
        Report.objects.filter(pk=older.pk).update(updated_at=timezone.now() + timedelta(minutes=5))

        ids = [r["id"] for r in ReportQueryService.list_assigned_to(technician.pk)]

        assert ids == [older.pk, newer.pk]

    def test_list_my_assignments_needs_field_role(self, reviewer):
        with pytest.raises(Forbidden):
            ReportQueryService.list_my_assignments(reviewer)
