"""
Reports app Service Layer.

This module is the **single source of truth** for all business logic
in the ``reports`` app.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in
a DRF ``Response``.

Architecture
------------
- ``ReportQueryService``       — Hydrated read projections.
- ``ReportCreationService``    — Transactional submission with photos.
- ``ReportWorkflowService``    — Status changes + citizen announcements.
- ``ReportAssignmentService``  — Manual and automatic hand-offs.

Assignment dimension (orthogonal to status)
-------------------------------------------
  Unassigned
    → TechnicianAssigned   (reviewer / admin; promotes Pending → Assigned)
    → MaintainerAssigned   (technical staff / admin; keeps the technician)

Every write follows the same order: role check, argument validation,
then one atomic block that locks the report row.  Database failures
leave the block rolled back and surface as ``StorageError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.apps import apps
from django.db import transaction
from django.db.models import Exists, OuterRef, Q, QuerySet

from core.constants import FIELD_OPERATOR_ROLES, OPERATOR_ROLES, RoleCode
from core.domain.access import require_role
from core.domain.exceptions import (
    Forbidden,
    InvalidArgument,
    InvalidCategory,
    InvalidTransition,
    NotFound,
    StorageError,
)
from core.domain.notifications import (
    NotificationDispatcher,
    PushChannel,
    status_message,
)
from core.domain.transactions import lock_for_update, storage_guard
from offices.services import CategoryOfficeResolver, OfficeRosterService

from .models import (
    APPROVED_STATUSES,
    TERMINAL_STATUSES,
    Photo,
    Report,
    ReportStatus,
    Status,
)

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Role tables
# ═══════════════════════════════════════════════════════════════════

#: Roles allowed to read every report regardless of status.
LIST_ALL_ROLES: frozenset[str] = frozenset({
    RoleCode.ADMIN,
    RoleCode.MUNICIPAL_PR_OFFICER,
})

#: Roles allowed to move a report between statuses.
STATUS_CHANGE_ROLES: frozenset[str] = OPERATOR_ROLES - {RoleCode.MUNICIPAL_ADMINISTRATOR}

#: Hand-off → roles allowed to perform it.
ALLOWED_HANDOFFS: dict[str, frozenset[str]] = {
    "technician": frozenset({RoleCode.MUNICIPAL_PR_OFFICER, RoleCode.ADMIN}),
    "maintainer": frozenset({RoleCode.TECHNICAL_STAFF, RoleCode.ADMIN}),
}

#: Hand-off → role the assignee must hold.
HANDOFF_ASSIGNEE_ROLE: dict[str, str] = {
    "technician": RoleCode.TECHNICAL_STAFF,
    "maintainer": RoleCode.EXTERNAL_MAINTAINER,
}


# ═══════════════════════════════════════════════════════════════════
#  Argument helpers
# ═══════════════════════════════════════════════════════════════════

def positive_int(value: Any, label: str) -> int:
    """Coerce an id-like value to a positive int or raise ``InvalidArgument``."""
    if isinstance(value, bool):
        raise InvalidArgument(f"{label} must be a positive integer.")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isdecimal():
        try:
            number = int(value.strip())
        except ValueError:
            raise InvalidArgument(f"{label} must be a positive integer.") from None
    else:
        raise InvalidArgument(f"{label} must be a positive integer.")
    if number <= 0:
        raise InvalidArgument(f"{label} must be a positive integer.")
    return number


def _status_value(value: Any) -> int:
    try:
        number = positive_int(value, "Status")
    except InvalidArgument:
        number = None
    if number not in ReportStatus.values:
        raise InvalidArgument(
            f"Unknown status {value!r}; expected one of {ReportStatus.values}."
        )
    return number


def _required_text(value: Any, label: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidArgument(f"{label} must not be empty.")
    return text


def _coordinate(value: Any, label: str, bound: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{label} must be a number.")
    if not -bound <= number <= bound:
        raise InvalidArgument(f"{label} must be between {-bound} and {bound}.")
    return number


# ═══════════════════════════════════════════════════════════════════
#  Projections
# ═══════════════════════════════════════════════════════════════════

def _operator_summary(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {
        "id": user.pk,
        "username": user.username,
        "email": user.email,
        "company": user.company.name if user.company_id else None,
    }


def _citizen_summary(report: Report, *, public: bool) -> dict[str, Any] | None:
    """
    Citizen block of a projection.

    Public projections never carry the citizen id, and carry nothing at
    all for anonymous reports.
    """
    if public and report.anonymous:
        return None
    citizen = report.citizen
    summary = {
        "username": citizen.username,
        "first_name": citizen.first_name,
        "last_name": citizen.last_name,
    }
    if not public:
        summary = {"id": citizen.pk, "email": citizen.email, **summary}
    return summary


def project_report(report: Report, *, public: bool = False) -> dict[str, Any]:
    """Flatten a hydrated ``Report`` into the dict served to clients."""
    return {
        "id": report.pk,
        "title": report.title,
        "description": report.description,
        "latitude": report.latitude,
        "longitude": report.longitude,
        "anonymous": report.anonymous,
        "rejection_reason": report.rejection_reason,
        "created_at": report.created_at,
        "updated_at": report.updated_at,
        "status": {"id": report.status_id, "name": report.status.name},
        "category": {"id": report.category_id, "name": report.category.name},
        "office": {"id": report.office_id, "name": report.office.name},
        "citizen": _citizen_summary(report, public=public),
        "assigned_technician": _operator_summary(report.assigned_technician),
        "assigned_maintainer": _operator_summary(report.assigned_maintainer),
        "photos": [
            {"id": photo.pk, "image_url": photo.image_url}
            for photo in report.photos.all()
        ],
    }


def assignment_row(report: Report) -> dict[str, Any]:
    return {
        "report_id": report.pk,
        "citizen_id": report.citizen_id,
        "assigned_technician_id": report.assigned_technician_id,
        "assigned_maintainer_id": report.assigned_maintainer_id,
        "status_id": report.status_id,
        "updated_at": report.updated_at,
    }


# ═══════════════════════════════════════════════════════════════════
#  Query Service
# ═══════════════════════════════════════════════════════════════════

class ReportQueryService:
    """Read projections.  Nothing here writes."""

    @staticmethod
    def hydrated_queryset() -> QuerySet:
        return (
            Report.objects
            .select_related(
                "citizen",
                "category",
                "office",
                "status",
                "assigned_technician__company",
                "assigned_maintainer__company",
            )
            .prefetch_related("photos")
        )

    @staticmethod
    def get_report(report_id: int) -> dict[str, Any] | None:
        report = ReportQueryService.hydrated_queryset().filter(pk=report_id).first()
        return project_report(report) if report is not None else None

    @staticmethod
    def list_all(requesting_user: User) -> list[dict[str, Any]]:
        """Every report, newest first.  Reviewers and admins only."""
        require_role(requesting_user, *LIST_ALL_ROLES)
        qs = ReportQueryService.hydrated_queryset().order_by("-created_at", "-id")
        return [project_report(report) for report in qs]

    @staticmethod
    def list_approved() -> list[dict[str, Any]]:
        """
        Public listing of reports that are being worked on.

        Anonymous reports are returned with ``citizen = None``.  Each row
        also says whether an operator has already written in the thread.
        """
        from chats.models import Message, SenderType

        operator_wrote = Message.objects.filter(
            report=OuterRef("pk"),
            sender_type=SenderType.OPERATOR,
        )
        qs = (
            ReportQueryService.hydrated_queryset()
            .filter(status_id__in=APPROVED_STATUSES)
            .annotate(chat_started=Exists(operator_wrote))
            .order_by("-created_at", "-id")
        )
        return [
            {**project_report(report, public=True), "chat_started": report.chat_started}
            for report in qs
        ]

    @staticmethod
    def list_assigned_to(operator_id: Any) -> list[dict[str, Any]]:
        """Reports where the operator is technician or maintainer, latest update first."""
        operator_id = positive_int(operator_id, "Operator id")
        qs = (
            ReportQueryService.hydrated_queryset()
            .filter(
                Q(assigned_technician_id=operator_id)
                | Q(assigned_maintainer_id=operator_id)
            )
            .order_by("-updated_at", "-id")
        )
        return [project_report(report) for report in qs]

    @staticmethod
    def list_my_assignments(requesting_user: User) -> list[dict[str, Any]]:
        """Work queue of the calling technician or maintainer."""
        require_role(requesting_user, *FIELD_OPERATOR_ROLES)
        return ReportQueryService.list_assigned_to(requesting_user.pk)


# ═══════════════════════════════════════════════════════════════════
#  Creation Service
# ═══════════════════════════════════════════════════════════════════

class ReportCreationService:
    """Citizen submission."""

    @staticmethod
    def create_report(
        requesting_user: User,
        *,
        title: str,
        description: str,
        category_id: Any,
        latitude: Any,
        longitude: Any,
        anonymous: bool = False,
        image_urls: list[str] | tuple[str, ...] = (),
    ) -> dict[str, Any]:
        """
        Create a report in *Pending Approval* together with its photos.

        Parameters
        ----------
        requesting_user : User
            Must be a verified citizen.
        title, description : str
            Non-empty after trimming.
        category_id :
            Category the issue belongs to; decides the owning office.
        latitude, longitude :
            WGS84 coordinates.
        anonymous : bool
            Hide the citizen in public listings.
        image_urls : sequence of str
            Stored in the given order.

        Returns
        -------
        dict
            Hydrated projection of the new report.

        Raises
        ------
        Forbidden
            Caller is not a verified citizen.
        InvalidArgument
            Malformed field.
        InvalidCategory
            The category does not resolve to an office.
        StorageError
            Status catalogue incomplete, or the database failed.
        """
        # 1. Permission check
        require_role(requesting_user, RoleCode.CITIZEN, message="Only citizens can submit reports.")
        if not requesting_user.is_verified:
            raise Forbidden("Only verified citizens can submit reports.")

        # 2. Validation (nothing written yet)
        title = _required_text(title, "Title")
        description = _required_text(description, "Description")
        category_id = positive_int(category_id, "Category id")
        latitude = _coordinate(latitude, "Latitude", 90)
        longitude = _coordinate(longitude, "Longitude", 180)
        image_urls = [_required_text(url, "Image URL") for url in image_urls]

        # 3. Single transaction: office, status, report, photos
        with storage_guard("create report for citizen %s", requesting_user.pk):
            with transaction.atomic():
                try:
                    office_id = CategoryOfficeResolver.resolve(category_id)
                except NotFound as exc:
                    raise InvalidCategory(f"Category {category_id} is not valid.") from exc

                pending = Status.objects.filter(pk=ReportStatus.PENDING_APPROVAL).first()
                if pending is None:
                    raise StorageError("Status catalogue has no 'Pending Approval' entry.")

                report = Report.objects.create(
                    title=title,
                    description=description,
                    latitude=latitude,
                    longitude=longitude,
                    anonymous=bool(anonymous),
                    citizen=requesting_user,
                    category_id=category_id,
                    office_id=office_id,
                    status=pending,
                )
                for position, url in enumerate(image_urls):
                    Photo.objects.create(report=report, image_url=url, position=position)

        logger.info(
            "Report #%d created by citizen %s with %d photo(s)",
            report.pk,
            requesting_user.pk,
            len(image_urls),
        )
        return ReportQueryService.get_report(report.pk)


# ═══════════════════════════════════════════════════════════════════
#  Workflow Service
# ═══════════════════════════════════════════════════════════════════

class ReportWorkflowService:
    """
    Status changes.

    Status moves are not restricted by a transition graph: operators may
    move a report between any two statuses, including out of Rejected.
    Concurrent writers are serialised by the row lock; the last commit
    wins.
    """

    @staticmethod
    def set_status(
        requesting_user: User,
        report_id: Any,
        new_status: Any,
        rejection_reason: str | None = None,
        push_channel: PushChannel | None = None,
    ) -> dict[str, Any] | None:
        """
        Move a report to ``new_status``.

        The rejection reason is stored only when the new status is
        Rejected; any other status clears it.  When the status actually
        changes the citizen gets a notification and the thread gets a
        system message, both inside the same transaction.

        Returns:
            The hydrated report, or ``None`` if no report has that id.
        """
        # 1. Permission check
        require_role(requesting_user, *STATUS_CHANGE_ROLES)

        # 2. Validation
        report_id = positive_int(report_id, "Report id")
        new_status = _status_value(new_status)
        if isinstance(rejection_reason, str):
            rejection_reason = rejection_reason.strip() or None

        # 3. Atomic update
        with storage_guard("set status of report #%s", report_id):
            with transaction.atomic():
                report = lock_for_update(Report, report_id)
                if report is None:
                    return None

                previous = report.status_id
                report.status_id = new_status
                report.rejection_reason = (
                    rejection_reason if new_status == ReportStatus.REJECTED else None
                )
                report.save(update_fields=["status", "rejection_reason", "updated_at"])

                if previous != new_status:
                    announce_status(report, push_channel)

        logger.info(
            "Report #%d status %s → %s by user %s",
            report_id,
            previous,
            new_status,
            requesting_user.pk,
        )
        return ReportQueryService.get_report(report_id)


def announce_status(report: Report, push_channel: PushChannel | None = None) -> None:
    """
    Tell the citizen about the report's current status.

    Writes a notification and a system message in the caller's
    transaction; live pushes run after commit.
    """
    from chats.services import ChatService, ConversationService

    message = status_message(report.status_id, report.rejection_reason)
    if message is None:
        return

    NotificationDispatcher.create(
        citizen_id=report.citizen_id,
        report_id=report.pk,
        message=message,
        push_channel=push_channel,
    )
    system_message = ConversationService.append_system_message(report.pk, message)
    ChatService.broadcast(report, system_message, push_channel)


# ═══════════════════════════════════════════════════════════════════
#  Assignment Service
# ═══════════════════════════════════════════════════════════════════

class ReportAssignmentService:
    """
    Role-gated hand-offs between reviewer, technical staff and external
    maintainers.

    Check order for every hand-off: caller role (``Forbidden``), ids
    (``InvalidArgument``), report (``NotFound``), assignee (``NotFound`` /
    ``InvalidArgument``), current state (``InvalidTransition``).
    """

    # ── Manual ──────────────────────────────────────────────────────

    @staticmethod
    def assign_technician(
        requesting_user: User,
        report_id: Any,
        operator_id: Any,
        push_channel: PushChannel | None = None,
    ) -> dict[str, Any]:
        return ReportAssignmentService._assign(
            "technician", requesting_user, report_id, operator_id, push_channel,
        )

    @staticmethod
    def assign_maintainer(
        requesting_user: User,
        report_id: Any,
        operator_id: Any,
        push_channel: PushChannel | None = None,
    ) -> dict[str, Any]:
        return ReportAssignmentService._assign(
            "maintainer", requesting_user, report_id, operator_id, push_channel,
        )

    @staticmethod
    def _assign(
        handoff: str,
        requesting_user: User,
        report_id: Any,
        operator_id: Any,
        push_channel: PushChannel | None,
    ) -> dict[str, Any]:
        require_role(requesting_user, *ALLOWED_HANDOFFS[handoff])
        report_id = positive_int(report_id, "Report id")
        operator_id = positive_int(operator_id, "Operator id")

        with storage_guard("assign %s to report #%s", handoff, report_id):
            with transaction.atomic():
                report = lock_for_update(Report, report_id)
                if report is None:
                    raise NotFound(f"Report {report_id} does not exist.")
                assignee = ReportAssignmentService._resolve_assignee(handoff, operator_id)
                ReportAssignmentService._apply(handoff, report, assignee, push_channel)

        logger.info(
            "Report #%d: %s %s assigned by user %s",
            report_id,
            handoff,
            operator_id,
            requesting_user.pk,
        )
        return assignment_row(report)

    # ── Automatic ───────────────────────────────────────────────────

    @staticmethod
    def auto_assign_technician(
        requesting_user: User,
        report_id: Any,
        push_channel: PushChannel | None = None,
    ) -> dict[str, Any]:
        """
        Route a pending report to the least-loaded technical staff member.

        Returns:
            ``{"report": <assignment row>, "operator": {...}}``.
        """
        return ReportAssignmentService._auto_assign(
            "technician", requesting_user, report_id, push_channel,
        )

    @staticmethod
    def auto_assign_maintainer(
        requesting_user: User,
        report_id: Any,
        push_channel: PushChannel | None = None,
    ) -> dict[str, Any]:
        """Hand a technician's report to the least-loaded external maintainer."""
        return ReportAssignmentService._auto_assign(
            "maintainer", requesting_user, report_id, push_channel,
        )

    @staticmethod
    def _auto_assign(
        handoff: str,
        requesting_user: User,
        report_id: Any,
        push_channel: PushChannel | None,
    ) -> dict[str, Any]:
        require_role(requesting_user, *ALLOWED_HANDOFFS[handoff])
        report_id = positive_int(report_id, "Report id")

        with storage_guard("auto-assign %s to report #%s", handoff, report_id):
            with transaction.atomic():
                report = lock_for_update(Report, report_id)
                if report is None:
                    raise NotFound(f"Report {report_id} does not exist.")
                if handoff == "technician" and report.status_id != ReportStatus.PENDING_APPROVAL:
                    raise InvalidTransition(
                        current=ReportStatus(report.status_id).label,
                        target="technician assignment",
                        reason="Automatic routing only applies to reports pending approval.",
                    )

                role_code = HANDOFF_ASSIGNEE_ROLE[handoff]
                assignee = OfficeRosterService.pick_least_loaded(
                    report.office_id, report.category_id, role_code,
                )
                if assignee is None:
                    raise NotFound(
                        f"No {handoff} available for office {report.office_id} "
                        f"or category {report.category_id}."
                    )
                ReportAssignmentService._apply(handoff, report, assignee, push_channel)

        logger.info(
            "Report #%d: %s %s auto-assigned by user %s (%d active report(s) before)",
            report_id,
            handoff,
            assignee.pk,
            requesting_user.pk,
            assignee.active_reports,
        )
        return {
            "report": assignment_row(report),
            "operator": {
                "id": assignee.pk,
                "username": assignee.username,
                "email": assignee.email,
                "previous_active_reports": assignee.active_reports,
            },
        }

    # ── Shared write path ───────────────────────────────────────────

    @staticmethod
    def _resolve_assignee(handoff: str, operator_id: int) -> User:
        User = apps.get_model("accounts", "User")
        role_code = HANDOFF_ASSIGNEE_ROLE[handoff]

        assignee = User.objects.select_related("role").filter(pk=operator_id).first()
        if assignee is None:
            raise NotFound(f"Operator {operator_id} does not exist.")
        if not assignee.has_role(role_code):
            raise InvalidArgument(
                f"User {operator_id} cannot be assigned as {handoff}: "
                f"role '{role_code}' required."
            )
        return assignee

    @staticmethod
    def _apply(
        handoff: str,
        report: Report,
        assignee: User,
        push_channel: PushChannel | None,
    ) -> None:
        """Write the assignment on a locked report row."""
        if report.status_id in TERMINAL_STATUSES:
            raise InvalidTransition(
                current=ReportStatus(report.status_id).label,
                target=f"{handoff} assignment",
                reason="Rejected or resolved reports cannot be reassigned.",
            )

        if handoff == "technician":
            report.assigned_technician = assignee
            update_fields = ["assigned_technician", "updated_at"]
        else:
            if report.assigned_technician_id is None:
                raise InvalidTransition(
                    current="unassigned",
                    target="maintainer assignment",
                    reason="A technician must be assigned first.",
                )
            report.assigned_maintainer = assignee
            update_fields = ["assigned_maintainer", "updated_at"]

        promoted = (
            handoff == "technician"
            and report.status_id == ReportStatus.PENDING_APPROVAL
        )
        if promoted:
            report.status_id = ReportStatus.ASSIGNED
            update_fields.append("status")

        report.save(update_fields=update_fields)

        if promoted:
            announce_status(report, push_channel)
