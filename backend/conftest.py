"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``statuses`` / ``roles`` fixtures seeding the reference catalogues.
  - ``office`` / ``category`` fixtures for a minimal municipality.
  - ``create_user`` factory fixture for citizens and operators.
  - ``create_report`` factory fixture placing a report in any state.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``push_channel`` / ``broken_push_channel`` recording push transports.
"""

from __future__ import annotations

from typing import Any

import pytest
from rest_framework.test import APIClient


class RecordingPushChannel:
    """Push transport that keeps every emitted event in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append((room, event, payload))

    def rooms(self, event: str | None = None) -> list[str]:
        return [room for room, name, _ in self.events if event is None or name == event]


class BrokenPushChannel:
    """Push transport whose every delivery fails."""

    def __init__(self) -> None:
        self.attempts = 0

    def emit(self, room: str, event: str, payload: dict[str, Any]) -> None:
        self.attempts += 1
        raise ConnectionError("push gateway unreachable")


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def push_channel() -> RecordingPushChannel:
    return RecordingPushChannel()


@pytest.fixture()
def broken_push_channel() -> BrokenPushChannel:
    return BrokenPushChannel()


@pytest.fixture()
def statuses(db):
    """Seed the report status catalogue."""
    from reports.models import Status

    Status.sync_catalog()
    return {status.pk: status for status in Status.objects.all()}


@pytest.fixture()
def roles(db):
    """Seed every role; returns ``{code: Role}``."""
    from accounts.models import Role
    from core.constants import ROLE_CATALOG

    return {
        code: Role.objects.update_or_create(
            code=code,
            defaults={"name": name, "description": description},
        )[0]
        for code, (name, description) in ROLE_CATALOG.items()
    }


@pytest.fixture()
def office(db):
    from offices.models import Office

    return Office.objects.create(name="Public Works")


@pytest.fixture()
def category(office):
    from offices.models import Category

    return Category.objects.create(name="Roads and Sidewalks", office=office)


@pytest.fixture()
def create_user(db, roles):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            citizen = create_user(role_code=RoleCode.CITIZEN)
            tech = create_user(
                username="tech",
                role_code=RoleCode.TECHNICAL_STAFF,
                office=office,
            )
    """
    from accounts.models import User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        role_code: str | None = None,
        is_verified: bool = True,
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            role=roles[role_code] if role_code is not None else None,
            is_verified=is_verified,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def create_report(db, statuses, category):
    """
    Factory fixture writing a report row directly, bypassing the
    submission workflow.

    Usage::

        report = create_report(citizen, status=ReportStatus.ASSIGNED, technician=tech)
    """
    from reports.models import Report, ReportStatus

    def _factory(
        citizen,
        *,
        title: str = "Broken streetlight",
        status: int = ReportStatus.PENDING_APPROVAL,
        technician=None,
        maintainer=None,
        anonymous: bool = False,
        report_category=None,
        **kwargs,
    ) -> Report:
        report_category = report_category or category
        return Report.objects.create(
            title=title,
            description="The light at the corner has been out for a week.",
            latitude=45.07,
            longitude=7.68,
            anonymous=anonymous,
            citizen=citizen,
            category=report_category,
            office_id=report_category.office_id,
            status_id=status,
            assigned_technician=technician,
            assigned_maintainer=maintainer,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper function that creates a user and returns an
    ``Authorization`` header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            user, header = auth_header(role_code=RoleCode.CITIZEN)
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(**user_kwargs):
        user = create_user(**user_kwargs)
        token = AccessToken.for_user(user)
        return user, {"Authorization": f"Bearer {token}"}

    return _make
