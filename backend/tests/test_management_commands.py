from __future__ import annotations

from io import StringIO

import pytest
from django.core.management import call_command

from accounts.models import Role
from core.constants import ROLE_CATALOG
from reports.models import ReportStatus, Status

pytestmark = pytest.mark.django_db


def test_setup_statuses_is_idempotent():
    call_command("setup_statuses", stdout=StringIO())
    Status.objects.filter(pk=ReportStatus.RESOLVED).update(name="Done")

    out = StringIO()
    call_command("setup_statuses", stdout=out)

    assert list(Status.objects.values_list("id", "name")) == list(ReportStatus.choices)
    assert "0 status(es) created" in out.getvalue()


def test_setup_roles_is_idempotent():
    call_command("setup_roles", stdout=StringIO())
    call_command("setup_roles", stdout=StringIO())

    assert Role.objects.count() == len(ROLE_CATALOG)
    assert set(Role.objects.values_list("code", flat=True)) == set(ROLE_CATALOG)
