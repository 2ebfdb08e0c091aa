"""
Management command: setup_statuses
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the fixed report status catalogue (``reports.models.ReportStatus``).
Reports cannot be created until the *Pending Approval* row exists.

Idempotent: existing rows keep their id and get their name refreshed.

Usage::

    python manage.py setup_statuses
"""

from django.core.management.base import BaseCommand

from reports.models import ReportStatus, Status


class Command(BaseCommand):
    help = "Create or update the report status catalogue."

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING("\n  Status Setup — Seeding Catalogue\n"))

        created = Status.sync_catalog()

        for value, label in ReportStatus.choices:
            self.stdout.write(self.style.SUCCESS(f"  ✔  {value}: {label}"))

        self.stdout.write(self.style.SUCCESS(
            f"\n  Done!  {created} status(es) created, "
            f"{len(ReportStatus.choices) - created} status(es) updated.\n"
        ))
