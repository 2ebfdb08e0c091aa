"""
Management command: setup_roles
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the base **Roles** listed in
``core.constants.ROLE_CATALOG``.

The command is **idempotent**: safe to run multiple times.  Existing
roles (matched on ``code``) get their display name and description
refreshed.

Usage::

    python manage.py setup_roles
"""

from django.core.management.base import BaseCommand

from accounts.models import Role
from core.constants import ROLE_CATALOG


class Command(BaseCommand):
    help = "Create or update the base roles."

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING("\n  Role Setup — Seeding Roles\n"))

        roles_created = 0
        roles_updated = 0

        for code, (name, description) in ROLE_CATALOG.items():
            role, created = Role.objects.update_or_create(
                code=code,
                defaults={"name": name, "description": description},
            )
            if created:
                roles_created += 1
            else:
                roles_updated += 1

            action = "Created" if created else "Updated"
            self.stdout.write(self.style.SUCCESS(f"  ✔  {action} role: {role.name} ({code})"))

        self.stdout.write(self.style.SUCCESS(
            f"\n  Done!  {roles_created} role(s) created, "
            f"{roles_updated} role(s) updated.\n"
        ))
