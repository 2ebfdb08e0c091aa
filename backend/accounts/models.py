"""
Accounts app models.

Defines the Role catalogue and a custom User model that extends Django's
``AbstractUser``.  Every user holds exactly one role; operators are
additionally attached to a municipal office, and external maintainers to
the company they work for.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.Model):
    """
    Reference-data role.

    ``code`` is the stable identifier that services check against
    (see ``core.constants.RoleCode``); ``name`` is what people read.
    Seeded by the ``setup_roles`` management command.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Role Name",
    )
    code = models.SlugField(
        max_length=64,
        unique=True,
        verbose_name="Role Code",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["name"]

    def __str__(self):
        return self.name


class User(AbstractUser):
    """
    Custom user model shared by citizens and municipal operators.

    Citizens submit reports once ``is_verified`` is set.  Operators carry
    their office and the categories they handle (used by auto-assignment);
    external maintainers also carry the contracting company.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        verbose_name="Assigned Role",
    )
    office = models.ForeignKey(
        "offices.Office",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="operators",
        verbose_name="Office",
    )
    company = models.ForeignKey(
        "offices.Company",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="maintainers",
        verbose_name="Company",
    )
    categories = models.ManyToManyField(
        "offices.Category",
        blank=True,
        related_name="operators",
        verbose_name="Handled Categories",
        help_text="Categories this operator can be auto-assigned to.",
    )
    is_verified = models.BooleanField(
        default=False,
        verbose_name="Verified",
        help_text="Citizens must be verified before they can submit reports.",
    )

    REQUIRED_FIELDS = ["email", "first_name", "last_name"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        role_name = self.role.name if self.role else "No Role"
        return f"{self.username} - {role_name}"

    def has_role(self, role_code: str) -> bool:
        """Check if the user's current role carries the given code."""
        return self.role is not None and self.role.code == role_code
