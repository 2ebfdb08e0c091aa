"""
Offices app models.

Static municipal reference data: the offices that own report categories
and the external companies whose maintainers resolve them.
"""

from django.db import models


class Office(models.Model):
    """A municipal technical office responsible for one or more categories."""

    name = models.CharField(max_length=150, unique=True, verbose_name="Office Name")

    class Meta:
        verbose_name = "Office"
        verbose_name_plural = "Offices"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Category(models.Model):
    """
    Kind of civic issue a citizen can report (e.g. "Roads", "Lighting").

    Each category belongs to exactly one office; that office takes
    ownership of every report filed under the category.
    """

    name = models.CharField(max_length=150, unique=True, verbose_name="Category Name")
    office = models.ForeignKey(
        Office,
        on_delete=models.PROTECT,
        related_name="categories",
        verbose_name="Responsible Office",
    )

    class Meta:
        verbose_name = "Category"
        verbose_name_plural = "Categories"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.office})"


class Company(models.Model):
    """External maintenance contractor."""

    name = models.CharField(max_length=150, unique=True, verbose_name="Company Name")

    class Meta:
        verbose_name = "Company"
        verbose_name_plural = "Companies"
        ordering = ["name"]

    def __str__(self):
        return self.name
