# catalog/models.py

from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError
from django.db import models
from django.urls import reverse
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel
from stock.utils import format_dosage, medicine_full_name

from catalog.managers import MedicineManager


# ============================================================
# Medicine
# ============================================================
class Medicine(BaseModel):
    """
    A catalog entry: one product at one strength.

    Stock is never stored here. It is derived from the entries and the
    expedition lines that point to the medicine (see stock.services).
    """

    name = models.CharField(max_length=255, verbose_name=_("Name"))
    category = models.CharField(max_length=50, verbose_name=_("Category"))
    description = models.CharField(
        max_length=255,
        verbose_name=_("Form"),
        help_text=_("Galenic form, e.g. Tablet, Syrup, Injection."),
    )
    measure = models.DecimalField(
        max_digits=8,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_("Dosage measure"),
    )
    unit = models.CharField(
        max_length=20,
        null=True,
        blank=True,
        verbose_name=_("Dosage unit"),
    )
    expiration_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_("Expiration date"),
        help_text=_("Informational only. Each entry carries its own lot expiration."),
    )

    objects = MedicineManager()

    class Meta:
        verbose_name = _("Medicine")
        verbose_name_plural = _("Medicines")
        ordering = ("name", "id")
        indexes = [
            models.Index(fields=["category"], name="medicine_category_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["name", "category", "measure", "unit"],
                name="uniq_medicine_name_category_dosage",
                violation_error_message=_("This medicine already exists with the same category and dosage."),
            ),
        ]

    def __str__(self) -> str:
        return self.full_name

    def get_absolute_url(self) -> str:
        return reverse("catalog:medicine_detail", kwargs={"pk": self.pk})

    def clean(self):
        super().clean()
        errors: dict[str, str] = {}

        for field in ("name", "category", "description"):
            value = getattr(self, field)
            if isinstance(value, str):
                setattr(self, field, value.strip())

        if self.unit is not None:
            self.unit = self.unit.strip() or None

        if self.measure is not None and self.measure < 0:
            errors["measure"] = _("The dosage measure cannot be negative.")

        if self.name and self.category and self.duplicates().exists():
            errors["name"] = _("This medicine already exists with the same category and dosage.")

        if errors:
            raise ValidationError(errors)

    def duplicates(self) -> models.QuerySet:
        """
        Other catalog rows with the same (name, category, measure, unit) key.
        Two empty measures (or units) count as equal here, unlike in a SQL
        unique index.
        """
        qs = Medicine.objects.filter(name=self.name, category=self.category)

        if self.measure is None:
            qs = qs.filter(measure__isnull=True)
        else:
            qs = qs.filter(measure=self.measure)

        if self.unit is None:
            qs = qs.filter(unit__isnull=True)
        else:
            qs = qs.filter(unit=self.unit)

        if self.pk:
            qs = qs.exclude(pk=self.pk)
        return qs

    # -------------------------
    # Display
    # -------------------------
    @property
    def form(self) -> str:
        return self.description

    @property
    def dosage(self) -> str:
        return format_dosage(self.measure, self.unit)

    @property
    def full_name(self) -> str:
        return medicine_full_name(self.name, self.description, self.measure, self.unit)

    @property
    def latest_inventory_unit(self) -> Optional[str]:
        """Inventory unit of the most recent entry (by entry date, then id) that has one."""
        return (
            self.entries.exclude(inventory_unit__isnull=True)
            .exclude(inventory_unit="")
            .order_by("-entry_date", "-id")
            .values_list("inventory_unit", flat=True)
            .first()
        )

    # -------------------------
    # Stock
    # -------------------------
    def current_stock(self) -> int:
        from stock.services import get_stock

        return get_stock(self)

    def current_available_stock(self) -> int:
        from stock.services import get_available_stock

        return get_available_stock(self)
