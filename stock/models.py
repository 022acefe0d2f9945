# stock/models.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.urls import reverse
from django.utils.translation import gettext_lazy as _
from solo.models import SingletonModel

from core.models import BaseModel

from stock.managers import EntryManager, ExpeditionLineManager, ExpeditionManager
from stock.utils import dosage_display, pluralize_inventory_unit


# ============================================================
# Stock Settings
# ============================================================
class StockSettings(SingletonModel):
    expiry_critical_days = models.PositiveIntegerField(
        default=30,
        verbose_name=_("Critical expiry window (days)"),
        help_text=_("Lots expiring within this many days are flagged as critical and listed as expiring soon."),
    )
    expiry_warning_days = models.PositiveIntegerField(
        default=60,
        verbose_name=_("Warning expiry window (days)"),
    )
    stock_high_threshold = models.PositiveIntegerField(
        default=20,
        verbose_name=_("High stock threshold"),
        help_text=_("Stock above this value is shown as high."),
    )
    stock_low_threshold = models.PositiveIntegerField(
        default=5,
        verbose_name=_("Low stock threshold"),
        help_text=_("Stock at or below this value is shown as low."),
    )
    dashboard_top_size = models.PositiveIntegerField(
        default=10,
        validators=[MinValueValidator(1)],
        verbose_name=_("Dashboard ranking size"),
    )

    class Meta:
        verbose_name = _("Stock settings")

    def __str__(self) -> str:
        return "Stock settings"

    def clean(self):
        super().clean()
        errors: dict[str, str] = {}

        if self.expiry_warning_days < self.expiry_critical_days:
            errors["expiry_warning_days"] = _("The warning window must be at least as long as the critical window.")
        if self.stock_high_threshold < self.stock_low_threshold:
            errors["stock_high_threshold"] = _("The high threshold must be greater than or equal to the low threshold.")

        if errors:
            raise ValidationError(errors)


# ============================================================
# Entry (stock in)
# ============================================================
class Entry(BaseModel):
    medicine = models.ForeignKey(
        "catalog.Medicine",
        on_delete=models.CASCADE,
        related_name="entries",
        verbose_name=_("Medicine"),
    )
    supplier = models.CharField(max_length=200, null=True, blank=True, verbose_name=_("Supplier"))
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        verbose_name=_("Quantity"),
    )
    inventory_unit = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        verbose_name=_("Inventory unit"),
        help_text=_("Physical package counted in stock, e.g. Box, Bottle, Blister."),
    )
    entry_date = models.DateField(verbose_name=_("Entry date"))
    expiration_date = models.DateField(null=True, blank=True, verbose_name=_("Expiration date"))
    lot_number = models.CharField(max_length=100, blank=True, default="", verbose_name=_("Lot number"))

    objects = EntryManager()

    class Meta:
        verbose_name = _("Entry")
        verbose_name_plural = _("Entries")
        ordering = ("-entry_date", "-id")
        indexes = [
            models.Index(fields=["medicine", "entry_date"], name="entry_medicine_date_idx"),
            models.Index(fields=["expiration_date"], name="entry_expiration_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="entry_quantity_positive",
            ),
            models.CheckConstraint(
                condition=Q(expiration_date__isnull=True) | Q(expiration_date__gte=F("entry_date")),
                name="entry_expiration_after_entry_date",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.medicine} +{self.quantity} ({self.entry_date})"

    def clean(self):
        super().clean()
        errors: dict[str, str] = {}

        if self.quantity is not None and self.quantity < 1:
            errors["quantity"] = _("Quantity must be at least 1.")

        if self.expiration_date and self.entry_date and self.expiration_date < self.entry_date:
            errors["expiration_date"] = _("The expiration date cannot be before the entry date.")

        if self.inventory_unit is not None:
            self.inventory_unit = self.inventory_unit.strip() or None

        if errors:
            raise ValidationError(errors)


# ============================================================
# Expedition (stock out)
# ============================================================
class Expedition(BaseModel):
    class Zone(models.TextChoices):
        NORTH = "north", _("North")
        SOUTH = "south", _("South")
        EAST = "east", _("East")
        WEST = "west", _("West")

    village = models.CharField(max_length=255, verbose_name=_("Village"))
    zone = models.CharField(max_length=10, choices=Zone.choices, verbose_name=_("Zone"))
    expedition_date = models.DateField(verbose_name=_("Expedition date"))
    duration_days = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        verbose_name=_("Duration (days)"),
    )
    medicines = models.ManyToManyField(
        "catalog.Medicine",
        through="ExpeditionLine",
        related_name="expeditions",
        verbose_name=_("Medicines"),
    )

    objects = ExpeditionManager()

    class Meta:
        verbose_name = _("Expedition")
        verbose_name_plural = _("Expeditions")
        ordering = ("-expedition_date", "-id")
        indexes = [
            models.Index(fields=["village"], name="expedition_village_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(duration_days__gte=1),
                name="expedition_duration_positive",
            ),
            models.CheckConstraint(
                condition=Q(zone__in=["north", "south", "east", "west"]),
                name="expedition_zone_valid",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.village} ({self.get_zone_display()}) {self.expedition_date}"

    def get_absolute_url(self) -> str:
        return reverse("stock:expedition_detail", kwargs={"pk": self.pk})

    def clean(self):
        super().clean()
        errors: dict[str, str] = {}

        if self.village is not None:
            self.village = self.village.strip()
            if not self.village:
                errors["village"] = _("The village is required.")

        if self.duration_days is not None and self.duration_days < 1:
            errors["duration_days"] = _("The duration must be at least 1 day.")

        if errors:
            raise ValidationError(errors)

    @property
    def total_medicines_count(self) -> int:
        return self.lines.count()

    @property
    def total_items_count(self) -> int:
        return self.lines.total_quantity()

    def line_rows(self) -> list[dict]:
        """Display rows for the expedition's lines (used by list, detail and JSON)."""
        rows = []
        for line in self.lines.all():
            rows.append(line.as_row())
        return rows


class ExpeditionLine(models.Model):
    expedition = models.ForeignKey(
        Expedition,
        on_delete=models.CASCADE,
        related_name="lines",
        verbose_name=_("Expedition"),
    )
    medicine = models.ForeignKey(
        "catalog.Medicine",
        on_delete=models.CASCADE,
        related_name="expedition_lines",
        verbose_name=_("Medicine"),
    )
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        verbose_name=_("Quantity"),
    )

    objects = ExpeditionLineManager()

    class Meta:
        verbose_name = _("Expedition line")
        verbose_name_plural = _("Expedition lines")
        ordering = ("id",)
        constraints = [
            models.UniqueConstraint(
                fields=["expedition", "medicine"],
                name="uniq_expedition_line_medicine",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="expedition_line_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.medicine} x {self.quantity}"

    def as_row(self) -> dict:
        medicine = self.medicine
        inventory_unit = medicine.latest_inventory_unit
        return {
            "medicine_id": medicine.pk,
            "name": medicine.name,
            "full_name": medicine.full_name,
            "form": medicine.description,
            "category": medicine.category,
            "measure": medicine.measure,
            "unit": medicine.unit,
            "quantity": self.quantity,
            "dosage_display": dosage_display(medicine.measure, medicine.unit, self.quantity),
            "inventory_unit": inventory_unit,
            "inventory_unit_display": pluralize_inventory_unit(inventory_unit, self.quantity),
        }
