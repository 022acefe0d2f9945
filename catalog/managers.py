# catalog/managers.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from django.apps import apps
from django.db import models
from django.db.models import Case, DateField, F, IntegerField, Min, OuterRef, Q, Subquery, Sum, Value, When
from django.db.models.functions import Coalesce

if TYPE_CHECKING:
    from .models import Medicine


# ============================================================
# Medicine Manager
# ============================================================
class MedicineQuerySet(models.QuerySet["Medicine"]):
    def ordered(self) -> "MedicineQuerySet":
        return self.order_by("name", "id")

    def search(self, query: Optional[str]) -> "MedicineQuerySet":
        q = (query or "").strip()
        if not q:
            return self
        return self.filter(
            Q(name__icontains=q)
            | Q(category__icontains=q)
            | Q(description__icontains=q)
        )

    def in_category(self, category: Optional[str]) -> "MedicineQuerySet":
        if not category:
            return self
        return self.filter(category__iexact=category.strip())

    def of_form(self, form: Optional[str]) -> "MedicineQuerySet":
        if not form:
            return self
        return self.filter(description__iexact=form.strip())

    def with_stock_summary(self) -> "MedicineQuerySet":
        """
        Annotate total_entries, total_exits, stock, available_stock,
        inventory_unit and nearest_expiration.

        Each sum is a correlated subquery so entries and expedition lines
        never join against each other (a join would multiply the rows).
        """
        Entry = apps.get_model("stock", "Entry")
        ExpeditionLine = apps.get_model("stock", "ExpeditionLine")

        entries = Entry.objects.filter(medicine=OuterRef("pk")).order_by().values("medicine")
        lines = ExpeditionLine.objects.filter(medicine=OuterRef("pk")).order_by().values("medicine")

        latest_unit = (
            Entry.objects.filter(medicine=OuterRef("pk"), inventory_unit__isnull=False)
            .exclude(inventory_unit="")
            .order_by("-entry_date", "-id")
            .values("inventory_unit")[:1]
        )

        return self.annotate(
            total_entries=Coalesce(
                Subquery(entries.annotate(t=Sum("quantity")).values("t"), output_field=IntegerField()),
                Value(0),
            ),
            total_exits=Coalesce(
                Subquery(lines.annotate(t=Sum("quantity")).values("t"), output_field=IntegerField()),
                Value(0),
            ),
            inventory_unit=Subquery(latest_unit, output_field=models.CharField()),
            nearest_expiration=Subquery(
                entries.annotate(m=Min("expiration_date")).values("m"),
                output_field=DateField(),
            ),
        ).annotate(
            stock=F("total_entries") - F("total_exits"),
        ).annotate(
            available_stock=Case(
                When(stock__gt=0, then=F("stock")),
                default=Value(0),
                output_field=IntegerField(),
            ),
        )


class MedicineManager(models.Manager.from_queryset(MedicineQuerySet)):  # type: ignore[misc]
    pass
