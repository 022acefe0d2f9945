# stock/managers.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from django.apps import apps
from django.db import models
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

if TYPE_CHECKING:
    from catalog.models import Medicine
    from .models import Entry, Expedition, ExpeditionLine


# ============================================================
# Entry Manager
# ============================================================
class EntryQuerySet(models.QuerySet["Entry"]):
    def for_medicine(self, medicine: "Medicine | int") -> "EntryQuerySet":
        return self.filter(medicine=medicine)

    def with_related(self) -> "EntryQuerySet":
        return self.select_related("medicine")

    def newest_first(self) -> "EntryQuerySet":
        return self.order_by("-entry_date", "-id")

    def search(self, query: Optional[str]) -> "EntryQuerySet":
        q = (query or "").strip()
        if not q:
            return self
        return self.filter(
            Q(medicine__name__icontains=q)
            | Q(supplier__icontains=q)
            | Q(lot_number__icontains=q)
        )

    def total_quantity(self) -> int:
        return self.aggregate(t=Coalesce(Sum("quantity"), 0))["t"]


class EntryManager(models.Manager.from_queryset(EntryQuerySet)):  # type: ignore[misc]
    pass


# ============================================================
# Expedition Manager
# ============================================================
class ExpeditionQuerySet(models.QuerySet["Expedition"]):
    def newest_first(self) -> "ExpeditionQuerySet":
        return self.order_by("-expedition_date", "-id")

    def with_lines(self) -> "ExpeditionQuerySet":
        ExpeditionLine = apps.get_model("stock", "ExpeditionLine")
        return self.prefetch_related(
            models.Prefetch(
                "lines",
                queryset=ExpeditionLine.objects.select_related("medicine").order_by("id"),
            )
        )

    def with_totals(self) -> "ExpeditionQuerySet":
        return self.annotate(
            total_medicines=Count("lines"),
            total_items=Coalesce(Sum("lines__quantity"), 0),
        )

    def search(self, query: Optional[str]) -> "ExpeditionQuerySet":
        q = (query or "").strip()
        if not q:
            return self
        return self.filter(Q(village__icontains=q))


class ExpeditionManager(models.Manager.from_queryset(ExpeditionQuerySet)):  # type: ignore[misc]
    pass


# ============================================================
# ExpeditionLine Manager
# ============================================================
class ExpeditionLineQuerySet(models.QuerySet["ExpeditionLine"]):
    def for_medicine(self, medicine: "Medicine | int") -> "ExpeditionLineQuerySet":
        return self.filter(medicine=medicine)

    def total_quantity(self) -> int:
        return self.aggregate(t=Coalesce(Sum("quantity"), 0))["t"]


class ExpeditionLineManager(models.Manager.from_queryset(ExpeditionLineQuerySet)):  # type: ignore[misc]
    pass
