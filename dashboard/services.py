# dashboard/services.py
"""
Read-only projections for the dashboard.

Every function aggregates first (per medicine or per village) and only then
joins the catalog, so no row is counted twice. Results are plain lists of
dicts, ready for templates and JSON alike.
"""
from __future__ import annotations

import datetime
from typing import Any, Optional

from django.db.models import Count, F, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from catalog.models import Medicine
from stock.models import Entry, ExpeditionLine, StockSettings
from stock.utils import format_dosage, medicine_full_name


# ============================================================
# Classification helpers
# ============================================================

def days_until_expiry(expiry_date: Optional[datetime.date], today: Optional[datetime.date] = None) -> Optional[int]:
    if expiry_date is None:
        return None
    today = today or timezone.localdate()
    return (expiry_date - today).days


def expiry_status(days: Optional[int], settings: Optional[StockSettings] = None) -> str:
    settings = settings or StockSettings.get_solo()
    if days is None:
        return "unknown"
    if days < 0:
        return "expired"
    if days <= settings.expiry_critical_days:
        return "critical"
    if days <= settings.expiry_warning_days:
        return "warning"
    return "ok"


def stock_level(stock: int, settings: Optional[StockSettings] = None) -> str:
    settings = settings or StockSettings.get_solo()
    if stock > settings.stock_high_threshold:
        return "high"
    if stock > settings.stock_low_threshold:
        return "medium"
    return "low"


# ============================================================
# Projections
# ============================================================

def get_totals() -> dict[str, int]:
    """Medicines count, units received, units shipped, and stock (negative stock counts as 0)."""
    stock_total = Medicine.objects.with_stock_summary().aggregate(
        t=Coalesce(Sum("available_stock"), 0)
    )["t"]
    return {
        "medicines": Medicine.objects.count(),
        "entries": Entry.objects.total_quantity(),
        "exits": ExpeditionLine.objects.total_quantity(),
        "stock": stock_total,
    }


def stock_per_medicine() -> list[dict[str, Any]]:
    rows = []
    for m in Medicine.objects.with_stock_summary().ordered():
        rows.append({
            "medicine_id": m.pk,
            "name": m.name,
            "full_name": m.full_name,
            "category": m.category,
            "description": m.description,
            "measure": m.measure,
            "unit": m.unit,
            "inventory_unit": m.inventory_unit,
            "stock": m.stock,
            "total_entries": m.total_entries,
            "total_exits": m.total_exits,
        })
    return rows


def most_used_medicines(limit: Optional[int] = None) -> list[dict[str, Any]]:
    """Medicines ranked by shipped quantity (ties: lowest medicine id first)."""
    if limit is None:
        limit = StockSettings.get_solo().dashboard_top_size

    totals = list(
        ExpeditionLine.objects.values("medicine_id")
        .annotate(total=Sum("quantity"))
        .order_by("-total", "medicine_id")[:limit]
    )
    medicines = Medicine.objects.with_stock_summary().in_bulk([row["medicine_id"] for row in totals])

    rows = []
    for row in totals:
        m = medicines[row["medicine_id"]]
        rows.append({
            "medicine_id": m.pk,
            "name": m.name,
            "full_name": m.full_name,
            "description": m.description,
            "measure": m.measure,
            "unit": m.unit,
            "inventory_unit": m.inventory_unit,
            "total": row["total"],
        })
    return rows


def village_usage(limit: Optional[int] = None) -> list[dict[str, Any]]:
    """
    Villages ranked by the number of distinct medicines shipped to them.

    Grouped from the line side, so a village whose expeditions have no line
    left is not listed.
    """
    if limit is None:
        limit = StockSettings.get_solo().dashboard_top_size

    qs = (
        ExpeditionLine.objects.values(village=F("expedition__village"))
        .annotate(medicine_count=Count("medicine", distinct=True))
        .order_by("-medicine_count", "village")[:limit]
    )
    return [{"village": row["village"], "medicine_count": row["medicine_count"]} for row in qs]


def inventory_listing(
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    form: Optional[str] = None,
    today: Optional[datetime.date] = None,
) -> list[dict[str, Any]]:
    """
    Full inventory, soonest expiry first; medicines without any dated entry last.

    expiry_date is the earliest expiration over all the medicine's entries,
    already expired lots included. `search` matches the full label
    ("Name - Form 500mg"); category and form match exactly, ignoring case.
    """
    settings = StockSettings.get_solo()
    today = today or timezone.localdate()
    term = (search or "").strip().lower()

    qs = (
        Medicine.objects.with_stock_summary()
        .in_category(category)
        .of_form(form)
        .order_by(F("nearest_expiration").asc(nulls_last=True), "name", "id")
    )

    rows = []
    for m in qs:
        full_name = medicine_full_name(m.name, m.description, m.measure, m.unit)
        if term and term not in full_name.lower():
            continue

        days = days_until_expiry(m.nearest_expiration, today)
        rows.append({
            "medicine_id": m.pk,
            "name": m.name,
            "full_name": full_name,
            "category": m.category,
            "description": m.description,
            "measure": m.measure,
            "unit": m.unit,
            "dosage": format_dosage(m.measure, m.unit),
            "stock": m.stock,
            "expiry_date": m.nearest_expiration,
            "inventory_unit": m.inventory_unit,
            "days_until_expiry": days,
            "expiry_status": expiry_status(days, settings),
            "stock_level": stock_level(m.stock, settings),
        })
    return rows


def expiring_soon(rows: Optional[list[dict[str, Any]]] = None, today: Optional[datetime.date] = None) -> list[dict[str, Any]]:
    """Inventory rows expiring within the critical window, expired ones included."""
    if rows is None:
        rows = inventory_listing(today=today)
    critical = StockSettings.get_solo().expiry_critical_days
    return [
        row for row in rows
        if row["days_until_expiry"] is not None and row["days_until_expiry"] <= critical
    ]


def build_dashboard(
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    form: Optional[str] = None,
    today: Optional[datetime.date] = None,
) -> dict[str, Any]:
    inventory = inventory_listing(search=search, category=category, form=form, today=today)
    return {
        "totals": get_totals(),
        "stock_per_medicine": stock_per_medicine(),
        "most_used": most_used_medicines(),
        "village_usage": village_usage(),
        "inventory": inventory,
        "expiring_soon": expiring_soon(inventory),
    }
