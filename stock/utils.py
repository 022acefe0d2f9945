# stock/utils.py
"""
Display helpers shared by the expedition pages, the dashboard and the JSON
payloads. They are pure functions so every consumer renders units the same way.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

# Unit words that never take a plural suffix (compared case-insensitively).
INVARIABLE_UNITS = frozenset({"mg", "ml", "g", "µg", "ug"})


def pluralize_inventory_unit(unit: Optional[str], quantity: int) -> Optional[str]:
    """
    Render an inventory unit label for a quantity.

    quantity == 1 keeps the singular; any other quantity appends "s" unless the
    word already ends in "s" or is an invariable unit. The suffix rule is naive
    on purpose: ("Box", 3) -> "Boxs".
    """
    if not unit:
        return None

    if unit.lower() in INVARIABLE_UNITS:
        return unit

    if quantity == 1 or unit.endswith("s"):
        return unit

    return f"{unit}s"


def format_measure(measure: Optional[Decimal]) -> str:
    """500.000 -> "500", 2.500 -> "2.5", None -> ""."""
    if measure is None:
        return ""
    value = Decimal(measure).normalize()
    return format(value, "f")


def format_dosage(measure: Optional[Decimal], unit: Optional[str]) -> str:
    return f"{format_measure(measure)}{unit or ''}".strip()


def dosage_display(measure: Optional[Decimal], unit: Optional[str], quantity: int) -> str:
    """Dosage text for a line of `quantity` items, using the inventory unit plural rule."""
    return format_dosage(measure, pluralize_inventory_unit(unit, quantity))


def medicine_full_name(
    name: str,
    form: Optional[str] = None,
    measure: Optional[Decimal] = None,
    unit: Optional[str] = None,
) -> str:
    """"Amoxicillin - Capsule 500mg" style label used in lists and selects."""
    label = name
    if form:
        label += f" - {form}"
    dosage = format_dosage(measure, unit)
    if dosage:
        label += f" {dosage}"
    return label
