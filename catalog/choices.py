# catalog/choices.py
"""
Presentation vocabularies offered as suggestions in the catalog and entry
forms. Stored values stay free text: only Expedition.Zone is a closed list.
"""
from __future__ import annotations


CATEGORIES = [
    "Antibiotic",
    "Analgesic",
    "Vitamin",
    "Antipyretic",
    "Other",
]

FORMS = [
    "Tablet",
    "Capsule",
    "Syrup",
    "Injection",
    "Ointment",
    "Drops",
    "Inhaler",
    "Other",
]

# Dosage units suggested for each form (keys are lower-case form names).
UNITS_BY_FORM = {
    "tablet": ["Tablet", "mg"],
    "capsule": ["Capsule", "mg"],
    "syrup": ["ml", "mg/5ml"],
    "injection": ["ml", "iu"],
    "ointment": ["g"],
    "drops": ["Drop", "ml"],
    "inhaler": ["Puff", "mcg"],
    "other": ["units", "mg", "ml"],
}

DEFAULT_UNITS = ["mg", "ml", "tablet"]

INVENTORY_UNITS = [
    "Tablet",
    "Bottle",
    "Blister",
    "Box",
    "Ampoule",
    "Tube",
    "Sachet",
    "Capsule",
    "Vial",
    "Pack",
]


def units_for_form(form: str | None) -> list[str]:
    """Dosage unit suggestions for a form name, falling back to DEFAULT_UNITS."""
    if not form:
        return list(DEFAULT_UNITS)
    return list(UNITS_BY_FORM.get(form.strip().lower(), DEFAULT_UNITS))


def all_dosage_units() -> list[str]:
    seen: list[str] = []
    for units in [*UNITS_BY_FORM.values(), DEFAULT_UNITS]:
        for unit in units:
            if unit not in seen:
                seen.append(unit)
    return seen
