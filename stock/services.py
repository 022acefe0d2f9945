# stock/services.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, TYPE_CHECKING

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext as _

from catalog.models import Medicine

from .models import Entry, Expedition, ExpeditionLine

if TYPE_CHECKING:
    from django.contrib.auth import get_user_model
    User = get_user_model()

logger = logging.getLogger(__name__)

EXPEDITION_HEADER_FIELDS = ("village", "zone", "expedition_date", "duration_days")


# ============================================================
# Stock calculator
# ============================================================

def _medicine_id(medicine: Medicine | int) -> int:
    if isinstance(medicine, Medicine):
        return medicine.pk
    try:
        return int(medicine)
    except (TypeError, ValueError):
        raise ValidationError(_("Invalid medicine id: %(value)r") % {"value": medicine}, code="invalid")


def sum_entries(medicine: Medicine | int) -> int:
    """Total quantity received for a medicine (0 when it has no entries)."""
    return Entry.objects.filter(medicine_id=_medicine_id(medicine)).aggregate(
        t=Coalesce(Sum("quantity"), 0)
    )["t"]


def sum_line_items(medicine: Medicine | int) -> int:
    """Total quantity shipped for a medicine across every expedition."""
    return ExpeditionLine.objects.filter(medicine_id=_medicine_id(medicine)).aggregate(
        t=Coalesce(Sum("quantity"), 0)
    )["t"]


def get_stock(medicine: Medicine | int) -> int:
    """
    Entries minus expedition lines.
    Can be negative when entries were edited or deleted after shipping.
    """
    return sum_entries(medicine) - sum_line_items(medicine)


def get_available_stock(medicine: Medicine | int) -> int:
    return max(0, get_stock(medicine))


def current_line_items(expedition: Optional[Expedition]) -> dict[int, int]:
    """{medicine_id: quantity} currently reserved by an expedition."""
    if expedition is None or expedition.pk is None:
        return {}

    reserved: dict[int, int] = {}
    rows = ExpeditionLine.objects.filter(expedition_id=expedition.pk).values_list("medicine_id", "quantity")
    for medicine_id, quantity in rows:
        reserved[medicine_id] = reserved.get(medicine_id, 0) + quantity
    return reserved


# ============================================================
# Requested lines
# ============================================================

def _line_value(line: Any, key: str) -> Any:
    if isinstance(line, Mapping):
        return line.get(key)
    return getattr(line, key, None)


def merge_requested_lines(lines: Iterable[Any]) -> dict[int, int]:
    """
    Sum requested quantities per medicine id, keeping first-seen order.

    A line is a mapping or an object with `medicine` (instance or id) or
    `medicine_id`, and `quantity`.
    """
    merged: dict[int, int] = {}

    for line in lines:
        medicine = _line_value(line, "medicine")
        if medicine is None:
            medicine = _line_value(line, "medicine_id")
        quantity = _line_value(line, "quantity")

        if medicine is None:
            raise ValidationError(_("Each line must reference a medicine."))
        try:
            quantity = int(quantity)
        except (TypeError, ValueError):
            quantity = 0
        if quantity < 1:
            raise ValidationError(_("Each line must have a quantity of at least 1."))

        medicine_id = _medicine_id(medicine)
        merged[medicine_id] = merged.get(medicine_id, 0) + quantity

    return merged


# ============================================================
# Reservation check
# ============================================================

@dataclass(frozen=True)
class ReservationFailure:
    medicine_id: int
    requested: int
    available: int = 0
    medicine_name: Optional[str] = None
    reason: str = "insufficient"  # "insufficient" | "not_found"

    @property
    def message(self) -> str:
        if self.reason == "not_found":
            return _("Medicine #%(id)s not found.") % {"id": self.medicine_id}
        return _("%(name)s (requested: %(requested)s, available: %(available)s)") % {
            "name": self.medicine_name,
            "requested": self.requested,
            "available": self.available,
        }


@dataclass
class ReservationReport:
    requested: dict[int, int] = field(default_factory=dict)
    failures: list[ReservationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def messages(self) -> list[str]:
        return [failure.message for failure in self.failures]

    def summary(self) -> str:
        return _("Insufficient stock for: %(lines)s") % {"lines": "; ".join(self.messages)}


class InsufficientStockError(ValidationError):
    """
    Raised before any write when a requested expedition cannot be covered.
    Carries the full report so callers can show every failing line.
    """

    def __init__(self, report: ReservationReport):
        self.report = report
        super().__init__(report.summary(), code="insufficient_stock")


def check_stock_availability(
    requested_lines: Iterable[Any] | Mapping[int, int],
    expedition: Optional[Expedition] = None,
    *,
    lock: bool = False,
) -> ReservationReport:
    """
    Check every requested medicine against its available stock.

    When `expedition` is given (editing), its own current reservation is
    added back, so keeping or lowering a line never fails because of itself.
    All failures are collected; nothing stops at the first one.
    `lock=True` takes row locks on the medicines (inside a transaction).
    """
    if isinstance(requested_lines, Mapping):
        requested = {int(k): int(v) for k, v in requested_lines.items()}
    else:
        requested = merge_requested_lines(requested_lines)

    report = ReservationReport(requested=requested)
    if not requested:
        return report

    qs = Medicine.objects.filter(pk__in=requested.keys()).order_by("pk")
    if lock:
        qs = qs.select_for_update()
    medicines = {m.pk: m for m in qs}

    reserved = current_line_items(expedition)

    for medicine_id, quantity in requested.items():
        medicine = medicines.get(medicine_id)
        if medicine is None:
            report.failures.append(
                ReservationFailure(medicine_id=medicine_id, requested=quantity, reason="not_found")
            )
            continue

        available = get_available_stock(medicine_id) + reserved.get(medicine_id, 0)
        if quantity > available:
            report.failures.append(
                ReservationFailure(
                    medicine_id=medicine_id,
                    medicine_name=medicine.name,
                    requested=quantity,
                    available=available,
                )
            )

    return report


# ============================================================
# Expedition writes
# ============================================================

def _apply_header(expedition: Expedition, header: Mapping[str, Any]) -> None:
    for name in EXPEDITION_HEADER_FIELDS:
        if name in header:
            setattr(expedition, name, header[name])


def _ensure_lines(requested: dict[int, int]) -> None:
    if not requested:
        raise ValidationError(_("An expedition needs at least one medicine line."))


def _validate_or_raise(
    requested: dict[int, int],
    expedition: Optional[Expedition] = None,
) -> None:
    report = check_stock_availability(requested, expedition=expedition, lock=True)
    if not report.ok:
        logger.warning(
            "Expedition %s rejected: %d line(s) cannot be covered (%s)",
            expedition.pk if expedition is not None else "(new)",
            len(report.failures),
            "; ".join(report.messages),
        )
        raise InsufficientStockError(report)


@transaction.atomic
def create_expedition(
    *,
    header: Mapping[str, Any],
    lines: Iterable[Any],
    user: Optional["User"] = None,
) -> Expedition:
    """
    Create an expedition and its lines in one transaction.

    Duplicate medicines are merged into one line. Medicine rows are locked and
    stock is checked inside the same transaction as the write, so two
    concurrent expeditions cannot both spend the same units.
    Raises InsufficientStockError (nothing written) when stock is short.
    """
    requested = merge_requested_lines(lines)
    _ensure_lines(requested)

    expedition = Expedition()
    _apply_header(expedition, header)
    expedition.stamp(user)
    expedition.full_clean()

    _validate_or_raise(requested)

    expedition.save()
    ExpeditionLine.objects.bulk_create(
        [
            ExpeditionLine(expedition=expedition, medicine_id=medicine_id, quantity=quantity)
            for medicine_id, quantity in requested.items()
        ]
    )

    logger.info(
        "Expedition %s created for %s: %d medicine(s), %d item(s)",
        expedition.pk,
        expedition.village,
        len(requested),
        sum(requested.values()),
    )
    return expedition


@transaction.atomic
def update_expedition(
    expedition: Expedition,
    *,
    header: Mapping[str, Any],
    lines: Iterable[Any],
    user: Optional["User"] = None,
) -> Expedition:
    """
    Replace an expedition's header and line set.

    The expedition's current reservation counts as available for its own
    medicines. Lines are synced: dropped medicines are deleted, changed
    quantities updated, new medicines created.
    """
    requested = merge_requested_lines(lines)
    _ensure_lines(requested)

    locked = Expedition.objects.select_for_update().get(pk=expedition.pk)
    _apply_header(locked, header)
    locked.stamp(user)
    locked.full_clean()

    _validate_or_raise(requested, expedition=locked)

    locked.save()

    existing = {line.medicine_id: line for line in locked.lines.all()}

    to_delete = [line.pk for medicine_id, line in existing.items() if medicine_id not in requested]
    if to_delete:
        ExpeditionLine.objects.filter(pk__in=to_delete).delete()

    to_update: list[ExpeditionLine] = []
    to_create: list[ExpeditionLine] = []
    for medicine_id, quantity in requested.items():
        line = existing.get(medicine_id)
        if line is None:
            to_create.append(ExpeditionLine(expedition=locked, medicine_id=medicine_id, quantity=quantity))
        elif line.quantity != quantity:
            line.quantity = quantity
            to_update.append(line)

    if to_update:
        ExpeditionLine.objects.bulk_update(to_update, ["quantity"])
    if to_create:
        ExpeditionLine.objects.bulk_create(to_create)

    logger.info(
        "Expedition %s updated: %d line(s) removed, %d changed, %d added",
        locked.pk,
        len(to_delete),
        len(to_update),
        len(to_create),
    )
    return locked


@transaction.atomic
def delete_expedition(expedition: Expedition) -> None:
    """Delete an expedition with its lines; the shipped quantities return to stock."""
    pk = expedition.pk
    expedition.delete()
    logger.info("Expedition %s deleted", pk)
