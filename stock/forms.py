# stock/forms.py
from __future__ import annotations

from django import forms
from django.forms import BaseFormSet, formset_factory
from django.utils.translation import gettext_lazy as _

from catalog.choices import INVENTORY_UNITS
from catalog.models import Medicine
from core.forms import BootstrapFormMixin

from .models import Entry, Expedition, StockSettings


# ============================================================
# Entries
# ============================================================
class EntryForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = Entry
        fields = [
            "medicine",
            "supplier",
            "quantity",
            "inventory_unit",
            "entry_date",
            "expiration_date",
            "lot_number",
        ]
        widgets = {
            "quantity": forms.NumberInput(attrs={"min": "1", "step": "1"}),
            "inventory_unit": forms.TextInput(attrs={"list": "inventory-units"}),
            "entry_date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "expiration_date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["medicine"].queryset = Medicine.objects.ordered()
        self.fields["medicine"].empty_label = _("Select a medicine...")
        # nullable column, but every new entry must say what package it counts
        self.fields["inventory_unit"].required = True
        self.inventory_unit_suggestions = INVENTORY_UNITS


# ============================================================
# Expeditions
# ============================================================
class ExpeditionForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = Expedition
        fields = ["village", "zone", "expedition_date", "duration_days"]
        widgets = {
            "expedition_date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
            "duration_days": forms.NumberInput(attrs={"min": "1", "step": "1"}),
        }

    def header(self) -> dict:
        return {name: self.cleaned_data[name] for name in self.Meta.fields}


class ExpeditionLineForm(BootstrapFormMixin, forms.Form):
    medicine = forms.ModelChoiceField(
        queryset=Medicine.objects.none(),
        label=_("Medicine"),
        empty_label=_("Select a medicine..."),
    )
    quantity = forms.IntegerField(
        min_value=1,
        label=_("Quantity"),
        widget=forms.NumberInput(attrs={"min": "1", "step": "1"}),
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["medicine"].queryset = Medicine.objects.ordered()


class BaseExpeditionLineFormSet(BaseFormSet):
    """
    Line rows of an expedition. The same medicine may appear on several rows;
    the services merge them into one line.
    """

    def requested_lines(self) -> list[dict]:
        lines = []
        for form in self.forms:
            data = getattr(form, "cleaned_data", None) or {}
            if not data or data.get("DELETE"):
                continue
            lines.append({"medicine": data["medicine"], "quantity": data["quantity"]})
        return lines


ExpeditionLineFormSet = formset_factory(
    ExpeditionLineForm,
    formset=BaseExpeditionLineFormSet,
    extra=1,
    can_delete=True,
    min_num=1,
    validate_min=True,
)


def initial_lines_for(expedition: Expedition) -> list[dict]:
    return [
        {"medicine": line.medicine_id, "quantity": line.quantity}
        for line in expedition.lines.all()
    ]


# ============================================================
# Settings
# ============================================================
class StockSettingsForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = StockSettings
        fields = [
            "expiry_critical_days",
            "expiry_warning_days",
            "stock_high_threshold",
            "stock_low_threshold",
            "dashboard_top_size",
        ]
