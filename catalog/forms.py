from __future__ import annotations

from django import forms
from django.utils.translation import gettext_lazy as _

from core.forms import BootstrapFormMixin

from .choices import CATEGORIES, FORMS, all_dosage_units
from .models import Medicine


class MedicineForm(BootstrapFormMixin, forms.ModelForm):
    class Meta:
        model = Medicine
        fields = ["name", "category", "description", "measure", "unit", "expiration_date"]
        widgets = {
            "category": forms.TextInput(attrs={"list": "medicine-categories"}),
            "description": forms.TextInput(attrs={"list": "medicine-forms"}),
            "measure": forms.NumberInput(attrs={"step": "0.001", "min": "0"}),
            "unit": forms.TextInput(attrs={"list": "dosage-units"}),
            "expiration_date": forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.suggestions = {
            "medicine-categories": CATEGORIES,
            "medicine-forms": FORMS,
            "dosage-units": all_dosage_units(),
        }


class MedicineImportForm(forms.Form):
    import_file = forms.FileField(label=_("Excel file (.xlsx)"))

    def clean_import_file(self):
        uploaded = self.cleaned_data["import_file"]
        if not uploaded.name.lower().endswith(".xlsx"):
            raise forms.ValidationError(_("Only .xlsx files are supported."))
        return uploaded
