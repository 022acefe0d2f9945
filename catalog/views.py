# catalog/views.py

from __future__ import annotations

import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse, reverse_lazy
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from django.views.generic import CreateView, DeleteView, DetailView, ListView, UpdateView

from tablib import Dataset

from core.mixins import UserStampedMixin

from .choices import CATEGORIES, FORMS
from .forms import MedicineForm, MedicineImportForm
from .models import Medicine
from .resources import MedicineResource

logger = logging.getLogger(__name__)


class MedicineListView(LoginRequiredMixin, ListView):
    model = Medicine
    template_name = "catalog/medicines/list.html"
    context_object_name = "medicines"
    paginate_by = 25

    def get_queryset(self):
        q = (self.request.GET.get("q") or "").strip()
        category = self.request.GET.get("category")
        form = self.request.GET.get("form")

        return (
            Medicine.objects.with_stock_summary()
            .search(q)
            .in_category(category)
            .of_form(form)
            .ordered()
        )

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "catalog"
        context["categories"] = CATEGORIES
        context["forms"] = FORMS
        return context


class MedicineDetailView(LoginRequiredMixin, DetailView):
    model = Medicine
    template_name = "catalog/medicines/detail.html"
    context_object_name = "medicine"

    def get_queryset(self):
        return Medicine.objects.with_stock_summary()

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        medicine = self.object
        context["active_section"] = "catalog"
        context["recent_entries"] = medicine.entries.order_by("-entry_date", "-id")[:10]
        context["recent_lines"] = (
            medicine.expedition_lines.select_related("expedition")
            .order_by("-expedition__expedition_date", "-id")[:10]
        )
        return context


class MedicineFormContextMixin:
    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "catalog"
        context["cancel_url"] = reverse("catalog:medicine_list")
        return context


class MedicineCreateView(LoginRequiredMixin, MedicineFormContextMixin, UserStampedMixin, CreateView):
    model = Medicine
    form_class = MedicineForm
    template_name = "catalog/medicines/form.html"

    def form_valid(self, form):
        response = super().form_valid(form)
        messages.success(self.request, _("Medicine added to the catalog."))
        return response

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["page_title"] = _("New medicine")
        return context


class MedicineUpdateView(LoginRequiredMixin, MedicineFormContextMixin, UserStampedMixin, UpdateView):
    model = Medicine
    form_class = MedicineForm
    template_name = "catalog/medicines/form.html"

    def form_valid(self, form):
        response = super().form_valid(form)
        messages.success(self.request, _("Medicine updated."))
        return response

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["page_title"] = _("Edit medicine: ") + self.object.full_name
        return context


class MedicineDeleteView(LoginRequiredMixin, DeleteView):
    """Deleting a medicine also deletes its entries and expedition lines."""

    model = Medicine
    template_name = "catalog/medicines/delete.html"
    success_url = reverse_lazy("catalog:medicine_list")

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "catalog"
        context["entries_count"] = self.object.entries.count()
        context["lines_count"] = self.object.expedition_lines.count()
        return context

    def form_valid(self, form):
        name = self.object.full_name
        response = super().form_valid(form)
        logger.info("Medicine %s deleted with its entries and expedition lines", name)
        messages.warning(self.request, _("Medicine deleted."))
        return response


# ============================================================
# Import/Export
# ============================================================

@login_required
def export_medicines_view(request):
    dataset = MedicineResource().export(Medicine.objects.ordered())
    response = HttpResponse(
        dataset.xlsx,
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    timestamp = timezone.now().strftime("%Y-%m-%d")
    response["Content-Disposition"] = f'attachment; filename="medicines_export_{timestamp}.xlsx"'
    return response


@login_required
def import_medicines_view(request):
    errors: list[str] = []
    form = MedicineImportForm(request.POST or None, request.FILES or None)

    if request.method == "POST":
        if not form.is_valid():
            messages.error(request, " ".join(e for errs in form.errors.values() for e in errs))
            return redirect("catalog:medicine_import")

        resource = MedicineResource()
        dataset = Dataset()
        dataset.load(form.cleaned_data["import_file"].read(), format="xlsx")

        dry = resource.import_data(dataset, dry_run=True)

        if not dry.has_errors() and not dry.has_validation_errors():
            result = resource.import_data(dataset, dry_run=False)
            logger.info("Catalog import: %s", dict(result.totals))
            messages.success(request, _("Medicines imported."))
            return redirect("catalog:medicine_list")

        for i, row in enumerate(dry.rows):
            line_num = i + 2  # header + 1-indexed
            for err in row.errors:
                errors.append(f"{_('Row')} {line_num}: {getattr(err, 'error', err)}")

        for invalid in dry.invalid_rows:
            for field_name, field_errors in invalid.error_dict.items():
                errors.append(f"{_('Row')} {invalid.number}: {field_name}: {' '.join(field_errors)}")

        messages.error(request, _("Import failed. See the errors below."))

    return render(
        request,
        "catalog/medicines/import_form.html",
        {"form": form, "import_errors": errors, "active_section": "catalog"},
    )
