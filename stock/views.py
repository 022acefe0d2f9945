# stock/views.py

from __future__ import annotations

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.shortcuts import redirect
from django.urls import reverse, reverse_lazy
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from django.views.generic import CreateView, DeleteView, DetailView, ListView, UpdateView

from catalog.choices import INVENTORY_UNITS
from catalog.models import Medicine
from core.mixins import UserStampedMixin

from . import services
from .forms import (
    EntryForm,
    ExpeditionForm,
    ExpeditionLineFormSet,
    StockSettingsForm,
    initial_lines_for,
)
from .models import Entry, Expedition, StockSettings
from .resources import EntryResource


# ============================================================
# Entries
# ============================================================

class EntryListView(LoginRequiredMixin, ListView):
    model = Entry
    template_name = "stock/entries/list.html"
    context_object_name = "entries"
    paginate_by = 25

    def get_queryset(self):
        qs = Entry.objects.with_related().newest_first()

        q = (self.request.GET.get("q") or "").strip()
        medicine = self.request.GET.get("medicine")

        if q:
            qs = qs.search(q)
        if medicine:
            qs = qs.filter(medicine_id=medicine)

        return qs

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "stock_entries"
        context["medicines"] = Medicine.objects.ordered()
        return context


class EntryFormContextMixin:
    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "stock_entries"
        context["inventory_units"] = INVENTORY_UNITS
        context["cancel_url"] = reverse("stock:entry_list")
        return context


class EntryCreateView(LoginRequiredMixin, EntryFormContextMixin, UserStampedMixin, CreateView):
    model = Entry
    form_class = EntryForm
    template_name = "stock/entries/form.html"
    success_url = reverse_lazy("stock:entry_list")

    def get_initial(self):
        initial = super().get_initial()
        initial.setdefault("entry_date", timezone.localdate())
        medicine = self.request.GET.get("medicine")
        if medicine:
            initial["medicine"] = medicine
        return initial

    def form_valid(self, form):
        response = super().form_valid(form)
        messages.success(self.request, _("Entry recorded."))
        return response

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["page_title"] = _("New entry")
        return context


class EntryUpdateView(LoginRequiredMixin, EntryFormContextMixin, UserStampedMixin, UpdateView):
    model = Entry
    form_class = EntryForm
    template_name = "stock/entries/form.html"
    success_url = reverse_lazy("stock:entry_list")

    def form_valid(self, form):
        response = super().form_valid(form)
        messages.success(self.request, _("Entry updated."))
        return response

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["page_title"] = _("Edit entry")
        return context


class EntryDeleteView(LoginRequiredMixin, DeleteView):
    model = Entry
    template_name = "stock/confirm_delete.html"
    success_url = reverse_lazy("stock:entry_list")

    def form_valid(self, form):
        response = super().form_valid(form)
        messages.warning(self.request, _("Entry deleted."))
        return response


@login_required
def export_entries_view(request):
    dataset = EntryResource().export(Entry.objects.with_related().newest_first())
    response = HttpResponse(
        dataset.xlsx,
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    timestamp = timezone.now().strftime("%Y-%m-%d")
    response["Content-Disposition"] = f'attachment; filename="entries_export_{timestamp}.xlsx"'
    return response


# ============================================================
# Expeditions
# ============================================================

class ExpeditionListView(LoginRequiredMixin, ListView):
    model = Expedition
    template_name = "stock/expeditions/list.html"
    context_object_name = "expeditions"
    paginate_by = 20

    def get_queryset(self):
        qs = Expedition.objects.newest_first().with_totals().with_lines()

        q = (self.request.GET.get("q") or "").strip()
        zone = self.request.GET.get("zone")

        if q:
            qs = qs.search(q)
        if zone in Expedition.Zone.values:
            qs = qs.filter(zone=zone)

        return qs

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "stock_expeditions"
        context["zones"] = Expedition.Zone.choices
        return context


class ExpeditionDetailView(LoginRequiredMixin, DetailView):
    model = Expedition
    template_name = "stock/expeditions/detail.html"
    context_object_name = "expedition"

    def get_queryset(self):
        return Expedition.objects.with_totals().with_lines()

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "stock_expeditions"
        context["line_rows"] = self.object.line_rows()
        return context


class ExpeditionWriteMixin:
    """
    Header form + line formset. Persistence goes through stock.services so the
    stock check and the write share one transaction.
    """

    model = Expedition
    form_class = ExpeditionForm
    template_name = "stock/expeditions/form.html"

    def get_lines_initial(self) -> list[dict]:
        return []

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "stock_expeditions"
        context["cancel_url"] = reverse("stock:expedition_list")
        if "lines_formset" not in context:
            if self.request.method == "POST":
                context["lines_formset"] = ExpeditionLineFormSet(self.request.POST, prefix="lines")
            else:
                context["lines_formset"] = ExpeditionLineFormSet(
                    initial=self.get_lines_initial(),
                    prefix="lines",
                )
        return context

    def save_expedition(self, form, lines):
        raise NotImplementedError

    def form_valid(self, form):
        lines_formset = ExpeditionLineFormSet(self.request.POST, prefix="lines")

        if not lines_formset.is_valid():
            messages.error(self.request, _("Please check the medicine lines."))
            return self.render_to_response(self.get_context_data(form=form, lines_formset=lines_formset))

        try:
            self.object = self.save_expedition(form, lines_formset.requested_lines())
        except ValidationError as e:
            text = " ".join(e.messages)
            form.add_error(None, text)
            messages.error(self.request, text)
            return self.render_to_response(
                self.get_context_data(
                    form=form,
                    lines_formset=lines_formset,
                    stock_report=getattr(e, "report", None),
                )
            )

        return redirect(self.get_success_url())

    def get_success_url(self):
        return reverse("stock:expedition_detail", kwargs={"pk": self.object.pk})


class ExpeditionCreateView(LoginRequiredMixin, ExpeditionWriteMixin, CreateView):
    def get_initial(self):
        initial = super().get_initial()
        initial.setdefault("expedition_date", timezone.localdate())
        initial.setdefault("duration_days", 1)
        return initial

    def save_expedition(self, form, lines):
        expedition = services.create_expedition(
            header=form.header(),
            lines=lines,
            user=self.request.user,
        )
        messages.success(self.request, _("Expedition created."))
        return expedition

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["page_title"] = _("New expedition")
        return context


class ExpeditionUpdateView(LoginRequiredMixin, ExpeditionWriteMixin, UpdateView):
    def get_lines_initial(self) -> list[dict]:
        return initial_lines_for(self.object)

    def save_expedition(self, form, lines):
        expedition = services.update_expedition(
            self.object,
            header=form.header(),
            lines=lines,
            user=self.request.user,
        )
        messages.success(self.request, _("Expedition updated."))
        return expedition

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["page_title"] = _("Edit expedition")
        context["cancel_url"] = reverse("stock:expedition_detail", kwargs={"pk": self.object.pk})
        return context


class ExpeditionDeleteView(LoginRequiredMixin, DeleteView):
    model = Expedition
    template_name = "stock/confirm_delete.html"
    success_url = reverse_lazy("stock:expedition_list")

    def form_valid(self, form):
        services.delete_expedition(self.object)
        messages.warning(self.request, _("Expedition deleted."))
        return redirect(self.get_success_url())


# ============================================================
# Settings
# ============================================================

class StockSettingsView(LoginRequiredMixin, UpdateView):
    model = StockSettings
    form_class = StockSettingsForm
    template_name = "stock/settings.html"
    success_url = reverse_lazy("stock:settings")

    def get_object(self, queryset=None):
        return StockSettings.get_solo()

    def form_valid(self, form):
        response = super().form_valid(form)
        messages.success(self.request, _("Settings saved."))
        return response

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["active_section"] = "stock_settings"
        return context
