# dashboard/views.py

from __future__ import annotations

from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.views.decorators.http import require_GET
from django.views.generic import TemplateView

from catalog.choices import CATEGORIES, FORMS
from stock.models import StockSettings

from . import services


def _filters_from(request) -> dict:
    return {
        "search": (request.GET.get("q") or "").strip() or None,
        "category": request.GET.get("category") or None,
        "form": request.GET.get("form") or None,
    }


class DashboardView(LoginRequiredMixin, TemplateView):
    template_name = "dashboard/index.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        filters = _filters_from(self.request)

        context["active_section"] = "dashboard"
        context.update(services.build_dashboard(**filters))
        context["filters"] = filters
        context["categories"] = CATEGORIES
        context["forms"] = FORMS
        context["stock_settings"] = StockSettings.get_solo()
        return context


@require_GET
@login_required
def dashboard_data_view(request):
    payload = services.build_dashboard(**_filters_from(request))
    return JsonResponse(payload, encoder=DjangoJSONEncoder)
