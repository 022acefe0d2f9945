# stock/urls.py

from django.urls import path
from . import views

app_name = "stock"

urlpatterns = [
    # ==========================
    # Entries (stock in)
    # ==========================
    path("entries/", views.EntryListView.as_view(), name="entry_list"),
    path("entries/create/", views.EntryCreateView.as_view(), name="entry_create"),
    path("entries/<int:pk>/edit/", views.EntryUpdateView.as_view(), name="entry_update"),
    path("entries/<int:pk>/delete/", views.EntryDeleteView.as_view(), name="entry_delete"),
    path("entries/export/", views.export_entries_view, name="entry_export"),

    # ==========================
    # Expeditions (stock out)
    # ==========================
    path("expeditions/", views.ExpeditionListView.as_view(), name="expedition_list"),
    path("expeditions/create/", views.ExpeditionCreateView.as_view(), name="expedition_create"),
    path("expeditions/<int:pk>/", views.ExpeditionDetailView.as_view(), name="expedition_detail"),
    path("expeditions/<int:pk>/edit/", views.ExpeditionUpdateView.as_view(), name="expedition_update"),
    path("expeditions/<int:pk>/delete/", views.ExpeditionDeleteView.as_view(), name="expedition_delete"),

    # Settings
    path("settings/", views.StockSettingsView.as_view(), name="settings"),
]
