# catalog/urls.py

from django.urls import path
from . import views

app_name = "catalog"

urlpatterns = [
    path("", views.MedicineListView.as_view(), name="medicine_list"),
    path("create/", views.MedicineCreateView.as_view(), name="medicine_create"),
    path("<int:pk>/", views.MedicineDetailView.as_view(), name="medicine_detail"),
    path("<int:pk>/edit/", views.MedicineUpdateView.as_view(), name="medicine_update"),
    path("<int:pk>/delete/", views.MedicineDeleteView.as_view(), name="medicine_delete"),

    # Import/Export
    path("export/", views.export_medicines_view, name="medicine_export"),
    path("import/", views.import_medicines_view, name="medicine_import"),
]
