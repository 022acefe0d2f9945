from django.contrib import admin
from import_export.admin import ImportExportModelAdmin

from .models import Medicine
from .resources import MedicineResource


@admin.register(Medicine)
class MedicineAdmin(ImportExportModelAdmin):
    resource_classes = [MedicineResource]
    list_display = ("name", "description", "category", "measure", "unit", "expiration_date")
    list_filter = ("category", "description")
    search_fields = ("name", "category", "description")
    readonly_fields = ("public_id", "created_at", "updated_at", "created_by", "updated_by")
