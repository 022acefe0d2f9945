from import_export import fields, resources
from import_export.widgets import CharWidget

from .models import Medicine


class MedicineResource(resources.ModelResource):
    # empty cells stay NULL so re-imports match rows without a unit
    unit = fields.Field(
        column_name="unit",
        attribute="unit",
        widget=CharWidget(allow_blank=False),
    )

    class Meta:
        model = Medicine
        fields = ("name", "category", "description", "measure", "unit", "expiration_date")
        # the catalog key: one row per product and strength
        import_id_fields = ("name", "category", "measure", "unit")
        skip_unchanged = True
        report_skipped = True
        clean_model_instances = True
