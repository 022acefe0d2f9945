from import_export import fields, resources
from import_export.widgets import ForeignKeyWidget

from catalog.models import Medicine

from .models import Entry


class EntryResource(resources.ModelResource):
    medicine = fields.Field(
        column_name="medicine_id",
        attribute="medicine",
        widget=ForeignKeyWidget(Medicine),
    )
    medicine_name = fields.Field(column_name="medicine_name", readonly=True)

    class Meta:
        model = Entry
        fields = (
            "id",
            "medicine",
            "medicine_name",
            "supplier",
            "quantity",
            "inventory_unit",
            "entry_date",
            "expiration_date",
            "lot_number",
        )

    def dehydrate_medicine_name(self, entry):
        return entry.medicine.full_name
