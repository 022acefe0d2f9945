from django.contrib import admin
from solo.admin import SingletonModelAdmin

from .models import Entry, Expedition, ExpeditionLine, StockSettings


@admin.register(StockSettings)
class StockSettingsAdmin(SingletonModelAdmin):
    pass


@admin.register(Entry)
class EntryAdmin(admin.ModelAdmin):
    list_display = ("medicine", "quantity", "inventory_unit", "supplier", "entry_date", "expiration_date", "lot_number")
    list_filter = ("entry_date", "inventory_unit")
    search_fields = ("medicine__name", "supplier", "lot_number")
    autocomplete_fields = ["medicine"]
    date_hierarchy = "entry_date"


# Read-only: line writes go through stock.services.
class ExpeditionLineInline(admin.TabularInline):
    model = ExpeditionLine
    extra = 0
    fields = ("medicine", "quantity")
    readonly_fields = ("medicine", "quantity")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Expedition)
class ExpeditionAdmin(admin.ModelAdmin):
    list_display = ("village", "zone", "expedition_date", "duration_days")
    list_filter = ("zone", "expedition_date")
    search_fields = ("village",)
    inlines = [ExpeditionLineInline]
    date_hierarchy = "expedition_date"
