import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StockSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("expiry_critical_days", models.PositiveIntegerField(default=30, help_text="Lots expiring within this many days are flagged as critical and listed as expiring soon.", verbose_name="Critical expiry window (days)")),
                ("expiry_warning_days", models.PositiveIntegerField(default=60, verbose_name="Warning expiry window (days)")),
                ("stock_high_threshold", models.PositiveIntegerField(default=20, help_text="Stock above this value is shown as high.", verbose_name="High stock threshold")),
                ("stock_low_threshold", models.PositiveIntegerField(default=5, help_text="Stock at or below this value is shown as low.", verbose_name="Low stock threshold")),
                ("dashboard_top_size", models.PositiveIntegerField(default=10, validators=[django.core.validators.MinValueValidator(1)], verbose_name="Dashboard ranking size")),
            ],
            options={
                "verbose_name": "Stock settings",
            },
        ),
        migrations.CreateModel(
            name="Entry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("public_id", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True, verbose_name="Public ID (UUID)")),
                ("supplier", models.CharField(blank=True, max_length=200, null=True, verbose_name="Supplier")),
                ("quantity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)], verbose_name="Quantity")),
                ("inventory_unit", models.CharField(blank=True, help_text="Physical package counted in stock, e.g. Box, Bottle, Blister.", max_length=50, null=True, verbose_name="Inventory unit")),
                ("entry_date", models.DateField(verbose_name="Entry date")),
                ("expiration_date", models.DateField(blank=True, null=True, verbose_name="Expiration date")),
                ("lot_number", models.CharField(blank=True, default="", max_length=100, verbose_name="Lot number")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_entry_created", to=settings.AUTH_USER_MODEL, verbose_name="Created by")),
                ("updated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_entry_updated", to=settings.AUTH_USER_MODEL, verbose_name="Updated by")),
                ("medicine", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="entries", to="catalog.medicine", verbose_name="Medicine")),
            ],
            options={
                "verbose_name": "Entry",
                "verbose_name_plural": "Entries",
                "ordering": ("-entry_date", "-id"),
                "indexes": [
                    models.Index(fields=["medicine", "entry_date"], name="entry_medicine_date_idx"),
                    models.Index(fields=["expiration_date"], name="entry_expiration_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 1)), name="entry_quantity_positive"),
                    models.CheckConstraint(
                        condition=models.Q(("expiration_date__isnull", True), ("expiration_date__gte", models.F("entry_date")), _connector="OR"),
                        name="entry_expiration_after_entry_date",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Expedition",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("public_id", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True, verbose_name="Public ID (UUID)")),
                ("village", models.CharField(max_length=255, verbose_name="Village")),
                ("zone", models.CharField(choices=[("north", "North"), ("south", "South"), ("east", "East"), ("west", "West")], max_length=10, verbose_name="Zone")),
                ("expedition_date", models.DateField(verbose_name="Expedition date")),
                ("duration_days", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)], verbose_name="Duration (days)")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_expedition_created", to=settings.AUTH_USER_MODEL, verbose_name="Created by")),
                ("updated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_expedition_updated", to=settings.AUTH_USER_MODEL, verbose_name="Updated by")),
            ],
            options={
                "verbose_name": "Expedition",
                "verbose_name_plural": "Expeditions",
                "ordering": ("-expedition_date", "-id"),
                "indexes": [models.Index(fields=["village"], name="expedition_village_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("duration_days__gte", 1)), name="expedition_duration_positive"),
                    models.CheckConstraint(
                        condition=models.Q(("zone__in", ["north", "south", "east", "west"])),
                        name="expedition_zone_valid",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ExpeditionLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)], verbose_name="Quantity")),
                ("expedition", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="stock.expedition", verbose_name="Expedition")),
                ("medicine", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="expedition_lines", to="catalog.medicine", verbose_name="Medicine")),
            ],
            options={
                "verbose_name": "Expedition line",
                "verbose_name_plural": "Expedition lines",
                "ordering": ("id",),
                "constraints": [
                    models.UniqueConstraint(fields=("expedition", "medicine"), name="uniq_expedition_line_medicine"),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 1)), name="expedition_line_quantity_positive"),
                ],
            },
        ),
        migrations.AddField(
            model_name="expedition",
            name="medicines",
            field=models.ManyToManyField(related_name="expeditions", through="stock.ExpeditionLine", to="catalog.medicine", verbose_name="Medicines"),
        ),
    ]
