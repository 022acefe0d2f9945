import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Medicine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False, verbose_name="Created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated at")),
                ("public_id", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, unique=True, verbose_name="Public ID (UUID)")),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("category", models.CharField(max_length=50, verbose_name="Category")),
                ("description", models.CharField(help_text="Galenic form, e.g. Tablet, Syrup, Injection.", max_length=255, verbose_name="Form")),
                ("measure", models.DecimalField(blank=True, decimal_places=3, max_digits=8, null=True, verbose_name="Dosage measure")),
                ("unit", models.CharField(blank=True, max_length=20, null=True, verbose_name="Dosage unit")),
                ("expiration_date", models.DateField(blank=True, help_text="Informational only. Each entry carries its own lot expiration.", null=True, verbose_name="Expiration date")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="catalog_medicine_created", to=settings.AUTH_USER_MODEL, verbose_name="Created by")),
                ("updated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="catalog_medicine_updated", to=settings.AUTH_USER_MODEL, verbose_name="Updated by")),
            ],
            options={
                "verbose_name": "Medicine",
                "verbose_name_plural": "Medicines",
                "ordering": ("name", "id"),
                "indexes": [models.Index(fields=["category"], name="medicine_category_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("name", "category", "measure", "unit"),
                        name="uniq_medicine_name_category_dosage",
                        violation_error_message="This medicine already exists with the same category and dosage.",
                    ),
                ],
            },
        ),
    ]
