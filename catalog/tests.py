import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from catalog.choices import DEFAULT_UNITS, units_for_form
from catalog.models import Medicine
from stock.models import Entry


class BaseCatalogTestCase(TestCase):
    def setUp(self):
        self.amox = Medicine.objects.create(
            name="Amoxicillin",
            category="Antibiotic",
            description="Capsule",
            measure=Decimal("500"),
            unit="mg",
        )
        self.gauze = Medicine.objects.create(
            name="Gauze",
            category="Other",
            description="Other",
        )


class MedicineModelTests(BaseCatalogTestCase):
    def test_duplicate_key_rejected(self):
        dup = Medicine(
            name="Amoxicillin",
            category="Antibiotic",
            description="Tablet",
            measure=Decimal("500.000"),
            unit="mg",
        )
        with self.assertRaises(ValidationError) as ctx:
            dup.full_clean()
        self.assertIn("name", ctx.exception.message_dict)

    def test_duplicate_with_empty_dosage_rejected(self):
        dup = Medicine(name="Gauze", category="Other", description="Roll")
        with self.assertRaises(ValidationError):
            dup.full_clean()

    def test_other_strength_is_a_new_entry(self):
        other = Medicine(
            name="Amoxicillin",
            category="Antibiotic",
            description="Capsule",
            measure=Decimal("250"),
            unit="mg",
        )
        other.full_clean()
        other.save()
        self.assertEqual(Medicine.objects.filter(name="Amoxicillin").count(), 2)

    def test_editing_itself_is_not_a_duplicate(self):
        self.amox.description = "Tablet"
        self.amox.full_clean()

    def test_blank_unit_stored_as_null(self):
        medicine = Medicine(name="Bandage", category="Other", description="Other", unit="  ")
        medicine.full_clean()
        self.assertIsNone(medicine.unit)

    def test_display_names(self):
        self.assertEqual(self.amox.dosage, "500mg")
        self.assertEqual(self.amox.full_name, "Amoxicillin - Capsule 500mg")
        self.assertEqual(str(self.gauze), "Gauze - Other")

    def test_latest_inventory_unit(self):
        day = datetime.date(2026, 1, 10)
        self.assertIsNone(self.amox.latest_inventory_unit)

        Entry.objects.create(medicine=self.amox, quantity=1, inventory_unit="Box", entry_date=day)
        Entry.objects.create(medicine=self.amox, quantity=1, inventory_unit="Blister", entry_date=day)
        Entry.objects.create(
            medicine=self.amox,
            quantity=1,
            inventory_unit=None,
            entry_date=day + datetime.timedelta(days=3),
        )
        Entry.objects.create(
            medicine=self.amox,
            quantity=1,
            inventory_unit="Pack",
            entry_date=day - datetime.timedelta(days=3),
        )

        # latest dated entry with a unit; same date -> highest id
        self.assertEqual(self.amox.latest_inventory_unit, "Blister")
        self.assertEqual(
            Medicine.objects.with_stock_summary().get(pk=self.amox.pk).inventory_unit,
            "Blister",
        )

    def test_stock_summary_without_movements(self):
        gauze = Medicine.objects.with_stock_summary().get(pk=self.gauze.pk)
        self.assertEqual(gauze.total_entries, 0)
        self.assertEqual(gauze.total_exits, 0)
        self.assertEqual(gauze.stock, 0)
        self.assertIsNone(gauze.inventory_unit)
        self.assertIsNone(gauze.nearest_expiration)
        self.assertEqual(self.gauze.current_stock(), 0)

    def test_queryset_filters(self):
        self.assertEqual(list(Medicine.objects.search("amox")), [self.amox])
        self.assertEqual(list(Medicine.objects.search("capsule")), [self.amox])
        self.assertEqual(list(Medicine.objects.in_category("antibiotic")), [self.amox])
        self.assertEqual(list(Medicine.objects.of_form("other")), [self.gauze])
        self.assertEqual(Medicine.objects.search("").count(), 2)


class ChoicesTests(TestCase):
    def test_units_for_form(self):
        self.assertEqual(units_for_form("Syrup"), ["ml", "mg/5ml"])
        self.assertEqual(units_for_form("Unknown"), DEFAULT_UNITS)
        self.assertEqual(units_for_form(None), DEFAULT_UNITS)


class MedicineViewTests(BaseCatalogTestCase):
    def setUp(self):
        super().setUp()
        self.user = get_user_model().objects.create_user(username="admin", password="pass12345")
        self.client.login(username="admin", password="pass12345")

    def test_login_required(self):
        self.client.logout()
        response = self.client.get(reverse("catalog:medicine_list"))
        self.assertEqual(response.status_code, 302)

    def test_list_is_ordered_by_name(self):
        response = self.client.get(reverse("catalog:medicine_list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m.name for m in response.context["medicines"]], ["Amoxicillin", "Gauze"])

    def test_create_sets_user(self):
        response = self.client.post(reverse("catalog:medicine_create"), {
            "name": "Paracetamol",
            "category": "Analgesic",
            "description": "Tablet",
            "measure": "500",
            "unit": "mg",
        })
        medicine = Medicine.objects.get(name="Paracetamol")
        self.assertRedirects(response, medicine.get_absolute_url())
        self.assertEqual(medicine.created_by, self.user)

    def test_create_duplicate_shows_error(self):
        response = self.client.post(reverse("catalog:medicine_create"), {
            "name": "Amoxicillin",
            "category": "Antibiotic",
            "description": "Capsule",
            "measure": "500",
            "unit": "mg",
        })
        self.assertEqual(response.status_code, 200)
        self.assertIn("name", response.context["form"].errors)
        self.assertEqual(Medicine.objects.filter(name="Amoxicillin").count(), 1)

    def test_delete_cascades_entries(self):
        Entry.objects.create(medicine=self.amox, quantity=3, inventory_unit="Box", entry_date=datetime.date(2026, 1, 1))
        response = self.client.post(reverse("catalog:medicine_delete", kwargs={"pk": self.amox.pk}))

        self.assertRedirects(response, reverse("catalog:medicine_list"))
        self.assertEqual(Entry.objects.count(), 0)

    def test_detail(self):
        Entry.objects.create(medicine=self.amox, quantity=3, inventory_unit="Box", entry_date=datetime.date(2026, 1, 1))
        response = self.client.get(reverse("catalog:medicine_detail", kwargs={"pk": self.amox.pk}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["medicine"].stock, 3)

    def test_export(self):
        response = self.client.get(reverse("catalog:medicine_export"))
        self.assertEqual(response.status_code, 200)
        self.assertIn("medicines_export_", response["Content-Disposition"])
