import datetime
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse

from catalog.models import Medicine
from stock import services
from stock.models import Entry, Expedition, ExpeditionLine
from stock.services import InsufficientStockError
from stock.utils import dosage_display, format_dosage, medicine_full_name, pluralize_inventory_unit


class PluralizationTests(TestCase):
    def test_singular_for_one(self):
        self.assertEqual(pluralize_inventory_unit("Box", 1), "Box")

    def test_naive_suffix_for_many(self):
        self.assertEqual(pluralize_inventory_unit("Box", 3), "Boxs")
        self.assertEqual(pluralize_inventory_unit("Bottle", 0), "Bottles")

    def test_word_ending_in_s_unchanged(self):
        self.assertEqual(pluralize_inventory_unit("Units", 4), "Units")

    def test_invariable_units(self):
        self.assertEqual(pluralize_inventory_unit("mg", 5), "mg")
        self.assertEqual(pluralize_inventory_unit("ML", 5), "ML")
        self.assertEqual(pluralize_inventory_unit("µg", 2), "µg")

    def test_missing_unit(self):
        self.assertIsNone(pluralize_inventory_unit(None, 2))
        self.assertIsNone(pluralize_inventory_unit("", 2))

    def test_dosage_helpers(self):
        self.assertEqual(format_dosage(Decimal("500.000"), "mg"), "500mg")
        self.assertEqual(format_dosage(Decimal("2.500"), "ml"), "2.5ml")
        self.assertEqual(format_dosage(None, None), "")
        self.assertEqual(dosage_display(Decimal("500.000"), "mg", 3), "500mg")
        self.assertEqual(dosage_display(Decimal("1.000"), "Tablet", 3), "1Tablets")
        self.assertEqual(
            medicine_full_name("Amoxicillin", "Capsule", Decimal("500.000"), "mg"),
            "Amoxicillin - Capsule 500mg",
        )
        self.assertEqual(medicine_full_name("Gauze"), "Gauze")


class BaseStockTestCase(TestCase):
    def setUp(self):
        self.today = datetime.date(2026, 3, 1)

        self.amox = Medicine.objects.create(
            name="Amoxicillin",
            category="Antibiotic",
            description="Capsule",
            measure=Decimal("500"),
            unit="mg",
        )
        self.para = Medicine.objects.create(
            name="Paracetamol",
            category="Analgesic",
            description="Tablet",
            measure=Decimal("500"),
            unit="mg",
        )
        self.vitc = Medicine.objects.create(
            name="Vitamin C",
            category="Vitamin",
            description="Tablet",
        )

        self.receive(self.amox, 10)
        self.receive(self.para, 20)

    def receive(self, medicine, quantity, **extra):
        extra.setdefault("entry_date", self.today)
        extra.setdefault("inventory_unit", "Box")
        return Entry.objects.create(medicine=medicine, quantity=quantity, **extra)

    def header(self, **overrides):
        data = {
            "village": "Kalo",
            "zone": Expedition.Zone.NORTH,
            "expedition_date": self.today,
            "duration_days": 2,
        }
        data.update(overrides)
        return data


class StockCalculatorTests(BaseStockTestCase):
    def test_no_movements_is_zero(self):
        self.assertEqual(services.get_stock(self.vitc), 0)
        self.assertEqual(services.get_available_stock(self.vitc), 0)

    def test_entries_minus_lines(self):
        self.receive(self.amox, 5)
        services.create_expedition(header=self.header(), lines=[{"medicine": self.amox, "quantity": 3}])

        self.assertEqual(services.sum_entries(self.amox), 15)
        self.assertEqual(services.sum_line_items(self.amox), 3)
        self.assertEqual(services.get_stock(self.amox), 12)
        self.assertEqual(services.get_stock(self.amox.pk), 12)

    def test_negative_stock_after_entry_deleted(self):
        entry = self.receive(self.vitc, 4)
        services.create_expedition(header=self.header(), lines=[{"medicine": self.vitc, "quantity": 4}])
        entry.delete()

        self.assertEqual(services.get_stock(self.vitc), -4)
        self.assertEqual(services.get_available_stock(self.vitc), 0)

    def test_queryset_annotation_matches_service(self):
        self.receive(self.amox, 7)
        services.create_expedition(header=self.header(), lines=[{"medicine": self.amox, "quantity": 2}])
        services.create_expedition(header=self.header(village="Bamba"), lines=[{"medicine": self.amox, "quantity": 4}])

        for medicine in Medicine.objects.with_stock_summary():
            self.assertEqual(medicine.stock, services.get_stock(medicine))
            self.assertEqual(medicine.available_stock, services.get_available_stock(medicine))

        amox = Medicine.objects.with_stock_summary().get(pk=self.amox.pk)
        self.assertEqual(amox.total_entries, 17)
        self.assertEqual(amox.total_exits, 6)


class MergeLinesTests(BaseStockTestCase):
    def test_duplicates_are_summed_in_first_seen_order(self):
        merged = services.merge_requested_lines([
            {"medicine": self.para, "quantity": 2},
            {"medicine_id": self.amox.pk, "quantity": 1},
            {"medicine": self.para.pk, "quantity": 3},
        ])
        self.assertEqual(merged, {self.para.pk: 5, self.amox.pk: 1})
        self.assertEqual(list(merged), [self.para.pk, self.amox.pk])

    def test_quantity_below_one_rejected(self):
        with self.assertRaises(ValidationError):
            services.merge_requested_lines([{"medicine": self.para, "quantity": 0}])

    def test_malformed_values_rejected(self):
        with self.assertRaises(ValidationError):
            services.merge_requested_lines([{"medicine": self.para, "quantity": "lots"}])
        with self.assertRaises(ValidationError):
            services.merge_requested_lines([{"medicine_id": "abc", "quantity": 1}])
        with self.assertRaises(ValidationError):
            services.check_stock_availability([{"medicine": self.amox, "quantity": None}])


class ReservationCheckTests(BaseStockTestCase):
    def test_ok_when_covered(self):
        report = services.check_stock_availability([{"medicine": self.amox, "quantity": 10}])
        self.assertTrue(report.ok)
        self.assertEqual(report.messages, [])

    def test_collects_every_failure(self):
        report = services.check_stock_availability([
            {"medicine": self.amox, "quantity": 11},
            {"medicine": self.para, "quantity": 5},
            {"medicine": 999999, "quantity": 1},
            {"medicine": self.vitc, "quantity": 1},
        ])

        self.assertFalse(report.ok)
        self.assertEqual(
            report.messages,
            [
                "Amoxicillin (requested: 11, available: 10)",
                "Medicine #999999 not found.",
                "Vitamin C (requested: 1, available: 0)",
            ],
        )
        self.assertEqual(report.failures[1].reason, "not_found")

    def test_duplicate_lines_checked_as_one(self):
        report = services.check_stock_availability([
            {"medicine": self.amox, "quantity": 6},
            {"medicine": self.amox, "quantity": 6},
        ])
        self.assertEqual(report.messages, ["Amoxicillin (requested: 12, available: 10)"])

    def test_negative_stock_counts_as_zero(self):
        entry = self.receive(self.vitc, 3)
        services.create_expedition(header=self.header(), lines=[{"medicine": self.vitc, "quantity": 3}])
        entry.delete()
        self.receive(self.vitc, 2)

        report = services.check_stock_availability([{"medicine": self.vitc, "quantity": 1}])
        self.assertEqual(report.messages, ["Vitamin C (requested: 1, available: 0)"])


class CreateExpeditionTests(BaseStockTestCase):
    def test_create_merges_lines(self):
        user = get_user_model().objects.create_user(username="nurse", password="pass12345")
        expedition = services.create_expedition(
            header=self.header(),
            lines=[
                {"medicine": self.amox, "quantity": 4},
                {"medicine": self.para, "quantity": 5},
                {"medicine": self.amox, "quantity": 2},
            ],
            user=user,
        )

        self.assertEqual(services.current_line_items(expedition), {self.amox.pk: 6, self.para.pk: 5})
        self.assertEqual(expedition.lines.count(), 2)
        self.assertEqual(expedition.created_by, user)
        self.assertEqual(services.get_stock(self.amox), 4)

    def test_insufficient_stock_writes_nothing(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            services.create_expedition(
                header=self.header(),
                lines=[
                    {"medicine": self.para, "quantity": 1},
                    {"medicine": self.amox, "quantity": 15},
                ],
            )

        self.assertEqual(
            ctx.exception.messages,
            ["Insufficient stock for: Amoxicillin (requested: 15, available: 10)"],
        )
        self.assertEqual(Expedition.objects.count(), 0)
        self.assertEqual(ExpeditionLine.objects.count(), 0)

    def test_second_expedition_sees_remaining_stock(self):
        services.create_expedition(header=self.header(), lines=[{"medicine": self.amox, "quantity": 5}])
        self.assertEqual(services.get_stock(self.amox), 5)

        with self.assertRaises(InsufficientStockError) as ctx:
            services.create_expedition(
                header=self.header(village="Bamba"),
                lines=[{"medicine": self.amox, "quantity": 8}],
            )

        self.assertEqual(
            ctx.exception.messages,
            ["Insufficient stock for: Amoxicillin (requested: 8, available: 5)"],
        )
        self.assertEqual(Expedition.objects.count(), 1)

    def test_exact_stock_can_be_shipped(self):
        services.create_expedition(header=self.header(), lines=[{"medicine": self.amox, "quantity": 10}])
        self.assertEqual(services.get_stock(self.amox), 0)

    def test_requires_lines(self):
        with self.assertRaises(ValidationError):
            services.create_expedition(header=self.header(), lines=[])
        self.assertEqual(Expedition.objects.count(), 0)

    def test_invalid_header_rejected(self):
        with self.assertRaises(ValidationError):
            services.create_expedition(
                header=self.header(zone="central"),
                lines=[{"medicine": self.amox, "quantity": 1}],
            )
        with self.assertRaises(ValidationError):
            services.create_expedition(
                header=self.header(duration_days=0),
                lines=[{"medicine": self.amox, "quantity": 1}],
            )
        self.assertEqual(Expedition.objects.count(), 0)


class UpdateExpeditionTests(BaseStockTestCase):
    def setUp(self):
        super().setUp()
        self.expedition = services.create_expedition(
            header=self.header(),
            lines=[{"medicine": self.amox, "quantity": 8}, {"medicine": self.para, "quantity": 5}],
        )

    def test_own_reservation_is_added_back(self):
        # 2 left on the shelf + 8 already reserved by this expedition
        services.update_expedition(
            self.expedition,
            header=self.header(),
            lines=[{"medicine": self.amox, "quantity": 10}, {"medicine": self.para, "quantity": 5}],
        )
        self.assertEqual(services.current_line_items(self.expedition)[self.amox.pk], 10)
        self.assertEqual(services.get_stock(self.amox), 0)

    def test_over_reservation_rejected_and_unchanged(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            services.update_expedition(
                self.expedition,
                header=self.header(village="Elsewhere"),
                lines=[{"medicine": self.amox, "quantity": 11}],
            )

        self.assertEqual(ctx.exception.report.messages, ["Amoxicillin (requested: 11, available: 10)"])
        self.expedition.refresh_from_db()
        self.assertEqual(self.expedition.village, "Kalo")
        self.assertEqual(services.current_line_items(self.expedition), {self.amox.pk: 8, self.para.pk: 5})

    def test_lines_are_synced(self):
        self.receive(self.vitc, 3)
        updated = services.update_expedition(
            self.expedition,
            header=self.header(village="Bamba", zone=Expedition.Zone.EAST),
            lines=[{"medicine": self.para, "quantity": 7}, {"medicine": self.vitc, "quantity": 3}],
        )

        self.assertEqual(updated.village, "Bamba")
        self.assertEqual(updated.zone, "east")
        self.assertEqual(services.current_line_items(updated), {self.para.pk: 7, self.vitc.pk: 3})
        self.assertEqual(services.get_stock(self.amox), 10)

    def test_other_expeditions_do_not_count_as_own(self):
        other = services.create_expedition(header=self.header(village="Bamba"), lines=[{"medicine": self.amox, "quantity": 2}])

        with self.assertRaises(InsufficientStockError):
            services.update_expedition(
                other,
                header=self.header(village="Bamba"),
                lines=[{"medicine": self.amox, "quantity": 3}],
            )

    def test_delete_returns_stock(self):
        services.delete_expedition(self.expedition)
        self.assertEqual(ExpeditionLine.objects.count(), 0)
        self.assertEqual(services.get_stock(self.amox), 10)


class EntryModelTests(BaseStockTestCase):
    def test_expiration_before_entry_date_rejected(self):
        entry = Entry(
            medicine=self.amox,
            quantity=1,
            inventory_unit="Box",
            entry_date=self.today,
            expiration_date=self.today - datetime.timedelta(days=1),
        )
        with self.assertRaises(ValidationError) as ctx:
            entry.full_clean()
        self.assertIn("expiration_date", ctx.exception.message_dict)

    def test_quantity_must_be_positive(self):
        entry = Entry(medicine=self.amox, quantity=0, inventory_unit="Box", entry_date=self.today)
        with self.assertRaises(ValidationError) as ctx:
            entry.full_clean()
        self.assertIn("quantity", ctx.exception.message_dict)

    def test_medicine_delete_cascades(self):
        services.create_expedition(header=self.header(), lines=[{"medicine": self.amox, "quantity": 1}])
        self.amox.delete()

        self.assertFalse(Entry.objects.filter(medicine_id=self.amox.pk).exists())
        self.assertFalse(ExpeditionLine.objects.filter(medicine_id=self.amox.pk).exists())

    def test_line_rows_for_display(self):
        self.receive(self.amox, 1, inventory_unit="Blister", entry_date=self.today + datetime.timedelta(days=1))
        expedition = services.create_expedition(header=self.header(), lines=[{"medicine": self.amox, "quantity": 3}])

        row = expedition.line_rows()[0]
        self.assertEqual(row["full_name"], "Amoxicillin - Capsule 500mg")
        self.assertEqual(row["inventory_unit"], "Blister")
        self.assertEqual(row["inventory_unit_display"], "Blisters")
        self.assertEqual(row["dosage_display"], "500mg")


class ExpeditionViewTests(BaseStockTestCase):
    def setUp(self):
        super().setUp()
        self.user = get_user_model().objects.create_user(username="admin", password="pass12345")
        self.client.login(username="admin", password="pass12345")

    def post_data(self, lines, **header):
        data = {
            "village": "Kalo",
            "zone": "south",
            "expedition_date": "2026-03-02",
            "duration_days": "2",
            "lines-TOTAL_FORMS": str(len(lines)),
            "lines-INITIAL_FORMS": "0",
            "lines-MIN_NUM_FORMS": "1",
            "lines-MAX_NUM_FORMS": "1000",
        }
        data.update(header)
        for i, (medicine, quantity) in enumerate(lines):
            data[f"lines-{i}-medicine"] = str(medicine.pk) if medicine else ""
            data[f"lines-{i}-quantity"] = str(quantity) if quantity else ""
        return data

    def test_login_required(self):
        self.client.logout()
        response = self.client.get(reverse("stock:expedition_list"))
        self.assertEqual(response.status_code, 302)

    def test_create_through_form(self):
        response = self.client.post(
            reverse("stock:expedition_create"),
            self.post_data([(self.amox, 3), (self.amox, 2), (None, None)]),
        )

        expedition = Expedition.objects.get()
        self.assertRedirects(response, reverse("stock:expedition_detail", kwargs={"pk": expedition.pk}))
        self.assertEqual(services.current_line_items(expedition), {self.amox.pk: 5})
        self.assertEqual(expedition.created_by, self.user)

    def test_insufficient_stock_rerenders_form(self):
        response = self.client.post(
            reverse("stock:expedition_create"),
            self.post_data([(self.amox, 30)]),
        )

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Insufficient stock for: Amoxicillin (requested: 30, available: 10)")
        self.assertEqual(Expedition.objects.count(), 0)

    def test_update_through_form(self):
        expedition = services.create_expedition(header=self.header(), lines=[{"medicine": self.amox, "quantity": 8}])
        data = self.post_data([(self.amox, 10)], village="Kalo")
        data["lines-INITIAL_FORMS"] = "0"

        response = self.client.post(reverse("stock:expedition_update", kwargs={"pk": expedition.pk}), data)

        self.assertEqual(response.status_code, 302)
        self.assertEqual(services.current_line_items(expedition), {self.amox.pk: 10})

    def test_list_and_detail(self):
        expedition = services.create_expedition(header=self.header(), lines=[{"medicine": self.para, "quantity": 4}])

        response = self.client.get(reverse("stock:expedition_list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["expeditions"][0].total_items, 4)
        self.assertEqual(response.context["expeditions"][0].total_medicines, 1)

        response = self.client.get(reverse("stock:expedition_detail", kwargs={"pk": expedition.pk}))
        self.assertContains(response, "Paracetamol - Tablet 500mg")
        self.assertContains(response, "4 Boxs")

    def test_delete_through_view(self):
        expedition = services.create_expedition(header=self.header(), lines=[{"medicine": self.para, "quantity": 4}])
        response = self.client.post(reverse("stock:expedition_delete", kwargs={"pk": expedition.pk}))

        self.assertRedirects(response, reverse("stock:expedition_list"))
        self.assertEqual(services.get_stock(self.para), 20)


class EntryViewTests(BaseStockTestCase):
    def setUp(self):
        super().setUp()
        get_user_model().objects.create_user(username="admin", password="pass12345")
        self.client.login(username="admin", password="pass12345")

    def test_inventory_unit_required(self):
        response = self.client.post(reverse("stock:entry_create"), {
            "medicine": self.amox.pk,
            "quantity": "4",
            "inventory_unit": "",
            "entry_date": "2026-03-01",
        })
        self.assertEqual(response.status_code, 200)
        self.assertIn("inventory_unit", response.context["form"].errors)

    def test_create_entry(self):
        response = self.client.post(reverse("stock:entry_create"), {
            "medicine": self.amox.pk,
            "supplier": "Central Pharmacy",
            "quantity": "4",
            "inventory_unit": "Box",
            "entry_date": "2026-03-01",
            "expiration_date": "2027-03-01",
            "lot_number": "L-42",
        })
        self.assertRedirects(response, reverse("stock:entry_list"))
        self.assertEqual(services.get_stock(self.amox), 14)

    def test_export(self):
        response = self.client.get(reverse("stock:entry_export"))
        self.assertEqual(response.status_code, 200)
        self.assertIn("spreadsheetml", response["Content-Type"])


class SeedCommandTests(TestCase):
    def test_seed_is_repeatable(self):
        out = StringIO()
        call_command("seed_pharmacy_demo", stdout=out)
        self.assertIn("Demo data ready.", out.getvalue())

        self.assertEqual(Medicine.objects.count(), 6)
        self.assertEqual(Entry.objects.count(), 6)
        expedition = Expedition.objects.get(village="Demo Village")
        self.assertEqual(services.current_line_items(expedition), {
            Medicine.objects.get(name="Amoxicillin").pk: 10,
            Medicine.objects.get(name="Paracetamol", description="Tablet").pk: 24,
            Medicine.objects.get(name="Paracetamol", description="Syrup").pk: 5,
        })

        salbutamol = Medicine.objects.get(name="Salbutamol")
        self.assertLess(salbutamol.entries.get().expiration_date, datetime.date.today())

        call_command("seed_pharmacy_demo", stdout=StringIO())
        self.assertEqual(Medicine.objects.count(), 6)
        self.assertEqual(Entry.objects.count(), 6)
        self.assertEqual(Expedition.objects.count(), 1)

    def test_without_expedition(self):
        call_command("seed_pharmacy_demo", "--no-expedition", stdout=StringIO())
        self.assertEqual(Expedition.objects.count(), 0)
        self.assertEqual(Entry.objects.count(), 6)
