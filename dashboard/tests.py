import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from catalog.models import Medicine
from dashboard import services
from stock.models import Entry, Expedition, StockSettings
from stock.services import create_expedition


class BaseDashboardTestCase(TestCase):
    def setUp(self):
        self.today = datetime.date(2026, 6, 1)
        self.entry_date = datetime.date(2026, 1, 1)

        self.amox = Medicine.objects.create(
            name="Amoxicillin", category="Antibiotic", description="Capsule", measure=Decimal("500"), unit="mg",
        )
        self.para = Medicine.objects.create(
            name="Paracetamol", category="Analgesic", description="Tablet", measure=Decimal("500"), unit="mg",
        )
        self.ibu = Medicine.objects.create(
            name="Ibuprofen", category="Analgesic", description="Tablet", measure=Decimal("400"), unit="mg",
        )
        self.vitc = Medicine.objects.create(name="Vitamin C", category="Vitamin", description="Syrup")

        # amox: two lots, the earliest already expired
        self.receive(self.amox, 30, expires=datetime.date(2026, 5, 20))
        self.receive(self.amox, 10, expires=datetime.date(2026, 12, 1))
        # para: expires in 20 days
        self.receive(self.para, 8, expires=datetime.date(2026, 6, 21), unit="Blister")
        # ibu: expires in 50 days
        self.receive(self.ibu, 4, expires=datetime.date(2026, 7, 21))
        # vitc: no expiration at all
        self.receive(self.vitc, 6, expires=None, unit="Bottle")

        self.ship("Kalo", [(self.amox, 5), (self.para, 3)])
        self.ship("Bamba", [(self.amox, 5), (self.ibu, 4)])
        self.ship("Kalo", [(self.para, 5), (self.vitc, 1)])

    def receive(self, medicine, quantity, expires, unit="Box"):
        return Entry.objects.create(
            medicine=medicine,
            quantity=quantity,
            inventory_unit=unit,
            entry_date=self.entry_date,
            expiration_date=expires,
        )

    def ship(self, village, lines):
        return create_expedition(
            header={
                "village": village,
                "zone": Expedition.Zone.SOUTH,
                "expedition_date": self.today,
                "duration_days": 1,
            },
            lines=[{"medicine": m, "quantity": q} for m, q in lines],
        )


class TotalsTests(BaseDashboardTestCase):
    def test_totals(self):
        totals = services.get_totals()
        self.assertEqual(totals["medicines"], 4)
        self.assertEqual(totals["entries"], 58)
        self.assertEqual(totals["exits"], 23)
        self.assertEqual(totals["stock"], 35)

    def test_negative_stock_ignored_in_total(self):
        Entry.objects.filter(medicine=self.ibu).delete()
        # ibu is now -4, counted as 0
        self.assertEqual(services.get_totals()["stock"], 35)


class ProjectionTests(BaseDashboardTestCase):
    def test_stock_per_medicine(self):
        rows = services.stock_per_medicine()
        self.assertEqual([r["name"] for r in rows], ["Amoxicillin", "Ibuprofen", "Paracetamol", "Vitamin C"])

        amox = rows[0]
        self.assertEqual(amox["total_entries"], 40)
        self.assertEqual(amox["total_exits"], 10)
        self.assertEqual(amox["stock"], 30)
        self.assertEqual(rows[2]["inventory_unit"], "Blister")

    def test_most_used_with_tie_break(self):
        rows = services.most_used_medicines()
        # amox 10, para 8, ibu 4, vitc 1
        self.assertEqual([r["medicine_id"] for r in rows], [self.amox.pk, self.para.pk, self.ibu.pk, self.vitc.pk])
        self.assertEqual(rows[0]["total"], 10)

        Entry.objects.create(medicine=self.vitc, quantity=10, inventory_unit="Bottle", entry_date=self.entry_date)
        self.ship("Tinto", [(self.vitc, 3)])
        # ibu and vitc both at 4: lower id first
        rows = services.most_used_medicines(limit=4)
        self.assertEqual([r["medicine_id"] for r in rows][2:], [self.ibu.pk, self.vitc.pk])

    def test_most_used_default_size(self):
        extra = []
        for i in range(15):
            medicine = Medicine.objects.create(name=f"Generic {i:02d}", category="Other", description="Tablet")
            self.receive(medicine, 100, expires=None)
            extra.append((medicine, 20 + i))
        self.ship("Tinto", extra)

        rows = services.most_used_medicines()
        totals = [r["total"] for r in rows]
        self.assertEqual(len(rows), 10)
        self.assertEqual(totals, sorted(set(totals), reverse=True))
        self.assertEqual(totals[0], 34)

    def test_most_used_limit(self):
        self.assertEqual(len(services.most_used_medicines(limit=2)), 2)

        settings = StockSettings.get_solo()
        settings.dashboard_top_size = 1
        settings.save()
        self.assertEqual(len(services.most_used_medicines()), 1)

    def test_village_usage_counts_distinct_medicines(self):
        rows = services.village_usage()
        # Kalo: amox, para, vitc (para twice) ; Bamba: amox, ibu
        self.assertEqual(rows, [
            {"village": "Kalo", "medicine_count": 3},
            {"village": "Bamba", "medicine_count": 2},
        ])

    def test_village_without_lines_is_not_listed(self):
        self.ship("Zed", [(self.vitc, 1)])
        self.ibu.delete()
        self.vitc.delete()

        self.assertTrue(Expedition.objects.filter(village="Zed").exists())
        self.assertEqual(services.village_usage(), [
            {"village": "Kalo", "medicine_count": 2},
            {"village": "Bamba", "medicine_count": 1},
        ])

    def test_village_usage_tie_break(self):
        self.ship("Anka", [(self.amox, 1), (self.vitc, 1)])
        rows = services.village_usage()
        self.assertEqual([r["village"] for r in rows], ["Kalo", "Anka", "Bamba"])


class InventoryListingTests(BaseDashboardTestCase):
    def test_order_nulls_last(self):
        rows = services.inventory_listing(today=self.today)
        self.assertEqual(
            [r["name"] for r in rows],
            ["Amoxicillin", "Paracetamol", "Ibuprofen", "Vitamin C"],
        )
        # earliest lot counts even when already expired
        self.assertEqual(rows[0]["expiry_date"], datetime.date(2026, 5, 20))
        self.assertIsNone(rows[-1]["expiry_date"])

    def test_expiry_and_stock_classification(self):
        rows = {r["name"]: r for r in services.inventory_listing(today=self.today)}

        self.assertEqual(rows["Amoxicillin"]["days_until_expiry"], -12)
        self.assertEqual(rows["Amoxicillin"]["expiry_status"], "expired")
        self.assertEqual(rows["Paracetamol"]["expiry_status"], "critical")
        self.assertEqual(rows["Ibuprofen"]["expiry_status"], "warning")
        self.assertEqual(rows["Vitamin C"]["expiry_status"], "unknown")

        self.assertEqual(rows["Amoxicillin"]["stock_level"], "high")    # 30
        self.assertEqual(rows["Vitamin C"]["stock_level"], "low")       # 5
        self.assertEqual(rows["Ibuprofen"]["stock"], 0)

    def test_thresholds_come_from_settings(self):
        settings = StockSettings.get_solo()
        settings.stock_low_threshold = 2
        settings.save()

        rows = {r["name"]: r for r in services.inventory_listing(today=self.today)}
        self.assertEqual(rows["Vitamin C"]["stock_level"], "medium")

    def test_filters(self):
        rows = services.inventory_listing(search="tablet 500", today=self.today)
        self.assertEqual([r["name"] for r in rows], ["Paracetamol"])

        rows = services.inventory_listing(category="analgesic", today=self.today)
        self.assertEqual({r["name"] for r in rows}, {"Paracetamol", "Ibuprofen"})

        rows = services.inventory_listing(form="SYRUP", today=self.today)
        self.assertEqual([r["name"] for r in rows], ["Vitamin C"])

    def test_expiring_soon(self):
        rows = services.expiring_soon(today=self.today)
        self.assertEqual([r["name"] for r in rows], ["Amoxicillin", "Paracetamol"])


class DashboardViewTests(BaseDashboardTestCase):
    def setUp(self):
        super().setUp()
        get_user_model().objects.create_user(username="admin", password="pass12345")
        self.client.login(username="admin", password="pass12345")

    def test_page(self):
        response = self.client.get(reverse("dashboard:index"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["totals"]["medicines"], 4)

    def test_json(self):
        response = self.client.get(reverse("dashboard:data"), {"category": "Analgesic"})
        self.assertEqual(response.status_code, 200)

        payload = response.json()
        self.assertEqual(
            set(payload),
            {"totals", "stock_per_medicine", "most_used", "village_usage", "inventory", "expiring_soon"},
        )
        self.assertEqual(len(payload["inventory"]), 2)
        self.assertEqual(payload["totals"]["exits"], 23)

    def test_root_redirects_to_dashboard(self):
        response = self.client.get("/")
        self.assertRedirects(response, reverse("dashboard:index"))
