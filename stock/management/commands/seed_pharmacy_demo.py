# stock/management/commands/seed_pharmacy_demo.py

from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from catalog.models import Medicine
from stock.models import Entry, Expedition, StockSettings
from stock.services import create_expedition

DEMO_MEDICINES = [
    # name, category, form, measure, unit
    ("Amoxicillin", "Antibiotic", "Capsule", Decimal("500"), "mg"),
    ("Paracetamol", "Analgesic", "Tablet", Decimal("500"), "mg"),
    ("Paracetamol", "Antipyretic", "Syrup", Decimal("120"), "mg/5ml"),
    ("Ibuprofen", "Analgesic", "Tablet", Decimal("400"), "mg"),
    ("Vitamin C", "Vitamin", "Tablet", Decimal("1000"), "mg"),
    ("Salbutamol", "Other", "Inhaler", Decimal("100"), "mcg"),
]

DEMO_ENTRIES = [
    # medicine index, quantity, inventory unit, supplier, days until expiry
    (0, 40, "Box", "Central Pharmacy", 20),
    (1, 120, "Blister", "Central Pharmacy", 400),
    (2, 30, "Bottle", "MedSupply", 45),
    (3, 15, "Box", "MedSupply", 200),
    (4, 60, "Pack", "Vita Import", None),
    (5, 8, "Vial", "Central Pharmacy", -5),
]


class Command(BaseCommand):
    help = "Seed a demo catalog with entries and one expedition."

    def add_arguments(self, parser):
        parser.add_argument(
            "--no-expedition",
            action="store_false",
            dest="with_expedition",
            help="Skip the demo expedition.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING("Seeding pharmacy demo data..."))

        StockSettings.get_solo()

        # ============================================================
        # 1) Catalog
        # ============================================================
        self.stdout.write(self.style.HTTP_INFO("-> catalog"))
        medicines = []
        for name, category, form, measure, unit in DEMO_MEDICINES:
            medicine, created = Medicine.objects.get_or_create(
                name=name,
                category=category,
                measure=measure,
                unit=unit,
                defaults={"description": form},
            )
            medicines.append(medicine)
            if created:
                self.stdout.write(f"   + {medicine.full_name}")

        # ============================================================
        # 2) Entries
        # ============================================================
        self.stdout.write(self.style.HTTP_INFO("-> entries"))
        today = timezone.localdate()
        entry_date = today - timedelta(days=30)

        for index, quantity, inventory_unit, supplier, expires_in in DEMO_ENTRIES:
            medicine = medicines[index]
            expiration = today + timedelta(days=expires_in) if expires_in is not None else None
            _, created = Entry.objects.get_or_create(
                medicine=medicine,
                entry_date=entry_date,
                lot_number=f"DEMO-{index + 1:03d}",
                defaults={
                    "quantity": quantity,
                    "inventory_unit": inventory_unit,
                    "supplier": supplier,
                    "expiration_date": expiration,
                },
            )
            if created:
                self.stdout.write(f"   + {quantity} {inventory_unit} of {medicine.full_name}")

        # ============================================================
        # 3) Expedition
        # ============================================================
        if options["with_expedition"] and not Expedition.objects.filter(village="Demo Village").exists():
            self.stdout.write(self.style.HTTP_INFO("-> expedition"))
            expedition = create_expedition(
                header={
                    "village": "Demo Village",
                    "zone": Expedition.Zone.NORTH,
                    "expedition_date": today,
                    "duration_days": 3,
                },
                lines=[
                    {"medicine": medicines[0], "quantity": 10},
                    {"medicine": medicines[1], "quantity": 24},
                    {"medicine": medicines[2], "quantity": 5},
                ],
            )
            self.stdout.write(f"   + {expedition}")

        self.stdout.write(self.style.SUCCESS("Demo data ready."))
