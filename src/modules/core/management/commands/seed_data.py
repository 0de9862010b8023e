from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from modules.products.models import Product
from modules.users.constants import RoleName
from modules.users.models import Address, Role, User

ADMIN_EMAIL = "admin@ecommerce.local"
CUSTOMER_EMAIL = "cliente@ecommerce.local"


class Command(BaseCommand):
    help = "Seed database with development roles, accounts and products."

    def add_arguments(self, parser):
        parser.add_argument("--admin-password", default="admin12345")
        parser.add_argument("--customer-password", default="cliente12345")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        roles = self._seed_roles()
        users_created = self._seed_users(
            options["admin_password"], options["customer_password"]
        )
        products = self._seed_products()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"roles={roles}, "
                f"users={users_created}, "
                f"products={len(products)}"
            )
        )

    def _seed_roles(self) -> int:
        for name in RoleName.values:
            Role.objects.get_or_create(name=name)
        return len(RoleName.values)

    def _seed_users(self, admin_password: str, customer_password: str) -> int:
        created = 0
        if not User.objects.filter(email=ADMIN_EMAIL).exists():
            User.objects.create_admin(ADMIN_EMAIL, password=admin_password)
            created += 1
        customer = User.objects.filter(email=CUSTOMER_EMAIL).first()
        if customer is None:
            customer = User.objects.create_user(CUSTOMER_EMAIL, password=customer_password)
            created += 1
        Address.objects.get_or_create(
            user=customer,
            zip_code="01310-100",
            defaults={
                "street": "Avenida Paulista",
                "number": "1000",
                "district": "Bela Vista",
                "city": "São Paulo",
                "state": "SP",
            },
        )
        return created

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("Monitor 27\"", "Eletrônicos", Decimal("1299.90")),
            ("Teclado Mecânico", "Eletrônicos", Decimal("399.90")),
            ("Mouse Gamer", "Eletrônicos", Decimal("249.90")),
            ("Headset", "Eletrônicos", Decimal("299.90")),
            ("Cadeira Ergonômica", "Móveis", Decimal("1499.00")),
            ("Caderno", "Escritório", Decimal("19.90")),
        ]
        products: list[Product] = []
        for name, description, price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={"description": description, "price": price},
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products
