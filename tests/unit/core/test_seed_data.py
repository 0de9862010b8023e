import pytest
from django.core.management import call_command

from modules.products.models import Product
from modules.users.constants import RoleName
from modules.users.models import Address, Role, User

pytestmark = pytest.mark.unit


def test_seed_data_is_idempotent():
    call_command("seed_data")
    call_command("seed_data")

    assert set(Role.objects.values_list("name", flat=True)) == set(RoleName.values)
    assert User.objects.count() == 2
    admin = User.objects.get(email="admin@ecommerce.local")
    assert admin.has_role(RoleName.ADMIN)
    assert Address.objects.count() == 1
    assert Product.objects.count() == 6


def test_seeded_accounts_can_log_in(api_client):
    call_command("seed_data", "--customer-password", "Outra-Senh4!")

    response = api_client.post(
        "/api/v1/login",
        {"username": "cliente@ecommerce.local", "password": "Outra-Senh4!"},
        format="json",
    )
    assert response.status_code == 200
