from decimal import Decimal

import pytest
from django.core.cache import caches
from rest_framework.test import APIClient

from modules.products.models import Product
from modules.users.models import Address, User
from modules.users.tokens import TokenIssuer

TEST_ISSUER = "http://testserver/api/v1/login"
PASSWORD = "Str0ng-Passw0rd!"


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Cached order views must not leak between tests (ids are reused)."""
    caches["default"].clear()
    yield
    caches["default"].clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return User.objects.create_user("cliente@example.com", password=PASSWORD)


@pytest.fixture()
def other_customer():
    return User.objects.create_user("outro@example.com", password=PASSWORD)


@pytest.fixture()
def admin():
    return User.objects.create_admin("admin@example.com", password=PASSWORD)


@pytest.fixture()
def access_token_for():
    issuer = TokenIssuer.from_settings()

    def _issue(user):
        return issuer.issue_access(user, TEST_ISSUER)

    return _issue


@pytest.fixture()
def client_for(access_token_for):
    """Factory returning an APIClient authenticated as the given user."""

    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access_token_for(user)}")
        return client

    return _client


@pytest.fixture()
def customer_client(client_for, customer):
    return client_for(customer)


@pytest.fixture()
def other_client(client_for, other_customer):
    return client_for(other_customer)


@pytest.fixture()
def admin_client(client_for, admin):
    return client_for(admin)


# ---------------------------------------------------------------------------
# Catalogue / addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def product_a():
    return Product.objects.create(name="Teclado", price=Decimal("10.00"))


@pytest.fixture()
def product_b():
    return Product.objects.create(name="Mouse", price=Decimal("25.50"))


@pytest.fixture()
def address(customer):
    return Address.objects.create(
        user=customer,
        street="Rua das Flores",
        number="42",
        district="Centro",
        city="Curitiba",
        state="PR",
        zip_code="80010-000",
    )
