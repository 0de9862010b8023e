"""Integration tests for the cached order read endpoints.

Every view is scoped to its owner: another user gets the same 404 as for
a missing order, whether or not the owner already warmed the cache.
"""

from decimal import Decimal

import pytest

from modules.orders.models import Order
from tests.integration.orders.conftest import ORDER_URL

pytestmark = pytest.mark.integration

NOT_FOUND = {"fields": [{"field": "orderId", "message": "Id given do not match"}]}

VIEW_PATHS = ["", "/items", "/address", "/items-address"]


class TestListOrders:
    def test_lists_own_orders(self, customer_client, place_order):
        first = place_order("pi_1")
        second = place_order("pi_2")

        response = customer_client.get(ORDER_URL)

        assert response.status_code == 200
        assert {o["id"] for o in response.data} == {first["id"], second["id"]}
        assert all(o["status"] == "CREATED" for o in response.data)

    def test_other_user_sees_empty_list(self, other_client, placed_order):
        response = other_client.get(ORDER_URL)
        assert response.status_code == 200
        assert response.data == []

    def test_requires_authentication(self, api_client):
        assert api_client.get(ORDER_URL).status_code == 401


class TestOrderViews:
    def test_bare_order(self, customer_client, customer, placed_order):
        response = customer_client.get(f"{ORDER_URL}/{placed_order['id']}")

        assert response.status_code == 200
        assert response.data == {
            "id": placed_order["id"],
            "user_id": customer.id,
            "stripe_id": "pi_test_001",
            "status": "CREATED",
        }

    def test_with_items(self, customer_client, placed_order, product_a):
        response = customer_client.get(f"{ORDER_URL}/{placed_order['id']}/items")

        assert response.status_code == 200
        assert "address" not in response.data
        items = {item["product_id"]: item for item in response.data["items"]}
        assert items[product_a.id]["product_name"] == "Teclado"
        assert items[product_a.id]["quantity"] == 2
        assert items[product_a.id]["unit_price"] == "10.00"
        assert items[product_a.id]["subtotal"] == "20.00"

    def test_with_address(self, customer_client, placed_order):
        response = customer_client.get(f"{ORDER_URL}/{placed_order['id']}/address")

        assert response.status_code == 200
        assert "items" not in response.data
        assert response.data["address"]["city"] == "Curitiba"
        assert response.data["address"]["zip_code"] == "80010-000"

    def test_with_items_and_address(self, customer_client, placed_order):
        response = customer_client.get(
            f"{ORDER_URL}/{placed_order['id']}/items-address"
        )

        assert response.status_code == 200
        assert len(response.data["items"]) == 2
        assert response.data["address"]["state"] == "PR"

    def test_order_without_address(self, customer_client, customer, product_a):
        response = customer_client.post(
            ORDER_URL,
            {"stripe_id": "pi_noaddr", "items": [{"product_id": product_a.id, "quantity": 1}]},
            format="json",
        )
        order_id = response.data["id"]

        response = customer_client.get(f"{ORDER_URL}/{order_id}/address")

        assert response.status_code == 200
        assert response.data["address"] is None

    def test_address_snapshot_survives_profile_edit(self, customer_client, placed_order, address):
        address.city = "Londrina"
        address.save()

        response = customer_client.get(f"{ORDER_URL}/{placed_order['id']}/address")

        assert response.data["address"]["city"] == "Curitiba"

    def test_items_keep_price_after_product_price_change(
        self, customer_client, placed_order, product_a
    ):
        product_a.price = Decimal("99.00")
        product_a.save()

        response = customer_client.get(f"{ORDER_URL}/{placed_order['id']}/items-address")

        assert response.status_code == 200
        items = {item["product_id"]: item for item in response.data["items"]}
        assert items[product_a.id]["unit_price"] == "10.00"
        assert items[product_a.id]["subtotal"] == "20.00"
        assert response.data["address"]["city"] == "Curitiba"

    def test_repeated_read_is_served_from_cache(
        self, customer_client, placed_order, django_assert_num_queries
    ):
        url = f"{ORDER_URL}/{placed_order['id']}/items-address"
        first = customer_client.get(url)

        with django_assert_num_queries(0):
            second = customer_client.get(url)

        assert second.data == first.data


class TestOwnership:
    @pytest.mark.parametrize("path", VIEW_PATHS)
    def test_unknown_order_returns_404(self, customer_client, path):
        response = customer_client.get(f"{ORDER_URL}/999999{path}")

        assert response.status_code == 404
        assert response.data == NOT_FOUND

    @pytest.mark.parametrize("path", VIEW_PATHS)
    def test_other_users_order_returns_404(self, other_client, placed_order, path):
        response = other_client.get(f"{ORDER_URL}/{placed_order['id']}{path}")

        assert response.status_code == 404
        assert response.data == NOT_FOUND

    @pytest.mark.parametrize("path", VIEW_PATHS)
    def test_warm_cache_does_not_leak_to_other_user(
        self, customer_client, other_client, placed_order, path
    ):
        url = f"{ORDER_URL}/{placed_order['id']}{path}"
        assert customer_client.get(url).status_code == 200

        response = other_client.get(url)

        assert response.status_code == 404
        assert response.data == NOT_FOUND

    def test_cached_404_does_not_hide_order_from_owner(
        self, customer_client, other_client, placed_order
    ):
        url = f"{ORDER_URL}/{placed_order['id']}"
        assert other_client.get(url).status_code == 404

        assert customer_client.get(url).status_code == 200

    def test_order_row_is_untouched_by_reads(self, other_client, placed_order):
        other_client.get(f"{ORDER_URL}/{placed_order['id']}")
        assert Order.objects.filter(id=placed_order["id"]).exists()
