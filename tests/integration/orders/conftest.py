import pytest

ORDER_URL = "/api/v1/order"


@pytest.fixture()
def place_order(customer_client, product_a, product_b, address):
    """Factory placing an order for ``customer`` through the API."""

    def _place(stripe_id="pi_test_001", client=None):
        response = (client or customer_client).post(
            ORDER_URL,
            {
                "stripe_id": stripe_id,
                "address_id": address.id,
                "items": [
                    {"product_id": product_a.id, "quantity": 2},
                    {"product_id": product_b.id, "quantity": 1},
                ],
            },
            format="json",
        )
        assert response.status_code == 201, response.data
        return response.data

    return _place


@pytest.fixture()
def placed_order(place_order):
    return place_order()
