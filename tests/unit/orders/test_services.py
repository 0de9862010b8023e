"""Unit tests for OrderService.

Covers:
- Order creation with price and address snapshots.
- Product/address validation.
- Status transitions and the owner notification.
- Refunds: provider success deletes, provider failure keeps the order.
- Owner-scoped reads.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from django.core.exceptions import ValidationError

from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    AddressNotFound,
    InvalidOrderStatus,
    OrderNotFound,
    ProductNotFound,
)
from modules.orders.models import Order, OrderAddress, OrderItem
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.exceptions import PaymentProviderError
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def gateway():
    gateway = MagicMock()
    gateway.refund.return_value = "re_123"
    return gateway


@pytest.fixture()
def service(gateway):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        payment_gateway=gateway,
    )


@pytest.fixture()
def order(service, customer, product_a, product_b, address):
    dto = CreateOrderDTO(
        stripe_id="pi_existing",
        address_id=address.id,
        items=[
            {"product_id": product_a.id, "quantity": 2},
            {"product_id": product_b.id, "quantity": 1},
        ],
    )
    return service.create_order(dto, user_id=customer.id)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_creates_order_in_created_state(self, order, customer):
        assert order.status == OrderStatus.CREATED
        assert order.user_id == customer.id
        assert order.stripe_id == "pi_existing"

    def test_snapshots_prices(self, order, product_a):
        item = OrderItem.objects.get(order=order, product=product_a)
        assert item.unit_price == Decimal("10.00")
        assert item.subtotal == Decimal("20.00")

        product_a.price = Decimal("99.00")
        product_a.save()
        item.refresh_from_db()
        assert item.unit_price == Decimal("10.00")

    def test_copies_address(self, order, address):
        snapshot = OrderAddress.objects.get(order=order)
        assert snapshot.street == address.street
        assert snapshot.zip_code == address.zip_code

        address.delete()
        assert OrderAddress.objects.filter(order=order).exists()

    def test_without_address(self, service, customer, product_a):
        dto = CreateOrderDTO(stripe_id="pi_1", items=[{"product_id": product_a.id, "quantity": 1}])
        order = service.create_order(dto, user_id=customer.id)
        assert not OrderAddress.objects.filter(order=order).exists()

    def test_unknown_product_rolls_back(self, service, customer, product_a):
        dto = CreateOrderDTO(
            stripe_id="pi_1",
            items=[
                {"product_id": product_a.id, "quantity": 1},
                {"product_id": 999_999, "quantity": 1},
            ],
        )
        with pytest.raises(ProductNotFound):
            service.create_order(dto, user_id=customer.id)
        assert Order.objects.count() == 0

    def test_someone_elses_address_is_not_found(
        self, service, other_customer, product_a, address
    ):
        dto = CreateOrderDTO(
            stripe_id="pi_1",
            address_id=address.id,
            items=[{"product_id": product_a.id, "quantity": 1}],
        )
        with pytest.raises(AddressNotFound) as exc_info:
            service.create_order(dto, user_id=other_customer.id)
        assert exc_info.value.field == "address_id"
        assert Order.objects.count() == 0


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_valid_transition(self, service, order):
        updated = service.update_status(order.id, OrderStatus.PAID)

        assert updated.status == OrderStatus.PAID
        order.refresh_from_db()
        assert order.status == OrderStatus.PAID

    def test_invalid_transition(self, service, order):
        with pytest.raises(InvalidOrderStatus):
            service.update_status(order.id, OrderStatus.DELIVERED)
        order.refresh_from_db()
        assert order.status == OrderStatus.CREATED

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.update_status(999_999, OrderStatus.PAID)

    def test_owner_is_notified_after_commit(
        self, service, order, customer, mailoutbox, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            service.update_status(order.id, OrderStatus.PAID)

        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [customer.email]
        assert "PAID" in mailoutbox[0].body

    def test_notification_failure_keeps_status(
        self, service, order, django_capture_on_commit_callbacks
    ):
        with patch(
            "modules.orders.handlers.send_order_status_email.delay",
            side_effect=ConnectionError("broker down"),
        ):
            with django_capture_on_commit_callbacks(execute=True):
                service.update_status(order.id, OrderStatus.CANCELLED)

        order.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED

    def test_owner_never_changes(self, order, other_customer):
        order.refresh_from_db()
        order.user_id = other_customer.id
        with pytest.raises(ValidationError):
            order.save()


# ---------------------------------------------------------------------------
# Refund
# ---------------------------------------------------------------------------


class TestRefund:
    def test_refund_deletes_order_with_children(self, service, gateway, order, customer):
        service.refund_order(order.id, user_id=customer.id)

        gateway.refund.assert_called_once_with("pi_existing")
        assert not Order.objects.filter(id=order.id).exists()
        assert not OrderItem.objects.filter(order_id=order.id).exists()
        assert not OrderAddress.objects.filter(order_id=order.id).exists()

    @pytest.mark.parametrize("status", [OrderStatus.PAID, OrderStatus.DELIVERED])
    def test_refund_allowed_in_any_state(self, service, order, customer, status):
        Order.objects.filter(id=order.id).update(status=status)
        service.refund_order(order.id, user_id=customer.id)
        assert not Order.objects.filter(id=order.id).exists()

    def test_provider_failure_keeps_order(self, service, gateway, order, customer):
        gateway.refund.side_effect = PaymentProviderError("card_declined")

        with pytest.raises(PaymentProviderError):
            service.refund_order(order.id, user_id=customer.id)
        assert Order.objects.filter(id=order.id).exists()

    def test_someone_elses_order(self, service, gateway, order, other_customer):
        with pytest.raises(OrderNotFound):
            service.refund_order(order.id, user_id=other_customer.id)
        gateway.refund.assert_not_called()
        assert Order.objects.filter(id=order.id).exists()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_list_orders_is_scoped_to_owner(self, service, order, customer, other_customer):
        assert [o.id for o in service.list_orders(customer.id)] == [order.id]
        assert service.list_orders(other_customer.id) == []

    def test_get_order_with_relations(self, service, order, customer, django_assert_num_queries):
        with django_assert_num_queries(3):
            loaded = service.get_order(order.id, customer.id, items=True, address=True)
            names = sorted(item.product.name for item in loaded.items.all())
            city = loaded.address.city
        assert names == ["Mouse", "Teclado"]
        assert city == "Curitiba"

    def test_get_order_of_someone_else(self, service, order, other_customer):
        with pytest.raises(OrderNotFound):
            service.get_order(order.id, other_customer.id)
