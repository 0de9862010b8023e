"""Order service layer (Use Cases).

Orchestrates order creation, admin status changes and refunds.  All
write operations are atomic; the service defines the unit-of-work
boundary and callers evict cached views only after it returns.

Business rules enforced:
- Every referenced product must exist; its current price is copied into
  the line item.
- The shipping address must be one of the caller's saved addresses; it
  is copied into the order.
- Status transitions follow the state machine in ``constants``.
- A refund deletes the order only after the payment provider accepted it.
- Reads are scoped to the owner: another user's order is "not found".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db import transaction

from modules.orders.events import OrderCreated, OrderRefunded, OrderStatusChanged
from modules.orders.exceptions import (
    AddressNotFound,
    InvalidOrderStatus,
    OrderNotFound,
    ProductNotFound,
)
from modules.payments.exceptions import PaymentProviderError

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.gateway import IPaymentGateway
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the payment gateway via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._gateway = payment_gateway

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, user_id: int) -> Order:
        """Create a new order in ``CREATED`` for *user_id*.

        Steps:
        1. Resolve every product and snapshot its current price.
        2. Resolve the saved address (when given) among the caller's own.
        3. Persist order, items and address snapshot atomically.

        Raises:
            ProductNotFound: a product does not exist.
            AddressNotFound: the address does not exist or is not the
                caller's.
        """
        log = logger.bind(user_id=user_id)
        log.info("order.creation_started", item_count=len(dto.items))

        products = self._product_repo.get_many(item.product_id for item in dto.items)
        missing = sorted(
            item.product_id for item in dto.items if item.product_id not in products
        )
        if missing:
            log.warning("order.unknown_products", product_ids=missing)
            raise ProductNotFound(f"Products not found: {missing}.")

        address = None
        if dto.address_id is not None:
            address = self._order_repo.get_saved_address(dto.address_id, user_id)
            if address is None:
                log.warning("order.unknown_address", address_id=dto.address_id)
                raise AddressNotFound(f"Address {dto.address_id} not found.")

        items = [
            {
                "product": products[item.product_id],
                "quantity": item.quantity,
                "unit_price": products[item.product_id].price,
            }
            for item in dto.items
        ]
        order = self._order_repo.create(
            user_id=user_id,
            stripe_id=dto.stripe_id,
            items=items,
            address=address,
        )

        order.add_domain_event(OrderCreated(aggregate_id=order.id, user_id=user_id))
        self._order_repo.save(order)

        log.info("order.created", order_id=order.id)
        return order

    @transaction.atomic
    def update_status(self, order_id: int, new_status: str) -> Order:
        """Transition an order to *new_status* (admin operation).

        Acquires a row-level lock before validating the transition.  The
        owner is notified by e-mail once the change is committed.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: unknown status or transition not allowed.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order_id, current_status=order.status, new_status=new_status)
        try:
            old_status = order.change_status(new_status)
        except InvalidOrderStatus:
            log.warning("order.invalid_transition")
            raise

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=order.status,
                user_email=order.user.email,
            )
        )
        self._order_repo.save(order)

        log.info("order.status_updated")
        return order

    @transaction.atomic
    def refund_order(self, order_id: int, user_id: int) -> None:
        """Refund the caller's order through the payment provider and delete it.

        The provider is called while the order row is locked, so a second
        concurrent refund of the same order finds nothing to refund.

        Raises:
            OrderNotFound: order does not exist or belongs to someone else.
            PaymentProviderError: the provider refused; the order is kept.
        """
        order = self._order_repo.get_for_update(order_id, user_id=user_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order_id, user_id=user_id, status=order.status)
        log.info("order.refund_started")

        try:
            refund_id = self._gateway.refund(order.stripe_id)
        except PaymentProviderError:
            log.warning("order.refund_failed")
            raise

        order.add_domain_event(
            OrderRefunded(aggregate_id=order.id, user_id=user_id, stripe_id=order.stripe_id)
        )
        self._order_repo.remove(order)
        log.info("order.refunded", refund_id=refund_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_orders(self, user_id: int) -> List[Order]:
        return self._order_repo.list_for_user(user_id)

    def get_order(
        self,
        order_id: int,
        user_id: int,
        *,
        items: bool = False,
        address: bool = False,
    ) -> Order:
        """Retrieve one of *user_id*'s orders.

        Raises:
            OrderNotFound: if the order does not exist or is not the
                caller's.
        """
        order = self._order_repo.get_for_user(
            order_id, user_id, items=items, address=address
        )
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order
