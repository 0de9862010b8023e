"""Django ORM implementation of the Order repository.

All write operations run inside ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems + OrderAddress) is persisted atomically.
Domain events collected on the aggregate are published once the
transaction commits.

Concurrency control on mutations uses ``select_for_update()``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.orders.models import Order, OrderAddress, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository
from modules.users.models import Address
from shared.infrastructure.bus import publish_on_commit

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(
        self,
        user_id: int,
        stripe_id: str,
        items: List[Dict[str, Any]],
        address: Optional[Address] = None,
    ) -> Order:
        order = Order(user_id=user_id, stripe_id=stripe_id)
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product=item_data["product"],
                    quantity=item_data["quantity"],
                    unit_price=item_data["unit_price"],
                    subtotal=item_data["quantity"] * item_data["unit_price"],
                )
                for item_data in items
            ]
        )
        if address is not None:
            OrderAddress.copy_of(address, order).save()

        logger.info("order.persisted", order_id=order.id, item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_for_user(
        self,
        order_id: int,
        user_id: int,
        *,
        items: bool = False,
        address: bool = False,
    ) -> Optional[Order]:
        """Eager-load only what the caller renders (prevents N+1)."""
        queryset = Order.objects.filter(id=order_id, user_id=user_id)
        if items:
            queryset = queryset.prefetch_related("items__product")
        if address:
            queryset = queryset.select_related("address")
        return queryset.first()

    def list_for_user(self, user_id: int) -> List[Order]:
        return list(Order.objects.filter(user_id=user_id))

    def get_for_update(self, order_id: int, user_id: Optional[int] = None) -> Optional[Order]:
        queryset = Order.objects.select_for_update().select_related("user")
        if user_id is not None:
            queryset = queryset.filter(user_id=user_id)
        return queryset.filter(id=order_id).first()

    def get_saved_address(self, address_id: int, user_id: int) -> Optional[Address]:
        return Address.objects.filter(id=address_id, user_id=user_id).first()

    # ------------------------------------------------------------------
    # Save / Delete
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and publish its events after commit."""
        entity.save()
        events = entity.domain_events
        entity.clear_domain_events()
        publish_on_commit(events)
        logger.info("order.saved", order_id=entity.id, event_count=len(events))
        return entity

    @transaction.atomic
    def remove(self, order: Order) -> None:
        order_id = order.id
        events = order.domain_events
        order.clear_domain_events()
        order.delete()
        publish_on_commit(events)
        logger.info("order.deleted", order_id=order_id, event_count=len(events))
