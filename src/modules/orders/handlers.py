"""Event handlers for Orders domain events.

Handlers run after the transaction that raised the event has committed.
"""

from __future__ import annotations

import structlog

from modules.orders.events import OrderCreated, OrderRefunded, OrderStatusChanged
from modules.orders.tasks import send_order_status_email
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            f"Processando evento de criação do pedido {event.aggregate_id}",
            order_id=event.aggregate_id,
            user_id=event.user_id,
        )


class OrderRefundedHandler(IEventHandler[OrderRefunded]):
    def handle(self, event: OrderRefunded) -> None:
        logger.info(
            f"Processando reembolso do pedido {event.aggregate_id}",
            order_id=event.aggregate_id,
            user_id=event.user_id,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    """Queue the status notification e-mail for the order owner.

    Notification is best-effort: a broker outage is logged and the status
    change stays committed.
    """

    def handle(self, event: OrderStatusChanged) -> None:
        try:
            send_order_status_email.delay(
                event.aggregate_id,
                event.user_email,
                event.old_status,
                event.new_status,
            )
        except Exception:
            logger.exception(
                "order.status_notification_failed",
                order_id=event.aggregate_id,
                new_status=event.new_status,
            )


order_created_handler = OrderCreatedHandler()
order_refunded_handler = OrderRefundedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
