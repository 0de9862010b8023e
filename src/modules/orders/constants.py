"""Order domain constants.

Status choices and the allowed transitions of the order state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    CREATED = "CREATED", "Criado"
    PAID = "PAID", "Pago"
    SHIPPED = "SHIPPED", "Enviado"
    DELIVERED = "DELIVERED", "Entregue"
    CANCELLED = "CANCELLED", "Cancelado"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.CREATED: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Product prices have at most 8 integer digits and OrderItem.subtotal holds
# 10, so any price times this quantity still fits the subtotal column.
MAX_ITEM_QUANTITY = 100
