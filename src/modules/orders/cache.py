"""Cache keys and invalidation rules for the order read endpoints.

Key scheme::

    orders:{user_id}              list of a user's orders
    order:{id}                    bare order
    order:{id}-items              order with items
    order:{id}-address            order with address
    order:{id}-items-address      order with items and address

``order:*`` keys are not scoped to a user; cached bodies carry
``user_id`` and the views compare it with the caller.
"""

from __future__ import annotations

from typing import List

from modules.core.cache import ResponseCache

ORDERS_NAMESPACE = "orders"

VIEW_SUFFIXES = ("", "-items", "-address", "-items-address")

order_cache = ResponseCache()


def orders_key(user_id: int) -> str:
    return f"{ORDERS_NAMESPACE}:{user_id}"


def order_key(order_id: int, suffix: str = "") -> str:
    if suffix not in VIEW_SUFFIXES:
        raise ValueError(f"Unknown order view suffix {suffix!r}.")
    return f"order:{order_id}{suffix}"


def order_view_keys(order_id: int) -> List[str]:
    return [order_key(order_id, suffix) for suffix in VIEW_SUFFIXES]


def evict_after_create() -> None:
    order_cache.evict_namespace(ORDERS_NAMESPACE)


def evict_order(order_id: int) -> None:
    """After a refund or status change: every list plus each view of the order."""
    order_cache.evict_namespace(ORDERS_NAMESPACE)
    order_cache.evict(*order_view_keys(order_id))
