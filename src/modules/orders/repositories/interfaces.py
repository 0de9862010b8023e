"""Order repository interface.

Owner-scoped look-ups used by the read endpoints, atomic creation of
the aggregate (order, items, address snapshot), row locking for
mutations and event-publishing save/remove.  Orders are never listed
across users nor deleted by id, so the generic ``IRepository``
list/delete contract does not apply.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.users.models import Address


class IOrderRepository(ABC):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(
        self,
        user_id: int,
        stripe_id: str,
        items: List[Dict[str, Any]],
        address: Optional[Address] = None,
    ) -> Order:
        """Create an order with its items and address snapshot atomically.

        ``items`` is a list of dicts with ``product``, ``quantity`` and
        ``unit_price``.
        """

    @abstractmethod
    def get_for_user(
        self,
        order_id: int,
        user_id: int,
        *,
        items: bool = False,
        address: bool = False,
    ) -> Optional[Order]:
        """Order owned by *user_id*, optionally with items/address loaded."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> List[Order]:
        """Every order owned by *user_id*, newest first."""

    @abstractmethod
    def get_for_update(self, order_id: int, user_id: Optional[int] = None) -> Optional[Order]:
        """Order with a row-level lock, optionally scoped to an owner."""

    @abstractmethod
    def get_saved_address(self, address_id: int, user_id: int) -> Optional[Address]:
        """Saved address *address_id* if it belongs to *user_id*."""

    @abstractmethod
    def save(self, entity: Order) -> Order:
        """Persist *entity*, publishing its pending events on commit."""

    @abstractmethod
    def remove(self, order: Order) -> None:
        """Hard-delete *order*, publishing its pending events on commit."""
