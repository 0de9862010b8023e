"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    user_id: int


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an admin changes the status of an order."""

    old_status: str
    new_status: str
    user_email: str


@dataclass(frozen=True, kw_only=True)
class OrderRefunded(DomainEvent):
    """Raised when an order is refunded and removed."""

    user_id: int
    stripe_id: str
