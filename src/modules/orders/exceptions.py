"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The order does not exist or belongs to another user."""


class InvalidOrderStatus(Exception):
    """Unknown status, or a transition the state machine does not allow."""


class OrderValidationError(Exception):
    """The order references data that does not exist.

    ``field`` names the offending input for the field-error payload.
    """

    field = "order"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        if field is not None:
            self.field = field


class ProductNotFound(OrderValidationError):
    """A product referenced by an order item does not exist."""

    field = "items"


class AddressNotFound(OrderValidationError):
    """The chosen address does not exist or belongs to another user."""

    field = "address_id"
