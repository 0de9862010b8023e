"""Order DTOs for the Service Layer.

Framework-agnostic input contracts using Pydantic v2 (immutable).

- ``CreateOrderItemDTO``: one line of a new order.
- ``CreateOrderDTO``: a new order (payment intent, items, saved address).
- ``UpdateOrderStatusDTO``: admin status change.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import MAX_ITEM_QUANTITY, OrderStatus


class CreateOrderItemDTO(BaseModel):
    """``unit_price`` is resolved by the Service Layer from the catalogue."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        if v > MAX_ITEM_QUANTITY:
            raise ValueError(f"Quantity must be at most {MAX_ITEM_QUANTITY}.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``stripe_id`` is present.
    - ``items`` must contain at least one item, without repeated products.
    """

    model_config = ConfigDict(frozen=True)

    stripe_id: str = Field(min_length=1, max_length=255)
    items: List[CreateOrderItemDTO]
    address_id: Optional[int] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalise(cls, v):
        return v.strip().upper() if isinstance(v, str) else v
