"""Order, OrderItem and OrderAddress models.

Business rules implemented:
- Invalid status transitions are rejected (state machine in ``constants``,
  enforced by ``Order.change_status``).
- The owning user never changes after creation.
- User FK uses PROTECT to preserve financial history.
- OrderItem snapshots the product price at creation time (``unit_price``);
  ``subtotal`` is always ``quantity * unit_price`` (calculated on save).
- OrderAddress is a copy of the saved address chosen at checkout.
- A refunded order is hard-deleted; items and address cascade.
"""

from __future__ import annotations

from typing import Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    MAX_ITEM_QUANTITY,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.exceptions import InvalidOrderStatus
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``stripe_id`` is the payment intent charged at checkout; refunds are
    issued against it.
    """

    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    stripe_id: models.CharField = models.CharField(max_length=255)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.CREATED,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_user_id = instance.__dict__.get("user_id")
        return instance

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def change_status(self, new_status: str) -> str:
        """Move to *new_status* and return the previous status.

        Raises:
            InvalidOrderStatus: unknown status or disallowed transition.
        """
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown order status '{new_status}'.")
        if not self.can_transition_to(new_status):
            raise InvalidOrderStatus(
                f"Cannot change order status from {self.status} to {new_status}."
            )
        old_status = self.status
        self.status = new_status
        return old_status

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        loaded_user_id = getattr(self, "_loaded_user_id", None)
        if loaded_user_id is not None and loaded_user_id != self.user_id:
            raise ValidationError({"user": "The owner of an order cannot change."})
        super().save(*args, **kwargs)
        self._loaded_user_id = self.user_id

    def __str__(self) -> str:
        return f"Order {self.pk} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``unit_price`` never changes even if the product price is updated later.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(MAX_ITEM_QUANTITY)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1, quantity__lte=MAX_ITEM_QUANTITY),
                name="order_items_quantity_range",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and not 1 <= self.quantity <= MAX_ITEM_QUANTITY:
            raise ValidationError(
                {"quantity": f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}."}
            )

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.unit_price:
            unit_price = getattr(self.product, "price", None)
            if unit_price is None:
                raise ValidationError({"unit_price": "Product price is required."})
            self.unit_price = unit_price
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity} (${self.subtotal})"


class OrderAddress(BaseModel):
    """Shipping address snapshot owned by one order."""

    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="address",
    )
    street: models.CharField = models.CharField(max_length=255)
    number: models.CharField = models.CharField(max_length=20)
    complement: models.CharField = models.CharField(max_length=255, blank=True, default="")
    district: models.CharField = models.CharField(max_length=120)
    city: models.CharField = models.CharField(max_length=120)
    state: models.CharField = models.CharField(max_length=2)
    zip_code: models.CharField = models.CharField(max_length=9)

    ADDRESS_FIELDS = (
        "street",
        "number",
        "complement",
        "district",
        "city",
        "state",
        "zip_code",
    )

    class Meta:
        db_table = "order_addresses"

    @classmethod
    def copy_of(cls, address, order: Order) -> OrderAddress:
        """Unsaved snapshot of a saved user ``Address`` for *order*."""
        return cls(
            order=order,
            **{field: getattr(address, field) for field in cls.ADDRESS_FIELDS},
        )

    def __str__(self) -> str:
        return f"{self.street}, {self.number} - {self.city}/{self.state}"
