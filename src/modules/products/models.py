"""Product catalogue model.

Business rules implemented:
- Price must be greater than zero.
- Orders snapshot the price at creation time, so a price change never
  alters an existing order.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    class Meta:
        db_table = "products"
        ordering = ["name", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product.created", product_id=self.id, name=self.name)

    def __str__(self) -> str:
        return self.name
