"""Django ORM implementation of the Product repository.

Methods return ``None`` for missing rows; the Service Layer decides
how to translate a missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.db import models, transaction

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[Product]:
        return Product.objects.filter(id=id).first()

    def get_many(self, ids: Iterable[int]) -> Dict[int, Product]:
        return Product.objects.in_bulk(list(ids))

    def queryset(self) -> "models.QuerySet[Product]":
        return Product.objects.all()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = self.queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.full_clean()
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: int) -> bool:
        deleted, _ = Product.objects.filter(id=id).delete()
        return bool(deleted)
