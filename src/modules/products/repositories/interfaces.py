"""Product repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def queryset(self) -> "models.QuerySet[Product]":
        """Unevaluated queryset for list endpoints (filtering, paging)."""

    @abstractmethod
    def get_many(self, ids: Iterable[int]) -> Dict[int, Product]:
        """Products for the given ids, keyed by id; missing ids are absent."""
