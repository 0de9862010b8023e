"""Product service layer (Use Cases).

Orchestrates catalogue use-cases, delegating persistence to the
injected ``IProductRepository``.  Price rules are validated by the DTOs
and again by the model on save.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.products.exceptions import ProductNotFound
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        product = Product(name=dto.name, price=dto.price, description=dto.description)
        return self._repo.save(product)

    @transaction.atomic
    def update_product(self, id: int, dto: UpdateProductDTO) -> Product:
        """Apply the supplied fields to an existing product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        changed = dto.model_dump(exclude_none=True)
        for field, value in changed.items():
            setattr(product, field, value)

        product = self._repo.save(product)
        logger.info("product.updated", product_id=id, fields=sorted(changed))
        return product

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        return self._repo.list(filters)

    def get_product(self, id: int) -> Product:
        """Raises ``ProductNotFound`` if the product does not exist."""
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product
