"""Django ORM implementation of the User repository.

Methods return ``None``/``False`` for missing rows; the Service Layer
decides how to translate a missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.db import transaction

from modules.users.models import Address, Cart, User
from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    """Concrete User repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[User]:
        return User.objects.prefetch_related("roles").filter(id=id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return (
            User.objects.prefetch_related("roles")
            .filter(email__iexact=email)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[User]:
        queryset = User.objects.prefetch_related("roles")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_with_relations(self) -> List[User]:
        return list(
            User.objects.prefetch_related("roles", "addresses", "orders")
        )

    def create(self, email: str, password: str, roles: Iterable[str]) -> User:
        return User.objects.create_user(email=email, password=password, roles=roles)

    @transaction.atomic
    def save(self, entity: User) -> User:
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: int) -> bool:
        """Remove role links, cart and the user row.

        Returns ``False`` if no user exists with the given ID.
        """
        user = User.objects.filter(id=id).first()
        if not user:
            return False
        user.roles.clear()
        Cart.objects.filter(user_id=id).delete()
        user.delete()
        logger.info("user.deleted", user_id=id)
        return True

    def has_orders(self, id: int) -> bool:
        return User.objects.filter(id=id, orders__isnull=False).exists()

    def list_addresses(self, user_id: int) -> List[Address]:
        return list(Address.objects.filter(user_id=user_id))

    @transaction.atomic
    def add_address(self, address: Address) -> Address:
        address.save()
        logger.info("address.saved", address_id=address.id, user_id=address.user_id)
        return address
