"""User repository interface.

Extends ``IRepository[User]`` with the look-ups needed by sign-up
(unique e-mail), login/refresh (by e-mail) and account deletion.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.users.models import Address, User


class IUserRepository(IRepository["User"]):
    """Repository contract for the User aggregate."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user (with roles) by e-mail."""

    @abstractmethod
    def create(self, email: str, password: str, roles: Iterable[str]) -> User:
        """Create a user with a hashed password and the given roles."""

    @abstractmethod
    def list_with_relations(self) -> List[User]:
        """List users with roles, addresses and orders eagerly loaded."""

    @abstractmethod
    def has_orders(self, id: int) -> bool:
        """Return whether the user still owns at least one order."""

    @abstractmethod
    def list_addresses(self, user_id: int) -> List[Address]:
        """Saved addresses of a user."""

    @abstractmethod
    def add_address(self, address: Address) -> Address:
        """Persist a saved address."""
