"""Role-based permissions.

Roles are read from ``request.user.roles`` (set by
``JWTBearerAuthentication`` from the ``roles`` claim).  An anonymous
caller fails ``has_permission`` and DRF answers 401; an authenticated
caller without the role gets 403.
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.users.constants import RoleName


class HasRole(BasePermission):
    required_role: str = ""

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return self.required_role in getattr(user, "roles", ())


class IsCustomer(HasRole):
    """``ROLE_USER``: owns carts, addresses and orders."""

    required_role = RoleName.USER


class IsAdmin(HasRole):
    """``ROLE_ADMIN``: manages users, products and order status."""

    required_role = RoleName.ADMIN
