"""User, Role, Address and Cart models.

Business rules implemented:
- E-mail is the login name and must be unique.
- Roles are a many-to-many link table (``users_user_roles``); role names
  are copied into the ``roles`` claim of access tokens.
- Saved addresses belong to one user; orders copy the chosen address into
  their own snapshot, so editing or deleting a saved address never
  changes a past order.
- Deleting a user removes its role links, cart and saved addresses.
  Orders reference users with ``PROTECT`` (financial history).
"""

from __future__ import annotations

from typing import Iterable, List

import structlog
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models

from modules.core.models import BaseModel
from modules.users.constants import DEFAULT_ROLES, RoleName

logger = structlog.get_logger(__name__)


class Role(models.Model):
    name = models.CharField(max_length=50, unique=True, choices=RoleName.choices)

    class Meta:
        db_table = "roles"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class UserManager(BaseUserManager):
    def create_user(
        self,
        email: str,
        password: str | None = None,
        roles: Iterable[str] = DEFAULT_ROLES,
    ) -> User:
        if not email:
            raise ValueError("E-mail is required.")
        user = self.model(email=self.normalize_email(email))
        user.set_password(password)
        user.save(using=self._db)
        for name in roles:
            role, _ = Role.objects.get_or_create(name=name)
            user.roles.add(role)
        logger.info("user.created", user_id=user.id, roles=list(roles))
        return user

    def create_admin(self, email: str, password: str | None = None) -> User:
        return self.create_user(
            email, password, roles=(RoleName.USER, RoleName.ADMIN)
        )


class User(BaseModel, AbstractBaseUser):
    email = models.EmailField(max_length=254, unique=True)
    roles = models.ManyToManyField(Role, related_name="users", blank=True)
    is_active = models.BooleanField(default=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS: List[str] = []

    class Meta:
        db_table = "users"
        ordering = ["id"]

    @property
    def role_names(self) -> List[str]:
        """Role names, using the prefetch cache when present."""
        return sorted(role.name for role in self.roles.all())

    def has_role(self, role: str) -> bool:
        return role in self.role_names

    def __str__(self) -> str:
        return self.email


class Address(BaseModel):
    """A shipping address saved on the user's profile."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    street = models.CharField(max_length=255)
    number = models.CharField(max_length=20)
    complement = models.CharField(max_length=255, blank=True, default="")
    district = models.CharField(max_length=120)
    city = models.CharField(max_length=120)
    state = models.CharField(max_length=2)
    zip_code = models.CharField(max_length=9)

    class Meta:
        db_table = "addresses"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.street}, {self.number} - {self.city}/{self.state}"


class Cart(BaseModel):
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="cart",
    )

    class Meta:
        db_table = "carts"


class CartItem(BaseModel):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "cart_items"
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"], name="cart_items_unique_product"
            ),
        ]
