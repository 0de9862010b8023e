"""User domain constants."""

from django.db import models


class RoleName(models.TextChoices):
    USER = "ROLE_USER", "Cliente"
    ADMIN = "ROLE_ADMIN", "Administrador"


DEFAULT_ROLES: tuple[str, ...] = (RoleName.USER,)
