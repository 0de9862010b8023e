"""User and authentication services (Use Cases).

Business rules enforced here:
- E-mail must be unique; new accounts get ``ROLE_USER``.
- Passwords go through Django's configured password validators.
- A user who still owns orders cannot be deleted.
- Refresh issues a new access token only for a valid token whose
  subject is still an existing account.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.contrib.auth.password_validation import validate_password
from django.db import IntegrityError, transaction

from modules.users.constants import RoleName
from modules.users.exceptions import (
    InvalidCredentials,
    TokenError,
    UnknownTokenSubject,
    UserAlreadyExists,
    UserHasOrders,
    UserNotFound,
)
from modules.users.models import Address, User

if TYPE_CHECKING:
    from modules.users.dtos import CreateAddressDTO, CreateUserDTO
    from modules.users.repositories.interfaces import IUserRepository
    from modules.users.tokens import TokenIssuer, TokenPair

logger = structlog.get_logger(__name__)


class UserService:
    """Application service for account use-cases."""

    def __init__(self, repository: IUserRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_user(self, dto: CreateUserDTO) -> User:
        """Register a new customer account.

        Raises:
            UserAlreadyExists: if the e-mail is already taken.
            django.core.exceptions.ValidationError: weak password.
        """
        log = logger.bind(email=dto.email)
        if self._repo.get_by_email(dto.email):
            log.warning("user.duplicate_email")
            raise UserAlreadyExists("Email already registered.")

        validate_password(dto.password)
        try:
            # savepoint: a concurrent sign-up may win the unique e-mail index
            with transaction.atomic():
                user = self._repo.create(
                    email=dto.email, password=dto.password, roles=[RoleName.USER]
                )
        except IntegrityError as exc:
            log.warning("user.duplicate_email", race=True)
            raise UserAlreadyExists("Email already registered.") from exc
        log.info("user.registered", user_id=user.id)
        return user

    @transaction.atomic
    def delete_user(self, id: int) -> None:
        """Delete an account, its role links and its cart.

        Raises:
            UserNotFound: if the user does not exist.
            UserHasOrders: if the user still owns orders.
        """
        if not self._repo.get_by_id(id):
            raise UserNotFound(f"User {id} not found.")
        if self._repo.has_orders(id):
            logger.warning("user.delete_blocked", user_id=id)
            raise UserHasOrders("User still owns orders and cannot be deleted.")
        self._repo.delete(id)

    @transaction.atomic
    def add_address(self, user_id: int, dto: CreateAddressDTO) -> Address:
        address = Address(user_id=user_id, **dto.model_dump())
        return self._repo.add_address(address)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_users(self) -> List[User]:
        return self._repo.list_with_relations()

    def list_addresses(self, user_id: int) -> List[Address]:
        return self._repo.list_addresses(user_id)


class AuthService:
    """Login and refresh on top of ``TokenIssuer``."""

    def __init__(self, repository: IUserRepository, issuer: TokenIssuer) -> None:
        self._repo = repository
        self._issuer = issuer

    def login(self, email: str, password: str, issuer: str) -> TokenPair:
        """Exchange credentials for an access/refresh token pair.

        Raises:
            InvalidCredentials: unknown e-mail, inactive account or wrong
                password (indistinguishable on purpose).
        """
        user = self._repo.get_by_email(email)
        if user is None or not user.is_active or not user.check_password(password):
            logger.warning("auth.login_failed", email=email)
            raise InvalidCredentials("Invalid e-mail or password.")

        pair = self._issuer.issue_pair(user, issuer)
        logger.info("auth.login_succeeded", user_id=user.id)
        return pair

    def refresh_access_token(self, refresh_token: str, issuer: str) -> str:
        """Verify *refresh_token* and issue a new access token.

        The roles in the new token are read from the database, so role
        changes apply from the next refresh on.

        Raises:
            TokenError: any verification failure, or the subject no longer
                exists.
        """
        try:
            payload = self._issuer.verify(refresh_token)
        except TokenError as exc:
            logger.warning("token.refresh_failed", error=str(exc))
            raise

        user = self._repo.get_by_email(payload.subject)
        if user is None or not user.is_active:
            logger.warning("token.refresh_failed", error="unknown subject")
            raise UnknownTokenSubject(f"No active user for subject {payload.subject}.")

        access_token = self._issuer.issue_access(user, issuer)
        logger.info("token.refreshed", user_id=user.id)
        return access_token
