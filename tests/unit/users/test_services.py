"""Unit tests for UserService and AuthService (repository mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock

import jwt
import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from modules.users.constants import RoleName
from modules.users.dtos import CreateUserDTO
from modules.users.exceptions import (
    ExpiredToken,
    InvalidCredentials,
    UnknownTokenSubject,
    UserAlreadyExists,
    UserHasOrders,
    UserNotFound,
)
from modules.users.services import AuthService, UserService
from modules.users.tokens import TokenIssuer

pytestmark = pytest.mark.unit

KEY = "unit-test-signing-key-with-enough-bytes"
ISSUER = "http://testserver/api/v1/user/refreshToken"


def make_user(**overrides):
    user = MagicMock()
    user.id = overrides.get("id", 3)
    user.email = overrides.get("email", "cliente@example.com")
    user.is_active = overrides.get("is_active", True)
    user.role_names = overrides.get("role_names", [RoleName.USER])
    user.check_password.return_value = overrides.get("password_ok", True)
    return user


@pytest.fixture()
def repo():
    return MagicMock()


class TestUserService:
    def test_create_user_grants_customer_role(self, repo):
        repo.get_by_email.return_value = None
        repo.create.return_value = make_user()
        dto = CreateUserDTO(email="Cliente@Example.com", password="Str0ng-Passw0rd!")

        UserService(repo).create_user(dto)

        repo.create.assert_called_once_with(
            email="cliente@example.com",
            password="Str0ng-Passw0rd!",
            roles=[RoleName.USER],
        )

    def test_duplicate_email_rejected(self, repo):
        repo.get_by_email.return_value = make_user()
        dto = CreateUserDTO(email="cliente@example.com", password="Str0ng-Passw0rd!")

        with pytest.raises(UserAlreadyExists):
            UserService(repo).create_user(dto)
        repo.create.assert_not_called()

    def test_concurrent_duplicate_insert_rejected(self, repo):
        # both sign-ups passed the look-up; the unique index stops the second
        repo.get_by_email.return_value = None
        repo.create.side_effect = IntegrityError("UNIQUE constraint failed: users.email")
        dto = CreateUserDTO(email="cliente@example.com", password="Str0ng-Passw0rd!")

        with pytest.raises(UserAlreadyExists):
            UserService(repo).create_user(dto)

    def test_common_password_rejected(self, repo):
        repo.get_by_email.return_value = None
        dto = CreateUserDTO(email="cliente@example.com", password="password123")

        with pytest.raises(ValidationError):
            UserService(repo).create_user(dto)

    def test_delete_unknown_user(self, repo):
        repo.get_by_id.return_value = None
        with pytest.raises(UserNotFound):
            UserService(repo).delete_user(99)

    def test_delete_user_with_orders_is_blocked(self, repo):
        repo.get_by_id.return_value = make_user()
        repo.has_orders.return_value = True

        with pytest.raises(UserHasOrders):
            UserService(repo).delete_user(3)
        repo.delete.assert_not_called()

    def test_delete_user(self, repo):
        repo.get_by_id.return_value = make_user()
        repo.has_orders.return_value = False

        UserService(repo).delete_user(3)

        repo.delete.assert_called_once_with(3)


class TestAuthService:
    @pytest.fixture()
    def issuer(self):
        return TokenIssuer(signing_key=KEY)

    def test_login_returns_token_pair(self, repo, issuer):
        repo.get_by_email.return_value = make_user()

        pair = AuthService(repo, issuer).login("cliente@example.com", "pw", ISSUER)

        assert issuer.verify(pair.access_token).claims["id"] == 3
        assert "roles" not in issuer.verify(pair.refresh_token).claims

    @pytest.mark.parametrize(
        "user",
        [None, make_user(password_ok=False), make_user(is_active=False)],
        ids=["unknown", "wrong-password", "inactive"],
    )
    def test_login_rejects_bad_credentials(self, repo, issuer, user):
        repo.get_by_email.return_value = user
        with pytest.raises(InvalidCredentials):
            AuthService(repo, issuer).login("cliente@example.com", "pw", ISSUER)

    def test_refresh_issues_access_token_with_current_roles(self, repo, issuer):
        refresh = issuer.issue_refresh(make_user(), ISSUER)
        repo.get_by_email.return_value = make_user(
            role_names=[RoleName.ADMIN, RoleName.USER]
        )

        access = AuthService(repo, issuer).refresh_access_token(refresh, ISSUER)

        payload = issuer.verify(access)
        assert payload.subject == "cliente@example.com"
        assert payload.roles == [RoleName.ADMIN, RoleName.USER]
        repo.get_by_email.assert_called_once_with("cliente@example.com")

    def test_refresh_with_unknown_subject(self, repo, issuer):
        refresh = issuer.issue_refresh(make_user(), ISSUER)
        repo.get_by_email.return_value = None

        with pytest.raises(UnknownTokenSubject):
            AuthService(repo, issuer).refresh_access_token(refresh, ISSUER)

    def test_refresh_with_expired_token(self, repo, issuer):
        expired = jwt.encode(
            {"sub": "cliente@example.com", "exp": 1_000_000_000}, KEY, algorithm="HS256"
        )
        with pytest.raises(ExpiredToken):
            AuthService(repo, issuer).refresh_access_token(expired, ISSUER)
        repo.get_by_email.assert_not_called()
