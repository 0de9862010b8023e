"""JWT Bearer authentication backend for Django REST Framework.

Access tokens are HS256-signed by ``modules.users.tokens.TokenIssuer``.
The caller identity is rebuilt from the token claims on every request
(``sub`` e-mail, ``id``, ``roles``) and exposed to views as
``request.user``; views pass it explicitly into the service layer.

Security decisions
------------------
* **Fail Closed**: any decode / validation error returns 401.
* ``algorithms`` is fixed by configuration, never taken from the token.
* No database hit: the token is the source of truth for roles until it
  expires (10 minutes).
"""

from __future__ import annotations

from typing import Any

import structlog
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from modules.users.exceptions import TokenError
from modules.users.tokens import TokenIssuer, TokenPayload

logger = structlog.get_logger(__name__)


class TokenUser:
    """Lightweight caller identity built from a verified access token."""

    is_authenticated = True
    is_active = True
    is_anonymous = False

    def __init__(self, payload: TokenPayload) -> None:
        self.email: str = payload.subject
        self.id: Any = payload.claims.get("id")
        self.roles: frozenset[str] = frozenset(payload.claims.get("roles") or ())

    @property
    def pk(self) -> Any:
        return self.id

    def __str__(self) -> str:  # pragma: no cover
        return self.email


class JWTBearerAuthentication(BaseAuthentication):
    """DRF authentication class that validates ``Authorization: Bearer`` tokens."""

    keyword = "Bearer"

    def authenticate(self, request):
        """Return ``(TokenUser, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)
        try:
            payload = TokenIssuer.from_settings().verify(token)
        except TokenError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc

        user = TokenUser(payload)
        structlog.contextvars.bind_contextvars(user_id=user.id)
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    @classmethod
    def _extract_token(cls, header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != cls.keyword.lower():
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]
