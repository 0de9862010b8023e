"""JWT issuer/verifier for access and refresh tokens.

- Access tokens carry ``sub`` (e-mail), ``exp``, ``iss``, ``roles`` and
  ``id``; they live ``ACCESS_TOKEN_LIFETIME`` (10 min).
- Refresh tokens carry only ``sub``, ``exp`` and ``iss``; they live
  ``REFRESH_TOKEN_LIFETIME`` (30 min).
- Both are signed with HS256 and ``JWT_SIGNING_KEY``.  With no key the
  issuer refuses to sign or verify anything.
- Expiry is checked without leeway.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict

import jwt
import structlog
from django.conf import settings

from modules.users.exceptions import (
    ExpiredToken,
    InvalidToken,
    MalformedToken,
    SigningKeyUnavailable,
)

if TYPE_CHECKING:
    from modules.users.models import User

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TokenPayload:
    """Verified token contents: the subject plus every other claim."""

    subject: str
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> int | None:
        return self.claims.get("id")

    @property
    def roles(self) -> list[str]:
        return list(self.claims.get("roles") or [])


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    def __init__(
        self,
        signing_key: str,
        algorithm: str = "HS256",
        access_lifetime: timedelta = timedelta(minutes=10),
        refresh_lifetime: timedelta = timedelta(minutes=30),
    ) -> None:
        self._signing_key = signing_key
        self._algorithm = algorithm
        self.access_lifetime = access_lifetime
        self.refresh_lifetime = refresh_lifetime

    @classmethod
    def from_settings(cls) -> TokenIssuer:
        return cls(
            signing_key=settings.JWT_SIGNING_KEY,
            algorithm=settings.JWT_ALGORITHM,
            access_lifetime=settings.ACCESS_TOKEN_LIFETIME,
            refresh_lifetime=settings.REFRESH_TOKEN_LIFETIME,
        )

    def _require_key(self) -> str:
        if not self._signing_key:
            logger.error("token.signing_key_unavailable")
            raise SigningKeyUnavailable("Token signing key is not configured.")
        return self._signing_key

    # ------------------------------------------------------------------
    # Issuing
    # ------------------------------------------------------------------

    def issue(
        self,
        user: User,
        validity: timedelta,
        issuer: str,
        *,
        refresh: bool = False,
    ) -> str:
        """Sign a token for *user* valid for *validity* from now.

        Refresh tokens omit the ``roles`` and ``id`` claims.

        Raises:
            SigningKeyUnavailable: if no signing key is configured.
        """
        key = self._require_key()
        claims: Dict[str, Any] = {
            "sub": user.email,
            "exp": datetime.now(timezone.utc) + validity,
            "iss": issuer,
        }
        if not refresh:
            claims["roles"] = list(user.role_names)
            claims["id"] = user.id
        return jwt.encode(claims, key, algorithm=self._algorithm)

    def issue_access(self, user: User, issuer: str) -> str:
        return self.issue(user, self.access_lifetime, issuer)

    def issue_refresh(self, user: User, issuer: str) -> str:
        return self.issue(user, self.refresh_lifetime, issuer, refresh=True)

    def issue_pair(self, user: User, issuer: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access(user, issuer),
            refresh_token=self.issue_refresh(user, issuer),
        )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, token: str) -> TokenPayload:
        """Check signature and expiry, returning subject and claims.

        Raises:
            InvalidToken: signature mismatch or otherwise invalid claim.
            ExpiredToken: ``exp`` is in the past.
            MalformedToken: undecodable token, or ``sub``/``exp`` missing.
            SigningKeyUnavailable: if no signing key is configured.
        """
        key = self._require_key()
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredToken("The token has expired.") from exc
        # InvalidSignatureError subclasses DecodeError: keep it first
        except jwt.InvalidSignatureError as exc:
            raise InvalidToken("The token signature is invalid.") from exc
        except (jwt.DecodeError, jwt.MissingRequiredClaimError) as exc:
            raise MalformedToken(f"The token is malformed: {exc}") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"The token is invalid: {exc}") from exc

        subject = payload.pop("sub")
        return TokenPayload(subject=subject, claims=payload)
