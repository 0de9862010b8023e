"""User and token domain exceptions.

Raised by the Service Layer (and the token issuer) when business rules
are violated.  The API layer (Views) catches these and translates them
into appropriate HTTP responses.
"""

from __future__ import annotations


class UserAlreadyExists(Exception):
    """An account with the same e-mail already exists."""


class UserNotFound(Exception):
    """The requested user does not exist."""


class UserHasOrders(Exception):
    """The user still owns orders; order history must be preserved."""


class InvalidCredentials(Exception):
    """E-mail/password pair does not match an active account."""


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for every token issuing/verification failure."""


class SigningKeyUnavailable(TokenError):
    """No signing key is configured; tokens are neither issued nor accepted."""


class InvalidToken(TokenError):
    """The token signature does not match, or a claim is invalid."""


class ExpiredToken(TokenError):
    """The token ``exp`` claim is in the past."""


class MalformedToken(TokenError):
    """The token cannot be decoded or lacks ``sub``/``exp``."""


class UnknownTokenSubject(TokenError):
    """The token is valid but its subject no longer matches an account."""
