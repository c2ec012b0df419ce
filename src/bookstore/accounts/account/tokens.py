"""Signed, expiring bearer tokens.

Tokens are ``itsdangerous`` timed signatures keyed with AUTH_SECRET. The
token purpose is the serializer salt, so an access token never verifies as a
password-reset token or the other way round. Expiry is checked on load with
``max_age``.
"""

import hashlib

from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from bookstore.utils.settings import auth_secret, reset_token_ttl_minutes, token_ttl_minutes

ACCESS = "access"
PASSWORD_RESET = "password-reset"


class AuthenticationError(Exception):
    """Credentials or a bearer token could not be accepted."""


class InvalidToken(AuthenticationError):
    """Raised when a token is malformed, tampered with or expired."""


def _serializer(purpose: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(auth_secret(), salt=f"bookstore-{purpose}")


def _default_ttl(purpose: str) -> int:
    return token_ttl_minutes() if purpose == ACCESS else reset_token_ttl_minutes()


def fingerprint(password_hash: str) -> str:
    """Short digest of a password hash; reset tokens die once the password changes."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def issue_token(subject: str, purpose: str = ACCESS, **claims) -> str:
    return _serializer(purpose).dumps({"sub": subject, **claims})


def decode_token(token: str | None, purpose: str = ACCESS, max_age_minutes: int | None = None) -> dict:
    if not token:
        raise InvalidToken("Malformed token")
    if max_age_minutes is None:
        max_age_minutes = _default_ttl(purpose)

    try:
        claims = _serializer(purpose).loads(token, max_age=max_age_minutes * 60)
    except SignatureExpired as exc:
        raise InvalidToken("Token has expired") from exc
    except BadData as exc:
        raise InvalidToken("Invalid token") from exc

    if not isinstance(claims, dict) or "sub" not in claims:
        raise InvalidToken("Malformed token")
    return claims
