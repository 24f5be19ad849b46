"""Password hashing and JWT creation/verification for authentication."""

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import bcrypt
import jwt

from app.core.config import settings

# Raw password bounds enforced by the user rule set (min:3, max:32).
PASSWORD_MIN_LEN = 3
PASSWORD_MAX_LEN = 32


class TokenSubject(Protocol):
    """Anything that can be the subject of an access token."""

    def identity_claim(self) -> str: ...

    def custom_claims(self) -> dict[str, Any]: ...


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; the rule set already caps passwords well below it.
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(subject: TokenSubject) -> str:
    """
    Create a JWT access token for subject.

    sub comes from identity_claim(); custom_claims() are merged in but cannot
    override the registered claims (sub, iat, exp).
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = dict(subject.custom_claims())
    payload.update(
        {
            "sub": str(subject.identity_claim()),
            "exp": expire,
            "iat": now,
        }
    )
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, exp, iat, custom claims).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
    )
