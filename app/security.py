"""
Password hashing and session-token primitives.

Passwords: bcrypt, cost from ``settings.BCRYPT_ROUNDS``.  ``_DUMMY_HASH``
lets login spend the same bcrypt time whether or not the email exists.
The functions here are blocking; async callers run them through
``asyncio.to_thread``.

Tokens: PyJWT, HS256 by default, claims ``{"authorId", "iat"}``.  An ``exp``
claim is added only when ``settings.TOKEN_EXPIRE_MINUTES`` is set; without
it a token stays valid for as long as its author exists.
"""
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from jwt.exceptions import InvalidTokenError

from app.config import settings

# bcrypt only ever looks at the first 72 bytes of a secret.
_BCRYPT_MAX_BYTES = 72


def _encode_secret(secret: str) -> bytes:
    return secret.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    digest = bcrypt.hashpw(
        _encode_secret(password),
        bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS),
    )
    return digest.decode("utf-8")


def verify_password(password: str, digest: str) -> bool:
    try:
        return bcrypt.checkpw(_encode_secret(password), digest.encode("utf-8"))
    except ValueError:
        # Malformed digest in storage.
        return False


_DUMMY_HASH = hash_password("dummy-password-for-timing")


def burn_password_check(password: str) -> None:
    """Run a throwaway bcrypt verification (login with an unknown email)."""
    verify_password(password, _DUMMY_HASH)


def issue_token(author_id: uuid.UUID | str) -> str:
    now = datetime.now(timezone.utc)
    claims: dict = {"authorId": str(author_id), "iat": now}
    if settings.TOKEN_EXPIRE_MINUTES:
        claims["exp"] = now + timedelta(minutes=settings.TOKEN_EXPIRE_MINUTES)
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Return the token's claims, or None if it is malformed, forged or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except InvalidTokenError:
        return None
