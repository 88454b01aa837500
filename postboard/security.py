"""
Postboard Backend — Password Hashing and Bearer Tokens
========================================================

What:  bcrypt password hashing (passlib) and HS256 JWT issue/verify (PyJWT).
Who:   UserService hashes on register, verifies on login and issues tokens;
       the auth gate (postboard.dependencies) decodes tokens.

Token claims:
    sub:  user id (UUID string)
    iat:  issued-at
    exp:  issued-at + settings.jwt_expire_days (7 days by default)
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import jwt
from passlib.context import CryptContext

from postboard.config import Settings
from postboard.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def password_context(rounds: int) -> CryptContext:
    """One CryptContext per bcrypt cost factor."""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int = 10) -> str:
    """Salted bcrypt hash of `password` at the given cost factor."""
    return password_context(rounds).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Compare a plain password with a stored bcrypt hash.

    The cost factor is read from the hash itself, so hashes created with a
    different `rounds` setting still verify. An unparseable hash counts as a
    mismatch.
    """
    try:
        return password_context(10).verify(password, password_hash)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def issue_token(user_id: uuid.UUID, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> uuid.UUID:
    """
    Verify a bearer token and return the user id it asserts.

    Raises:
        UnauthorizedError: bad signature, expired, missing claims, or a
                           `sub` claim that is not a UUID.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError(message="Token has expired")
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(
            message="Invalid token",
            context={"reason": type(e).__name__},
        )

    try:
        return uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise UnauthorizedError(message="Invalid token", context={"reason": "bad_subject"})
