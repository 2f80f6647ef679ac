"""Cryptographic utilities - random tokens, hashing, passwords and JWTs."""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from hashlib import sha256
from typing import Any
from uuid import UUID

import argon2
from jose import ExpiredSignatureError, JWTError, jwt

from src.identity.core.config import get_settings
from src.identity.core.errors import InvalidOrExpiredTokenError
from src.identity.core.logging import get_logger

logger = get_logger(__name__)

# Claims type for signed OAuth state parameters
OAUTH_STATE_TYPE = "oauth_state"
OAUTH_STATE_EXPIRE_MINUTES = 10


def generate_random_token(byte_length: int = 32) -> str:
    """Return ``byte_length`` cryptographically secure random bytes, hex-encoded."""
    if byte_length < 0:
        raise ValueError("byte_length must not be negative")
    return secrets.token_hex(byte_length)


def hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return sha256(token.encode()).hexdigest()


@lru_cache
def _get_password_hasher() -> argon2.PasswordHasher:
    """Create password hasher with settings from config."""
    settings = get_settings()
    return argon2.PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


def hash_password(password: str) -> str:
    """Hash password using Argon2id."""
    return _get_password_hasher().hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    """Verify password against hash. Returns False on any error or a missing hash."""
    if not hashed:
        return False
    try:
        return _get_password_hasher().verify(hashed, password)
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.VerificationError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


@lru_cache
def get_dummy_password_hash() -> str:
    """Hash verified against when an account does not exist (timing safety)."""
    return hash_password(secrets.token_hex(16))


@dataclass(frozen=True)
class AccessTokenClaims:
    """Identity claims carried by an access token."""

    account_id: UUID
    email: str
    expires_at: datetime


def create_access_token(account_id: str | UUID, email: str) -> str:
    """Create a signed access token for an account."""
    settings = get_settings()
    now = datetime.now(UTC)
    to_encode = {
        "sub": str(account_id),
        "email": email,
        "iss": settings.app_name,
        "aud": settings.app_name,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def verify_access_token(token: str) -> AccessTokenClaims:
    """Validate signature, issuer, audience, algorithm and expiry.

    Every failure raises the same InvalidOrExpiredTokenError; the underlying
    reason is only logged.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.app_name,
            audience=settings.app_name,
        )
    except ExpiredSignatureError as e:
        logger.info("Access token rejected", reason="expired")
        raise InvalidOrExpiredTokenError("Invalid or expired access token") from e
    except JWTError as e:
        logger.info("Access token rejected", reason=str(e))
        raise InvalidOrExpiredTokenError("Invalid or expired access token") from e

    try:
        return AccessTokenClaims(
            account_id=UUID(payload["sub"]),
            email=payload["email"],
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.info("Access token rejected", reason="invalid payload")
        raise InvalidOrExpiredTokenError("Invalid or expired access token") from e


def create_oauth_state(redirect_url: str, next_url: str | None = None) -> str:
    """Sign the OAuth ``state`` parameter carrying the frontend redirect targets."""
    settings = get_settings()
    to_encode = {
        "type": OAUTH_STATE_TYPE,
        "redirect_url": redirect_url,
        "next_url": next_url,
        "nonce": secrets.token_hex(8),
        "exp": datetime.now(UTC) + timedelta(minutes=OAUTH_STATE_EXPIRE_MINUTES),
    }
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_oauth_state(state: str) -> dict[str, Any] | None:
    """Decode a signed OAuth state. Returns None on any error."""
    settings = get_settings()
    try:
        payload = jwt.decode(state, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != OAUTH_STATE_TYPE or not payload.get("redirect_url"):
        return None
    return payload  # type: ignore[no-any-return]
