"""Single-use verification tokens (email verification, password reset).

The plaintext token is handed to the caller exactly once. Only its SHA256
hash and expiry are persisted on the account.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from src.identity.core.security.crypto import generate_random_token, hash_token
from src.identity.models.base import utc_now

VERIFICATION_TOKEN_BYTES = 32


class TokenUnit(StrEnum):
    MINUTES = "minutes"
    DAYS = "days"


@dataclass(frozen=True)
class VerificationToken:
    plaintext: str
    hashed: str
    expires_at: datetime


def create_verification_token(
    duration: int,
    unit: TokenUnit = TokenUnit.MINUTES,
    now: datetime | None = None,
) -> VerificationToken:
    """Generate a token and the hash/expiry to store for it."""
    now = now or utc_now()
    if unit == TokenUnit.DAYS:
        expires_at = now + timedelta(days=duration)
    else:
        expires_at = now + timedelta(minutes=duration)

    plaintext = generate_random_token(VERIFICATION_TOKEN_BYTES)
    return VerificationToken(
        plaintext=plaintext,
        hashed=hash_token(plaintext),
        expires_at=expires_at,
    )


def token_matches(
    provided: str,
    stored_hash: str | None,
    stored_expiry: datetime | None,
    now: datetime | None = None,
) -> bool:
    """Check a caller-supplied token against the stored hash and expiry."""
    if not stored_hash or stored_expiry is None:
        return False
    now = now or utc_now()
    if stored_expiry <= now:
        return False
    return hmac.compare_digest(hash_token(provided), stored_hash)
