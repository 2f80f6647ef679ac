"""Security utilities - crypto, lockout policy and verification tokens.

Re-exports all security-related functions for convenience.
"""

from src.identity.core.security.crypto import (
    AccessTokenClaims,
    create_access_token,
    create_oauth_state,
    decode_oauth_state,
    generate_random_token,
    get_dummy_password_hash,
    hash_password,
    hash_token,
    verify_access_token,
    verify_password,
)
from src.identity.core.security.lockout import (
    LockoutState,
    is_locked,
    record_failed_attempt,
    reset_lockout,
)
from src.identity.core.security.verification import (
    TokenUnit,
    VerificationToken,
    create_verification_token,
    token_matches,
)

__all__ = [
    # Crypto
    "AccessTokenClaims",
    "create_access_token",
    "create_oauth_state",
    "decode_oauth_state",
    "generate_random_token",
    "get_dummy_password_hash",
    "hash_password",
    "hash_token",
    "verify_access_token",
    "verify_password",
    # Lockout
    "LockoutState",
    "is_locked",
    "record_failed_attempt",
    "reset_lockout",
    # Verification tokens
    "TokenUnit",
    "VerificationToken",
    "create_verification_token",
    "token_matches",
]
