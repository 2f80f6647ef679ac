"""Account and session factories for test data generation."""

from datetime import timedelta

from polyfactory import Use

from src.identity.core.security import generate_random_token, hash_password, hash_token
from src.identity.models import Account, AuthProvider, AuthSession
from tests.factories.base import BaseFactory, generate_uuid, utc_now

# Default test password - satisfies the password rules
DEFAULT_TEST_PASSWORD = "Passw0rd!"


class AccountFactory(BaseFactory):
    """Factory for a verified email + password account."""

    __model__ = Account

    id = Use(generate_uuid)
    full_name = "Test User"
    email = Use(lambda: f"user_{generate_uuid().hex[-8:]}@example.com")
    phone = None
    avatar_url = None
    email_verified = True
    email_verification_token_hash = None
    email_verification_expires_at = None
    pending_email = None
    auth_provider = None
    phone_verified = False
    password_hash = Use(lambda: hash_password(DEFAULT_TEST_PASSWORD))
    password_reset_token_hash = None
    password_reset_expires_at = None
    is_locked = False
    locked_until = None
    failed_attempt_count = 0
    is_active = True
    last_login_at = None
    created_at = Use(utc_now)
    updated_at = Use(utc_now)

    @classmethod
    def unverified(cls, **kwargs):
        return cls.build(email_verified=False, **kwargs)

    @classmethod
    def oauth_only(cls, provider: AuthProvider = AuthProvider.GOOGLE, **kwargs):
        return cls.build(password_hash=None, auth_provider=provider.value, **kwargs)

    @classmethod
    def locked(cls, minutes: int = 15, attempts: int = 5, **kwargs):
        return cls.build(
            is_locked=True,
            locked_until=utc_now() + timedelta(minutes=minutes),
            failed_attempt_count=attempts,
            **kwargs,
        )


class AuthSessionFactory(BaseFactory):
    """Factory for refresh-token sessions.

    ``build_with_token`` also returns the plaintext refresh token.
    """

    __model__ = AuthSession

    id = Use(generate_uuid)
    token_hash = Use(lambda: hash_token(generate_random_token(40)))
    user_agent = "pytest"
    ip_address = "127.0.0.1"
    expires_at = Use(lambda: utc_now() + timedelta(days=7))
    created_at = Use(utc_now)
    updated_at = Use(utc_now)

    @classmethod
    def build_with_token(cls, **kwargs) -> tuple[AuthSession, str]:
        token = generate_random_token(40)
        return cls.build(token_hash=hash_token(token), **kwargs), token
