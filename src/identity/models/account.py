"""Account model - the identity record and its auth state."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.identity.core.security.lockout import LockoutState
from src.identity.models.base import utc_now


@dataclass(frozen=True)
class EmailVerificationInfo:
    is_verified: bool
    hashed_token: str | None
    token_expires_at: datetime | None
    pending_email: str | None
    provider: str | None


@dataclass(frozen=True)
class PasswordCredential:
    hash: str | None
    hashed_reset_token: str | None
    reset_token_expires_at: datetime | None


class Account(SQLModel, table=True):
    """Identity record.

    Email verification, password credential and lockout state are stored as
    flat columns; the value-object properties below give the grouped view.
    """

    __tablename__ = "accounts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    full_name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True, index=True)
    phone: str | None = Field(default=None, max_length=20, unique=True, index=True)
    avatar_url: str | None = Field(default=None, max_length=2048)

    # Email verification
    email_verified: bool = Field(default=False)
    email_verification_token_hash: str | None = Field(default=None, max_length=64, index=True)
    email_verification_expires_at: datetime | None = Field(default=None)
    pending_email: str | None = Field(default=None, max_length=255)
    auth_provider: str | None = Field(default=None, max_length=20)
    phone_verified: bool = Field(default=False)

    # Password credential (null for OAuth-only accounts)
    password_hash: str | None = Field(default=None, max_length=255)
    password_reset_token_hash: str | None = Field(default=None, max_length=64, index=True)
    password_reset_expires_at: datetime | None = Field(default=None)

    # Lockout
    is_locked: bool = Field(default=False)
    locked_until: datetime | None = Field(default=None)
    failed_attempt_count: int = Field(default=0)

    is_active: bool = Field(default=True)
    last_login_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def lockout(self) -> LockoutState:
        return LockoutState(
            is_locked=self.is_locked,
            locked_until=self.locked_until,
            failed_attempt_count=self.failed_attempt_count,
        )

    @property
    def email_verification(self) -> EmailVerificationInfo:
        return EmailVerificationInfo(
            is_verified=self.email_verified,
            hashed_token=self.email_verification_token_hash,
            token_expires_at=self.email_verification_expires_at,
            pending_email=self.pending_email,
            provider=self.auth_provider,
        )

    @property
    def password_credential(self) -> PasswordCredential:
        return PasswordCredential(
            hash=self.password_hash,
            hashed_reset_token=self.password_reset_token_hash,
            reset_token_expires_at=self.password_reset_expires_at,
        )

    @property
    def is_oauth_only(self) -> bool:
        """Created through a provider and never given a password."""
        return self.password_hash is None and self.auth_provider is not None

    def apply_lockout(self, state: LockoutState) -> None:
        self.is_locked = state.is_locked
        self.locked_until = state.locked_until
        self.failed_attempt_count = state.failed_attempt_count

    def clear_email_verification_token(self) -> None:
        self.email_verification_token_hash = None
        self.email_verification_expires_at = None

    def clear_password_reset_token(self) -> None:
        self.password_reset_token_hash = None
        self.password_reset_expires_at = None
