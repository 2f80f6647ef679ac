"""Password service - forgot-password and token-based reset."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.identity.core.config import get_settings
from src.identity.core.errors import BadRequestError
from src.identity.core.logging import get_logger
from src.identity.core.notifications import EmailSender, password_reset_message
from src.identity.core.security import (
    TokenUnit,
    create_verification_token,
    hash_password,
    hash_token,
    reset_lockout,
    token_matches,
)
from src.identity.models import Account, TokenField
from src.identity.models.base import utc_now
from src.identity.repositories import AccountRepository
from src.identity.services.session_service import SessionService

logger = get_logger(__name__)

INVALID_RESET_TOKEN = "Invalid or expired password reset token"


class PasswordService:
    def __init__(
        self,
        account_repo: AccountRepository,
        session_service: SessionService,
        session: AsyncSession,
        email_sender: EmailSender,
    ):
        self.account_repo = account_repo
        self.session_service = session_service
        self.session = session
        self.email_sender = email_sender

    async def forgot_password(self, email: str, redirect_url: str) -> None:
        """Issue a reset token and email it.

        Does nothing for unknown addresses, and delivery failures are only
        logged, so callers cannot tell whether an account exists.
        """
        settings = get_settings()
        account = await self.account_repo.get_by_email(email)
        if account is None:
            logger.info("Password reset requested for unknown email")
            return

        token = create_verification_token(settings.password_reset_expire_minutes, TokenUnit.MINUTES)
        try:
            account.password_reset_token_hash = token.hashed
            account.password_reset_expires_at = token.expires_at
            account.updated_at = utc_now()
            self.account_repo.add(account)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        try:
            await self.email_sender.send(
                account.email,
                password_reset_message(account.full_name, token.plaintext, redirect_url),
            )
        except Exception as e:
            logger.error(
                "Failed to send password reset email",
                account_id=str(account.id),
                error=str(e),
            )
            return

        logger.info("Password reset email sent", account_id=str(account.id))

    async def reset_password(self, token: str, new_password: str) -> Account:
        """Set a new password using a reset token.

        Also unlocks the account, marks the email verified (the reset link
        proves mailbox ownership) and revokes every session. The token is
        cleared by the same conditional update that sets the password, so
        of two concurrent resets with one token only the first succeeds.
        """
        now = utc_now()
        token_hash = hash_token(token)
        account = await self.account_repo.get_by_token_hash(
            TokenField.PASSWORD_RESET, token_hash, now
        )
        if account is None or not token_matches(
            token,
            account.password_reset_token_hash,
            account.password_reset_expires_at,
            now,
        ):
            logger.info("Password reset rejected")
            raise BadRequestError(INVALID_RESET_TOKEN)

        was_locked = account.is_locked
        was_unverified = not account.email_verified

        lockout = reset_lockout()
        values: dict[str, Any] = {
            "password_hash": hash_password(new_password),
            "password_reset_token_hash": None,
            "password_reset_expires_at": None,
            "is_locked": lockout.is_locked,
            "locked_until": lockout.locked_until,
            "failed_attempt_count": lockout.failed_attempt_count,
            "updated_at": now,
        }
        if was_unverified:
            # Nothing can confirm a pending address once the token slot is cleared
            values.update(
                email_verified=True,
                email_verification_token_hash=None,
                email_verification_expires_at=None,
                pending_email=None,
            )

        try:
            consumed = await self.account_repo.consume_token(
                TokenField.PASSWORD_RESET, token_hash, now, values
            )
            if consumed == 0:
                logger.info("Password reset token already used", account_id=str(account.id))
                raise BadRequestError(INVALID_RESET_TOKEN)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        for name, value in values.items():
            setattr(account, name, value)

        revoked = await self.session_service.revoke_all(account.id)
        logger.info(
            "Password reset",
            account_id=str(account.id),
            unlocked=was_locked,
            verified=was_unverified,
            sessions_revoked=revoked,
        )
        return account
