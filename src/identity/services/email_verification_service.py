"""Email verification service."""

from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.identity.core.config import get_settings
from src.identity.core.errors import ConflictError, ForbiddenError
from src.identity.core.logging import get_logger
from src.identity.core.notifications import EmailSender, email_verification_message
from src.identity.core.security import (
    TokenUnit,
    create_verification_token,
    hash_token,
    token_matches,
)
from src.identity.models import Account, TokenField
from src.identity.models.base import utc_now
from src.identity.repositories import AccountRepository

logger = get_logger(__name__)

INVALID_VERIFICATION_TOKEN = "Invalid or expired email verification token"
EMAIL_IN_USE = "Email address is already in use"


class EmailVerificationService:
    """Service for email verification operations.

    The same token slot on the account serves both the initial
    verification and the confirmation of an email change; issuing a new
    token supersedes any outstanding one.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        session: AsyncSession,
        email_sender: EmailSender,
    ):
        self.account_repo = account_repo
        self.session = session
        self.email_sender = email_sender

    async def send_verification_email(
        self,
        account: Account,
        token: str,
        redirect_url: str,
        is_email_change: bool = False,
        to: str | None = None,
    ) -> None:
        """Send the verification link. Raises EmailDeliveryError on failure."""
        message = email_verification_message(
            account.full_name, token, redirect_url, is_email_change=is_email_change
        )
        await self.email_sender.send(to or account.email, message)
        logger.info(
            "Verification email sent",
            account_id=str(account.id),
            is_email_change=is_email_change,
        )

    async def verify_email(self, token: str) -> tuple[Account, bool]:
        """Consume a verification token.

        Promotes a pending email to the canonical address if one is set.
        The token is cleared by the same conditional update that marks the
        email verified, so a token can only be spent once.

        Returns:
            (account, is_newly_verified) - the flag is False when the account
            was already verified (e.g. confirming an email change).
        """
        now = utc_now()
        token_hash = hash_token(token)
        account = await self.account_repo.get_by_token_hash(
            TokenField.EMAIL_VERIFICATION, token_hash, now
        )
        if account is None or not token_matches(
            token,
            account.email_verification_token_hash,
            account.email_verification_expires_at,
            now,
        ):
            logger.info("Email verification rejected")
            raise ForbiddenError(INVALID_VERIFICATION_TOKEN)

        is_newly_verified = not account.email_verified
        pending_email = account.pending_email

        values: dict[str, Any] = {
            "email_verified": True,
            "pending_email": None,
            "email_verification_token_hash": None,
            "email_verification_expires_at": None,
            "updated_at": now,
        }
        if pending_email:
            values["email"] = pending_email

        try:
            if pending_email and await self.account_repo.email_taken_by_other(
                pending_email, account.id
            ):
                raise ConflictError(EMAIL_IN_USE)

            consumed = await self.account_repo.consume_token(
                TokenField.EMAIL_VERIFICATION, token_hash, now, values
            )
            if consumed == 0:
                logger.info("Verification token already used", account_id=str(account.id))
                raise ForbiddenError(INVALID_VERIFICATION_TOKEN)
            await self.session.commit()
        except IntegrityError as e:
            # The pending address was claimed between the check and the update
            await self.session.rollback()
            raise ConflictError(EMAIL_IN_USE) from e
        except Exception:
            await self.session.rollback()
            raise

        for name, value in values.items():
            setattr(account, name, value)

        logger.info(
            "Email verified",
            account_id=str(account.id),
            is_newly_verified=is_newly_verified,
            was_email_change=bool(pending_email),
        )
        return account, is_newly_verified

    async def resend_verification(self, email: str, redirect_url: str) -> bool:
        """Issue a fresh verification token and email it.

        Silent for unknown or already verified addresses so the response
        does not reveal which accounts exist.

        Returns:
            True if an email was sent.
        """
        settings = get_settings()
        account = await self.account_repo.get_by_email(email)
        if account is None:
            logger.info("Resend requested for unknown email")
            return False
        if account.email_verified:
            logger.info("Resend requested for verified account", account_id=str(account.id))
            return False

        token = create_verification_token(settings.email_verification_expire_days, TokenUnit.DAYS)
        try:
            account.email_verification_token_hash = token.hashed
            account.email_verification_expires_at = token.expires_at
            account.updated_at = utc_now()
            self.account_repo.add(account)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        try:
            await self.send_verification_email(account, token.plaintext, redirect_url)
        except Exception as e:
            logger.error(
                "Failed to resend verification email",
                account_id=str(account.id),
                error=str(e),
            )
            return False
        return True
