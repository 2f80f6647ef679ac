"""User service - profile reads/updates and identifier conflict handling."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.identity.core.config import get_settings
from src.identity.core.errors import ConflictError
from src.identity.core.logging import get_logger
from src.identity.core.security import TokenUnit, create_verification_token, hash_password
from src.identity.models import Account
from src.identity.models.base import utc_now
from src.identity.repositories import AccountRepository
from src.identity.schemas.auth import UpdateProfileRequest
from src.identity.services.email_verification_service import EmailVerificationService

logger = get_logger(__name__)

PROFILE_UPDATED = "Profile updated successfully"
EMAIL_CHANGE_PENDING = (
    "Profile updated. Verification email sent to your new email address. "
    "Please verify to complete the email change."
)
PASSWORD_UPDATED = "Password updated successfully"


class UserService:
    """Account management outside the login flow."""

    def __init__(
        self,
        account_repo: AccountRepository,
        session: AsyncSession,
        email_verification_service: EmailVerificationService,
    ):
        self.account_repo = account_repo
        self.session = session
        self.email_verification_service = email_verification_service

    async def get_by_id(self, account_id: UUID) -> Account | None:
        return await self.account_repo.get_by_id(account_id)

    async def release_identifiers(
        self,
        email: str | None,
        phone: str | None,
        exclude_id: UUID | None = None,
        email_taken_msg: str = "Email is already taken",
        phone_taken_msg: str = "Phone number is already taken",
    ) -> None:
        """Make ``email``/``phone`` available or fail with a conflict.

        The two identifiers may be held by two different accounts. If any
        holder is verified this is a conflict and nothing is deleted.
        Otherwise the unverified holders are treated as abandoned
        registrations and deleted (not committed here). Raises
        ConflictError if a holder was verified between the lookup and the
        delete.
        """
        holders = await self.account_repo.list_by_email_or_phone(email, phone, exclude_id)
        if not holders:
            return

        normalized_email = email.lower().strip() if email else None

        def conflict_message(holder: Account) -> str:
            return email_taken_msg if holder.email == normalized_email else phone_taken_msg

        # Email conflicts are reported before phone conflicts
        holders.sort(key=lambda holder: holder.email != normalized_email)
        for holder in holders:
            if holder.email_verified:
                raise ConflictError(conflict_message(holder))

        for holder in holders:
            deleted = await self.account_repo.delete_unverified(holder.id)
            if deleted == 0:
                raise ConflictError(conflict_message(holder))
            logger.info("Deleted abandoned unverified account", account_id=str(holder.id))

    async def update_profile(
        self, account: Account, data: UpdateProfileRequest
    ) -> tuple[Account, str]:
        """Apply profile changes and return the account with a status message.

        A new email is held in ``pending_email`` until verified. If the
        verification email cannot be sent the pending email and its token
        are cleared again before the error is re-raised.
        """
        settings = get_settings()
        message = PROFILE_UPDATED

        if not data.model_fields_set:
            return account, message

        if data.email or data.phone:
            try:
                await self.release_identifiers(data.email, data.phone, exclude_id=account.id)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

        if data.email and data.email != account.email:
            token = create_verification_token(
                settings.email_verification_expire_days, TokenUnit.DAYS
            )
            try:
                account.pending_email = data.email
                account.email_verification_token_hash = token.hashed
                account.email_verification_expires_at = token.expires_at
                account.updated_at = utc_now()
                self.account_repo.add(account)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

            try:
                await self.email_verification_service.send_verification_email(
                    account,
                    token.plaintext,
                    data.redirect_url or "",
                    is_email_change=True,
                    to=data.email,
                )
            except Exception:
                account.pending_email = None
                account.clear_email_verification_token()
                account.updated_at = utc_now()
                self.account_repo.add(account)
                await self.session.commit()
                logger.warning("Rolled back pending email change", account_id=str(account.id))
                raise

            message = EMAIL_CHANGE_PENDING

        changed = False
        if data.full_name:
            account.full_name = data.full_name
            changed = True
        if data.phone and data.phone != account.phone:
            account.phone = data.phone
            account.phone_verified = False
            changed = True
        if data.password:
            account.password_hash = hash_password(data.password)
            message = PASSWORD_UPDATED
            changed = True

        if changed:
            account.updated_at = utc_now()
            self.account_repo.add(account)
            try:
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise
            logger.info(
                "Profile updated",
                account_id=str(account.id),
                password_changed=bool(data.password),
            )

        return account, message
