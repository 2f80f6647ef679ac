"""Registration service - creates unverified accounts."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.identity.core.config import get_settings
from src.identity.core.errors import ConflictError
from src.identity.core.logging import get_logger
from src.identity.core.security import TokenUnit, create_verification_token, hash_password
from src.identity.models import Account
from src.identity.repositories import AccountRepository
from src.identity.services.email_verification_service import EmailVerificationService
from src.identity.services.user_service import UserService

logger = get_logger(__name__)


class RegistrationService:
    """Service for email + password registration."""

    def __init__(
        self,
        account_repo: AccountRepository,
        session: AsyncSession,
        user_service: UserService,
        email_verification_service: EmailVerificationService,
    ):
        self.account_repo = account_repo
        self.session = session
        self.user_service = user_service
        self.email_verification_service = email_verification_service

    async def register(
        self,
        full_name: str,
        email: str,
        phone: str | None,
        password: str,
        redirect_url: str,
    ) -> tuple[Account, str]:
        """Create an unverified account and send its verification email.

        An existing unverified account holding the email or phone is
        replaced; a verified one is a conflict. A failed verification email
        is logged and does not undo the registration.

        Returns (account, plaintext verification token).
        """
        settings = get_settings()
        email = email.lower().strip()

        token = create_verification_token(settings.email_verification_expire_days, TokenUnit.DAYS)
        account = Account(
            full_name=full_name,
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            email_verified=False,
            email_verification_token_hash=token.hashed,
            email_verification_expires_at=token.expires_at,
        )

        try:
            await self.user_service.release_identifiers(
                email,
                phone,
                email_taken_msg="User with this email already exists",
                phone_taken_msg="User with this phone number already exists",
            )
            self.account_repo.add(account)
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same identifier
            await self.session.rollback()
            raise ConflictError("User with this email or phone number already exists") from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Account registered", account_id=str(account.id))

        try:
            await self.email_verification_service.send_verification_email(
                account, token.plaintext, redirect_url
            )
        except Exception as e:
            # Log error but don't fail registration - user can resend verification
            logger.error(
                "Failed to send verification email during registration",
                account_id=str(account.id),
                error=str(e),
            )

        return account, token.plaintext
