"""Authentication service - login with lockout, logout, per-request auth."""

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.identity.core.config import get_settings
from src.identity.core.errors import (
    ForbiddenError,
    InternalError,
    InvalidOrExpiredTokenError,
    LockedError,
    UnauthorizedError,
)
from src.identity.core.logging import get_logger
from src.identity.core.security import (
    LockoutState,
    get_dummy_password_hash,
    is_locked,
    record_failed_attempt,
    reset_lockout,
    verify_access_token,
    verify_password,
)
from src.identity.models import Account
from src.identity.models.base import utc_now
from src.identity.repositories import AccountRepository
from src.identity.schemas.auth import TokenPair
from src.identity.services.session_service import INVALID_REFRESH_TOKEN, SessionService

logger = get_logger(__name__)

# Retries for the compare-and-set failed-attempt update under contention
MAX_LOCKOUT_UPDATE_RETRIES = 5

INVALID_CREDENTIALS = "Invalid email or password!"
SOCIAL_ACCOUNT_NO_PASSWORD = (
    "You signed in with a social account. To log in with a password, "
    "please set one using 'Forgot Password'."
)
EMAIL_NOT_VERIFIED = "Please verify your email before logging in"


@dataclass
class LoginResult:
    account: Account | None
    valid: bool


class AuthService:
    """Password login, logout and request authentication."""

    def __init__(
        self,
        account_repo: AccountRepository,
        session_service: SessionService,
        session: AsyncSession,
    ):
        self.account_repo = account_repo
        self.session_service = session_service
        self.session = session

    async def authenticate(self, email: str, password: str) -> LoginResult:
        """Check credentials without issuing tokens.

        Unknown email and wrong password both come back as ``valid=False``;
        a wrong password also counts towards the lockout threshold.
        Raises ForbiddenError for social-only or unverified accounts and
        LockedError while the account is locked.
        """
        account = await self.account_repo.get_by_email(email)

        if account is None:
            # Keep the response time close to a real password check
            verify_password(password, get_dummy_password_hash())
            return LoginResult(account=None, valid=False)

        if account.is_oauth_only:
            raise ForbiddenError(SOCIAL_ACCOUNT_NO_PASSWORD)

        if not account.email_verified:
            raise ForbiddenError(EMAIL_NOT_VERIFIED)

        if is_locked(account.lockout, utc_now()):
            raise LockedError()

        if not verify_password(password, account.password_hash):
            await self._record_failed_attempt(account)
            return LoginResult(account=account, valid=False)

        try:
            if account.failed_attempt_count > 0 or account.is_locked:
                account.apply_lockout(reset_lockout())
            account.last_login_at = utc_now()
            self.account_repo.add(account)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return LoginResult(account=account, valid=True)

    async def _record_failed_attempt(self, account: Account) -> LockoutState:
        """Increment the failed-attempt counter atomically, locking if needed."""
        settings = get_settings()
        lock_duration = timedelta(minutes=settings.login_lock_minutes)

        try:
            for _ in range(MAX_LOCKOUT_UPDATE_RETRIES):
                state = record_failed_attempt(
                    account.lockout, settings.max_login_attempts, lock_duration, utc_now()
                )
                if await self.account_repo.compare_and_set_lockout(
                    account.id, account.failed_attempt_count, state
                ):
                    await self.session.commit()
                    account.apply_lockout(state)
                    break
                # Another request changed the counter; reload and recount
                await self.account_repo.refresh(account)
            else:
                raise InternalError("Could not record failed login attempt")
        except Exception:
            await self.session.rollback()
            raise

        if state.is_locked:
            logger.warning(
                "Account locked after failed login attempts",
                account_id=str(account.id),
                failed_attempts=state.failed_attempt_count,
            )
        else:
            logger.info(
                "Failed login attempt",
                account_id=str(account.id),
                failed_attempts=state.failed_attempt_count,
            )
        return state

    async def login(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[Account, TokenPair]:
        """Authenticate and issue a token pair. Raises UnauthorizedError if invalid."""
        result = await self.authenticate(email, password)
        if not result.valid or result.account is None:
            raise UnauthorizedError(INVALID_CREDENTIALS)

        tokens = await self.session_service.issue_token_pair(
            result.account, user_agent, ip_address
        )
        logger.info("Login successful", account_id=str(result.account.id))
        return result.account, tokens

    async def refresh(
        self,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        return await self.session_service.rotate(refresh_token, user_agent, ip_address)

    async def logout(self, account: Account, refresh_token: str | None = None) -> None:
        """Revoke the presented session, or every session if none is given."""
        if refresh_token:
            await self.session_service.revoke(refresh_token)
        else:
            await self.session_service.revoke_all(account.id)
        logger.info("Logout", account_id=str(account.id), all_sessions=not refresh_token)

    async def logout_all(self, account: Account) -> int:
        return await self.session_service.revoke_all(account.id)

    async def authenticate_request(self, access_token: str, refresh_token: str) -> Account:
        """Resolve the account behind an access token + refresh token pair.

        The refresh token must still map to an active session, so revoking a
        session also invalidates access tokens issued alongside it.
        """
        claims = verify_access_token(access_token)

        auth_session = await self.session_service.get_active_session(refresh_token)
        if auth_session is None:
            raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN)
        if auth_session.account_id != claims.account_id:
            logger.warning(
                "Refresh token does not belong to access token subject",
                account_id=str(claims.account_id),
            )
            raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN)

        account = await self.account_repo.get_by_id(claims.account_id)
        if account is None or not account.is_active:
            raise UnauthorizedError("User not found or inactive")

        if is_locked(account.lockout, utc_now()):
            raise LockedError("Account is locked due to multiple failed login attempts")

        return account
