"""Session service - refresh-token issuance, rotation and revocation."""

from datetime import timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.identity.core.config import get_settings
from src.identity.core.errors import InvalidOrExpiredTokenError
from src.identity.core.logging import get_logger
from src.identity.core.security import create_access_token, generate_random_token, hash_token
from src.identity.models import Account, AuthSession
from src.identity.models.base import utc_now
from src.identity.repositories import AuthSessionRepository
from src.identity.schemas.auth import TokenPair

logger = get_logger(__name__)

REFRESH_TOKEN_BYTES = 40
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"


class SessionService:
    """Issues, rotates and revokes refresh-token sessions.

    Refresh tokens are opaque random strings; only their SHA256 hash is
    stored. Rotation is hard: the old session is deleted before a new one
    is created, and a rotation only succeeds if its delete removed the row.
    """

    def __init__(self, session_repo: AuthSessionRepository, session: AsyncSession):
        self.session_repo = session_repo
        self.session = session

    async def create_session(
        self,
        account: Account,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[AuthSession, str]:
        """Create a session and return it with the plaintext refresh token.

        The session is added but not committed.
        """
        settings = get_settings()
        refresh_token = generate_random_token(REFRESH_TOKEN_BYTES)
        auth_session = AuthSession(
            account_id=account.id,
            token_hash=hash_token(refresh_token),
            user_agent=user_agent or None,
            ip_address=ip_address or None,
            expires_at=utc_now() + timedelta(days=settings.refresh_token_expire_days),
        )
        self.session_repo.add(auth_session)
        return auth_session, refresh_token

    def _token_pair(self, account: Account, refresh_token: str) -> TokenPair:
        settings = get_settings()
        return TokenPair(
            access_token=create_access_token(account.id, account.email),
            refresh_token=refresh_token,
            expires_in=settings.access_token_expire_minutes * 60,
        )

    async def issue_token_pair(
        self,
        account: Account,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        """Mint an access token and persist a new refresh-token session."""
        try:
            auth_session, refresh_token = await self.create_session(account, user_agent, ip_address)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Session created", account_id=str(account.id), session_id=str(auth_session.id))
        return self._token_pair(account, refresh_token)

    async def rotate(
        self,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        """Exchange a refresh token for a new pair, invalidating the old one.

        Of several concurrent rotations of the same token at most one
        succeeds; the others find no row to delete and fail.
        """
        token_hash = hash_token(refresh_token)
        try:
            found = await self.session_repo.get_active_with_account(token_hash, utc_now())
            if found is None:
                raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN)

            old_session, account = found
            if account is None:
                logger.warning("Refresh token owner missing", session_id=str(old_session.id))
                raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN)

            deleted = await self.session_repo.delete_by_hash(token_hash)
            if deleted != 1:
                logger.info("Refresh token already rotated", account_id=str(account.id))
                raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN)

            _, new_refresh_token = await self.create_session(account, user_agent, ip_address)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Refresh token rotated", account_id=str(account.id))
        return self._token_pair(account, new_refresh_token)

    async def get_active_session(self, refresh_token: str) -> AuthSession | None:
        """Return the unexpired session for a refresh token, if any."""
        return await self.session_repo.get_active_by_hash(hash_token(refresh_token), utc_now())

    async def revoke(self, refresh_token: str) -> bool:
        """Delete the session for this refresh token.

        Returns False if no session matched.
        """
        try:
            deleted = await self.session_repo.delete_by_hash(hash_token(refresh_token))
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if deleted == 0:
            logger.info("Revoke requested for unknown refresh token")
        return deleted > 0

    async def revoke_all(self, account_id: UUID) -> int:
        """Delete every session of an account. Returns the number deleted."""
        try:
            count = await self.session_repo.delete_all_for_account(account_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("All sessions revoked", account_id=str(account_id), session_count=count)
        return count

    async def cleanup_expired(self) -> int:
        """Delete sessions past their expiry."""
        try:
            count = await self.session_repo.delete_expired(utc_now())
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return count
