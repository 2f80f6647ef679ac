"""Repository for AuthSession entity."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select

from src.identity.models import Account, AuthSession
from src.identity.models.base import utc_now
from src.identity.repositories.base import BaseRepository


class AuthSessionRepository(BaseRepository[AuthSession]):
    """Repository for refresh-token sessions."""

    model = AuthSession

    async def get_active_by_hash(
        self, token_hash: str, now: datetime | None = None
    ) -> AuthSession | None:
        """Get an unexpired session by its refresh-token hash."""
        result = await self.session.execute(
            select(AuthSession).where(
                AuthSession.token_hash == token_hash,
                AuthSession.expires_at > (now or utc_now()),
            )
        )
        return result.scalar_one_or_none()

    async def get_active_with_account(
        self, token_hash: str, now: datetime | None = None
    ) -> tuple[AuthSession, Account | None] | None:
        """Get an unexpired session joined with its owning account.

        The account is None if it no longer exists.
        """
        result = await self.session.execute(
            select(AuthSession, Account)
            .outerjoin(Account, Account.id == AuthSession.account_id)  # type: ignore[arg-type]
            .where(
                AuthSession.token_hash == token_hash,
                AuthSession.expires_at > (now or utc_now()),
            )
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def delete_by_hash(self, token_hash: str) -> int:
        """Delete the session with this token hash. Returns rows deleted."""
        stmt = delete(AuthSession).where(AuthSession.token_hash == token_hash)  # type: ignore[arg-type]
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def delete_all_for_account(self, account_id: UUID) -> int:
        """Delete every session owned by an account. Returns rows deleted."""
        stmt = delete(AuthSession).where(AuthSession.account_id == account_id)  # type: ignore[arg-type]
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def delete_expired(self, now: datetime | None = None) -> int:
        """Delete sessions past their expiry. Returns rows deleted."""
        stmt = delete(AuthSession).where(AuthSession.expires_at <= (now or utc_now()))  # type: ignore[arg-type]
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]
