"""Repository for Account entity."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_, update
from sqlmodel import select

from src.identity.core.security.lockout import LockoutState
from src.identity.models import Account, TokenField
from src.identity.models.base import utc_now
from src.identity.repositories.base import BaseRepository

_TOKEN_COLUMNS: dict[TokenField, tuple[Any, Any]] = {
    TokenField.EMAIL_VERIFICATION: (
        Account.email_verification_token_hash,
        Account.email_verification_expires_at,
    ),
    TokenField.PASSWORD_RESET: (
        Account.password_reset_token_hash,
        Account.password_reset_expires_at,
    ),
}


class AccountRepository(BaseRepository[Account]):
    """Repository for Account entity."""

    model = Account

    async def get_by_email(self, email: str) -> Account | None:
        """Get account by canonical (lowercased) email address."""
        result = await self.session.execute(
            select(Account).where(Account.email == email.lower().strip())
        )
        return result.scalar_one_or_none()

    async def list_by_email_or_phone(
        self,
        email: str | None = None,
        phone: str | None = None,
        exclude_id: UUID | None = None,
    ) -> list[Account]:
        """Find every account holding either identifier.

        Email and phone may belong to two different accounts. Returns an
        empty list when neither identifier is given.
        """
        conditions = []
        if email:
            conditions.append(Account.email == email.lower().strip())
        if phone:
            conditions.append(Account.phone == phone)
        if not conditions:
            return []

        query = select(Account).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(Account.id != exclude_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def email_taken_by_other(self, email: str, account_id: UUID) -> bool:
        """Check whether another account already owns ``email``."""
        result = await self.session.execute(
            select(Account.id).where(
                Account.email == email.lower().strip(),
                Account.id != account_id,
            )
        )
        return result.first() is not None

    async def get_by_token_hash(
        self, field: TokenField, token_hash: str, now: datetime | None = None
    ) -> Account | None:
        """Find the account holding an unexpired token hash in ``field``."""
        hash_column, expires_column = _TOKEN_COLUMNS[field]
        result = await self.session.execute(
            select(Account).where(
                hash_column == token_hash,
                expires_column > (now or utc_now()),
            )
        )
        return result.scalars().first()

    async def consume_token(
        self,
        field: TokenField,
        token_hash: str,
        now: datetime,
        values: dict[str, Any],
    ) -> int:
        """Apply ``values`` only where ``field`` still holds this unexpired hash.

        ``values`` must clear the token columns so the same hash cannot match
        twice. Returns the number of rows updated; 0 means another request
        consumed the token first.
        """
        hash_column, expires_column = _TOKEN_COLUMNS[field]
        stmt = (
            update(Account)
            .where(hash_column == token_hash, expires_column > now)
            .values(**values)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def delete_unverified(self, account_id: UUID) -> int:
        """Delete the account only if it is still unverified.

        Returns the number of rows deleted (0 if it was verified meanwhile).
        """
        stmt = delete(Account).where(
            Account.id == account_id,  # type: ignore[arg-type]
            Account.email_verified == False,  # type: ignore[arg-type]  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def compare_and_set_lockout(
        self, account_id: UUID, expected_count: int, state: LockoutState
    ) -> bool:
        """Write lockout state only if the failed-attempt count is unchanged.

        Two concurrent failed logins read the same count; only one of them
        can win this update, the other must reload and retry.
        """
        stmt = (
            update(Account)
            .where(Account.id == account_id)  # type: ignore[arg-type]
            .where(Account.failed_attempt_count == expected_count)  # type: ignore[arg-type]
            .values(
                is_locked=state.is_locked,
                locked_until=state.locked_until,
                failed_attempt_count=state.failed_attempt_count,
                updated_at=utc_now(),
            )
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]
