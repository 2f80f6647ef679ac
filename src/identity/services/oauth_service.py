"""OAuth service - maps federated identities to local accounts."""

from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.identity.core.errors import BadRequestError
from src.identity.core.logging import get_logger
from src.identity.core.login_exchange import LoginExchangeRecord, LoginExchangeStore
from src.identity.core.oauth import OAuthClient
from src.identity.models import Account, AuthProvider
from src.identity.models.base import utc_now
from src.identity.repositories import AccountRepository
from src.identity.services.session_service import SessionService

logger = get_logger(__name__)


@dataclass(frozen=True)
class OAuthIdentity:
    email: str
    display_name: str
    provider: AuthProvider
    avatar_url: str | None = None
    is_verified: bool = True


class OAuthService:
    """Resolves provider identities and bridges OAuth redirects to tokens.

    Accounts are matched by email only: the same address arriving from two
    providers resolves to one account.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        session_service: SessionService,
        login_store: LoginExchangeStore,
        session: AsyncSession,
    ):
        self.account_repo = account_repo
        self.session_service = session_service
        self.login_store = login_store
        self.session = session

    async def resolve(self, identity: OAuthIdentity) -> Account:
        """Return the account for this email, creating it if absent.

        Existing accounts are returned unchanged.
        """
        email = identity.email.lower().strip()
        existing = await self.account_repo.get_by_email(email)
        if existing is not None:
            return existing

        account = Account(
            full_name=identity.display_name,
            email=email,
            avatar_url=identity.avatar_url,
            email_verified=True,
            auth_provider=identity.provider.value,
            password_hash=None,
            is_active=True,
            last_login_at=utc_now(),
        )
        try:
            self.account_repo.add(account)
            await self.session.commit()
        except IntegrityError:
            # A concurrent callback created the account first
            await self.session.rollback()
            existing = await self.account_repo.get_by_email(email)
            if existing is None:
                raise
            return existing

        logger.info(
            "Account created from OAuth",
            account_id=str(account.id),
            provider=identity.provider.value,
        )
        return account

    async def resolve_google(self, profile: dict[str, Any]) -> Account:
        email = profile.get("email")
        display_name = profile.get("name") or profile.get("given_name")
        if not email:
            raise BadRequestError("No email found in OAuth profile")
        if not display_name:
            raise BadRequestError("No display name found in OAuth profile")

        return await self.resolve(
            OAuthIdentity(
                email=email,
                display_name=display_name,
                provider=AuthProvider.GOOGLE,
                avatar_url=profile.get("picture"),
            )
        )

    async def resolve_github(
        self, profile: dict[str, Any], access_token: str, client: OAuthClient
    ) -> Account:
        """Resolve a GitHub profile, fetching the email list if it is private."""
        email = profile.get("email")
        if not email:
            try:
                emails = await client.fetch_emails(access_token)
            except (httpx.HTTPError, ValueError) as e:
                logger.error("Failed to fetch GitHub user emails", error=str(e))
                raise BadRequestError("Unable to retrieve user email from GitHub") from e
            email = select_github_email(emails)

        if not email:
            raise BadRequestError("No email found for GitHub user")

        display_name = profile.get("name") or profile.get("login")
        if not display_name:
            raise BadRequestError("No display name found in GitHub profile")

        return await self.resolve(
            OAuthIdentity(
                email=email,
                display_name=display_name,
                provider=AuthProvider.GITHUB,
                avatar_url=profile.get("avatar_url"),
            )
        )

    async def authenticate_callback(self, client: OAuthClient, code: str) -> Account:
        """Run the provider side of a callback and resolve the account."""
        access_token = await client.exchange_code(code)
        profile = await client.fetch_profile(access_token)
        if client.provider == AuthProvider.GITHUB:
            return await self.resolve_github(profile, access_token, client)
        return await self.resolve_google(profile)

    async def create_login_code(
        self,
        account: Account,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> str:
        """Issue a token pair and park it under a one-time login code."""
        tokens = await self.session_service.issue_token_pair(account, user_agent, ip_address)
        return await self.login_store.issue(account, tokens)

    async def exchange_code(self, code: str | None) -> LoginExchangeRecord:
        """Redeem a login code. Each code works once."""
        if not code:
            raise BadRequestError("Missing login code")
        record = await self.login_store.consume(code)
        if record is None:
            raise BadRequestError("Invalid or expired login code")
        return record


def select_github_email(emails: list[dict[str, Any]]) -> str | None:
    """Pick the primary address, falling back to the first entry.

    Entries that are not objects are ignored.
    """
    entries = [e for e in emails if isinstance(e, dict)]
    primary = next((e.get("email") for e in entries if e.get("primary")), None)
    if primary:
        return primary
    return entries[0].get("email") if entries else None
