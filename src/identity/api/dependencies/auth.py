"""Authentication dependencies."""

from typing import Annotated

from fastapi import Depends, Header

from src.identity.api.dependencies.services import AuthServiceDep
from src.identity.core.errors import InvalidOrExpiredTokenError, UnauthorizedError
from src.identity.core.logging import bind_account_context
from src.identity.models import Account

REFRESH_TOKEN_HEADER = "X-Refresh-Token"
REFRESH_TOKEN_MIN_LENGTH = 40
REFRESH_TOKEN_MAX_LENGTH = 200


def extract_bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing or invalid authorization header")
    token = authorization[7:].strip()
    if not token:
        raise UnauthorizedError("Missing or invalid authorization header")
    return token


def validate_refresh_header(refresh_token: str | None) -> str:
    if not refresh_token:
        raise UnauthorizedError("Missing refresh token")
    if not REFRESH_TOKEN_MIN_LENGTH <= len(refresh_token) <= REFRESH_TOKEN_MAX_LENGTH:
        raise InvalidOrExpiredTokenError("Invalid or expired refresh token")
    return refresh_token


async def get_refresh_token(
    x_refresh_token: Annotated[str | None, Header()] = None,
) -> str:
    """Refresh token from the X-Refresh-Token header."""
    return validate_refresh_header(x_refresh_token)


RefreshToken = Annotated[str, Depends(get_refresh_token)]


async def get_current_account(
    service: AuthServiceDep,
    refresh_token: RefreshToken,
    authorization: Annotated[str | None, Header()] = None,
) -> Account:
    """Require both a valid access token and an active refresh-token session."""
    access_token = extract_bearer_token(authorization)
    account = await service.authenticate_request(access_token, refresh_token)
    bind_account_context(account.id, account.email)
    return account


CurrentAccount = Annotated[Account, Depends(get_current_account)]
