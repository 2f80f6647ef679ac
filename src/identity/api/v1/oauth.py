"""OAuth redirect endpoints for Google and GitHub sign-in."""

from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from starlette.requests import Request

from src.identity.api.dependencies import OAuthServiceDep
from src.identity.api.v1.auth import client_info
from src.identity.core.errors import BadRequestError, NotFoundError
from src.identity.core.logging import get_logger
from src.identity.core.oauth import OAuthClient, get_oauth_client
from src.identity.core.security import create_oauth_state, decode_oauth_state
from src.identity.models import AuthProvider
from src.identity.schemas import AccountRead, ApiResponse, AuthResult
from src.identity.schemas.validators import validate_redirect_url

logger = get_logger(__name__)

router = APIRouter(prefix="/oauth", tags=["oauth"])


def get_provider_client(provider: AuthProvider) -> OAuthClient:
    """Client for a configured provider; 404 when the provider is disabled."""
    client = get_oauth_client(provider)
    if client is None:
        raise NotFoundError(f"OAuth provider '{provider}' is not configured")
    return client


ProviderClient = Annotated[OAuthClient, Depends(get_provider_client)]


def append_query(url: str, params: dict[str, str]) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


# Registered before /{provider} so "exchange" is never taken as a provider name.
@router.get("/exchange", response_model=ApiResponse[AuthResult])
async def exchange_login_code(
    service: OAuthServiceDep, code: Annotated[str | None, Query()] = None
) -> ApiResponse[AuthResult]:
    """Trade a one-time login code for the tokens issued at callback time."""
    record = await service.exchange_code(code)
    return ApiResponse[AuthResult](
        msg="Login successful",
        data=AuthResult(user=AccountRead.from_account(record.account), tokens=record.tokens),
    )


@router.get("/{provider}")
async def start_oauth(
    client: ProviderClient,
    redirect_url: Annotated[str, Query(alias="redirectUrl")],
    next_url: Annotated[str | None, Query(alias="nextUrl")] = None,
) -> RedirectResponse:
    try:
        redirect_url = validate_redirect_url(redirect_url)
        if next_url:
            next_url = validate_redirect_url(next_url)
    except ValueError as e:
        raise BadRequestError(str(e)) from e

    state = create_oauth_state(redirect_url, next_url)
    return RedirectResponse(client.authorize_url(state), status_code=302)


@router.get("/{provider}/callback")
async def oauth_callback(
    request: Request,
    client: ProviderClient,
    service: OAuthServiceDep,
    code: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
) -> RedirectResponse:
    """Resolve the account, park its tokens under a login code, send the browser back."""
    payload = decode_oauth_state(state) if state else None
    if payload is None:
        raise BadRequestError("Invalid or expired OAuth state")
    if not code:
        raise BadRequestError("Missing authorization code")

    account = await service.authenticate_callback(client, code)
    user_agent, ip_address = client_info(request)
    login_code = await service.create_login_code(account, user_agent, ip_address)

    params = {"code": login_code}
    if payload.get("next_url"):
        params["redirectUrl"] = payload["next_url"]
    logger.info("OAuth login completed", provider=client.provider, account_id=str(account.id))
    return RedirectResponse(append_query(payload["redirect_url"], params), status_code=302)
