"""OAuth 2.0 provider clients for Google and GitHub.

Each client builds the provider's authorize URL, exchanges an
authorization code for a provider access token and fetches the user's
profile. Network and protocol failures raise BadRequestError; the
underlying cause is only logged.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from src.identity.core.config import Settings, get_settings
from src.identity.core.errors import BadRequestError
from src.identity.core.logging import get_logger
from src.identity.models import AuthProvider

logger = get_logger(__name__)

GITHUB_EMAIL_API = "https://api.github.com/user/emails"


@dataclass(frozen=True)
class ProviderConfig:
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    extra_params: tuple[tuple[str, str], ...] = ()


PROVIDERS: dict[AuthProvider, ProviderConfig] = {
    AuthProvider.GOOGLE: ProviderConfig(
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://openidconnect.googleapis.com/v1/userinfo",
        scope="openid profile email",
        extra_params=(("access_type", "offline"), ("prompt", "select_account")),
    ),
    AuthProvider.GITHUB: ProviderConfig(
        authorize_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        userinfo_url="https://api.github.com/user",
        scope="user:email",
    ),
}


class OAuthClient:
    """Authorization-code flow against a single provider."""

    def __init__(
        self,
        provider: AuthProvider,
        client_id: str,
        client_secret: str,
        callback_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.provider = provider
        self.config = PROVIDERS[provider]
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=False,
            transport=self._transport,
        )

    def _auth_headers(self, access_token: str) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {access_token}"}
        if self.provider == AuthProvider.GITHUB:
            headers["Accept"] = "application/vnd.github+json"
        return headers

    def authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "response_type": "code",
            "scope": self.config.scope,
            "state": state,
            **dict(self.config.extra_params),
        }
        return f"{self.config.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for a provider access token."""
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.callback_url,
            "grant_type": "authorization_code",
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    self.config.token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("OAuth code exchange failed", provider=self.provider, error=str(e))
            raise BadRequestError("OAuth authentication failed") from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            logger.error("OAuth token response missing access_token", provider=self.provider)
            raise BadRequestError("OAuth authentication failed")
        return str(access_token)

    async def fetch_profile(self, access_token: str) -> dict[str, Any]:
        """Fetch the authenticated user's profile."""
        try:
            async with self._client() as client:
                response = await client.get(
                    self.config.userinfo_url, headers=self._auth_headers(access_token)
                )
                response.raise_for_status()
                profile = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("OAuth profile fetch failed", provider=self.provider, error=str(e))
            raise BadRequestError("OAuth authentication failed") from e

        if not isinstance(profile, dict):
            logger.error("OAuth profile has unexpected format", provider=self.provider)
            raise BadRequestError("OAuth authentication failed")
        return profile

    async def fetch_emails(self, access_token: str) -> list[dict[str, Any]]:
        """Fetch the user's email list (GitHub only).

        Raises httpx errors to the caller, which decides how to report them.
        """
        async with self._client() as client:
            response = await client.get(GITHUB_EMAIL_API, headers=self._auth_headers(access_token))
            response.raise_for_status()
            emails = response.json()
        return emails if isinstance(emails, list) else []


def get_oauth_client(
    provider: AuthProvider, settings: Settings | None = None
) -> OAuthClient | None:
    """Build a client for ``provider``; None if the provider is not configured."""
    settings = settings or get_settings()
    if provider == AuthProvider.GOOGLE:
        client_id = settings.google_client_id
        client_secret = settings.google_client_secret
        callback_url = settings.google_callback_url
    else:
        client_id = settings.github_client_id
        client_secret = settings.github_client_secret
        callback_url = settings.github_callback_url

    if not (client_id and client_secret and callback_url):
        return None
    return OAuthClient(
        provider,
        client_id,
        client_secret,
        callback_url,
        timeout=settings.oauth_http_timeout_seconds,
    )
