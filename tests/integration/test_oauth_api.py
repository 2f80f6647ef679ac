"""End-to-end tests for the /api/v1/oauth endpoints."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from src.identity.api.v1.oauth import get_provider_client
from src.identity.core.oauth import OAuthClient
from src.identity.core.security import create_oauth_state, decode_oauth_state
from src.identity.models import AuthProvider

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

API = "/api/v1/oauth"


def google_handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "oauth2.googleapis.com":
        return httpx.Response(200, json={"access_token": "google-token"})
    return httpx.Response(
        200,
        json={"email": "gina@example.com", "name": "Gina G", "picture": "https://p.example/g.png"},
    )


@pytest.fixture
def google_configured(app: FastAPI) -> None:
    client = OAuthClient(
        AuthProvider.GOOGLE,
        "client-id",
        "client-secret",
        "http://test/api/v1/oauth/google/callback",
        transport=httpx.MockTransport(google_handler),
    )
    app.dependency_overrides[get_provider_client] = lambda: client


async def test_unconfigured_provider_is_404(client: AsyncClient):
    response = await client.get(
        f"{API}/github", params={"redirectUrl": "https://app.example.com/oauth"}
    )
    assert response.status_code == 404


async def test_unknown_provider_is_400(client: AsyncClient):
    response = await client.get(
        f"{API}/myspace", params={"redirectUrl": "https://app.example.com/oauth"}
    )
    assert response.status_code == 400


@pytest.mark.usefixtures("google_configured")
async def test_start_redirects_with_signed_state(client: AsyncClient):
    response = await client.get(
        f"{API}/google",
        params={"redirectUrl": "https://app.example.com/oauth", "nextUrl": "https://app.example.com/home"},
    )
    assert response.status_code == 302

    location = urlparse(response.headers["location"])
    assert location.netloc == "accounts.google.com"
    state = parse_qs(location.query)["state"][0]
    payload = decode_oauth_state(state)
    assert payload["redirect_url"] == "https://app.example.com/oauth"
    assert payload["next_url"] == "https://app.example.com/home"


@pytest.mark.usefixtures("google_configured")
async def test_callback_then_exchange(client: AsyncClient):
    state = create_oauth_state("https://app.example.com/oauth", "https://app.example.com/home")

    response = await client.get(
        f"{API}/google/callback", params={"code": "provider-code", "state": state}
    )
    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == "https://app.example.com/oauth"
    params = parse_qs(location.query)
    assert params["redirectUrl"] == ["https://app.example.com/home"]
    code = params["code"][0]

    response = await client.get(f"{API}/exchange", params={"code": code})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["email"] == "gina@example.com"
    assert data["user"]["email_verified"] is True
    assert data["tokens"]["refresh_token"]

    # One use only
    response = await client.get(f"{API}/exchange", params={"code": code})
    assert response.status_code == 400
    assert response.json()["msg"] == "Invalid or expired login code"

    # Issued tokens are a real session
    response = await client.get(
        "/api/v1/auth/profile",
        headers={
            "Authorization": f"Bearer {data['tokens']['access_token']}",
            "X-Refresh-Token": data["tokens"]["refresh_token"],
        },
    )
    assert response.status_code == 200


@pytest.mark.usefixtures("google_configured")
async def test_callback_with_bad_state(client: AsyncClient):
    response = await client.get(
        f"{API}/google/callback", params={"code": "provider-code", "state": "forged"}
    )
    assert response.status_code == 400


async def test_exchange_without_code(client: AsyncClient):
    response = await client.get(f"{API}/exchange")
    assert response.status_code == 400
    assert response.json()["msg"] == "Missing login code"
