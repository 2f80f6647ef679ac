"""Tests for OAuth account resolution, provider clients and login codes."""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from src.identity.core.errors import BadRequestError
from src.identity.core.oauth import GITHUB_EMAIL_API, OAuthClient
from src.identity.models import AuthProvider
from src.identity.services.oauth_service import OAuthIdentity, select_github_email
from tests.factories import AccountFactory

pytestmark = pytest.mark.unit


def github_client(handler) -> OAuthClient:
    return OAuthClient(
        AuthProvider.GITHUB,
        "client-id",
        "client-secret",
        "https://api.example.com/api/v1/oauth/github/callback",
        transport=httpx.MockTransport(handler),
    )


def google_client(handler) -> OAuthClient:
    return OAuthClient(
        AuthProvider.GOOGLE,
        "client-id",
        "client-secret",
        "https://api.example.com/api/v1/oauth/google/callback",
        transport=httpx.MockTransport(handler),
    )


class TestResolve:
    async def test_creates_verified_passwordless_account(self, oauth_service, fake_db):
        account = await oauth_service.resolve(
            OAuthIdentity(
                email="Octo@Example.com",
                display_name="Octo Cat",
                provider=AuthProvider.GITHUB,
                avatar_url="https://avatars.example.com/octo.png",
            )
        )

        assert account.email == "octo@example.com"
        assert account.email_verified
        assert account.password_hash is None
        assert account.auth_provider == "github"
        assert account.is_oauth_only
        assert account.avatar_url == "https://avatars.example.com/octo.png"
        assert account.id in fake_db.accounts

    async def test_existing_account_is_returned_unchanged(self, oauth_service, store_account):
        existing = store_account(AccountFactory.build(email="me@example.com", full_name="Me"))
        password_hash = existing.password_hash

        account = await oauth_service.resolve(
            OAuthIdentity(email="me@example.com", display_name="Other", provider=AuthProvider.GOOGLE)
        )

        assert account is existing
        assert account.full_name == "Me"
        assert account.password_hash == password_hash
        assert account.auth_provider is None

    async def test_same_email_from_two_providers_is_one_account(self, oauth_service, fake_db):
        first = await oauth_service.resolve(
            OAuthIdentity(email="a@example.com", display_name="A", provider=AuthProvider.GOOGLE)
        )
        second = await oauth_service.resolve(
            OAuthIdentity(email="a@example.com", display_name="A", provider=AuthProvider.GITHUB)
        )
        assert first.id == second.id
        assert len(fake_db.accounts) == 1


class TestGoogleProfile:
    async def test_name_falls_back_to_given_name(self, oauth_service):
        account = await oauth_service.resolve_google(
            {"email": "g@example.com", "given_name": "Gina", "picture": "https://p.example/x.png"}
        )
        assert account.full_name == "Gina"
        assert account.avatar_url == "https://p.example/x.png"

    async def test_missing_email(self, oauth_service):
        with pytest.raises(BadRequestError):
            await oauth_service.resolve_google({"name": "No Email"})

    async def test_missing_name(self, oauth_service):
        with pytest.raises(BadRequestError):
            await oauth_service.resolve_google({"email": "g@example.com"})


class TestGithubProfile:
    async def test_private_email_uses_primary_from_email_api(self, oauth_service):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == GITHUB_EMAIL_API
            assert request.headers["Authorization"] == "Bearer gh-token"
            return httpx.Response(
                200,
                json=[
                    {"email": "secondary@example.com", "primary": False},
                    {"email": "primary@example.com", "primary": True},
                ],
            )

        account = await oauth_service.resolve_github(
            {"login": "octocat", "email": None}, "gh-token", github_client(handler)
        )
        assert account.email == "primary@example.com"
        assert account.full_name == "octocat"

    async def test_email_api_failure(self, oauth_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        with pytest.raises(BadRequestError, match="Unable to retrieve user email from GitHub"):
            await oauth_service.resolve_github(
                {"login": "octocat"}, "gh-token", github_client(handler)
            )

    async def test_no_email_at_all(self, oauth_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[])

        with pytest.raises(BadRequestError, match="No email found for GitHub user"):
            await oauth_service.resolve_github(
                {"login": "octocat"}, "gh-token", github_client(handler)
            )

    async def test_malformed_email_entries(self, oauth_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["octocat@example.com", None])

        with pytest.raises(BadRequestError, match="No email found for GitHub user"):
            await oauth_service.resolve_github(
                {"login": "octocat"}, "gh-token", github_client(handler)
            )

    def test_select_github_email_skips_non_objects(self):
        emails = ["junk", 42, {"email": "real@example.com"}]
        assert select_github_email(emails) == "real@example.com"

    def test_select_github_email_falls_back_to_first(self):
        assert select_github_email([{"email": "first@example.com"}]) == "first@example.com"
        assert select_github_email([]) is None


class TestCallbackAndExchange:
    async def test_full_callback_then_exchange_once(self, oauth_service, fake_db):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "oauth2.googleapis.com":
                form = parse_qs(request.content.decode())
                assert form["code"] == ["provider-code"]
                assert form["grant_type"] == ["authorization_code"]
                return httpx.Response(200, json={"access_token": "google-token"})
            assert request.headers["Authorization"] == "Bearer google-token"
            return httpx.Response(200, json={"email": "g@example.com", "name": "Gina G"})

        account = await oauth_service.authenticate_callback(google_client(handler), "provider-code")
        code = await oauth_service.create_login_code(account, "ua", "127.0.0.1")

        record = await oauth_service.exchange_code(code)
        assert record.account.id == account.id
        assert record.tokens.refresh_token
        assert len(fake_db.sessions) == 1

        with pytest.raises(BadRequestError, match="Invalid or expired login code"):
            await oauth_service.exchange_code(code)

    async def test_missing_code(self, oauth_service):
        with pytest.raises(BadRequestError, match="Missing login code"):
            await oauth_service.exchange_code(None)

    async def test_token_exchange_failure(self, oauth_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "bad_verification_code"})

        with pytest.raises(BadRequestError, match="OAuth authentication failed"):
            await oauth_service.authenticate_callback(google_client(handler), "bad")

    async def test_token_response_without_access_token(self, oauth_service):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=json.dumps({"error": "x"}))

        with pytest.raises(BadRequestError):
            await oauth_service.authenticate_callback(github_client(handler), "code")


class TestAuthorizeUrl:
    def test_includes_state_and_callback(self):
        client = google_client(lambda request: httpx.Response(200))
        url = urlparse(client.authorize_url("signed-state"))
        params = parse_qs(url.query)

        assert url.netloc == "accounts.google.com"
        assert params["state"] == ["signed-state"]
        assert params["client_id"] == ["client-id"]
        assert params["redirect_uri"] == ["https://api.example.com/api/v1/oauth/google/callback"]
        assert params["response_type"] == ["code"]
