"""Tests for token generation, hashing, passwords and access tokens."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from jose import jwt

from src.identity.core.config import get_settings
from src.identity.core.errors import InvalidOrExpiredTokenError
from src.identity.core.security import (
    create_access_token,
    create_oauth_state,
    decode_oauth_state,
    generate_random_token,
    hash_password,
    hash_token,
    verify_access_token,
    verify_password,
)

pytestmark = pytest.mark.unit


class TestRandomTokens:
    @given(byte_length=st.integers(min_value=0, max_value=128))
    def test_hex_length_is_twice_byte_length(self, byte_length: int):
        token = generate_random_token(byte_length)
        assert len(token) == 2 * byte_length
        assert all(c in "0123456789abcdef" for c in token)

    def test_zero_length_is_empty(self):
        assert generate_random_token(0) == ""

    def test_negative_length_rejected(self):
        with pytest.raises(ValueError):
            generate_random_token(-1)

    def test_tokens_are_unique(self):
        tokens = {generate_random_token(40) for _ in range(200)}
        assert len(tokens) == 200


class TestHashToken:
    @given(token=st.text())
    def test_hash_is_deterministic_hex(self, token: str):
        digest = hash_token(token)
        assert digest == hash_token(token)
        assert len(digest) == 64
        assert all(c in "0123456789abcdef" for c in digest)

    @given(a=st.text(), b=st.text())
    def test_distinct_inputs_hash_differently(self, a: str, b: str):
        if a != b:
            assert hash_token(a) != hash_token(b)

    def test_known_vector(self):
        assert (
            hash_token("abc")
            == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )


class TestPasswords:
    @given(password=st.text(min_size=1, max_size=64))
    @settings(max_examples=10, deadline=None)
    def test_hash_then_verify(self, password: str):
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed)

    def test_wrong_password_rejected(self):
        hashed = hash_password("Correct1!")
        assert not verify_password("Wrong1!", hashed)

    def test_missing_hash_is_false(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "")

    def test_malformed_hash_is_false(self):
        assert not verify_password("anything", "not-an-argon2-hash")

    def test_same_password_gets_fresh_salt(self):
        assert hash_password("Passw0rd!") != hash_password("Passw0rd!")


class TestAccessTokens:
    def test_round_trip(self):
        account_id = uuid4()
        claims = verify_access_token(create_access_token(account_id, "a@example.com"))
        assert claims.account_id == account_id
        assert claims.email == "a@example.com"
        assert claims.expires_at > datetime.now(UTC)

    def test_expiry_uses_configured_lifetime(self):
        before = datetime.now(UTC).replace(microsecond=0)
        claims = verify_access_token(create_access_token(uuid4(), "a@example.com"))
        lifetime = timedelta(minutes=get_settings().access_token_expire_minutes)
        assert before + lifetime <= claims.expires_at <= before + lifetime + timedelta(seconds=5)

    def test_tampered_token_rejected(self):
        token = create_access_token(uuid4(), "a@example.com")
        header, payload, signature = token.split(".")
        flipped = "A" if signature[10] != "A" else "B"
        tampered = f"{header}.{payload}.{signature[:10]}{flipped}{signature[11:]}"
        with pytest.raises(InvalidOrExpiredTokenError, match="Invalid or expired access token"):
            verify_access_token(tampered)

    def test_expired_token_rejected(self):
        settings_ = get_settings()
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "email": "a@example.com",
                "iss": settings_.app_name,
                "aud": settings_.app_name,
                "iat": now - timedelta(hours=1),
                "exp": now - timedelta(minutes=1),
            },
            settings_.jwt_secret_key,
            algorithm=settings_.jwt_algorithm,
        )
        with pytest.raises(InvalidOrExpiredTokenError):
            verify_access_token(token)

    def test_wrong_audience_rejected(self):
        settings_ = get_settings()
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "email": "a@example.com",
                "iss": settings_.app_name,
                "aud": "some-other-service",
                "exp": datetime.now(UTC) + timedelta(minutes=5),
            },
            settings_.jwt_secret_key,
            algorithm=settings_.jwt_algorithm,
        )
        with pytest.raises(InvalidOrExpiredTokenError):
            verify_access_token(token)

    def test_wrong_secret_rejected(self):
        settings_ = get_settings()
        token = jwt.encode(
            {
                "sub": str(uuid4()),
                "email": "a@example.com",
                "iss": settings_.app_name,
                "aud": settings_.app_name,
                "exp": datetime.now(UTC) + timedelta(minutes=5),
            },
            "x" * 48,
            algorithm=settings_.jwt_algorithm,
        )
        with pytest.raises(InvalidOrExpiredTokenError):
            verify_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(InvalidOrExpiredTokenError):
            verify_access_token("not.a.jwt")


class TestOAuthState:
    def test_round_trip(self):
        state = create_oauth_state("https://app.example.com/callback", "https://app.example.com/x")
        payload = decode_oauth_state(state)
        assert payload is not None
        assert payload["redirect_url"] == "https://app.example.com/callback"
        assert payload["next_url"] == "https://app.example.com/x"

    def test_access_token_is_not_a_state(self):
        assert decode_oauth_state(create_access_token(uuid4(), "a@example.com")) is None

    def test_garbage_state(self):
        assert decode_oauth_state("garbage") is None
