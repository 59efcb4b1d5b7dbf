"""
Tests for the token provider.
"""

import json
from datetime import datetime, timezone

import pytest
from jose import jwt

from shredmate_shared.exceptions import ClientError, ErrorCode
from shredmate_shared.models import AuthTokens, User
from shredmate_client.auth.token_provider import DefaultTokenProvider, parse_token_expiration
from shredmate_client.transport import TransportResponse

from conftest import BASE_URL, auth_payload, bearer_of, json_response

EXPIRY = datetime(2030, 1, 1, tzinfo=timezone.utc)


def make_jwt(**claims) -> str:
    return jwt.encode({"sub": "u1", **claims}, "test-secret", algorithm="HS256")


class TestTokenExpiration:
    """Test expiry extraction from access tokens."""

    def test_jwt_exp_claim(self):
        token = make_jwt(exp=int(EXPIRY.timestamp()))
        assert parse_token_expiration(token) == EXPIRY

    def test_jwt_without_exp(self):
        assert parse_token_expiration(make_jwt()) is None

    def test_opaque_token(self):
        assert parse_token_expiration("abc") is None


class TestDefaultTokenProvider:
    """Test access token lookup and the refresh exchange."""

    @pytest.mark.asyncio
    async def test_get_access_token(self, token_provider):
        assert await token_provider.get_access_token() == "abc"

    @pytest.mark.asyncio
    async def test_get_access_token_without_session(self, empty_store, refresh_client):
        provider = DefaultTokenProvider(empty_store, refresh_client)
        assert await provider.get_access_token() is None

    @pytest.mark.asyncio
    async def test_refresh_without_refresh_token(self, empty_store, refresh_client, transport):
        """Test refreshing with nothing stored fails without any network call."""
        provider = DefaultTokenProvider(empty_store, refresh_client)

        with pytest.raises(ClientError) as exc_info:
            await provider.refresh_tokens()

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_refresh_persists_tokens_and_user(self, token_provider, token_store, transport):
        """Test a successful refresh stores the new pair and the returned user."""
        access_token = make_jwt(exp=int(EXPIRY.timestamp()))
        transport.route("/auth/refresh", [json_response(200, auth_payload(access_token, "refresh-2"))])

        tokens = await token_provider.refresh_tokens()

        assert tokens == AuthTokens(access_token=access_token, refresh_token="refresh-2", expires_at=EXPIRY)
        assert await token_store.load_tokens() == tokens
        user = await token_store.load_user()
        assert isinstance(user, User)
        assert user.id == "u1"

        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url == f"{BASE_URL}/auth/refresh"
        assert bearer_of(request) is None
        assert request.header("Content-Type") == "application/json"
        assert json.loads(request.body) == {"refresh_token": "refresh-1"}

    @pytest.mark.asyncio
    async def test_refresh_failure_leaves_store_untouched(self, token_provider, token_store, tokens, transport):
        """Test a rejected refresh propagates the error and keeps the old tokens."""
        transport.route("/auth/refresh", [TransportResponse(status_code=401)])

        with pytest.raises(ClientError) as exc_info:
            await token_provider.refresh_tokens()

        assert exc_info.value == ClientError.request_failed(401)
        assert await token_store.load_tokens() == tokens
        assert await token_store.load_user() is None

    @pytest.mark.asyncio
    async def test_refresh_with_malformed_response(self, token_provider, token_store, tokens, transport):
        transport.route("/auth/refresh", [json_response(200, {"access_token": "only"})])

        with pytest.raises(ClientError) as exc_info:
            await token_provider.refresh_tokens()

        assert exc_info.value.error_code == ErrorCode.DECODING_FAILED
        assert await token_store.load_tokens() == tokens
