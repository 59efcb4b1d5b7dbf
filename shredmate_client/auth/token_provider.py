"""
Token provider for the ShredMate API client.

Supplies the current access token to the authenticating client and performs
the refresh exchange against the backend. The refresh call always goes
through a plain, non-authenticating client so it never carries a bearer
header and can never trigger a nested refresh.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from jose import jwt, JWTError

from shredmate_shared.exceptions import ClientError
from shredmate_shared.interfaces import IAPIClient, ITokenProvider, ITokenStore
from shredmate_shared.models import AuthResponse, AuthTokens
from shredmate_client.api.auth import AuthAPI

logger = logging.getLogger(__name__)


def parse_token_expiration(token: str) -> Optional[datetime]:
    """
    Parse expiration time from a JWT access token.

    Args:
        token: Access token string

    Returns:
        Timezone-aware expiration datetime, or None for opaque tokens or
        tokens without an ``exp`` claim
    """
    try:
        payload = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.debug(f"Access token is not a JWT, no expiry known: {e}")
        return None

    exp = payload.get('exp')
    if isinstance(exp, (int, float)):
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    return None


def tokens_from_response(response: AuthResponse) -> AuthTokens:
    """Build an AuthTokens pair from a login/register/refresh response."""
    return AuthTokens(
        access_token=response.access_token,
        refresh_token=response.refresh_token,
        expires_at=parse_token_expiration(response.access_token)
    )


class DefaultTokenProvider(ITokenProvider):
    """
    Token provider backed by a token store and a plain API client.
    """

    def __init__(self, token_store: ITokenStore, refresh_client: IAPIClient):
        self.token_store = token_store
        self.refresh_client = refresh_client

    async def get_access_token(self) -> Optional[str]:
        tokens = await self.token_store.load_tokens()
        return tokens.access_token if tokens else None

    async def refresh_tokens(self) -> AuthTokens:
        """
        Exchange the stored refresh token for a new token pair.

        The new tokens and user are persisted only after the backend accepted
        the refresh; on any failure the store is left untouched.

        Returns:
            The new token pair

        Raises:
            ClientError: UNAUTHORIZED if no refresh token is stored, otherwise
                whatever the refresh request failed with
        """
        current = await self.token_store.load_tokens()
        if current is None or not current.refresh_token:
            logger.warning("Cannot refresh token: no refresh token stored")
            raise ClientError.unauthorized("no refresh token")

        logger.info("Refreshing access token")
        response: AuthResponse = await self.refresh_client.send(AuthAPI.refresh(current.refresh_token))

        tokens = tokens_from_response(response)
        await self.token_store.save_tokens(tokens)
        await self.token_store.save_user(response.user)

        logger.info(f"Token refresh successful for user {response.user.id}")
        return tokens
