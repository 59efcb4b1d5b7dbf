"""
Authentication service for the ShredMate API client.

Handles login, registration and logout, keeps the token store in sync with
the backend session and reacts to session invalidation signalled by the
authenticating client.
"""

import logging
from typing import Optional

from shredmate_shared.exceptions import ClientError
from shredmate_shared.interfaces import IAPIClient, ITokenProvider, ITokenStore
from shredmate_shared.logging_config import AuditLogger
from shredmate_shared.models import AuthResponse, AuthTokens, User
from shredmate_client.api.auth import AuthAPI
from shredmate_client.auth.token_provider import tokens_from_response

logger = logging.getLogger(__name__)


class AuthService:
    """
    Session management on top of the authenticating client.
    """

    def __init__(
        self,
        api_client: IAPIClient,
        token_store: ITokenStore,
        token_provider: ITokenProvider,
        audit_logger: Optional[AuditLogger] = None
    ):
        self.api_client = api_client
        self.token_store = token_store
        self.token_provider = token_provider
        self.audit_logger = audit_logger or AuditLogger()

    async def login(self, email: str, password: str) -> AuthResponse:
        """
        Authenticate with email and password and persist the session.

        Raises:
            ClientError: If the backend rejects the credentials or is unreachable
        """
        logger.info(f"Logging in as {email}")
        try:
            response: AuthResponse = await self.api_client.send(AuthAPI.login(email, password))
        except ClientError:
            self.audit_logger.log_login(email, success=False)
            raise

        await self._save_session(response)
        self.audit_logger.log_login(response.user.id)
        return response

    async def register(self, email: str, password: str, name: str) -> AuthResponse:
        """Create an account and persist the resulting session."""
        logger.info(f"Registering new user {email}")
        response: AuthResponse = await self.api_client.send(AuthAPI.register(email, password, name))
        await self._save_session(response)
        self.audit_logger.log_login(response.user.id)
        return response

    async def logout(self) -> None:
        """
        End the session on the backend (when one exists) and clear local state.

        Local credentials are cleared even if the backend call fails.
        """
        tokens = await self.token_store.load_tokens()
        user = await self.token_store.load_user()

        if tokens is not None:
            try:
                await self.api_client.send(AuthAPI.logout(tokens.refresh_token))
            except ClientError as e:
                logger.warning(f"Server logout failed, clearing local session anyway: {e.message}")

        await self.token_store.clear_all()
        self.audit_logger.log_logout(user.id if user else None)

    async def fetch_current_user(self) -> User:
        """Fetch the current user from the backend and cache it."""
        user: User = await self.api_client.send(AuthAPI.me())
        await self.token_store.save_user(user)
        return user

    async def refresh_session(self) -> AuthTokens:
        """Explicitly refresh the token pair."""
        return await self.token_provider.refresh_tokens()

    async def is_authenticated(self) -> bool:
        return await self.token_store.load_tokens() is not None

    async def get_access_token(self) -> Optional[str]:
        return await self.token_provider.get_access_token()

    async def get_tokens(self) -> Optional[AuthTokens]:
        return await self.token_store.load_tokens()

    async def get_current_user(self) -> Optional[User]:
        return await self.token_store.load_user()

    async def handle_session_invalidated(self) -> None:
        """Clear the local session after a failed refresh. Safe to call repeatedly."""
        if await self.token_store.load_tokens() is None and await self.token_store.load_user() is None:
            logger.debug("Session already cleared")
            return

        logger.warning("Session invalidated, clearing stored credentials")
        await self.token_store.clear_all()

    async def _save_session(self, response: AuthResponse) -> None:
        await self.token_store.save_tokens(tokens_from_response(response))
        await self.token_store.save_user(response.user)
