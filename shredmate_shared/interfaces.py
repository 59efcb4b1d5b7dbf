"""
Core interfaces for the ShredMate API client.

This module defines the abstract interfaces that the networking components
depend on, so that storage, transport and token handling can be swapped
independently (and faked in tests).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, TYPE_CHECKING

from shredmate_shared.models import AuthTokens, User

if TYPE_CHECKING:
    from shredmate_client.endpoint import Endpoint
    from shredmate_client.request_builder import PreparedRequest
    from shredmate_client.transport import TransportResponse


class ITokenStore(ABC):
    """Interface for credential storage. Implementations must be safe for concurrent use."""

    @abstractmethod
    async def load_tokens(self) -> Optional[AuthTokens]:
        """Load the stored token pair, or None if never authenticated."""
        pass

    @abstractmethod
    async def save_tokens(self, tokens: AuthTokens) -> None:
        """Replace the stored token pair."""
        pass

    @abstractmethod
    async def clear_tokens(self) -> None:
        """Remove the stored token pair."""
        pass

    @abstractmethod
    async def load_user(self) -> Optional[User]:
        """Load the cached user profile."""
        pass

    @abstractmethod
    async def save_user(self, user: User) -> None:
        """Cache the user profile."""
        pass

    @abstractmethod
    async def clear_user(self) -> None:
        """Remove the cached user profile."""
        pass

    async def clear_all(self) -> None:
        """Clear tokens and cached user."""
        await self.clear_tokens()
        await self.clear_user()


class ITransport(ABC):
    """Interface for performing a single HTTP exchange."""

    @abstractmethod
    async def send(self, request: 'PreparedRequest') -> 'TransportResponse':
        """Perform one request; raise ClientError(TRANSPORT_ERROR) on network failure."""
        pass

    async def close(self) -> None:
        """Release any network resources."""
        pass


class ITokenProvider(ABC):
    """Interface for access-token lookup and refresh."""

    @abstractmethod
    async def get_access_token(self) -> Optional[str]:
        """Return the current access token without network access."""
        pass

    @abstractmethod
    async def refresh_tokens(self) -> AuthTokens:
        """Exchange the stored refresh token for a new token pair."""
        pass


class IAPIClient(ABC):
    """Interface for sending endpoint descriptors."""

    @abstractmethod
    async def send(self, endpoint: 'Endpoint') -> Any:
        """Send the request described by ``endpoint`` and return the decoded response."""
        pass
