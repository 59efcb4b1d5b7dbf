"""Authentication endpoints."""

from shredmate_client.endpoint import AuthRequirement, Endpoint
from shredmate_shared.models import (
    AuthResponse, EmptyResponse, LoginRequest, LogoutRequest,
    RefreshRequest, RegisterRequest, User
)


class AuthAPI:
    """Authentication API endpoints."""

    @staticmethod
    def login(email: str, password: str) -> Endpoint:
        """Login with email and password."""
        return Endpoint.post(
            "/auth/login",
            AuthResponse,
            body=LoginRequest(email=email, password=password)
        )

    @staticmethod
    def register(email: str, password: str, name: str) -> Endpoint:
        """Register a new user."""
        return Endpoint.post(
            "/auth/register",
            AuthResponse,
            body=RegisterRequest(email=email, password=password, name=name)
        )

    @staticmethod
    def logout(refresh_token: str) -> Endpoint:
        """Logout the current session."""
        return Endpoint.post(
            "/auth/logout",
            EmptyResponse,
            body=LogoutRequest(refresh_token=refresh_token),
            auth=AuthRequirement.BEARER_TOKEN
        )

    @staticmethod
    def refresh(refresh_token: str) -> Endpoint:
        """Exchange a refresh token for a new token pair. Never carries a bearer token."""
        return Endpoint.post(
            "/auth/refresh",
            AuthResponse,
            body=RefreshRequest(refresh_token=refresh_token)
        )

    @staticmethod
    def me() -> Endpoint:
        """Get the current authenticated user."""
        return Endpoint.get("/auth/me", User, auth=AuthRequirement.BEARER_TOKEN)
