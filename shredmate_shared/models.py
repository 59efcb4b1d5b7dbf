"""
Core data models for the ShredMate API client.

Credentials are plain dataclasses owned by the token store; everything that
travels over the wire is a pydantic model so that responses are validated
when they are decoded.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, model_validator


@dataclass(frozen=True)
class AuthTokens:
    """Access/refresh token pair, replaced as a whole on every refresh."""
    access_token: str
    refresh_token: str
    expires_at: Optional[datetime] = None

    @property
    def is_expired(self) -> bool:
        """True iff an expiry is known and it has passed."""
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) >= expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuthTokens':
        expires_at = data.get('expires_at')
        return cls(
            access_token=data['access_token'],
            refresh_token=data['refresh_token'],
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )


class WireModel(BaseModel):
    """Base for every model exchanged with the backend."""
    model_config = ConfigDict(frozen=True, extra='ignore', use_enum_values=False)


class EmptyResponse(WireModel):
    """Marker for endpoints that return no body."""


EMPTY_RESPONSE = EmptyResponse()


# Users and sessions

class UserRole(str, Enum):
    USER = "USER"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"


class User(WireModel):
    """Authenticated user profile."""
    id: str
    email: str
    role: Optional[UserRole] = None
    name: Optional[str] = None
    created_at: Optional[datetime] = None

    @model_validator(mode='before')
    @classmethod
    def _accept_user_id(cls, data: Any) -> Any:
        # Some endpoints send ``user_id`` instead of ``id``
        if isinstance(data, dict) and 'id' not in data and 'user_id' in data:
            data = dict(data)
            data['id'] = data.pop('user_id')
        return data


class AuthResponse(WireModel):
    """Response of the login, register and refresh endpoints."""
    access_token: str
    refresh_token: str
    user: User


class LoginRequest(WireModel):
    email: str
    password: str


class RegisterRequest(WireModel):
    email: str
    password: str
    name: str


class RefreshRequest(WireModel):
    refresh_token: str


class LogoutRequest(WireModel):
    refresh_token: str


# Riders

class RiderType(str, Enum):
    RIDER = "RIDER"
    MENTOR = "MENTOR"
    BOTH = "BOTH"

    @property
    def display_name(self) -> str:
        return {
            RiderType.RIDER: "Rider",
            RiderType.MENTOR: "Mentor",
            RiderType.BOTH: "Rider & Mentor",
        }[self]


class Rider(WireModel):
    """Rider profile."""
    id: str
    user_id: str
    type: Optional[RiderType] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UpdateRiderRequest(WireModel):
    type: Optional[RiderType] = None
    display_name: Optional[str] = None
    description: Optional[str] = None


class RiderBaseLocation(WireModel):
    latitude: float
    longitude: float
    name: Optional[str] = None


class UpdateBaseLocationRequest(WireModel):
    latitude: float
    longitude: float
    name: Optional[str] = None


class AvatarUploadResponse(WireModel):
    avatar_url: str


# Sports

class SkillLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


class Sport(WireModel):
    id: str
    name: str
    icon: Optional[str] = None


class RiderSport(WireModel):
    id: str
    sport_id: str
    sport: Optional[Sport] = None
    level: SkillLevel
    is_mentor: bool = False


class UpsertRiderSportRequest(WireModel):
    level: SkillLevel
    is_mentor: bool = False


# Places

class GeoPoint(WireModel):
    lat: float
    lng: float


class Place(WireModel):
    id: str
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[GeoPoint] = None
    created_by_user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
