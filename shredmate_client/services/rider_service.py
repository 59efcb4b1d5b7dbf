"""Rider profile service."""

import logging
from typing import List, Optional

from shredmate_shared.exceptions import ClientError, ErrorCode
from shredmate_shared.interfaces import IAPIClient
from shredmate_shared.models import (
    AvatarUploadResponse, Rider, RiderBaseLocation, RiderSport,
    UpdateBaseLocationRequest, UpdateRiderRequest, UpsertRiderSportRequest
)
from shredmate_client.api.riders import RiderAPI

logger = logging.getLogger(__name__)


class RiderService:
    """Operations on the current rider's profile."""

    def __init__(self, api_client: IAPIClient):
        self.api_client = api_client

    async def fetch_my_rider(self) -> Rider:
        return await self.api_client.send(RiderAPI.me())

    async def update_my_rider(self, update: UpdateRiderRequest) -> Rider:
        return await self.api_client.send(RiderAPI.update_me(update))

    async def upload_avatar(
        self,
        image_data: bytes,
        file_name: str = "avatar.jpg",
        mime_type: str = "image/jpeg"
    ) -> AvatarUploadResponse:
        logger.info(f"Uploading avatar {file_name} ({len(image_data)} bytes)")
        return await self.api_client.send(RiderAPI.upload_avatar(image_data, file_name, mime_type))

    async def delete_my_account(self) -> None:
        await self.api_client.send(RiderAPI.delete_me())

    async def fetch_my_base_location(self) -> Optional[RiderBaseLocation]:
        """Return the rider's base location, or None if none has been set."""
        try:
            return await self.api_client.send(RiderAPI.base_location())
        except ClientError as e:
            if e.error_code == ErrorCode.REQUEST_FAILED and e.status_code == 404:
                return None
            raise

    async def update_my_base_location(self, location: UpdateBaseLocationRequest) -> RiderBaseLocation:
        return await self.api_client.send(RiderAPI.update_base_location(location))

    async def fetch_my_rider_sports(self) -> List[RiderSport]:
        return await self.api_client.send(RiderAPI.sports())

    async def upsert_my_rider_sport(self, sport_id: str, request: UpsertRiderSportRequest) -> RiderSport:
        return await self.api_client.send(RiderAPI.upsert_sport(sport_id, request))

    async def delete_my_rider_sport(self, sport_id: str) -> None:
        await self.api_client.send(RiderAPI.delete_sport(sport_id))
