"""Rider profile endpoints."""

from typing import List

from shredmate_client.endpoint import AuthRequirement, Endpoint, MultipartBody
from shredmate_shared.models import (
    AvatarUploadResponse, EmptyResponse, Rider, RiderBaseLocation, RiderSport,
    UpdateBaseLocationRequest, UpdateRiderRequest, UpsertRiderSportRequest
)

BEARER = AuthRequirement.BEARER_TOKEN


class RiderAPI:
    """Endpoints of the current rider's profile, base location and sports."""

    # Profile

    @staticmethod
    def me() -> Endpoint:
        return Endpoint.get("/riders/me", Rider, auth=BEARER)

    @staticmethod
    def update_me(request: UpdateRiderRequest) -> Endpoint:
        return Endpoint.patch("/riders/me", Rider, body=request, auth=BEARER)

    @staticmethod
    def upload_avatar(
        image_data: bytes,
        file_name: str = "avatar.jpg",
        mime_type: str = "image/jpeg"
    ) -> Endpoint:
        return Endpoint.upload_multipart(
            "/riders/me/avatar",
            MultipartBody(
                file_data=image_data,
                file_name=file_name,
                mime_type=mime_type,
                field_name="file"
            ),
            AvatarUploadResponse,
            auth=BEARER
        )

    @staticmethod
    def delete_me() -> Endpoint:
        return Endpoint.delete("/riders/me", EmptyResponse, auth=BEARER)

    # Base location

    @staticmethod
    def base_location() -> Endpoint:
        return Endpoint.get("/riders/me/base-location", RiderBaseLocation, auth=BEARER)

    @staticmethod
    def update_base_location(request: UpdateBaseLocationRequest) -> Endpoint:
        return Endpoint.put("/riders/me/base-location", RiderBaseLocation, body=request, auth=BEARER)

    # Sports

    @staticmethod
    def sports() -> Endpoint:
        return Endpoint.get("/riders/me/sports", List[RiderSport], auth=BEARER)

    @staticmethod
    def upsert_sport(sport_id: str, request: UpsertRiderSportRequest) -> Endpoint:
        return Endpoint.post(f"/riders/me/sports/{sport_id}", RiderSport, body=request, auth=BEARER)

    @staticmethod
    def delete_sport(sport_id: str) -> Endpoint:
        return Endpoint.delete(f"/riders/me/sports/{sport_id}", EmptyResponse, auth=BEARER)
