"""Places service."""

from typing import List

from shredmate_shared.interfaces import IAPIClient
from shredmate_shared.models import Place
from shredmate_client.api.places import PlacesAPI


class PlacesService:

    def __init__(self, api_client: IAPIClient):
        self.api_client = api_client

    async def fetch_places(self, sport_slug: str) -> List[Place]:
        return await self.api_client.send(PlacesAPI.places(sport_slug))
