"""Sports service."""

from typing import List

from shredmate_shared.interfaces import IAPIClient
from shredmate_shared.models import Sport
from shredmate_client.api.sports import SportsAPI


class SportsService:

    def __init__(self, api_client: IAPIClient):
        self.api_client = api_client

    async def fetch_all_sports(self) -> List[Sport]:
        return await self.api_client.send(SportsAPI.all())
