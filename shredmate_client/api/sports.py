"""Sports endpoints."""

from typing import List

from shredmate_client.endpoint import AuthRequirement, Endpoint
from shredmate_shared.models import Sport


class SportsAPI:

    @staticmethod
    def all() -> Endpoint:
        """Get all available sports."""
        return Endpoint.get("/sports", List[Sport], auth=AuthRequirement.BEARER_TOKEN)
