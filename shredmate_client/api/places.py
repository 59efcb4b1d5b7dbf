"""Places endpoints."""

from typing import List

from shredmate_client.endpoint import AuthRequirement, Endpoint
from shredmate_shared.models import Place


class PlacesAPI:

    @staticmethod
    def places(sport_slug: str) -> Endpoint:
        """List places for a sport."""
        return Endpoint.get(
            "/places",
            List[Place],
            query=[("sportSlug", sport_slug)],
            auth=AuthRequirement.BEARER_TOKEN
        )
