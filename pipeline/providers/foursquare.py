"""
Foursquare Places provider.

Data source: https://foursquare.com/
API Key: Required (FOURSQUARE_API_KEY)
"""

from typing import Any

from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.geo import normalize_coordinates
from pipeline.utils.http import fetch_json


class FoursquareProvider(BaseProvider):
    """Provider for the Foursquare v3 place search."""

    provider_id = "foursquare"
    provider_name = "Foursquare"

    API_URL = "https://api.foursquare.com/v3/places/search"

    def search_query(self) -> str:
        return "haunted,ghost,paranormal" if self.category == "haunted_location" else self.category

    def fetch_raw(self) -> list[dict]:
        data = fetch_json(
            self.API_URL,
            params={"query": self.search_query(), "near": self.country, "limit": self.limit},
            headers={"Authorization": self.api_key, "Accept": "application/json"},
        )
        return data.get("results", [])

    def normalize(self, item: dict[str, Any]) -> ProviderCandidate | None:
        if not item.get("name") or not item.get("fsq_id"):
            return None

        geocode = item.get("geocodes", {}).get("main", {})
        lat, lon = normalize_coordinates(geocode.get("latitude"), geocode.get("longitude"))

        return ProviderCandidate(
            provider=self.provider_id,
            name=item["name"],
            category=self.category,
            country_code=self.country,
            description=item.get("description"),
            city=item.get("location", {}).get("locality"),
            lat=lat,
            lon=lon,
            sources=[self.source(f"https://foursquare.com/v/{item['fsq_id']}", "api")],
        )
