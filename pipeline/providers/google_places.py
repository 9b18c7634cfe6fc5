"""
Google Places provider (text search).

Data source: https://developers.google.com/maps/documentation/places
API Key: Required (GOOGLE_PLACES_API_KEY)
"""

from typing import Any

from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.geo import normalize_coordinates
from pipeline.utils.http import fetch_json


class GooglePlacesProvider(BaseProvider):
    """Provider for the Google Places text search API."""

    provider_id = "google"
    provider_name = "Google Places"
    error_label = "Google"

    API_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"

    # Statuses that still carry a valid (possibly empty) result list
    OK_STATUSES = {"OK", "ZERO_RESULTS"}

    def search_query(self) -> str:
        query = "haunted places" if self.category == "haunted_location" else self.category
        return f"{query} {self.country}"

    def fetch_raw(self) -> list[dict]:
        data = fetch_json(self.API_URL, params={"query": self.search_query(), "key": self.api_key})

        status = data.get("status", "OK")
        if status not in self.OK_STATUSES:
            raise ValueError(data.get("error_message") or status)

        return data.get("results", [])[:self.limit]

    def normalize(self, item: dict[str, Any]) -> ProviderCandidate | None:
        if not item.get("name") or not item.get("place_id"):
            return None

        location = item.get("geometry", {}).get("location", {})
        lat, lon = normalize_coordinates(location.get("lat"), location.get("lng"))

        return ProviderCandidate(
            provider=self.provider_id,
            name=item["name"],
            category=self.category,
            country_code=self.country,
            description=item.get("formatted_address"),
            lat=lat,
            lon=lon,
            sources=[self.source(f"https://www.google.com/maps/place/?q=place_id:{item['place_id']}", "api")],
        )
