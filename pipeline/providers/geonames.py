"""
GeoNames search provider.

GeoNames is a geographical database with 11+ million place names. The
search web service is queried for features matching "haunted".

Data source: https://www.geonames.org/
License: CC-BY 4.0
API Key: Required username for web services (GEONAMES_USERNAME)
"""

from typing import Any

from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.geo import normalize_coordinates
from pipeline.utils.http import fetch_json


class GeoNamesProvider(BaseProvider):
    """Provider for the GeoNames searchJSON web service."""

    provider_id = "geonames"
    provider_name = "GeoNames"
    missing_key_message = "GeoNames username not configured"

    API_URL = "http://api.geonames.org/searchJSON"

    def fetch_raw(self) -> list[dict]:
        data = fetch_json(
            self.API_URL,
            params={
                "q": "haunted",
                "country": self.country,
                "maxRows": self.limit,
                "username": self.api_key,
            },
        )

        # GeoNames reports errors (bad username, quota) with HTTP 200
        if "status" in data:
            raise ValueError(data["status"].get("message", "unknown error"))

        return data.get("geonames", [])

    def normalize(self, item: dict[str, Any]) -> ProviderCandidate | None:
        if not item.get("name") or not item.get("geonameId"):
            return None

        lat, lon = normalize_coordinates(item.get("lat"), item.get("lng"))

        return ProviderCandidate(
            provider=self.provider_id,
            name=item["name"],
            category=self.category,
            country_code=(item.get("countryCode") or self.country).upper(),
            description=item.get("fcodeName"),
            city=item.get("adminName1") or None,
            lat=lat,
            lon=lon,
            sources=[self.source(f"http://www.geonames.org/{item['geonameId']}", "database")],
        )
