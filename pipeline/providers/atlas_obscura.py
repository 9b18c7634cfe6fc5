"""
Atlas Obscura provider.

Atlas Obscura has no public API. The search results page embeds
schema.org JSON-LD blocks, which are parsed here; pages without them yield
no places rather than an error.

Data source: https://www.atlasobscura.com/
API Key: Not required
"""

import json
import re
from typing import Any

from loguru import logger

from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.geo import normalize_coordinates
from pipeline.utils.http import fetch_with_retry
from pipeline.utils.text import clean_description


class AtlasObscuraProvider(BaseProvider):
    """Provider scraping JSON-LD from the Atlas Obscura search page."""

    provider_id = "atlas"
    provider_name = "Atlas Obscura"

    SEARCH_URL = "https://www.atlasobscura.com/places"

    JSON_LD_RE = re.compile(
        r'<script[^>]+type="application/ld\+json"[^>]*>(.*?)</script>',
        re.DOTALL | re.IGNORECASE,
    )

    PLACE_TYPES = {"Place", "TouristAttraction", "LandmarksOrHistoricalBuildings"}

    def fetch_raw(self) -> list[dict]:
        response = fetch_with_retry(
            self.SEARCH_URL,
            params={"q": "haunted"},
            headers={"Accept": "text/html"},
        )
        items = self.parse_json_ld(response.text)
        return items[:self.limit]

    def parse_json_ld(self, html: str) -> list[dict]:
        """Collect schema.org place objects from every JSON-LD block."""
        items = []
        for block in self.JSON_LD_RE.findall(html or ""):
            try:
                data = json.loads(block.strip())
            except json.JSONDecodeError as e:
                logger.debug(f"Atlas Obscura: unreadable JSON-LD block ({e})")
                continue
            items.extend(self._collect_places(data))
        return items

    def _collect_places(self, data: Any) -> list[dict]:
        if isinstance(data, list):
            found = []
            for entry in data:
                found.extend(self._collect_places(entry))
            return found

        if not isinstance(data, dict):
            return []

        if "@graph" in data:
            return self._collect_places(data["@graph"])

        if data.get("@type") == "ItemList":
            entries = [e.get("item", e) for e in data.get("itemListElement", []) if isinstance(e, dict)]
            return self._collect_places(entries)

        types = data.get("@type")
        types = set(types) if isinstance(types, list) else {types}
        return [data] if types & self.PLACE_TYPES else []

    def normalize(self, item: dict[str, Any]) -> ProviderCandidate | None:
        name = item.get("name")
        url = item.get("url")
        if not name or not url:
            return None

        geo = item.get("geo") or {}
        lat, lon = normalize_coordinates(geo.get("latitude"), geo.get("longitude"))

        address = item.get("address") or {}
        if isinstance(address, str):
            address = {}
        country = address.get("addressCountry")
        if isinstance(country, dict):
            country = country.get("name")
        country_code = country.upper() if isinstance(country, str) and len(country) == 2 else self.country

        return ProviderCandidate(
            provider=self.provider_id,
            name=name,
            category=self.category,
            country_code=country_code,
            description=clean_description(item.get("description"), max_length=500),
            city=address.get("addressLocality"),
            lat=lat,
            lon=lon,
            sources=[self.source(url, "website")],
        )
