"""
Wikidata haunted-places provider.

Fetches haunted houses, ghost towns, cemeteries, temples and castles from
Wikidata via SPARQL. When Wikidata carries no English description, the
intro of the linked English Wikipedia article is used instead.

Data source: https://www.wikidata.org/
License: CC0 (Public Domain)
API Key: Not required
"""

import re
from typing import Any

import httpx
from loguru import logger

from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.geo import normalize_coordinates, parse_wkt_point
from pipeline.utils.http import HTTPError, fetch_json
from pipeline.utils.text import clean_description


class WikidataProvider(BaseProvider):
    """
    Provider for Wikidata items of paranormal interest.

    Queried types:
    - Haunted house (Q2160801)
    - Ghost town (Q5084)
    - Cemetery (Q39614)
    - Temple (Q44539)
    - Castle (Q23413)
    """

    provider_id = "wikidata"
    provider_name = "Wikidata"

    SPARQL_ENDPOINT = "https://query.wikidata.org/sparql"
    WIKIDATA_API = "https://www.wikidata.org/w/api.php"
    WIKIPEDIA_API = "https://en.wikipedia.org/w/api.php"

    WIKIDATA_TYPES = [
        ("Q2160801", "haunted house"),
        ("Q5084", "ghost town"),
        ("Q39614", "cemetery"),
        ("Q44539", "temple"),
        ("Q23413", "castle"),
    ]

    # Wikidata class to place category
    TYPE_MAPPING = {
        "Q5084": "abandoned",
        "Q39614": "cemetery",
    }
    DEFAULT_CATEGORY = "haunted"

    SPARQL_QUERY = """
    SELECT DISTINCT ?place ?placeLabel ?type ?coord ?countryCode ?description WHERE {{
      VALUES ?type {{ {types} }}
      ?place wdt:P31 ?type .
      OPTIONAL {{ ?place wdt:P625 ?coord . }}
      OPTIONAL {{ ?place wdt:P17 ?country . ?country wdt:P297 ?countryCode . }}
      OPTIONAL {{ ?place schema:description ?description . FILTER(LANG(?description) = "en") }}
      SERVICE wikibase:label {{ bd:serviceParam wikibase:language "en". }}
    }}
    LIMIT {limit}
    """

    # Unlabelled items come back with their Q-id as label
    UNLABELLED_RE = re.compile(r"^Q\d+$")

    def __init__(self, *args, fetch_extracts: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.fetch_extracts = fetch_extracts

    def build_query(self) -> str:
        types = " ".join(f"wd:{type_id}" for type_id, _ in self.WIKIDATA_TYPES)
        return self.SPARQL_QUERY.format(types=types, limit=self.limit)

    def fetch_raw(self) -> list[dict]:
        data = fetch_json(
            self.SPARQL_ENDPOINT,
            params={"query": self.build_query(), "format": "json"},
            headers={"Accept": "application/sparql-results+json"},
            timeout=120,
        )
        bindings = data.get("results", {}).get("bindings", [])
        logger.debug(f"Wikidata returned {len(bindings)} bindings")
        return bindings

    def normalize(self, item: dict[str, Any]) -> ProviderCandidate | None:
        name = item.get("placeLabel", {}).get("value", "").strip()
        if not name or self.UNLABELLED_RE.match(name):
            return None

        entity_uri = item.get("place", {}).get("value")
        wikidata_id = entity_uri.rsplit("/", 1)[-1] if entity_uri else None

        lat = lon = None
        if item.get("coord", {}).get("value"):
            wkt_lon, wkt_lat = parse_wkt_point(item["coord"]["value"])
            lat, lon = normalize_coordinates(wkt_lat, wkt_lon)

        type_id = item.get("type", {}).get("value", "").rsplit("/", 1)[-1]
        category = self.TYPE_MAPPING.get(type_id, self.DEFAULT_CATEGORY)

        description = item.get("description", {}).get("value")
        if not description and wikidata_id and self.fetch_extracts:
            description = self.wikipedia_extract(wikidata_id)

        country_code = item.get("countryCode", {}).get("value") or "XX"

        return ProviderCandidate(
            provider=self.provider_id,
            name=name,
            category=category,
            country_code=country_code.upper()[:2],
            description=clean_description(description, max_length=500),
            lat=lat,
            lon=lon,
            wikidata_id=wikidata_id,
            sources=[self.source(entity_uri or "https://www.wikidata.org", "api")],
        )

    def wikipedia_extract(self, wikidata_id: str) -> str | None:
        """
        Intro paragraph of the English Wikipedia article linked to an item.

        Lookup failures are logged and yield None.
        """
        try:
            entities = fetch_json(
                self.WIKIDATA_API,
                params={
                    "action": "wbgetentities",
                    "ids": wikidata_id,
                    "props": "sitelinks",
                    "sitefilter": "enwiki",
                    "format": "json",
                },
            )
            title = (
                entities.get("entities", {})
                .get(wikidata_id, {})
                .get("sitelinks", {})
                .get("enwiki", {})
                .get("title")
            )
            if not title:
                return None

            extracts = fetch_json(
                self.WIKIPEDIA_API,
                params={
                    "action": "query",
                    "prop": "extracts",
                    "exintro": "true",
                    "explaintext": "true",
                    "titles": title,
                    "format": "json",
                },
            )
        except (HTTPError, httpx.HTTPError) as e:
            logger.warning(f"Wikipedia extract lookup failed for {wikidata_id}: {e}")
            return None

        for page in extracts.get("query", {}).get("pages", {}).values():
            extract = page.get("extract")
            if extract:
                return extract[:500]
        return None
