"""
DBpedia provider.

Places whose English abstract mentions hauntings, ghosts or paranormal
activity, from the public DBpedia SPARQL endpoint.

Data source: https://dbpedia.org/
API Key: Not required
"""

from typing import Any

from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.geo import normalize_coordinates
from pipeline.utils.http import fetch_json
from pipeline.utils.text import clean_description


class DBpediaProvider(BaseProvider):
    """Provider for DBpedia places with paranormal abstracts."""

    provider_id = "dbpedia"
    provider_name = "DBpedia"

    SPARQL_ENDPOINT = "https://dbpedia.org/sparql"

    SPARQL_QUERY = """
    PREFIX dbo: <http://dbpedia.org/ontology/>
    PREFIX rdfs: <http://www.w3.org/2000/01/rdf-schema#>
    PREFIX geo: <http://www.w3.org/2003/01/geo/wgs84_pos#>

    SELECT DISTINCT ?place ?label ?abstract ?lat ?long WHERE {{
      ?place a dbo:Place ;
             rdfs:label ?label ;
             dbo:abstract ?abstract .
      OPTIONAL {{ ?place geo:lat ?lat ; geo:long ?long . }}
      FILTER (LANG(?label) = 'en')
      FILTER (LANG(?abstract) = 'en')
      FILTER (CONTAINS(LCASE(?abstract), "haunted") || CONTAINS(LCASE(?abstract), "ghost") || CONTAINS(LCASE(?abstract), "paranormal"))
    }} LIMIT {limit}
    """

    def fetch_raw(self) -> list[dict]:
        data = fetch_json(
            self.SPARQL_ENDPOINT,
            method="POST",
            data={"query": self.SPARQL_QUERY.format(limit=self.limit)},
            headers={"Accept": "application/json"},
            timeout=60,
        )
        return data.get("results", {}).get("bindings", [])

    def normalize(self, item: dict[str, Any]) -> ProviderCandidate | None:
        name = item.get("label", {}).get("value")
        if not name:
            return None

        lat, lon = normalize_coordinates(
            item.get("lat", {}).get("value"),
            item.get("long", {}).get("value"),
        )

        return ProviderCandidate(
            provider=self.provider_id,
            name=name,
            category=self.category,
            country_code=self.country,
            description=clean_description(item.get("abstract", {}).get("value"), max_length=500),
            lat=lat,
            lon=lon,
            sources=[self.source(item.get("place", {}).get("value") or "https://dbpedia.org", "database")],
        )
