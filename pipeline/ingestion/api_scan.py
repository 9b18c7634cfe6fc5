"""
API scan: Wikidata (+ Wikipedia extracts) into the places table.
"""

import hashlib

from pipeline.ingestion.base import BaseScan, ScanConfig
from pipeline.providers import BaseProvider, ProviderCandidate, WikidataProvider


class ApiScan(BaseScan):
    """Scan of structured open data (Wikidata)."""

    scan_type = "api"
    search_query = "API: Wikidata + Wikipedia"
    ai_collected = 0

    # API data scores lower than AI-verified data
    MIN_SCORE = 40
    MAX_SCORE = 70

    def build_providers(self, config: ScanConfig) -> list[BaseProvider]:
        return [WikidataProvider(limit=config.result_limit)]

    def evidence_score(self, candidate: ProviderCandidate, slug: str) -> int:
        """Stable score in 40-70 derived from the slug, so reruns agree."""
        digest = int(hashlib.md5(slug.encode("utf-8")).hexdigest(), 16)
        return self.MIN_SCORE + digest % (self.MAX_SCORE - self.MIN_SCORE + 1)
