"""
Multi-source scan: fan out to every enabled geodata provider.

Providers are queried in a fixed order (DBpedia, Foursquare, Google Places,
GeoNames, Atlas Obscura). A place reported by several providers ends up
with one citation per provider, and its evidence score grows with them.
"""

from loguru import logger

from pipeline.config import MULTI_SCAN_PROVIDERS
from pipeline.ingestion.base import BaseScan, ScanConfig
from pipeline.providers import BaseProvider, ProviderCandidate, get_provider


class MultiScan(BaseScan):
    """Scan across the third-party geodata providers."""

    scan_type = "multi"
    ai_collected = 0

    POINTS_PER_SOURCE = 10

    def describe(self, config: ScanConfig) -> str:
        providers = ", ".join(self._enabled(config)) or "none"
        return f"Multi: {config.category} in {config.country} ({providers})"

    def _enabled(self, config: ScanConfig) -> list[str]:
        unknown = set(config.enabled_providers) - set(MULTI_SCAN_PROVIDERS)
        if unknown:
            logger.warning(f"Ignoring unknown providers: {', '.join(sorted(unknown))}")
        return [p for p in MULTI_SCAN_PROVIDERS if p in config.enabled_providers]

    def build_providers(self, config: ScanConfig) -> list[BaseProvider]:
        return [
            get_provider(
                provider_id,
                country=config.country,
                category=config.category,
                api_key=config.credentials.get(provider_id),
                limit=config.result_limit,
            )
            for provider_id in self._enabled(config)
        ]

    def evidence_score(self, candidate: ProviderCandidate, slug: str) -> int:
        return min(100, self.POINTS_PER_SOURCE * len(candidate.sources))
