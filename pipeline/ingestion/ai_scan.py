"""
AI scan: places suggested by an LLM.

The model may repeat itself within one answer, so the batch is collapsed by
(name, country) before the store is consulted.
"""

from datetime import datetime

from pipeline.deduplication import dedupe_by_country
from pipeline.ingestion.base import BaseScan, ScanConfig
from pipeline.providers import BaseProvider, LLMProvider, ProviderCandidate
from pipeline.providers.llm import DEFAULT_EVIDENCE_SCORE


class AiScan(BaseScan):
    """Scan driven by LLM suggestions."""

    scan_type = "ai"
    search_query = "haunted places, abandoned hospitals, creepy locations"
    ai_collected = 1

    def build_providers(self, config: ScanConfig) -> list[BaseProvider]:
        return [
            LLMProvider(
                api_key=config.credentials.get("llm"),
                model=config.llm_model,
                place_count=config.ai_place_count,
            )
        ]

    def dedupe_batch(self, candidates: list[ProviderCandidate]) -> list[ProviderCandidate]:
        return dedupe_by_country(candidates)

    def evidence_score(self, candidate: ProviderCandidate, slug: str) -> int:
        if candidate.evidence_score is None:
            return DEFAULT_EVIDENCE_SCORE
        return candidate.evidence_score

    def build_place(self, candidate: ProviderCandidate, slug: str, seen_at: datetime) -> dict:
        values = super().build_place(candidate, slug, seen_at)
        values["last_ai_scan_at"] = seen_at
        values["ai_scan_count"] = 1
        return values
