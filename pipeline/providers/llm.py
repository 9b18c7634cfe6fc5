"""
LLM provider for the AI scan.

Asks an Anthropic model for a handful of places and parses its JSON reply.
Items that do not look like places are skipped.
"""

import json
import re
from pathlib import Path
from typing import Any

import anthropic
from loguru import logger

from pipeline.config import DEFAULT_AI_PLACE_COUNT, DEFAULT_LLM_MODEL
from pipeline.deduplication.types import SourceRef
from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.text import clean_description, extract_domain, is_http_url

PROMPT_PATH = Path(__file__).parent / "prompts" / "ai_scan.txt"

DEFAULT_CATEGORY = "Diğer"
DEFAULT_EVIDENCE_SCORE = 60


def parse_places_json(text: str) -> list[Any]:
    """
    Extract the list of places from a model reply.

    Accepts a bare JSON array or an object with a ``places`` key, optionally
    wrapped in a markdown code fence.

    Raises:
        ValueError: If no JSON can be decoded
    """
    text = (text or "").strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        # Prose around the JSON
        match = re.search(r"(\[.*\]|\{.*\})", text, re.DOTALL)
        if not match:
            raise ValueError("Failed to parse AI response as JSON")
        try:
            parsed = json.loads(match.group(1))
        except json.JSONDecodeError as e:
            raise ValueError("Failed to parse AI response as JSON") from e

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        places = parsed.get("places", [])
        return places if isinstance(places, list) else []
    return []


def clamp_score(value: Any, default: int = DEFAULT_EVIDENCE_SCORE) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return default
    return max(0, min(100, score))


class LLMProvider(BaseProvider):
    """Provider backed by the Anthropic messages API."""

    provider_id = "llm"
    provider_name = "AI"
    missing_key_message = "Anthropic API key not configured"

    def __init__(self, *args, client: anthropic.Anthropic | None = None,
                 model: str | None = None, place_count: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.client = client
        self.model = model or DEFAULT_LLM_MODEL
        self.place_count = place_count or DEFAULT_AI_PLACE_COUNT

    @property
    def requires_key(self) -> bool:
        # An injected client already carries its credentials
        return self.client is None

    def build_prompt(self) -> str:
        return PROMPT_PATH.read_text(encoding="utf-8").format(count=self.place_count)

    def fetch_raw(self) -> list[Any]:
        client = self.client or anthropic.Anthropic(api_key=self.api_key)

        response = client.messages.create(
            model=self.model,
            max_tokens=2048,
            messages=[{"role": "user", "content": self.build_prompt()}],
        )
        if not response.content:
            raise ValueError("No content from AI")

        text = response.content[0].text
        logger.debug(f"AI response: {text[:500]}")
        return parse_places_json(text)

    def normalize(self, item: Any) -> ProviderCandidate | None:
        if not isinstance(item, dict):
            return None

        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            return None

        sources = []
        url = item.get("source")
        if is_http_url(url):
            url = url.strip()
            sources.append(SourceRef(url=url, domain=extract_domain(url), type="web"))

        country_code = item.get("country_code")
        if not isinstance(country_code, str) or len(country_code.strip()) != 2:
            country_code = "XX"

        return ProviderCandidate(
            provider=self.provider_id,
            name=name.strip(),
            category=item.get("category") or DEFAULT_CATEGORY,
            country_code=country_code.strip().upper(),
            description=clean_description(item.get("description")),
            city=item.get("city") or None,
            evidence_score=clamp_score(item.get("evidence_score")),
            sources=sources,
        )
