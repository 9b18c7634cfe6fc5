"""
Base provider class for place sources.

Every third-party source (geodata APIs, SPARQL endpoints, the LLM) is an
adapter that turns its own payload into ``ProviderCandidate`` objects. The
scan orchestrators only ever see candidates.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger

from pipeline.config import PROVIDERS
from pipeline.deduplication.types import DuplicateCandidate, SourceRef


class ProviderError(Exception):
    """A provider could not be queried. The message is what ends up in the scan errors."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} error: {message}")
        self.provider = provider
        self.detail = message


class ProviderConfigError(ProviderError):
    """A provider needs a credential that is not configured."""

    def __init__(self, provider: str, message: str):
        super().__init__(provider, message)
        # Reported as-is, e.g. "Foursquare API key not configured"
        self.args = (message,)


@dataclass
class ProviderCandidate:
    """
    A place as reported by one provider, before any store lookup.

    This is the common format all providers produce.
    """
    provider: str
    name: str
    category: str
    country_code: str = "XX"
    description: str | None = None
    city: str | None = None
    lat: float | None = None
    lon: float | None = None
    wikidata_id: str | None = None
    osm_id: str | None = None
    evidence_score: int | None = None
    sources: list[SourceRef] = field(default_factory=list)

    def duplicate_candidate(self) -> DuplicateCandidate:
        return DuplicateCandidate(
            name=self.name,
            lat=self.lat,
            lon=self.lon,
            wikidata_id=self.wikidata_id,
            osm_id=self.osm_id,
        )


class BaseProvider(ABC):
    """
    Abstract base class for place providers.

    Subclasses must implement:
    - fetch_raw(): Query the source and return its raw items
    - normalize(): Turn one raw item into a ProviderCandidate (or None)
    """

    # Class attributes to be set by subclasses
    provider_id: str = None         # e.g., "foursquare"
    provider_name: str = None       # e.g., "Foursquare"

    # Prefix used in scan errors, defaults to provider_name
    error_label: str = None

    # Error text when the credential is missing
    missing_key_message: str = None

    def __init__(
        self,
        country: str = "TR",
        category: str = "haunted_location",
        api_key: Optional[str] = None,
        limit: int = 50,
    ):
        if self.provider_id is None:
            raise ValueError("provider_id must be set in subclass")

        self.info = PROVIDERS.get(self.provider_id, {})
        self.provider_name = self.provider_name or self.info.get("name", self.provider_id)
        self.country = (country or "XX").upper()
        self.category = category
        self.limit = limit

        # Only the key handed in is used; scans pass ScanConfig.credentials
        self.api_key = api_key

    @property
    def label(self) -> str:
        return self.error_label or self.provider_name

    @property
    def requires_key(self) -> bool:
        return bool(self.info.get("key_setting"))

    @abstractmethod
    def fetch_raw(self) -> list[Any]:
        """
        Query the source.

        Returns:
            Raw items (decoded JSON objects, bindings, etc.)
        """
        pass

    @abstractmethod
    def normalize(self, item: Any) -> ProviderCandidate | None:
        """
        Turn one raw item into a candidate.

        Returns:
            ProviderCandidate, or None when the item is unusable
        """
        pass

    def fetch(self) -> list[ProviderCandidate]:
        """
        Fetch and normalize all items from this provider.

        Raises:
            ProviderConfigError: If a required credential is missing
            ProviderError: If the source could not be queried
        """
        if self.requires_key and not self.api_key:
            message = self.missing_key_message or f"{self.provider_name} API key not configured"
            raise ProviderConfigError(self.label, message)

        logger.info(f"Fetching from {self.provider_name}...")
        try:
            items = self.fetch_raw()
        except ProviderError:
            raise
        except Exception as e:
            # HTTPError, httpx transport errors, SDK errors, undecodable bodies
            raise ProviderError(self.label, str(e) or e.__class__.__name__) from e

        candidates = []
        for item in items:
            try:
                candidate = self.normalize(item)
            except (TypeError, ValueError, KeyError, AttributeError) as e:
                logger.warning(f"{self.provider_name}: skipping malformed item ({e})")
                continue

            if candidate is None or not candidate.name.strip():
                logger.debug(f"{self.provider_name}: skipping item without usable name")
                continue
            candidates.append(candidate)

        logger.info(f"{self.provider_name} found {len(candidates)} places")
        return candidates

    def source(self, url: str, source_type: str = "api") -> SourceRef:
        """Citation for an item of this provider."""
        return SourceRef(url=url, domain=self.info.get("domain") or "", type=source_type)
