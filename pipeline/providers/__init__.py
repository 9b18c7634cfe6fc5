"""
Place providers.

Each provider wraps one external source and yields ``ProviderCandidate``
objects. ``PROVIDER_CLASSES`` maps provider ids (as used in configuration
and scan requests) to their classes.
"""

from pipeline.providers.atlas_obscura import AtlasObscuraProvider
from pipeline.providers.base import (
    BaseProvider,
    ProviderCandidate,
    ProviderConfigError,
    ProviderError,
)
from pipeline.providers.dbpedia import DBpediaProvider
from pipeline.providers.foursquare import FoursquareProvider
from pipeline.providers.geonames import GeoNamesProvider
from pipeline.providers.google_places import GooglePlacesProvider
from pipeline.providers.llm import LLMProvider
from pipeline.providers.wikidata import WikidataProvider

PROVIDER_CLASSES: dict[str, type[BaseProvider]] = {
    "wikidata": WikidataProvider,
    "dbpedia": DBpediaProvider,
    "foursquare": FoursquareProvider,
    "google": GooglePlacesProvider,
    "geonames": GeoNamesProvider,
    "atlas": AtlasObscuraProvider,
    "llm": LLMProvider,
}


def get_provider(provider_id: str, **kwargs) -> BaseProvider:
    """Instantiate a provider by id."""
    try:
        provider_class = PROVIDER_CLASSES[provider_id]
    except KeyError:
        raise ValueError(f"Unknown provider: {provider_id}") from None
    return provider_class(**kwargs)


__all__ = [
    "PROVIDER_CLASSES",
    "get_provider",
    "BaseProvider",
    "ProviderCandidate",
    "ProviderError",
    "ProviderConfigError",
    "WikidataProvider",
    "DBpediaProvider",
    "FoursquareProvider",
    "GooglePlacesProvider",
    "GeoNamesProvider",
    "AtlasObscuraProvider",
    "LLMProvider",
]
