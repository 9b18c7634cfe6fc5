"""
Configuration management for the Haunted Places ingestion pipeline.

Uses pydantic-settings for type-safe configuration with environment variable support.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_LLM_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_AI_PLACE_COUNT = 3


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user: str = "haunted_places"
    password: str = ""  # Required: Set POSTGRES_PASSWORD in .env
    host: str = "localhost"
    port: int = 5432
    db: str = "haunted_places"

    # Full URL override (e.g. sqlite:///./haunted.db for local runs and tests)
    url_override: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")

    @property
    def url(self) -> str:
        """Construct database URL."""
        if self.url_override:
            return self.url_override
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}"


class PipelineSettings(BaseSettings):
    """Data pipeline settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    audit_log_file: Optional[str] = None  # WARNING+ records of the duplicate checker

    # HTTP settings
    http_timeout: int = 30  # seconds
    http_max_retries: int = 3
    http_retry_delay: float = 1.0  # seconds
    user_agent: str = "HauntedPlacesBot/1.0 (+https://github.com/haunted-places)"


class ScanSettings(BaseSettings):
    """Provider credentials and scan defaults.

    These are only the environment-level defaults. Each scan run receives an
    explicit ``ScanConfig`` built from them (plus the ``app_settings`` table),
    so nothing below is read in the middle of a batch.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider credentials (optional; missing keys are reported per scan)
    foursquare_api_key: Optional[str] = None
    google_places_api_key: Optional[str] = None
    geonames_username: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # AI scan
    llm_model: str = DEFAULT_LLM_MODEL
    ai_scan_place_count: int = DEFAULT_AI_PLACE_COUNT

    # Feature flag; can also be toggled at runtime via app_settings.scanning_paused
    scanning_paused: bool = False

    # Multi-source scan defaults
    scan_country: str = "TR"
    scan_category: str = "haunted_location"
    scan_providers: str = "dbpedia,foursquare,google,geonames,atlas"
    scan_result_limit: int = 50

    @property
    def scan_providers_list(self) -> list[str]:
        """Parse enabled providers into a list."""
        return [p.strip() for p in self.scan_providers.split(",") if p.strip()]


class DedupSettings(BaseSettings):
    """Duplicate detection thresholds."""

    model_config = SettingsConfigDict(
        env_prefix="DEDUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    recall_threshold: float = 0.75      # broad fuzzy search
    merge_similarity: float = 0.9       # auto-merge needs similarity strictly above this
    merge_distance_km: float = 1.0      # ...and distance strictly below this
    review_threshold: float = 0.7       # stored-duplicate review scan


class APISettings(BaseSettings):
    """API server settings."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    reload: bool = False
    admin_key: str = ""  # Required for scan endpoints: Set API_ADMIN_KEY in .env
    create_tables: bool = False
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


class Settings(BaseSettings):
    """Main settings class that combines all settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)
    api: APISettings = Field(default_factory=APISettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience function for quick access
settings = get_settings()


# =============================================================================
# Place / Source vocabulary
# =============================================================================

PLACE_STATUSES = ["pending", "pending_high", "approved", "rejected"]

SOURCE_TYPES = ["api", "ai", "web", "website", "database"]

# Keys of the app_settings table the pipeline understands
APP_SETTING_SCANNING_PAUSED = "scanning_paused"
APP_SETTING_COLLECTION_METHOD = "data_collection_method"

# Provider metadata, keyed by provider id
PROVIDERS = {
    "wikidata": {
        "name": "Wikidata",
        "url": "https://www.wikidata.org/",
        "api_url": "https://query.wikidata.org/sparql",
        "domain": "wikidata.org",
        "key_setting": None,
    },
    "dbpedia": {
        "name": "DBpedia",
        "url": "https://dbpedia.org/",
        "api_url": "https://dbpedia.org/sparql",
        "domain": "dbpedia.org",
        "key_setting": None,
    },
    "foursquare": {
        "name": "Foursquare",
        "url": "https://foursquare.com/",
        "api_url": "https://api.foursquare.com/v3/places/search",
        "domain": "foursquare.com",
        "key_setting": "foursquare_api_key",
    },
    "google": {
        "name": "Google Places",
        "url": "https://maps.google.com/",
        "api_url": "https://maps.googleapis.com/maps/api/place/textsearch/json",
        "domain": "google.com",
        "key_setting": "google_places_api_key",
    },
    "geonames": {
        "name": "GeoNames",
        "url": "https://www.geonames.org/",
        "api_url": "http://api.geonames.org/searchJSON",
        "domain": "geonames.org",
        "key_setting": "geonames_username",
    },
    "atlas": {
        "name": "Atlas Obscura",
        "url": "https://www.atlasobscura.com/",
        "api_url": "https://www.atlasobscura.com/search",
        "domain": "atlasobscura.com",
        "key_setting": None,
    },
    "llm": {
        "name": "AI",
        "url": "https://www.anthropic.com/",
        "api_url": None,
        "domain": None,
        "key_setting": "anthropic_api_key",
    },
}

# Providers the multi-source scan may fan out to, in fan-out order
MULTI_SCAN_PROVIDERS = ["dbpedia", "foursquare", "google", "geonames", "atlas"]
