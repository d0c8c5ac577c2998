"""
Configuration module for the Listing Sync Service.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class GeocodingProvider(str, Enum):
    NOMINATIM = "nominatim"
    GOOGLE = "google"


class Settings(BaseSettings):
    """
    Settings for the Listing Sync Service.
    Loads environment variables, with fallbacks to default values where appropriate.
    All environment variables are prefixed with LISTING_SYNC_SERVICE_.
    """

    # Core service settings
    ENVIRONMENT: Environment = Field(
        Environment.DEVELOPMENT,
        alias="LISTING_SYNC_SERVICE_ENVIRONMENT",
        description="Application environment",
    )
    ROOT_PATH: str = Field(
        "/api/v1",
        alias="LISTING_SYNC_SERVICE_ROOT_PATH",
        description="API root path for reverse proxies",
    )
    LOGGING_LEVEL: str = Field(
        "INFO",
        alias="LISTING_SYNC_SERVICE_LOGGING_LEVEL",
        description="Logging level",
    )
    DEBUG: bool = Field(
        False,
        alias="LISTING_SYNC_SERVICE_DEBUG",
        description="Include raw store errors in API error responses",
    )

    # Database configuration
    DATABASE_URL: str = Field(
        ...,
        alias="LISTING_SYNC_SERVICE_DATABASE_URL",
        description="PostgreSQL connection string",
    )
    DATABASE_REQUIRE_SSL: bool = Field(
        False,
        alias="LISTING_SYNC_SERVICE_DATABASE_REQUIRE_SSL",
        description="Require SSL for hosted PostgreSQL",
    )

    # Redis cache
    REDIS_URL: str = Field(
        "redis://localhost:6379/0",
        alias="LISTING_SYNC_SERVICE_REDIS_URL",
        description="Redis connection string for read-through caches",
    )
    LISTING_CACHE_TTL_SECONDS: int = Field(
        3600,
        alias="LISTING_SYNC_SERVICE_LISTING_CACHE_TTL_SECONDS",
        description="TTL for cached listing detail views",
    )

    # Listing identity
    EXTERNAL_ID_THRESHOLD: int = Field(
        1_000_000,
        alias="LISTING_SYNC_SERVICE_EXTERNAL_ID_THRESHOLD",
        description="Ids below this value are internal, ids at or above are MLS imports",
    )
    SITE_URL: str = Field(
        "http://localhost:8000",
        alias="LISTING_SYNC_SERVICE_SITE_URL",
        description="Public site URL used for canonical listing detail URLs",
    )

    # Geocoding
    GEOCODING_PROVIDER: GeocodingProvider = Field(
        GeocodingProvider.NOMINATIM,
        alias="LISTING_SYNC_SERVICE_GEOCODING_PROVIDER",
        description="Primary geocoding provider",
    )
    GOOGLE_MAPS_API_KEY: Optional[str] = Field(
        None,
        alias="LISTING_SYNC_SERVICE_GOOGLE_MAPS_API_KEY",
        description="API key for the Google geocoding provider",
    )
    GEOCODING_USER_AGENT: str = Field(
        "ListingSyncService/0.1 (listings@example.com)",
        alias="LISTING_SYNC_SERVICE_GEOCODING_USER_AGENT",
    )
    GEOCODING_TIMEOUT_SECONDS: float = Field(
        10.0, alias="LISTING_SYNC_SERVICE_GEOCODING_TIMEOUT_SECONDS"
    )
    GEOCODE_CACHE_TTL_SECONDS: int = Field(
        604800, alias="LISTING_SYNC_SERVICE_GEOCODE_CACHE_TTL_SECONDS"
    )
    DEFAULT_LATITUDE: float = Field(
        42.3601, alias="LISTING_SYNC_SERVICE_DEFAULT_LATITUDE"
    )
    DEFAULT_LONGITUDE: float = Field(
        -71.0589, alias="LISTING_SYNC_SERVICE_DEFAULT_LONGITUDE"
    )
    SERVICE_AREA_MIN_LAT: float = Field(
        41.0, alias="LISTING_SYNC_SERVICE_SERVICE_AREA_MIN_LAT"
    )
    SERVICE_AREA_MAX_LAT: float = Field(
        43.5, alias="LISTING_SYNC_SERVICE_SERVICE_AREA_MAX_LAT"
    )
    SERVICE_AREA_MIN_LNG: float = Field(
        -73.5, alias="LISTING_SYNC_SERVICE_SERVICE_AREA_MIN_LNG"
    )
    SERVICE_AREA_MAX_LNG: float = Field(
        -69.5, alias="LISTING_SYNC_SERVICE_SERVICE_AREA_MAX_LNG"
    )

    # Edge cache
    EDGE_CACHE_PURGE_URL: Optional[str] = Field(
        None,
        alias="LISTING_SYNC_SERVICE_EDGE_CACHE_PURGE_URL",
        description="Endpoint accepting {'files': [url]} purge requests",
    )
    EDGE_CACHE_PURGE_TOKEN: Optional[str] = Field(
        None, alias="LISTING_SYNC_SERVICE_EDGE_CACHE_PURGE_TOKEN"
    )
    EVENT_HANDLER_TIMEOUT_SECONDS: float = Field(
        5.0,
        alias="LISTING_SYNC_SERVICE_EVENT_HANDLER_TIMEOUT_SECONDS",
        description="Upper bound for each listing-changed subscriber",
    )

    # Pagination
    DEFAULT_PAGE_SIZE: int = Field(20, alias="LISTING_SYNC_SERVICE_DEFAULT_PAGE_SIZE")
    MAX_PAGE_SIZE: int = Field(100, alias="LISTING_SYNC_SERVICE_MAX_PAGE_SIZE")

    # CORS and rate limiting
    CORS_ALLOW_ORIGINS: List[str] = Field(
        ["*"],
        alias="LISTING_SYNC_SERVICE_CORS_ALLOW_ORIGINS",
        description="Allowed CORS origins",
    )
    RATE_LIMIT_REQUESTS_PER_MINUTE: int = Field(
        120,
        alias="LISTING_SYNC_SERVICE_RATE_LIMIT_REQUESTS_PER_MINUTE",
        description="Default rate limit per client",
    )

    @field_validator("CORS_ALLOW_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        return self.ENVIRONMENT == Environment.TESTING

    def expose_error_details(self) -> bool:
        return self.DEBUG or self.is_development()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
