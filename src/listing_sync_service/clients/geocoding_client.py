"""
Geocoding client resolving listing addresses to coordinates.

Resolution order: configured provider, the other provider, the same pair on
a city/state/zip-only address (marked approximate), and finally a fixed
default coordinate that is never cached.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from listing_sync_service.clients.cache_client import CacheClient, md5_hex
from listing_sync_service.config import GeocodingProvider, Settings
from listing_sync_service.exceptions import GeocodingFailed, InvalidAddress
from listing_sync_service.schemas.geocoding import Address, GeocodeResult

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
GOOGLE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

COUNTRY = "USA"
DEFAULT_FALLBACK_STATE = "MA"

GOOGLE_STATUS_MESSAGES = {
    "ZERO_RESULTS": "No results found for address",
    "OVER_QUERY_LIMIT": "Google API query limit exceeded",
    "REQUEST_DENIED": "Google API request denied - check API key",
    "INVALID_REQUEST": "Invalid request to Google API",
}


class NominatimProvider:
    name = GeocodingProvider.NOMINATIM.value

    def __init__(self, user_agent: str):
        self.user_agent = user_agent

    async def geocode(self, client: httpx.AsyncClient, address: str) -> Tuple[float, float]:
        params = {"q": address, "format": "json", "limit": 1, "addressdetails": 0}
        try:
            response = await client.get(
                NOMINATIM_URL, params=params, headers={"User-Agent": self.user_agent}
            )
        except httpx.HTTPError as e:
            raise GeocodingFailed(f"Nominatim API request failed: {e}") from e

        if response.status_code != 200:
            raise GeocodingFailed(f"Nominatim API returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise GeocodingFailed("Nominatim returned a non-JSON body") from e
        if not isinstance(data, list) or not data:
            raise GeocodingFailed(f"No geocoding results found for address: {address}")

        result = data[0]
        if "lat" not in result or "lon" not in result:
            raise GeocodingFailed("Nominatim response missing coordinates")
        try:
            return float(result["lat"]), float(result["lon"])
        except (TypeError, ValueError) as e:
            raise GeocodingFailed("Nominatim returned malformed coordinates") from e


class GoogleProvider:
    name = GeocodingProvider.GOOGLE.value

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def geocode(self, client: httpx.AsyncClient, address: str) -> Tuple[float, float]:
        try:
            response = await client.get(
                GOOGLE_URL, params={"address": address, "key": self.api_key}
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GeocodingFailed(f"Google Geocoding API request failed: {e}") from e

        status = data.get("status") if isinstance(data, dict) else None
        if status is None:
            raise GeocodingFailed("Invalid response from Google API")
        if status != "OK":
            raise GeocodingFailed(
                GOOGLE_STATUS_MESSAGES.get(status, f"Google API error: {status}")
            )

        try:
            location = data["results"][0]["geometry"]["location"]
            return float(location["lat"]), float(location["lng"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GeocodingFailed("No location data in Google response") from e


def build_address_string(address: Address) -> str:
    """Full address line, or "" when no address component is present."""
    parts: List[str] = []
    if address.street_number and address.street_name:
        street = f"{address.street_number} {address.street_name}"
        if address.unit_number:
            street += f" {address.unit_number}"
        parts.append(street)
    elif address.street_name:
        parts.append(address.street_name)

    parts.extend(
        part for part in (address.city, address.state_or_province, address.postal_code) if part
    )
    if not parts:
        return ""
    parts.append(COUNTRY)
    return ", ".join(parts)


def build_fallback_string(address: Address) -> str:
    if not address.city and not address.postal_code:
        return ""
    state = address.state_or_province or DEFAULT_FALLBACK_STATE
    parts = [part for part in (address.city, state, address.postal_code) if part]
    parts.append(COUNTRY)
    return ", ".join(parts)


def format_point(latitude: float, longitude: float) -> str:
    """WKT point; axis order is longitude first."""
    return f"POINT({longitude} {latitude})"


class GeocodingClient:
    """
    Resolves addresses through the provider chain with a redis-backed cache.
    """

    def __init__(
        self,
        settings: Settings,
        cache: CacheClient,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.cache = cache
        self.cache_ttl = settings.GEOCODE_CACHE_TTL_SECONDS
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.GEOCODING_TIMEOUT_SECONDS
        )
        self.providers = self._build_providers()
        logger.info(
            f"Initializing geocoding client with providers: "
            f"{[provider.name for provider in self.providers]}"
        )

    def _build_providers(self) -> List[Any]:
        nominatim = NominatimProvider(self.settings.GEOCODING_USER_AGENT)
        google = (
            GoogleProvider(self.settings.GOOGLE_MAPS_API_KEY)
            if self.settings.GOOGLE_MAPS_API_KEY
            else None
        )
        if self.settings.GEOCODING_PROVIDER == GeocodingProvider.GOOGLE and google:
            return [google, nominatim]
        return [nominatim, google] if google else [nominatim]

    @property
    def default_result(self) -> GeocodeResult:
        return GeocodeResult(
            latitude=self.settings.DEFAULT_LATITUDE,
            longitude=self.settings.DEFAULT_LONGITUDE,
            approximate=True,
            provider="default",
            is_default=True,
        )

    async def _try_providers(self, address_string: str) -> GeocodeResult:
        errors = []
        for provider in self.providers:
            try:
                latitude, longitude = await provider.geocode(self.http_client, address_string)
            except GeocodingFailed as e:
                logger.warning(f"Geocoding with {provider.name} failed: {e.message}")
                errors.append(f"{provider.name}: {e.message}")
                continue
            return GeocodeResult(latitude=latitude, longitude=longitude, provider=provider.name)
        raise GeocodingFailed(f"All providers failed for '{address_string}'", details=errors)

    async def resolve(self, address: Address) -> GeocodeResult:
        """
        Resolve an address, caching successful results.

        Raises:
            InvalidAddress: no address component to geocode
            GeocodingFailed: full and city/zip lookups both failed
        """
        address_string = build_address_string(address)
        if not address_string:
            raise InvalidAddress("Address is empty or incomplete")

        cache_key = f"geocode:{md5_hex(address_string)}"
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Geocode cache hit for '{address_string}'")
            return GeocodeResult(**cached)

        try:
            result = await self._try_providers(address_string)
        except GeocodingFailed:
            result = await self._resolve_fallback(address)
            logger.info(f"Used city/zip fallback for '{address_string}'")

        await self.cache.set(cache_key, result.model_dump(), ttl=self.cache_ttl)
        return result

    async def _resolve_fallback(self, address: Address) -> GeocodeResult:
        fallback_string = build_fallback_string(address)
        if not fallback_string:
            raise GeocodingFailed("No city or postal code for fallback geocoding")

        cache_key = f"geocode_fallback:{md5_hex(fallback_string)}"
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return GeocodeResult(**cached)

        result = await self._try_providers(fallback_string)
        result = result.model_copy(
            update={"approximate": True, "fallback_address": fallback_string}
        )
        await self.cache.set(cache_key, result.model_dump(), ttl=self.cache_ttl)
        return result

    async def resolve_or_default(self, address: Address) -> GeocodeResult:
        """Never fails; the default coordinate is returned uncached."""
        try:
            return await self.resolve(address)
        except GeocodingFailed as e:
            logger.warning(f"Geocoding failed, using default coordinates: {e.message}")
            return self.default_result

    def is_in_service_area(self, latitude: float, longitude: float) -> bool:
        s = self.settings
        return (
            s.SERVICE_AREA_MIN_LAT <= latitude <= s.SERVICE_AREA_MAX_LAT
            and s.SERVICE_AREA_MIN_LNG <= longitude <= s.SERVICE_AREA_MAX_LNG
        )

    async def clear_cache(self, address: Address) -> None:
        keys = []
        address_string = build_address_string(address)
        if address_string:
            keys.append(f"geocode:{md5_hex(address_string)}")
        fallback_string = build_fallback_string(address)
        if fallback_string:
            keys.append(f"geocode_fallback:{md5_hex(fallback_string)}")
        await self.cache.delete(*keys)

    def diagnostics(self) -> Dict[str, Any]:
        s = self.settings
        return {
            "provider": s.GEOCODING_PROVIDER.value,
            "provider_chain": [provider.name for provider in self.providers],
            "google_api_key_configured": bool(s.GOOGLE_MAPS_API_KEY),
            "default_coordinates": {"latitude": s.DEFAULT_LATITUDE, "longitude": s.DEFAULT_LONGITUDE},
            "service_area": {
                "min_lat": s.SERVICE_AREA_MIN_LAT,
                "max_lat": s.SERVICE_AREA_MAX_LAT,
                "min_lng": s.SERVICE_AREA_MIN_LNG,
                "max_lng": s.SERVICE_AREA_MAX_LNG,
            },
            "cache_ttl_seconds": self.cache_ttl,
        }

    async def aclose(self) -> None:
        await self.http_client.aclose()
