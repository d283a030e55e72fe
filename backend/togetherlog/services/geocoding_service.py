"""
TogetherLog Backend - Reverse Geocoding Service
================================================

What:  Converts GPS coordinates into a short, human-readable place name
       ("Paris, France") using OpenStreetMap Nominatim.
How:   validate → cache lookup → rate limiter → one HTTP GET → short-name
       heuristic → cache store.
Who:   Called by WorkerService.reverse_geocode after the user-override check.

Short-name heuristic (first hit per slot, each slot only if present):
    city | town | village,  state,  country   → joined with ", "
    no address parts        → provider's full display_name
    nothing at all          → "Unknown Location"

Failure policy:
    Out-of-range or non-numeric coordinates raise InvalidCoordinates before
    any network activity. Transport errors, non-2xx statuses and payloads
    that are not a JSON object raise ProviderError. Nothing is retried here.
"""

import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, Optional, Tuple

import httpx

from togetherlog.config import settings
from togetherlog.exceptions import InvalidCoordinates, ProviderError
from togetherlog.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"

# Address keys tried in order for the locality slot
LOCALITY_KEYS = ("city", "town", "village")


@dataclass(frozen=True)
class GeocodeResult:
    display_name: str
    raw_data: Dict[str, Any] = field(default_factory=dict)


def validate_coordinates(lat: Any, lng: Any) -> Tuple[float, float]:
    """
    Check that (lat, lng) is a finite pair inside [-90, 90] x [-180, 180].

    Raises:
        InvalidCoordinates: non-numeric, boolean, NaN/inf or out of range
    """
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, Real):
            raise InvalidCoordinates(lat, lng, message="lat and lng must be numbers")

    try:
        lat_f, lng_f = float(lat), float(lng)
    except OverflowError:
        # Integers beyond float range
        raise InvalidCoordinates(lat, lng)
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        raise InvalidCoordinates(lat, lng)
    if not -90.0 <= lat_f <= 90.0 or not -180.0 <= lng_f <= 180.0:
        raise InvalidCoordinates(lat, lng)
    return lat_f, lng_f


def build_display_name(payload: Dict[str, Any]) -> str:
    """Apply the short-name heuristic to a Nominatim reverse payload."""
    address = payload.get("address")
    if isinstance(address, dict):
        parts = []
        for key in LOCALITY_KEYS:
            if address.get(key):
                parts.append(str(address[key]))
                break
        if address.get("state"):
            parts.append(str(address["state"]))
        if address.get("country"):
            parts.append(str(address["country"]))
        if parts:
            return ", ".join(parts)

    return payload.get("display_name") or UNKNOWN_LOCATION


class ReverseGeocoder:
    """
    Nominatim reverse-geocoding client with rate limiting and an LRU cache.

    The rate limiter and HTTP client are injectable so tests can use a
    fake clock and httpx.MockTransport. When no client is given, one
    AsyncClient is created on first use and closed by aclose().
    """

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        accept_language: Optional[str] = None,
        zoom: Optional[int] = None,
        timeout: Optional[float] = None,
        cache_size: Optional[int] = None,
    ):
        self.rate_limiter = rate_limiter or RateLimiter(
            min_interval=settings.geocode_min_interval_ms / 1000.0
        )
        self.base_url = base_url or settings.nominatim_url
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.accept_language = accept_language or settings.nominatim_accept_language
        self.zoom = settings.geocode_zoom if zoom is None else zoom
        self.timeout = timeout or settings.geocode_timeout_seconds
        self.cache_size = settings.geocode_cache_size if cache_size is None else cache_size
        self._client = client
        self._owns_client = client is None
        self._cache: "OrderedDict[Tuple[float, float], GeocodeResult]" = OrderedDict()

    # ── Cache ─────────────────────────────────────────────────────────────

    @staticmethod
    def _cache_key(lat: float, lng: float) -> Tuple[float, float]:
        return round(lat, 6), round(lng, 6)

    def _cache_get(self, key: Tuple[float, float]) -> Optional[GeocodeResult]:
        result = self._cache.get(key)
        if result is not None:
            self._cache.move_to_end(key)
        return result

    def _cache_put(self, key: Tuple[float, float], result: GeocodeResult) -> None:
        if self.cache_size <= 0:
            return
        self._cache[key] = result
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ── HTTP ──────────────────────────────────────────────────────────────

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _fetch(self, lat: float, lng: float) -> Dict[str, Any]:
        params = {
            "format": "json",
            "lat": lat,
            "lon": lng,
            "zoom": self.zoom,
            "addressdetails": 1,
        }
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Language": self.accept_language,
        }

        start_time = time.perf_counter()
        try:
            response = await self._get_client().get(
                self.base_url, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning("Nominatim request failed for (%s, %s): %s", lat, lng, str(e))
            raise ProviderError(
                message="Reverse geocoding provider is unreachable",
                context={"lat": lat, "lng": lng, "error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            logger.warning(
                "Nominatim returned HTTP %d for (%s, %s) in %.0fms",
                response.status_code, lat, lng, duration_ms,
            )
            raise ProviderError(
                message=f"Nominatim API error: {response.status_code}",
                status_code=response.status_code,
                context={"lat": lat, "lng": lng},
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            logger.warning("Nominatim returned a malformed payload for (%s, %s)", lat, lng)
            raise ProviderError(
                message="Reverse geocoding provider returned a malformed response",
                status_code=response.status_code,
                context={"lat": lat, "lng": lng},
            )

        logger.info("Nominatim reverse lookup for (%s, %s) took %.0fms", lat, lng, duration_ms)
        return payload

    # ── Public API ────────────────────────────────────────────────────────

    async def geocode(self, lat: Any, lng: Any) -> GeocodeResult:
        """
        Reverse-geocode one coordinate pair.

        Raises:
            InvalidCoordinates: before any network call, for bad input
            ProviderError:      upstream failure or malformed payload
        """
        lat_f, lng_f = validate_coordinates(lat, lng)

        key = self._cache_key(lat_f, lng_f)
        cached = self._cache_get(key)
        if cached is not None:
            logger.debug("Geocode cache hit for %s", key)
            return cached

        await self.rate_limiter.acquire()
        payload = await self._fetch(lat_f, lng_f)

        result = GeocodeResult(display_name=build_display_name(payload), raw_data=payload)
        self._cache_put(key, result)
        return result


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the process-wide rate limiter state and the response cache.
reverse_geocoder = ReverseGeocoder()
