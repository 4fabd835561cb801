# ABOUTME: Reverse geocoding (Nominatim, cached) and place search (Open-Meteo geocoding)
# ABOUTME: Reverse lookups degrade to a "Location (lat, lon)" fallback instead of raising

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import requests
from cachetools import TLRUCache

from errors import UpstreamTransportError


logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = 'https://nominatim.openstreetmap.org/reverse'
OPEN_METEO_SEARCH_URL = 'https://geocoding-api.open-meteo.com/v1/search'

DEFAULT_CACHE_TTL = 86400  # 24 hours
COORDINATE_PRECISION = 4  # ~11 m

ADDRESS_COMPONENTS = (
    'house_number',
    'road',
    'neighbourhood',
    'suburb',
    'city',
    'state',
    'country',
)


class GeocodeCache(ABC):
    """Key-value store with per-entry expiry"""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value or None when missing or expired"""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        """Store value for ttl seconds"""


class MemoryGeocodeCache(GeocodeCache):
    """In-process cache backed by cachetools, safe to share between threads"""

    def __init__(self, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic):
        self._cache: TLRUCache[str, tuple[Any, int]] = TLRUCache(
            maxsize=maxsize, ttu=self._expires_at, timer=timer
        )
        self._lock = threading.Lock()

    @staticmethod
    def _expires_at(_key: str, entry: tuple[Any, int], now: float) -> float:
        return now + entry[1]

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
        return entry[0] if entry is not None else None

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._cache[key] = (value, ttl)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


class ReverseGeocodeClient:
    """Turns coordinates into place names using Nominatim, cached per ~11 m cell"""

    def __init__(
        self,
        cache: GeocodeCache,
        ttl: int = DEFAULT_CACHE_TTL,
        app_name: str = 'Weather-Dashboard',
        language: str = 'en',
        base_url: str = NOMINATIM_REVERSE_URL,
    ):
        self.cache = cache
        self.ttl = ttl
        self.user_agent = f'{app_name}/1.0'
        self.language = language
        self.base_url = base_url
        self.timeout = 5

    @staticmethod
    def fallback_name(lat: float, lon: float) -> str:
        return f'Location ({lat}, {lon})'

    def _remember(self, key: str, compute: Callable[[], Any]) -> Any:
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        value = compute()
        self.cache.set(key, value, self.ttl)
        return value

    def _request(self, lat: float, lon: float) -> dict[str, Any]:
        """Call Nominatim; raises on transport errors and unusable bodies"""
        params: dict[str, str | float | int] = {
            'format': 'jsonv2',
            'lat': lat,
            'lon': lon,
            'addressdetails': 1,
            'accept-language': self.language,
            'zoom': 18,
        }
        response = requests.get(
            self.base_url,
            params=params,
            headers={'User-Agent': self.user_agent},
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            msg = f'Unexpected reverse geocode payload: {type(data).__name__}'
            raise ValueError(msg)
        return data

    def reverse_simple(self, lat: float, lon: float) -> str:
        """Human-readable place name for the coordinates"""
        lat = round(lat, COORDINATE_PRECISION)
        lon = round(lon, COORDINATE_PRECISION)

        def lookup() -> str:
            try:
                data = self._request(lat, lon)
            except (requests.exceptions.RequestException, ValueError) as e:
                logger.warning('⚠️  Reverse geocode failed for (%s, %s): %s', lat, lon, e)
                return self.fallback_name(lat, lon)

            if data.get('display_name'):
                return str(data['display_name'])

            address = data.get('address')
            if isinstance(address, dict):
                parts = [
                    str(address[component])
                    for component in ADDRESS_COMPONENTS
                    if address.get(component)
                ]
                if parts:
                    return ', '.join(parts)

            return self.fallback_name(lat, lon)

        return self._remember(f'reverse_geocode:{lat}:{lon}', lookup)  # type: ignore[no-any-return]

    def reverse_detailed(self, lat: float, lon: float) -> dict[str, Any]:
        """Display name plus the address components for the coordinates"""
        lat = round(lat, COORDINATE_PRECISION)
        lon = round(lon, COORDINATE_PRECISION)

        def lookup() -> dict[str, Any]:
            try:
                data = self._request(lat, lon)
            except (requests.exceptions.RequestException, ValueError) as e:
                logger.warning(
                    '⚠️  Detailed reverse geocode failed for (%s, %s): %s', lat, lon, e
                )
                return {'display_name': self.fallback_name(lat, lon), 'address': {}}

            address = data.get('address')
            return {
                'display_name': data.get('display_name') or self.fallback_name(lat, lon),
                'address': address if isinstance(address, dict) else {},
                'name': data.get('name'),
                'place_id': data.get('place_id'),
            }

        return self._remember(f'reverse_geocode_detailed:{lat}:{lon}', lookup)  # type: ignore[no-any-return]


class LocationSearchClient:
    """Proxy for the Open-Meteo geocoding search API"""

    def __init__(self, language: str = 'en', base_url: str = OPEN_METEO_SEARCH_URL):
        self.language = language
        self.base_url = base_url
        self.timeout = 10

    def search(self, query: str) -> list[dict[str, Any]]:
        params: dict[str, str | int] = {
            'name': query,
            'count': 10,
            'language': self.language,
            'format': 'json',
        }
        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error('❌ Geocoding API error for %r: %s', query, e)
            msg = 'Could not search for locations. Please try again.'
            raise UpstreamTransportError(msg) from e

        results = data.get('results') if isinstance(data, dict) else None
        return results if isinstance(results, list) else []
