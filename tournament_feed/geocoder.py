"""Place-name geocoding backed by the persistent cache."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from . import config
from .cache import GeocodeCache, make_city_key
from .http import HttpClient, RequestMetrics, RequestSpacer
from .models import GeoCoordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoRegion:
    """Country a source lists places in.

    ``qualify_key`` appends the country to the cache key, for sources whose
    city names may collide with another country's.
    """

    country: str
    centroid: GeoCoordinate
    qualify_key: bool = False

    def cache_key(self, city: str) -> str:
        return make_city_key(city, self.country if self.qualify_key else None)

    def query(self, city: str) -> str:
        return f"{make_city_key(city)}, {self.country}"


FRANCE = GeoRegion(country="France", centroid=GeoCoordinate(**config.FRANCE_CENTROID))
SWITZERLAND = GeoRegion(
    country="Switzerland",
    centroid=GeoCoordinate(**config.SWITZERLAND_CENTROID),
    qualify_key=True,
)


def parse_geocode_response(payload: Any) -> Optional[GeoCoordinate]:
    """First match of a search response, or None."""
    if not isinstance(payload, list) or not payload:
        return None
    first = payload[0]
    if not isinstance(first, dict):
        return None
    try:
        return GeoCoordinate(lat=float(first["lat"]), lng=float(first["lon"]))
    except (KeyError, TypeError, ValueError):
        return None


class Geocoder:
    def __init__(
        self,
        http: HttpClient,
        cache: GeocodeCache,
        spacer: Optional[RequestSpacer] = None,
        metrics: Optional[RequestMetrics] = None,
        url: str = config.GEOCODER_URL,
        timeout: float = config.GEOCODER_TIMEOUT_SECONDS,
    ) -> None:
        self.http = http
        self.cache = cache
        self.spacer = spacer or RequestSpacer(config.GEOCODER_MIN_INTERVAL_SECONDS)
        self.metrics = metrics
        self.url = url
        self.timeout = timeout

    def resolve(self, city: str, region: GeoRegion = FRANCE) -> GeoCoordinate:
        """Coordinates for ``city``; never raises, falls back to the region centroid."""
        key = region.cache_key(city)
        cached = self.cache.get(key)
        if cached is not None:
            if self.metrics is not None:
                self.metrics.inc_cache_hit("geocode")
            return cached

        coordinate = self._lookup(region.query(city))
        if coordinate is None:
            logger.warning("Geocoding failed for %r, using %s centroid", city, region.country)
            return region.centroid
        self.cache.put(key, coordinate)
        return coordinate

    def _lookup(self, query: str) -> Optional[GeoCoordinate]:
        params: Dict[str, Any] = {"q": query, "format": "json", "limit": 1}
        headers = {"User-Agent": config.GEOCODER_USER_AGENT}
        self.spacer.wait()
        try:
            payload = self.http.get_json(
                self.url, params=params, headers=headers, kind="geocode", timeout=self.timeout
            )
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Geocoding error for %r: %s", query, exc)
            return None
        return parse_geocode_response(payload)
