import hashlib
import json
import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence, runtime_checkable

import requests
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from .exceptions import ConfigurationError, EstimateUnavailable
from .geo import Coordinates, Location, as_coordinates, format_location, haversine_km

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteEstimate:
    distance_km: float
    duration_minutes: int
    is_traffic_aware: bool


@runtime_checkable
class EstimateSource(Protocol):
    """Anything that turns a route request into distance and duration.

    The calculator only ever sees RouteEstimate values, never provider types.
    """

    def estimate(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        scheduled_at: Optional[datetime] = None,
    ) -> RouteEstimate:
        ...


class GoogleDirectionsEstimateSource:
    """Route estimates from the Google Directions API with server-side caching.

    Results are cached in the Django cache under ``estimate:<sha256>`` of the
    request parameters; the timeout is ``settings.GOOGLE_DISTANCE_CACHE_TIMEOUT``.
    When a departure time is sent and Google returns ``duration_in_traffic``
    for every leg, the estimate is traffic-aware.
    """

    DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
    GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None, use_cache: bool = True):
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else getattr(settings, "GOOGLE_DIRECTIONS_TIMEOUT", 10)
        self.use_cache = use_cache

    def _key(self) -> str:
        # Prefer a server-specific key; fall back to the legacy single key if not provided
        api_key = (
            self.api_key
            or getattr(settings, "GOOGLE_MAPS_SERVER_KEY", None)
            or getattr(settings, "GOOGLE_MAPS_API_KEY", None)
        )
        if not api_key:
            raise ConfigurationError("GOOGLE_MAPS_SERVER_KEY or GOOGLE_MAPS_API_KEY is not configured in settings")
        return api_key

    @staticmethod
    def _cache_key(params: dict) -> str:
        public = {k: v for k, v in params.items() if k != "key"}
        digest = hashlib.sha256(json.dumps(public, sort_keys=True).encode()).hexdigest()
        return f"estimate:{digest}"

    def _get(self, url: str, params: dict) -> dict:
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            logger.exception("Google Maps request failed")
            raise EstimateUnavailable(f"Error calling Google Maps API: {exc}") from exc
        except ValueError as exc:
            logger.exception("Google Maps returned a non-JSON response")
            raise EstimateUnavailable("Unexpected Google Maps response") from exc

    @staticmethod
    def _departure_time(scheduled_at: Optional[datetime]) -> str:
        if scheduled_at is None:
            return "now"
        if timezone.is_naive(scheduled_at):
            scheduled_at = timezone.make_aware(scheduled_at)
        if scheduled_at <= timezone.now():
            return "now"
        return str(int(scheduled_at.timestamp()))

    def estimate(self, origin, destination, waypoints=(), scheduled_at=None) -> RouteEstimate:
        if not origin or not destination:
            raise EstimateUnavailable("origin and destination are required")

        params = {
            "origin": format_location(origin),
            "destination": format_location(destination),
            "mode": "driving",
            "units": "metric",
            "departure_time": self._departure_time(scheduled_at),
            "key": self._key(),
        }
        if waypoints:
            params["waypoints"] = "|".join(format_location(w) for w in waypoints)

        key = self._cache_key(params)
        if self.use_cache:
            cached = cache.get(key)
            if cached is not None:
                logger.debug("estimate cache hit for %s -> %s", origin, destination)
                return RouteEstimate(**cached)

        data = self._get(self.DIRECTIONS_URL, params)
        if data.get("status") != "OK":
            logger.error("Google Directions returned non-OK status: %s", data.get("status"))
            raise EstimateUnavailable(f"Route not available: {data.get('status')}")

        try:
            legs = data["routes"][0]["legs"]
            meters = sum(leg["distance"]["value"] for leg in legs)
            traffic_aware = bool(legs) and all("duration_in_traffic" in leg for leg in legs)
            duration_key = "duration_in_traffic" if traffic_aware else "duration"
            seconds = sum(leg[duration_key]["value"] for leg in legs)
        except (KeyError, IndexError, TypeError) as exc:
            logger.exception("Unexpected Directions response format")
            raise EstimateUnavailable("Unexpected Directions response format") from exc

        result = RouteEstimate(
            distance_km=round(meters / 1000.0, 2),
            duration_minutes=int(math.ceil(seconds / 60.0)),
            is_traffic_aware=traffic_aware,
        )

        timeout = getattr(settings, "GOOGLE_DISTANCE_CACHE_TIMEOUT", 6 * 3600)
        try:
            cache.set(key, asdict(result), timeout=timeout)
        except Exception:
            logger.exception("Failed to set estimate cache (non-fatal)")

        logger.debug("Computed route %s km / %s min for %s -> %s", result.distance_km, result.duration_minutes, origin, destination)
        return result

    def geocode(self, address: str) -> Coordinates:
        data = self._get(self.GEOCODE_URL, {"address": address, "key": self._key()})
        if data.get("status") != "OK" or not data.get("results"):
            raise EstimateUnavailable(f"Geocoding failed: {data.get('status')}")
        location = data["results"][0]["geometry"]["location"]
        return float(location["lat"]), float(location["lng"])


class StraightLineEstimateSource:
    """Great-circle distance between the stops, at an assumed city speed.

    Never traffic-aware, so prices built on it are flagged as estimates.
    """

    def __init__(
        self,
        average_speed_kmh: float = 40.0,
        road_factor: float = 1.0,
        geocoder: Optional[Callable[[str], Coordinates]] = None,
    ):
        if average_speed_kmh <= 0:
            raise ConfigurationError("average_speed_kmh must be positive")
        self.average_speed_kmh = average_speed_kmh
        self.road_factor = road_factor
        self.geocoder = geocoder

    def _coords(self, location: Location) -> Coordinates:
        coords = as_coordinates(location)
        if coords is not None:
            return coords
        if self.geocoder is None:
            raise EstimateUnavailable(f"Cannot determine coordinates for {location!r}")
        return self.geocoder(str(location))

    def estimate(self, origin, destination, waypoints=(), scheduled_at=None) -> RouteEstimate:
        points: List[Coordinates] = [self._coords(p) for p in [origin, *waypoints, destination]]
        distance = sum(haversine_km(a, b) for a, b in zip(points, points[1:])) * self.road_factor
        return RouteEstimate(
            distance_km=round(distance, 2),
            duration_minutes=int(math.ceil(distance / self.average_speed_kmh * 60)),
            is_traffic_aware=False,
        )


class FallbackEstimateSource:
    """Try ``primary``; on a retryable failure use ``fallback`` instead."""

    def __init__(self, primary: EstimateSource, fallback: EstimateSource):
        self.primary = primary
        self.fallback = fallback

    def estimate(self, origin, destination, waypoints=(), scheduled_at=None) -> RouteEstimate:
        try:
            return self.primary.estimate(origin, destination, waypoints, scheduled_at)
        except EstimateUnavailable as exc:
            logger.warning("Primary route estimate failed, using straight-line fallback: %s", exc)
        try:
            estimate = self.fallback.estimate(origin, destination, waypoints, scheduled_at)
        except EstimateUnavailable:
            logger.warning("Fallback route estimate failed for %s -> %s", origin, destination)
            raise
        # a fallback is never a confirmed route
        return RouteEstimate(estimate.distance_km, estimate.duration_minutes, False)


def get_estimate_source() -> EstimateSource:
    google = GoogleDirectionsEstimateSource()
    if not getattr(settings, "ESTIMATE_FALLBACK_ENABLED", True):
        return google
    fallback = StraightLineEstimateSource(
        average_speed_kmh=getattr(settings, "ESTIMATE_FALLBACK_SPEED_KMH", 40.0),
        road_factor=getattr(settings, "ESTIMATE_FALLBACK_ROAD_FACTOR", 1.0),
        geocoder=google.geocode,
    )
    return FallbackEstimateSource(google, fallback)
