import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

Coordinates = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0

_COORDS_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")


@dataclass(frozen=True)
class Place:
    """An address together with its coordinates, as a booking form sends it."""

    address: str
    latitude: float
    longitude: float

    def __str__(self):
        return self.address


Location = Union[str, Coordinates, Place]


def haversine_km(origin: Coordinates, destination: Coordinates) -> float:
    lat1, lng1 = map(math.radians, origin)
    lat2, lng2 = map(math.radians, destination)
    d_lat = lat2 - lat1
    d_lng = lng2 - lng1
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def as_coordinates(location: Optional[Location]) -> Optional[Coordinates]:
    """Return (lat, lng) for a Place, a coordinate pair or a "lat,lng" string, else None."""
    if location is None:
        return None
    if isinstance(location, Place):
        lat, lng = float(location.latitude), float(location.longitude)
    elif isinstance(location, str):
        match = _COORDS_RE.match(location)
        if not match:
            return None
        lat, lng = float(match.group(1)), float(match.group(2))
    else:
        try:
            lat, lng = float(location[0]), float(location[1])
        except (TypeError, ValueError, IndexError):
            return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return lat, lng


def address_text(location: Optional[Location]) -> str:
    """Lower-cased address text of a location; empty for bare coordinates."""
    if isinstance(location, Place):
        return location.address.strip().lower()
    if isinstance(location, str) and as_coordinates(location) is None:
        return location.strip().lower()
    return ""


def format_location(location: Location) -> str:
    coords = as_coordinates(location)
    if coords is not None:
        return f"{coords[0]:.6f},{coords[1]:.6f}"
    return str(location).strip()
