"""
Geographic primitives: coordinate value type and Haversine distance.
"""
import math
from typing import NamedTuple

# Earth radius in km (WGS84 approximate)
EARTH_RADIUS_KM = 6371.0


class GeoCoordinate(NamedTuple):
    latitude: float
    longitude: float


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Return great-circle distance between two points in kilometers.
    Arguments in degrees.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_distance_m(a: GeoCoordinate, b: GeoCoordinate) -> float:
    """Return great-circle distance in meters between two coordinates."""
    return haversine_distance_km(a.latitude, a.longitude, b.latitude, b.longitude) * 1000.0
