"""
Travel-time capability shared by every routing provider.

Results are best-effort: a leg the provider could not price is 0 minutes, never an exception.
"""
import math
from typing import Any, Protocol, Sequence

from src.data.geo import GeoCoordinate


class TravelTimeService(Protocol):
    async def travel_times(self, points: Sequence[GeoCoordinate]) -> list[int]:
        """
        Return whole minutes between consecutive points: result[i] is points[i] -> points[i+1].
        Length is len(points) - 1 (empty for fewer than 2 points); missing legs are 0.
        """
        ...


def zero_legs(points: Sequence[GeoCoordinate]) -> list[int]:
    return [0] * max(0, len(points) - 1)


def seconds_to_minutes(seconds: Any) -> int:
    """Round a duration in seconds up to whole minutes; anything unusable is 0."""
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value) or value <= 0:
        return 0
    return math.ceil(value / 60.0)


def best_effort_legs(points: Sequence[GeoCoordinate], durations: Any) -> list[int]:
    """
    Extract the sequential legs durations[i][i+1] (seconds) from a duration matrix.
    Rows or cells that are missing, null or malformed give 0 for that leg.
    """
    legs = zero_legs(points)
    if not isinstance(durations, list):
        return legs
    for i in range(len(legs)):
        row = durations[i] if i < len(durations) else None
        if isinstance(row, list) and i + 1 < len(row):
            legs[i] = seconds_to_minutes(row[i + 1])
    return legs


def lon_lat_pairs(points: Sequence[GeoCoordinate]) -> list[list[float]]:
    """GeoJSON order: [longitude, latitude]."""
    return [[p.longitude, p.latitude] for p in points]
