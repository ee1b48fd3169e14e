"""
Offline travel-time estimate: straight-line distance at an assumed average truck speed.
Used when no routing API is configured.
"""
import math
from typing import Sequence

from src.data.geo import GeoCoordinate, haversine_distance_m

# Heuristic: ~30 km/h average through residential streets
TRUCK_SPEED_MPS = 8.3


def _leg_minutes(distance_m: float, speed_mps: float) -> int:
    if speed_mps <= 0 or distance_m <= 0:
        return 0
    return math.ceil(distance_m / (speed_mps * 60.0))


class StraightLineEstimator:
    def __init__(self, speed_mps: float = TRUCK_SPEED_MPS):
        self._speed = speed_mps

    async def travel_times(self, points: Sequence[GeoCoordinate]) -> list[int]:
        return [_leg_minutes(haversine_distance_m(a, b), self._speed) for a, b in zip(points, points[1:])]
