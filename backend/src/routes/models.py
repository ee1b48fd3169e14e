"""Route records shared by the route source, the route cache and the ETA calculator."""
import logging
from datetime import datetime
from typing import Iterable, NamedTuple

from src.data.geo import GeoCoordinate

logger = logging.getLogger(__name__)


class Stop(NamedTuple):
    stop_id: int
    name: str
    position: GeoCoordinate
    sequence: int
    planned_arrival: datetime | None  # None: no schedule data for this stop


class Route(NamedTuple):
    route_id: int
    stops: tuple[Stop, ...]


class TruckPosition(NamedTuple):
    truck_id: str
    position: GeoCoordinate
    speed: float
    heading: float
    freezer_temp: float
    timestamp: datetime


def build_route(route_id: int, stops: Iterable[Stop]) -> Route | None:
    """
    Build a Route from provider stops, or None when there is no usable route.
    Empty input or a negative sequence value is unusable. Duplicate stop ids keep the first occurrence.
    Stops are stable-sorted by sequence.
    """
    seen: set[int] = set()
    unique: list[Stop] = []
    for stop in stops:
        if stop.sequence < 0:
            logger.warning(
                "telemetry route_rejected route_id=%s reason=negative_sequence stop_id=%s",
                route_id,
                stop.stop_id,
            )
            return None
        if stop.stop_id in seen:
            continue
        seen.add(stop.stop_id)
        unique.append(stop)
    if not unique:
        return None
    unique.sort(key=lambda s: s.sequence)
    return Route(route_id=route_id, stops=tuple(unique))
