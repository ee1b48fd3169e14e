"""
ETA calculation for a truck driving a sequenced route.

One travel-time call prices every leg from the truck to the next stops; dwell time at each stop is
inferred from the route's own schedule (planned gap between stops minus travel time).
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Sequence

from src.data.geo import GeoCoordinate
from src.routes.models import Route, Stop
from src.routing.base import TravelTimeService

logger = logging.getLogger(__name__)

MAX_STOPS = 10
DEFAULT_DWELL_MINUTES = 3  # Fallback if schedule data unavailable
UNKNOWN_STOP_ADDRESS = "Unknown"


class StopEta(NamedTuple):
    stop_id: int
    name: str
    latitude: float
    longitude: float
    estimated_arrival: datetime
    minutes_from_now: int
    travel_minutes: int


class EtaResult(NamedTuple):
    route_id: int
    calculated_at: datetime
    current_stop_address: str
    remaining_stops_count: int
    average_dwell_minutes: int
    stops: list[StopEta]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def average_dwell_minutes(stops: Sequence[Stop], travel_times: Sequence[int]) -> int:
    """
    Average dwell = mean planned gap between consecutive stops - mean travel time, at least 1 minute.
    Pairs missing a planned arrival and non-positive gaps are ignored; with no usable gap the default applies.
    """
    if len(stops) < 2:
        return DEFAULT_DWELL_MINUTES

    gaps: list[int] = []
    for current, nxt in zip(stops, stops[1:]):
        if current.planned_arrival is None or nxt.planned_arrival is None:
            continue
        gap = int((nxt.planned_arrival - current.planned_arrival).total_seconds() / 60)
        if gap > 0:
            gaps.append(gap)

    if not gaps:
        return DEFAULT_DWELL_MINUTES
    # Halves round up (10.5 -> 11)
    return max(1, math.floor(_mean(gaps) - _mean(travel_times) + 0.5))


def _stops_after(ordered: list[Stop], from_stop_id: int | None) -> list[Stop]:
    if from_stop_id is None:
        return ordered
    for index, stop in enumerate(ordered):
        if stop.stop_id == from_stop_id:
            return ordered[index + 1 :]
    return ordered


def _current_stop_address(ordered: list[Stop], from_stop_id: int | None) -> str:
    if from_stop_id is not None:
        for stop in ordered:
            if stop.stop_id == from_stop_id:
                return stop.name
    return ordered[0].name if ordered else UNKNOWN_STOP_ADDRESS


class EtaCalculator:
    def __init__(self, routing: TravelTimeService):
        self._routing = routing

    async def calculate(
        self,
        route: Route,
        position: GeoCoordinate,
        from_stop_id: int | None = None,
        now: datetime | None = None,
    ) -> EtaResult:
        """
        Estimate arrival at the next MAX_STOPS stops of route for a truck at position.
        With from_stop_id, only stops after that stop are considered (ignored if it is not on the route).
        remaining_stops_count counts every considered stop, not just the returned ones.
        """
        if route is None:
            raise ValueError("route is required")
        if now is None:
            now = datetime.now(timezone.utc)

        ordered = sorted(route.stops, key=lambda s: s.sequence)
        considered = _stops_after(ordered, from_stop_id)
        remaining = considered[:MAX_STOPS]

        travel_times: list[int] = []
        if remaining:
            points = [position] + [s.position for s in remaining]
            travel_times = list(await self._routing.travel_times(points))
            if len(travel_times) < len(remaining):
                logger.warning(
                    "telemetry eta_short_travel_times route_id=%s expected=%s got=%s",
                    route.route_id,
                    len(remaining),
                    len(travel_times),
                )

        dwell = average_dwell_minutes(ordered, travel_times)

        stop_etas: list[StopEta] = []
        clock = now
        for i, stop in enumerate(remaining):
            travel = travel_times[i] if i < len(travel_times) else 0
            clock += timedelta(minutes=travel)
            stop_etas.append(
                StopEta(
                    stop_id=stop.stop_id,
                    name=stop.name,
                    latitude=stop.position.latitude,
                    longitude=stop.position.longitude,
                    estimated_arrival=clock,
                    minutes_from_now=int((clock - now).total_seconds() // 60),
                    travel_minutes=travel,
                )
            )
            clock += timedelta(minutes=dwell)

        logger.info(
            "telemetry eta_computed route_id=%s remaining=%s returned=%s dwell=%s",
            route.route_id,
            len(considered),
            len(stop_etas),
            dwell,
            extra={"route_id": route.route_id, "remaining": len(considered), "dwell": dwell},
        )
        return EtaResult(
            route_id=route.route_id,
            calculated_at=datetime.now(timezone.utc),
            current_stop_address=_current_stop_address(ordered, from_stop_id),
            remaining_stops_count=len(considered),
            average_dwell_minutes=dwell,
            stops=stop_etas,
        )
