"""Pytest configuration and fixtures."""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure backend root is on path when running pytest from repo root or backend
backend = Path(__file__).resolve().parent.parent
if str(backend) not in sys.path:
    sys.path.insert(0, str(backend))

from src.data.geo import GeoCoordinate  # noqa: E402
from src.routes.models import Route, Stop  # noqa: E402

SCHEDULE_START = datetime(2025, 6, 2, 14, 0, tzinfo=timezone.utc)


class FakeRouting:
    """Travel-time provider returning canned legs and recording every call."""

    def __init__(self, legs: list[int] | None = None):
        self.legs = legs if legs is not None else []
        self.calls: list[list[GeoCoordinate]] = []

    async def travel_times(self, points):
        self.calls.append(list(points))
        return list(self.legs)


def make_stop(stop_id: int, sequence: int | None = None, minutes_after_start: int | None = None, name: str | None = None) -> Stop:
    planned = SCHEDULE_START + timedelta(minutes=minutes_after_start) if minutes_after_start is not None else None
    return Stop(
        stop_id=stop_id,
        name=name or f"Stop {stop_id}",
        position=GeoCoordinate(59.0 + stop_id / 100, 18.0 + stop_id / 100),
        sequence=stop_id if sequence is None else sequence,
        planned_arrival=planned,
    )


def make_route(count: int, gap_minutes: int | None = 15, route_id: int = 1) -> Route:
    """Route with stops 1..count in order; planned arrivals gap_minutes apart (None: no schedule)."""
    stops = tuple(
        make_stop(i, minutes_after_start=None if gap_minutes is None else (i - 1) * gap_minutes)
        for i in range(1, count + 1)
    )
    return Route(route_id=route_id, stops=stops)


@pytest.fixture
def fake_routing():
    return FakeRouting()
