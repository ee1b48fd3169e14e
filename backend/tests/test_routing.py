"""Tests for travel-time providers: matrix parsing, best-effort zero legs, provider selection."""
import asyncio
import json

import httpx
import pytest

from settings import Settings
from src.data.geo import GeoCoordinate
from src.routing import (
    OpenRouteServiceClient,
    OSRMClient,
    StraightLineEstimator,
    best_effort_legs,
    build_travel_time_service,
)
from src.routing.base import seconds_to_minutes

POINTS = [GeoCoordinate(59.30, 18.00), GeoCoordinate(59.31, 18.01), GeoCoordinate(59.32, 18.02)]


def run(coro):
    return asyncio.run(coro)


# --- Shared helpers ---


def test_seconds_to_minutes_rounds_up():
    """Partial minutes round up; non-positive durations are zero."""
    assert seconds_to_minutes(60) == 1
    assert seconds_to_minutes(61) == 2
    assert seconds_to_minutes(0.5) == 1
    assert seconds_to_minutes(0) == 0
    assert seconds_to_minutes(None) == 0
    assert seconds_to_minutes("abc") == 0
    assert seconds_to_minutes(-30) == 0


def test_best_effort_legs_reads_sequential_cells():
    """Leg i is the duration from point i to point i+1."""
    durations = [[0, 125, 999], [130, 0, 61], [1, 1, 0]]
    assert best_effort_legs(POINTS, durations) == [3, 2]


def test_best_effort_legs_zero_fills_missing_rows_and_nulls():
    assert best_effort_legs(POINTS, [[0, None, 5]]) == [0, 0]
    assert best_effort_legs(POINTS, [[0, 120]]) == [2, 0]
    assert best_effort_legs(POINTS, None) == [0, 0]
    assert best_effort_legs(POINTS, "garbage") == [0, 0]


# --- OpenRouteService ---


def test_ors_posts_lon_lat_locations_and_parses_durations():
    """ORS gets [lon, lat] pairs and an Authorization header."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"durations": [[0, 125, 300], [130, 0, 61], [300, 61, 0]]})

    client = OpenRouteServiceClient(api_key="ors-key", transport=httpx.MockTransport(handler))
    legs = run(client.travel_times(POINTS))
    assert legs == [3, 2]
    assert seen["url"].endswith("/v2/matrix/driving-car")
    assert seen["auth"] == "ors-key"
    assert seen["body"]["locations"][0] == [18.00, 59.30]
    assert seen["body"]["metrics"] == ["duration"]


def test_ors_error_status_gives_zero_legs():
    """Provider failures degrade to zero-minute legs instead of raising."""
    client = OpenRouteServiceClient(
        api_key="ors-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(403, text="quota exceeded")),
    )
    assert run(client.travel_times(POINTS)) == [0, 0]


def test_ors_missing_durations_gives_zero_legs():
    client = OpenRouteServiceClient(
        api_key="ors-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"metadata": {}})),
    )
    assert run(client.travel_times(POINTS)) == [0, 0]


def test_ors_connection_error_gives_zero_legs():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = OpenRouteServiceClient(api_key="ors-key", transport=httpx.MockTransport(handler))
    assert run(client.travel_times(POINTS)) == [0, 0]


def test_ors_invalid_json_gives_zero_legs():
    client = OpenRouteServiceClient(
        api_key="ors-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
    )
    assert run(client.travel_times(POINTS)) == [0, 0]


def test_ors_fewer_than_two_points_skips_request():
    """Nothing to price means no request."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = OpenRouteServiceClient(api_key="ors-key", transport=httpx.MockTransport(handler))
    assert run(client.travel_times(POINTS[:1])) == []


# --- OSRM ---


def test_osrm_table_request_and_parse():
    """OSRM table request carries lon,lat pairs in the path."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["annotations"] = request.url.params.get("annotations")
        return httpx.Response(200, json={"code": "Ok", "durations": [[0, 59, 0], [0, 0, 240], [0, 0, 0]]})

    client = OSRMClient(base_url="http://osrm.test", transport=httpx.MockTransport(handler))
    assert run(client.travel_times(POINTS)) == [1, 4]
    assert seen["path"] == "/table/v1/driving/18.0,59.3;18.01,59.31;18.02,59.32"
    assert seen["annotations"] == "duration"


def test_osrm_error_code_gives_zero_legs():
    """A non-Ok OSRM code degrades to zero legs."""
    client = OSRMClient(
        base_url="http://osrm.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"code": "NoTable"})),
    )
    assert run(client.travel_times(POINTS)) == [0, 0]


def test_osrm_http_error_gives_zero_legs():
    client = OSRMClient(
        base_url="http://osrm.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(502)),
    )
    assert run(client.travel_times(POINTS)) == [0, 0]


# --- Straight line ---


def test_straight_line_legs():
    # 0.009 deg latitude ~ 1000 m; at 8.3 m/s (498 m/min) -> 2.01 -> 3 minutes
    a = GeoCoordinate(59.0, 18.0)
    b = GeoCoordinate(59.009, 18.0)
    assert run(StraightLineEstimator(speed_mps=8.3).travel_times([a, b, b])) == [3, 0]


def test_straight_line_single_point():
    assert run(StraightLineEstimator().travel_times(POINTS[:1])) == []


# --- Provider selection ---


def test_build_openrouteservice_with_key():
    settings = Settings(_env_file=None, routing_provider="openrouteservice", ors_api_key="k")
    assert isinstance(build_travel_time_service(settings), OpenRouteServiceClient)


def test_build_openrouteservice_without_key_falls_back_to_straight_line():
    """ORS without an API key falls back to the straight-line estimator."""
    settings = Settings(_env_file=None, routing_provider="openrouteservice", ors_api_key="")
    assert isinstance(build_travel_time_service(settings), StraightLineEstimator)


def test_build_osrm_and_straight_line():
    """Provider names are matched case-insensitively."""
    assert isinstance(build_travel_time_service(Settings(_env_file=None, routing_provider="OSRM")), OSRMClient)
    assert isinstance(
        build_travel_time_service(Settings(_env_file=None, routing_provider="straight_line")),
        StraightLineEstimator,
    )


def test_build_unknown_provider_raises():
    with pytest.raises(ValueError):
        build_travel_time_service(Settings(_env_file=None, routing_provider="teleport"))
