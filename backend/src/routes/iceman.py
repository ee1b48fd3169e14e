"""
Iceman tracker API client: resolves a stop id to the full route it belongs to.
Includes timeouts, retry with exponential backoff, and clear error handling.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Protocol
from zoneinfo import ZoneInfo

import httpx

from src.data.geo import GeoCoordinate
from src.routes.models import Route, Stop, build_route

logger = logging.getLogger(__name__)

ICEMAN_BASE = "https://iceman-prod.azurewebsites.net/api/tracker"
ICEMAN_REQUEST_TIMEOUT_SECONDS = 10.0
ICEMAN_RETRY_ATTEMPTS = 3
ICEMAN_RETRY_BASE_DELAY_SECONDS = 1.0
ICEMAN_RETRY_MAX_DELAY_SECONDS = 8.0
# nextTime is local wall-clock time where the trucks drive
ICEMAN_ROUTE_TIMEZONE = "Europe/Stockholm"
SCHEDULED_TIME_FORMATS = ("%H:%M", "%H:%M:%S")


class RouteSource(Protocol):
    async def fetch_route_by_stop(self, stop_id: int) -> Route | None:
        """Return every stop on the route containing stop_id, or None when the stop is unknown."""
        ...


class RouteSourceError(RuntimeError):
    """Route source unreachable or answering with errors after retries."""


def _field(raw: dict[str, Any], name: str) -> Any:
    # The tracker API serializes camelCase; accept PascalCase too
    if name in raw:
        return raw[name]
    return raw.get(name[:1].upper() + name[1:])


def _parse_scheduled_time(next_time: Any, today: datetime) -> datetime | None:
    """'16:25' or '9:05' -> that time on today's date, in today's timezone. None when the time does not parse."""
    if not isinstance(next_time, str) or not next_time.strip():
        return None
    for fmt in SCHEDULED_TIME_FORMATS:
        try:
            t = datetime.strptime(next_time.strip(), fmt).time()
        except ValueError:
            continue
        return datetime.combine(today.date(), t, tzinfo=today.tzinfo)
    return None


def _format_address(street: Any, number: Any) -> str:
    street = str(street or "").strip()
    number = str(number or "").strip()
    return f"{street} {number}" if number else street


def _normalize_stops(items: list[Any], today: datetime) -> list[Stop]:
    """Map tracker stops to Stop records; sequence is the 1-based position in the response."""
    stops: list[Stop] = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            continue
        try:
            stop_id = int(_field(raw, "stopId"))
            position = GeoCoordinate(float(_field(raw, "latitude")), float(_field(raw, "longitude")))
        except (TypeError, ValueError):
            logger.warning("telemetry iceman_stop_skipped index=%s", index)
            continue
        stops.append(
            Stop(
                stop_id=stop_id,
                name=_format_address(_field(raw, "streetAddress"), _field(raw, "streetNumber")),
                position=position,
                sequence=index + 1,
                planned_arrival=_parse_scheduled_time(_field(raw, "nextTime"), today),
            )
        )
    return stops


def _normalize_route_response(stop_id: int, raw: Any, today: datetime) -> Route | None:
    """Normalize a getroutebystop response to a Route keyed by the requested stop id."""
    items = _field(raw, "data") if isinstance(raw, dict) else None
    if not isinstance(items, list) or not items:
        return None
    return build_route(stop_id, _normalize_stops(items, today))


class IcemanRouteSource:
    """Route source backed by the Iceman tracker API."""

    def __init__(
        self,
        base_url: str = ICEMAN_BASE,
        timeout: float = ICEMAN_REQUEST_TIMEOUT_SECONDS,
        retry_attempts: int = ICEMAN_RETRY_ATTEMPTS,
        retry_base_delay: float = ICEMAN_RETRY_BASE_DELAY_SECONDS,
        route_timezone: str = ICEMAN_ROUTE_TIMEZONE,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._tz = ZoneInfo(route_timezone)
        self._base = base_url.rstrip("/")
        self._timeout = timeout
        self._retry_attempts = max(1, retry_attempts)
        self._retry_base_delay = retry_base_delay
        self._transport = transport

    async def fetch_route_by_stop(self, stop_id: int) -> Route | None:
        """
        Fetch the route containing stop_id. Returns None for an unknown stop (404 or no stops).
        Raises RouteSourceError on a client error (4xx other than 404) or once retries are exhausted.
        """
        url = f"{self._base}/getroutebystop"
        params = {"stopId": stop_id}
        last_error: Exception | None = None
        for attempt in range(self._retry_attempts):
            try:
                async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                    resp = await client.get(url, params=params)
                if resp.status_code == 404:
                    logger.info("telemetry iceman_stop_not_found stop_id=%s", stop_id)
                    return None
                if 400 <= resp.status_code < 500:
                    # Client errors will not succeed on retry
                    logger.warning(
                        "telemetry iceman_client_error status=%s stop_id=%s",
                        resp.status_code,
                        stop_id,
                        extra={"status": resp.status_code, "stop_id": stop_id},
                    )
                    raise RouteSourceError(f"Route source rejected the request (HTTP {resp.status_code}).")
                resp.raise_for_status()
                data = resp.json()
                route = _normalize_route_response(stop_id, data, datetime.now(self._tz))
                logger.info(
                    "telemetry iceman_route_fetched stop_id=%s count=%s",
                    stop_id,
                    len(route.stops) if route else 0,
                    extra={"stop_id": stop_id, "count": len(route.stops) if route else 0},
                )
                return route
            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    "telemetry iceman_timeout attempt=%s stop_id=%s",
                    attempt + 1,
                    stop_id,
                    extra={"attempt": attempt + 1, "stop_id": stop_id},
                )
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
                logger.warning(
                    "telemetry iceman_api_error attempt=%s stop_id=%s error=%s",
                    attempt + 1,
                    stop_id,
                    str(e),
                    extra={"attempt": attempt + 1, "stop_id": stop_id, "error": str(e)},
                )
            if attempt < self._retry_attempts - 1:
                delay = min(self._retry_base_delay * (2**attempt), ICEMAN_RETRY_MAX_DELAY_SECONDS)
                await asyncio.sleep(delay)
        msg = "Route source unavailable (timeout or error after retries)."
        if last_error:
            raise RouteSourceError(msg) from last_error
        raise RouteSourceError(msg)
