"""OSRM table service adapter (public demo server or a self-hosted instance)."""
import logging
from typing import Sequence

import httpx

from src.data.geo import GeoCoordinate
from src.routing.base import best_effort_legs, zero_legs

logger = logging.getLogger(__name__)

OSRM_BASE = "http://router.project-osrm.org"
OSRM_REQUEST_TIMEOUT_SECONDS = 10.0


def _format_coordinates(points: Sequence[GeoCoordinate]) -> str:
    """OSRM wants 'lon,lat;lon,lat;...'."""
    return ";".join(f"{p.longitude},{p.latitude}" for p in points)


class OSRMClient:
    def __init__(
        self,
        base_url: str = OSRM_BASE,
        profile: str = "driving",
        timeout: float = OSRM_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base = base_url.rstrip("/")
        self._profile = profile
        self._timeout = timeout
        self._transport = transport

    async def travel_times(self, points: Sequence[GeoCoordinate]) -> list[int]:
        if len(points) < 2:
            return []
        url = f"{self._base}/table/v1/{self._profile}/{_format_coordinates(points)}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url, params={"annotations": "duration"})
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("telemetry osrm_error points=%s error=%s", len(points), str(e))
            return zero_legs(points)

        if not isinstance(data, dict) or data.get("code") not in (None, "Ok"):
            logger.warning("telemetry osrm_bad_response code=%s", data.get("code") if isinstance(data, dict) else None)
            return zero_legs(points)
        return best_effort_legs(points, data.get("durations"))
