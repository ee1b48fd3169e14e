"""
OpenRouteService Matrix API adapter.
One POST per call prices every consecutive leg; durations come back in seconds.
"""
import logging
from typing import Sequence

import httpx

from src.data.geo import GeoCoordinate
from src.routing.base import best_effort_legs, lon_lat_pairs, zero_legs

logger = logging.getLogger(__name__)

ORS_BASE = "https://api.openrouteservice.org/v2"
ORS_PROFILE = "driving-car"
ORS_REQUEST_TIMEOUT_SECONDS = 10.0


class OpenRouteServiceClient:
    """Travel times from the ORS matrix endpoint. Failures yield zero legs."""

    def __init__(
        self,
        api_key: str,
        base_url: str = ORS_BASE,
        profile: str = ORS_PROFILE,
        timeout: float = ORS_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base = base_url.rstrip("/")
        self._profile = profile
        self._timeout = timeout
        self._transport = transport

    async def travel_times(self, points: Sequence[GeoCoordinate]) -> list[int]:
        if len(points) < 2:
            return []
        url = f"{self._base}/matrix/{self._profile}"
        body = {"locations": lon_lat_pairs(points), "metrics": ["duration"]}
        headers = {"Authorization": self._api_key} if self._api_key else {}
        logger.info("telemetry ors_matrix_request points=%s", len(points), extra={"points": len(points)})
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(url, json=body, headers=headers)
            if resp.status_code >= 400:
                logger.warning(
                    "telemetry ors_api_error status=%s body=%s",
                    resp.status_code,
                    resp.text[:200],
                    extra={"status": resp.status_code},
                )
                return zero_legs(points)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "telemetry ors_matrix_failed points=%s error=%s",
                len(points),
                str(e),
                extra={"points": len(points), "error": str(e)},
            )
            return zero_legs(points)

        durations = data.get("durations") if isinstance(data, dict) else None
        if durations is None:
            logger.warning("telemetry ors_matrix_no_durations points=%s", len(points))
        legs = best_effort_legs(points, durations)
        logger.info("telemetry ors_travel_times minutes=%s", legs)
        return legs
