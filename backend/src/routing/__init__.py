import logging

from src.routing.base import TravelTimeService, best_effort_legs, zero_legs
from src.routing.openrouteservice import OpenRouteServiceClient
from src.routing.osrm import OSRMClient
from src.routing.straight_line import StraightLineEstimator

logger = logging.getLogger(__name__)

ROUTING_PROVIDERS = ("openrouteservice", "osrm", "straight_line")


def build_travel_time_service(settings) -> TravelTimeService:
    """Pick the travel-time provider named by settings.routing_provider."""
    provider = (settings.routing_provider or "").strip().lower()
    if provider not in ROUTING_PROVIDERS:
        raise ValueError(f"Unknown routing_provider '{provider}'. Use one of: {', '.join(ROUTING_PROVIDERS)}.")
    if provider == "openrouteservice":
        if settings.ors_api_key:
            return OpenRouteServiceClient(
                api_key=settings.ors_api_key,
                base_url=settings.ors_base_url,
                timeout=settings.upstream_timeout_seconds,
            )
        logger.warning("telemetry routing_fallback provider=openrouteservice reason=missing_api_key")
        provider = "straight_line"
    if provider == "osrm":
        return OSRMClient(base_url=settings.osrm_base_url, timeout=settings.upstream_timeout_seconds)
    return StraightLineEstimator(speed_mps=settings.straight_line_speed_mps)


__all__ = [
    "OSRMClient",
    "OpenRouteServiceClient",
    "ROUTING_PROVIDERS",
    "StraightLineEstimator",
    "TravelTimeService",
    "best_effort_legs",
    "build_travel_time_service",
    "zero_legs",
]
