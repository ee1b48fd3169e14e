import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from settings import get_settings
from src.data.geo import GeoCoordinate
from src.eta.calculator import EtaCalculator
from src.eta.models import EtaResponse, PositionWebhookRequest, PositionWebhookResponse, RouteResponse
from src.middleware import RequestLoggingMiddleware
from src.monitoring import get_metrics, record_eta_computed
from src.routes.cache import RouteCache
from src.routes.iceman import IcemanRouteSource, RouteSource, RouteSourceError
from src.routes.models import Route
from src.routing import TravelTimeService, build_travel_time_service

settings = get_settings()

# Structured logging: include module and level; handlers can add JSON later
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])
ETA_RATE_LIMIT = "120/minute"

# Input validation bounds
LAT_MIN, LAT_MAX = -90.0, 90.0
LON_MIN, LON_MAX = -180.0, 180.0

# Keyed by requested stop id; lives for the process lifetime
route_cache = RouteCache(ttl_seconds=settings.route_cache_ttl_minutes * 60)


def _validate_lat_lon(lat: float, lon: float) -> None:
    if not (LAT_MIN <= lat <= LAT_MAX):
        raise HTTPException(status_code=400, detail=f"lat must be between {LAT_MIN} and {LAT_MAX}")
    if not (LON_MIN <= lon <= LON_MAX):
        raise HTTPException(status_code=400, detail=f"lon must be between {LON_MIN} and {LON_MAX}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.route_source = IcemanRouteSource(
        base_url=settings.route_source_base_url,
        timeout=settings.upstream_timeout_seconds,
        route_timezone=settings.route_timezone,
    )
    app.state.routing = build_travel_time_service(settings)
    logger.info("telemetry startup routing=%s", type(app.state.routing).__name__)
    yield
    app.state.route_source = None
    app.state.routing = None


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    """Return consistent JSON error for unhandled exceptions (500). Skip validation/HTTP errors."""
    from fastapi.exceptions import RequestValidationError
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc
    logger.exception("telemetry unhandled_exception path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )


# Order: last added = innermost. So RequestLogging runs first (outermost), then CORS.
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    return {"status": "ok"}


@app.get("/metrics")
@limiter.exempt
def metrics(request: Request):
    """Counters for monitoring: requests, latency, route cache hit ratio, ETA computations, uptime."""
    data = get_metrics()
    data["route_cache_entries"] = len(route_cache)
    return data


def _route_source() -> RouteSource:
    source: RouteSource | None = getattr(app.state, "route_source", None)
    if source is None:
        raise HTTPException(status_code=503, detail="Route source not configured.")
    return source


def _routing() -> TravelTimeService:
    routing: TravelTimeService | None = getattr(app.state, "routing", None)
    if routing is None:
        raise HTTPException(status_code=503, detail="Routing service not configured.")
    return routing


async def _resolve_route(stop_id: int) -> Route:
    """Stop id -> route through the cache. 404 when unknown, 502 when the route source is down."""
    source = _route_source()
    try:
        route = await route_cache.get_or_fetch(stop_id, source.fetch_route_by_stop)
    except RouteSourceError as e:
        logger.warning("telemetry route_source_error stop_id=%s error=%s", stop_id, str(e))
        raise HTTPException(status_code=502, detail=str(e)) from e
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return route


# --- Routes (cached by requested stop id) ---


@app.get("/api/route/{stop_id}", response_model=RouteResponse)
async def get_route(request: Request, stop_id: int):
    logger.info("telemetry route=route stop_id=%s", stop_id)
    route = await _resolve_route(stop_id)
    return RouteResponse.from_route(route)


@app.delete("/api/route/{stop_id}/cache", status_code=204)
def invalidate_route(request: Request, stop_id: int):
    """Drop the cached route for a requested stop id; the next request refetches it."""
    route_cache.invalidate(stop_id)
    logger.info("telemetry route_cache_invalidated stop_id=%s", stop_id)
    return Response(status_code=204)


@app.delete("/api/cache", status_code=204)
def clear_route_cache(request: Request):
    route_cache.clear()
    logger.info("telemetry route_cache_cleared")
    return Response(status_code=204)


# --- ETA ---


@app.get("/api/eta/{stop_id}", response_model=EtaResponse)
@limiter.limit(ETA_RATE_LIMIT)
async def get_eta(request: Request, stop_id: int, lat: float, lon: float, from_stop_id: int | None = None):
    """
    ETAs for the next stops of the route containing stop_id, for a truck at (lat, lon).
    from_stop_id: only stops after this one are estimated (ignored when not on the route).
    """
    _validate_lat_lon(lat, lon)
    logger.info("telemetry route=eta stop_id=%s from_stop_id=%s", stop_id, from_stop_id)
    route = await _resolve_route(stop_id)
    calculator = EtaCalculator(_routing())
    result = await calculator.calculate(route, GeoCoordinate(lat, lon), from_stop_id)
    record_eta_computed(len(result.stops))
    return EtaResponse.from_result(result)


# --- Fleet tracking webhook ---


@app.post("/api/webhook/position", response_model=PositionWebhookResponse)
def receive_position(request: Request, body: PositionWebhookRequest):
    """Acknowledge a GPS position pushed by the fleet tracking system."""
    position = body.to_position()
    logger.info(
        "telemetry position_received truck_id=%s lat=%s lon=%s speed=%s",
        position.truck_id,
        position.position.latitude,
        position.position.longitude,
        position.speed,
        extra={"truck_id": position.truck_id},
    )
    return PositionWebhookResponse(received=True, truck_id=position.truck_id)
