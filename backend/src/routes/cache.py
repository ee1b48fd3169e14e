"""
In-memory route cache keyed by the requested stop id, with a fixed TTL.

Two requested stop ids on the same physical route get independent entries.
Expiry is checked lazily on read; there is no background sweep.
Concurrent misses on one key may each fetch upstream; the last set wins.
"""
import logging
import time
from typing import Awaitable, Callable

from src.monitoring.metrics import record_cache_lookup
from src.routes.models import Route

logger = logging.getLogger(__name__)

ROUTE_CACHE_TTL_SECONDS = 30 * 60


class RouteCache:
    """TTL cache of routes. Each dict operation is atomic on its own; no lock is held across a fetch."""

    def __init__(
        self,
        ttl_seconds: float = ROUTE_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._store: dict[int, tuple[Route, float]] = {}

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: int) -> Route | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        route, expires_at = entry
        if self._clock() >= expires_at:
            # Only drop the entry we read; a concurrent set may already have replaced it.
            if self._store.get(key) is entry:
                self._store.pop(key, None)
            return None
        return route

    def set(self, key: int, route: Route) -> None:
        self._store[key] = (route, self._clock() + self._ttl)

    async def get_or_fetch(
        self,
        key: int,
        fetch: Callable[[int], Awaitable[Route | None]],
    ) -> Route | None:
        """
        Return the cached route for key, or await fetch(key) on a miss and cache a non-None result.
        None is never cached, so an unknown stop is retried on every request.
        """
        route = self.get(key)
        if route is not None:
            record_cache_lookup(hit=True)
            logger.info(
                "telemetry route_served cache_hit=true stop_id=%s",
                key,
                extra={"stop_id": key, "cache_hit": True},
            )
            return route

        record_cache_lookup(hit=False)
        logger.info(
            "telemetry route_served cache_hit=false stop_id=%s",
            key,
            extra={"stop_id": key, "cache_hit": False},
        )
        route = await fetch(key)
        if route is not None:
            self.set(key, route)
        return route

    def invalidate(self, key: int) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()
