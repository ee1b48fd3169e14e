"""In-memory service metrics for the /metrics endpoint: request buckets, latency, route cache and ETA counters."""
import time
from collections.abc import MutableMapping
from threading import Lock

_start_time = time.monotonic()
_counts: MutableMapping[str, int] = {}
_latency_total_ms = 0.0
_lock = Lock()


def _bump(name: str) -> None:
    _counts[name] = _counts.get(name, 0) + 1


def record_request(status_code: int, duration_ms: float = 0.0) -> None:
    global _latency_total_ms
    if 200 <= status_code < 300:
        bucket = "2xx"
    elif 400 <= status_code < 500:
        bucket = "4xx"
    elif status_code >= 500:
        bucket = "5xx"
    else:
        bucket = "other"
    with _lock:
        _bump(bucket)
        _latency_total_ms += duration_ms


def record_cache_lookup(hit: bool) -> None:
    with _lock:
        _bump("cache_hit" if hit else "cache_miss")


def record_eta_computed(stop_count: int) -> None:
    with _lock:
        _bump("eta_computed")
        _counts["eta_stops"] = _counts.get("eta_stops", 0) + stop_count


def reset_metrics() -> None:
    global _latency_total_ms
    with _lock:
        _counts.clear()
        _latency_total_ms = 0.0


def get_metrics() -> dict:
    with _lock:
        counts = dict(_counts)
        latency_total_ms = _latency_total_ms
    uptime_seconds = time.monotonic() - _start_time
    requests_total = sum(counts.get(b, 0) for b in ("2xx", "4xx", "5xx", "other"))
    lookups = counts.get("cache_hit", 0) + counts.get("cache_miss", 0)
    return {
        "requests_total": requests_total,
        "requests_2xx": counts.get("2xx", 0),
        "requests_4xx": counts.get("4xx", 0),
        "requests_5xx": counts.get("5xx", 0),
        "mean_latency_ms": round(latency_total_ms / requests_total, 1) if requests_total else 0.0,
        "route_cache_hits": counts.get("cache_hit", 0),
        "route_cache_misses": counts.get("cache_miss", 0),
        "route_cache_hit_ratio": round(counts.get("cache_hit", 0) / lookups, 3) if lookups else 0.0,
        "eta_computed": counts.get("eta_computed", 0),
        "eta_stops_estimated": counts.get("eta_stops", 0),
        "uptime_seconds": round(uptime_seconds, 1),
    }
