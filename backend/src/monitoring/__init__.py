from src.monitoring.metrics import get_metrics, record_cache_lookup, record_eta_computed, record_request, reset_metrics

__all__ = ["get_metrics", "record_cache_lookup", "record_eta_computed", "record_request", "reset_metrics"]
