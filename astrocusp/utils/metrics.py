# astrocusp/utils/metrics.py
"""Prometheus collectors shared by the app factory and the API blueprint."""
from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram

MET_REQUESTS: Final = Counter("astrocusp_requests_total", "API requests", ["route"])
MET_ERRORS: Final = Counter("astrocusp_errors_total", "API errors by engine/validation code", ["code"])
MET_CHARTS: Final = Counter("astrocusp_charts_total", "Charts computed", ["house_mode"])
REQ_LATENCY: Final = Histogram("astrocusp_request_seconds", "API request latency", ["route"])
GAUGE_APP_UP: Final = Gauge("astrocusp_app_up", "1 if app is running")

SEEDED_ROUTES = (
    "/health", "/api/health",
    "/api/chart", "/api/sun", "/api/timescales", "/api/houses/modes",
)
SEEDED_ERROR_CODES = ("validation_error", "invalid_input", "singular_geometry", "non_convergence", "internal_error")


def seed() -> None:
    """Create the labelled series up front so dashboards see zeros, not gaps."""
    for route in SEEDED_ROUTES:
        MET_REQUESTS.labels(route=route).inc(0)
        REQ_LATENCY.labels(route=route)
    for code in SEEDED_ERROR_CODES:
        MET_ERRORS.labels(code=code).inc(0)
    GAUGE_APP_UP.set(1.0)
