"""Prometheus metrics definitions for Hot Takes.

All metric objects are centralized here as module-level singletons.
Import what you need from anywhere in the codebase:

    from hottakes.common.metrics import VOTES_CAST_TOTAL, SETTLEMENTS_TOTAL

The /metrics endpoint is mounted in hottakes/main.py via
prometheus_client.make_asgi_app().
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Info

# ─── App Info ───

APP_INFO = Info("app", "Application metadata")

# ─── HTTP Metrics ───

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path_template", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=["method", "path_template"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    labelnames=["method"],
)

# ─── Business Metrics: Lifecycle ───

PREDICTIONS_CREATED_TOTAL = Counter(
    "predictions_created_total",
    "Predictions posted",
    labelnames=["category"],
)

VOTES_CAST_TOTAL = Counter(
    "votes_cast_total",
    "Votes cast or switched",
    labelnames=["side"],
)

VOTES_REJECTED_TOTAL = Counter(
    "votes_rejected_total",
    "Votes rejected by lifecycle validation",
    labelnames=["reason"],
)

PREDICTIONS_RESOLVED_TOTAL = Counter(
    "predictions_resolved_total",
    "Predictions resolved",
    labelnames=["outcome"],
)

# ─── Business Metrics: Settlement ───

SETTLEMENTS_TOTAL = Counter(
    "settlements_total",
    "Settlement attempts by result",
    labelnames=["result"],
)

POINTS_AWARDED_TOTAL = Counter(
    "points_awarded_total",
    "Points granted by settlement",
    labelnames=["role"],
)

# ─── Store Metrics ───

STORE_WRITE_CONFLICTS_TOTAL = Counter(
    "store_write_conflicts_total",
    "Compare-and-swap commits rejected by the document store",
    labelnames=["operation"],
)


def set_app_info(version: str, environment: str) -> None:
    """Set the app_info metric values. Called once at startup."""
    APP_INFO.info({"version": version, "environment": environment})
