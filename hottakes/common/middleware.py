"""HTTP middleware for Hot Takes.

Provides request ID tracing, request logging and Prometheus HTTP metrics.
All three middleware classes are registered in hottakes/main.py.

Usage:
    from hottakes.common.middleware import request_id_var
    rid = request_id_var.get("")  # Access current request ID from anywhere
"""

from __future__ import annotations

import re
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from hottakes.common.logging import get_logger
from hottakes.common.metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_IN_PROGRESS,
    HTTP_REQUESTS_TOTAL,
)

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = get_logger("API")

# Health-check and scrape traffic is not logged or measured
_SKIP_PATHS = frozenset({"/health", "/metrics"})

# Dynamic segments collapsed to keep Prometheus label cardinality bounded
_PATH_ID_PATTERNS = [
    (re.compile(r"(/api/predictions)/[^/]+"), r"\1/{id}"),
    (re.compile(r"(/api/users)/[^/]+"), r"\1/{id}"),
]


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Inject a unique request ID into every request/response cycle.

    - Reads ``X-Request-ID`` from the incoming request. If absent,
      generates a UUID4.
    - Stores the ID in a ``ContextVar`` so the structured logger can
      include it in every log line.
    - Returns the ID in the ``X-Request-ID`` response header.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        request_id_var.set(rid)

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status, and duration."""

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "data": {
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id_var.get(""),
                }
            },
        )
        return response


def _normalize_path(path: str) -> str:
    """Normalize a URL path by replacing document ids with {id}.

    Examples:
        /api/predictions/abc123/votes -> /api/predictions/{id}/votes
        /api/users/u-42               -> /api/users/{id}
    """
    if path == "/api/predictions/categories":
        return path
    for pattern, replacement in _PATH_ID_PATTERNS:
        path = pattern.sub(replacement, path)
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Record Prometheus HTTP metrics for every request.

    Tracks request count, duration histogram, and in-progress gauge.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        path = request.url.path
        if path in _SKIP_PATHS:
            return await call_next(request)

        method = request.method
        path_template = _normalize_path(path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method).inc()
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            HTTP_REQUESTS_TOTAL.labels(
                method=method,
                path_template=path_template,
                status_code="500",
            ).inc()
            HTTP_REQUEST_DURATION_SECONDS.labels(
                method=method,
                path_template=path_template,
            ).observe(time.perf_counter() - start)
            raise
        finally:
            HTTP_REQUESTS_IN_PROGRESS.labels(method=method).dec()

        HTTP_REQUESTS_TOTAL.labels(
            method=method,
            path_template=path_template,
            status_code=str(response.status_code),
        ).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(
            method=method,
            path_template=path_template,
        ).observe(time.perf_counter() - start)

        return response
