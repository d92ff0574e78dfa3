"""FastAPI application factory for Hot Takes.

Run with: uvicorn hottakes.main:app --reload
"""

from __future__ import annotations

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app as make_metrics_app

from hottakes.api.predictions import router as predictions_router
from hottakes.api.users import leaderboard_router
from hottakes.api.users import router as users_router
from hottakes.common.config import get_settings
from hottakes.common.exceptions import HotTakesError, RetryExhaustedError, SettlementError
from hottakes.common.logging import configure_log_level, get_logger
from hottakes.common.metrics import set_app_info
from hottakes.common.middleware import (
    PrometheusMiddleware,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    request_id_var,
)
from hottakes.lifecycle.exceptions import (
    AlreadyResolvedError,
    IneligibleVoterError,
    InvalidOutcomeError,
    InvalidPredictionError,
    InvalidUsernameError,
    NotAuthorizedError,
    TooEarlyError,
    UnknownUserError,
    UsernameTakenError,
    VotingClosedError,
)
from hottakes.store.exceptions import DocumentNotFoundError, WriteConflictError

logger = get_logger("SYSTEM")

VERSION = "0.1.0"

# First match wins; anything else derived from HotTakesError is a 400
_ERROR_STATUS: list[tuple[type[HotTakesError], int]] = [
    (IneligibleVoterError, 403),
    (NotAuthorizedError, 403),
    (DocumentNotFoundError, 404),
    (UnknownUserError, 404),
    (VotingClosedError, 409),
    (TooEarlyError, 409),
    (AlreadyResolvedError, 409),
    (UsernameTakenError, 409),
    (SettlementError, 409),
    (WriteConflictError, 409),
    (RetryExhaustedError, 409),
    (InvalidOutcomeError, 422),
    (InvalidPredictionError, 422),
    (InvalidUsernameError, 422),
]


def status_for(exc: HotTakesError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 400


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_log_level(settings.log_level)

    app = FastAPI(
        title="Hot Takes",
        version=VERSION,
        description="Social predictions with voting, resolution and reputation scoring",
    )

    # Last added = outermost = runs first on request
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ─── Exception Handlers ───

    @app.exception_handler(HotTakesError)
    async def hottakes_exception_handler(request: Request, exc: HotTakesError) -> JSONResponse:
        """Translate domain errors into structured JSON responses."""
        status = status_for(exc)
        log = logger.error if status >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc}",
            extra={"data": {"path": str(request.url), "context": exc.context}},
        )
        return JSONResponse(
            status_code=status,
            content={
                "error": type(exc).__name__,
                "message": exc.args[0] if exc.args else str(exc),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: log traceback, return 500."""
        rid = request_id_var.get("")
        logger.error(
            f"Unhandled {type(exc).__name__}: {exc}",
            extra={
                "data": {
                    "path": str(request.url),
                    "request_id": rid,
                    "traceback": traceback.format_exc(),
                }
            },
        )
        body: dict = {
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
        }
        if rid:
            body["request_id"] = rid
        return JSONResponse(status_code=500, content=body)

    # ─── Health ───

    @app.get("/health")
    async def health_check() -> dict:
        """Liveness check: confirms the process is running."""
        return {"status": "ok", "version": VERSION}

    # ─── Prometheus Metrics ───

    app.mount("/metrics", make_metrics_app())
    set_app_info(version=VERSION, environment=settings.environment)

    # ─── Router Mounting ───

    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(leaderboard_router, prefix="/api/leaderboard", tags=["leaderboard"])
    app.include_router(predictions_router, prefix="/api/predictions", tags=["predictions"])

    logger.info("App started", extra={"data": {"version": VERSION}})

    return app


app = create_app()
