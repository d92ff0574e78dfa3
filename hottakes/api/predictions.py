"""Prediction feed, voting and resolution endpoints.

Every endpoint reads the clock once per request and passes it down; the
lifecycle never looks at the wall clock itself.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header

from hottakes.api.deps import get_current_user_id, get_service, prediction_to_view
from hottakes.api.response_schemas import (
    PredictionCreateRequest,
    PredictionEditRequest,
    PredictionView,
    ResolveRequest,
    ResolveResponse,
    VoteRequest,
)
from hottakes.common.logging import get_logger
from hottakes.service import PredictionService

logger = get_logger("API")

router = APIRouter()


def _now() -> datetime:
    return datetime.now(UTC)


@router.get("", response_model=list[PredictionView])
async def list_predictions(
    category: str | None = None,
    search: str | None = None,
    x_user_id: str | None = Header(default=None),
    service: PredictionService = Depends(get_service),
) -> list[PredictionView]:
    """The feed, newest first, optionally filtered by category and search text."""
    now = _now()
    predictions = await service.list_predictions(category=category, search=search)
    logger.info(
        "Feed fetched",
        extra={"data": {"category": category, "search": search, "returned": len(predictions)}},
    )
    return [prediction_to_view(p, now, x_user_id) for p in predictions]


@router.get("/categories", response_model=list[str])
async def list_categories(service: PredictionService = Depends(get_service)) -> list[str]:
    return await service.list_categories()


@router.post("", response_model=PredictionView, status_code=201)
async def create_prediction(
    body: PredictionCreateRequest,
    user_id: str = Depends(get_current_user_id),
    service: PredictionService = Depends(get_service),
) -> PredictionView:
    """Post a new take authored by the caller."""
    now = _now()
    prediction = await service.create_prediction(
        user_id,
        body.title,
        body.close_at,
        now,
        description=body.description,
        category=body.category,
        collaborators=body.collaborators,
        image_url=body.image_url,
        challenge_opponent_id=body.challenge_opponent_id,
    )
    return prediction_to_view(prediction, now, user_id)


@router.get("/{prediction_id}", response_model=PredictionView)
async def get_prediction(
    prediction_id: str,
    x_user_id: str | None = Header(default=None),
    service: PredictionService = Depends(get_service),
) -> PredictionView:
    prediction = await service.get_prediction(prediction_id)
    return prediction_to_view(prediction, _now(), x_user_id)


@router.patch("/{prediction_id}", response_model=PredictionView)
async def edit_prediction(
    prediction_id: str,
    body: PredictionEditRequest,
    user_id: str = Depends(get_current_user_id),
    service: PredictionService = Depends(get_service),
) -> PredictionView:
    """Edit the caller's own unresolved take."""
    now = _now()
    prediction = await service.edit_prediction(
        prediction_id, user_id, now, **body.model_dump(exclude_none=True)
    )
    return prediction_to_view(prediction, now, user_id)


@router.post("/{prediction_id}/votes", response_model=PredictionView)
async def cast_vote(
    prediction_id: str,
    body: VoteRequest,
    user_id: str = Depends(get_current_user_id),
    service: PredictionService = Depends(get_service),
) -> PredictionView:
    """Vote hot or cold; voting again on the other side switches the vote."""
    now = _now()
    prediction = await service.cast_vote(prediction_id, user_id, body.side, now)
    return prediction_to_view(prediction, now, user_id)


@router.delete("/{prediction_id}/votes", response_model=PredictionView)
async def retract_vote(
    prediction_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PredictionService = Depends(get_service),
) -> PredictionView:
    now = _now()
    prediction = await service.retract_vote(prediction_id, user_id, now)
    return prediction_to_view(prediction, now, user_id)


@router.post("/{prediction_id}/resolve", response_model=ResolveResponse)
async def resolve_prediction(
    prediction_id: str,
    body: ResolveRequest,
    user_id: str = Depends(get_current_user_id),
    service: PredictionService = Depends(get_service),
) -> ResolveResponse:
    """Resolve the caller's take after its deadline and settle scores."""
    now = _now()
    prediction, summary = await service.resolve(prediction_id, user_id, body.outcome, now)
    return ResolveResponse(
        prediction=prediction_to_view(prediction, now, user_id),
        settlement=summary,
    )
