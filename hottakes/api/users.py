"""User profile and leaderboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hottakes.api.deps import (
    get_current_user_id,
    get_service,
    leaderboard_entries,
    user_to_profile,
)
from hottakes.api.response_schemas import LeaderboardEntry, RegisterUserRequest, UserProfile
from hottakes.common.logging import get_logger
from hottakes.service import PredictionService

logger = get_logger("API")

router = APIRouter()
leaderboard_router = APIRouter()


@router.post("", response_model=UserProfile, status_code=201)
async def register_user(
    body: RegisterUserRequest,
    user_id: str = Depends(get_current_user_id),
    service: PredictionService = Depends(get_service),
) -> UserProfile:
    """Create the caller's profile with a unique username."""
    user = await service.register_user(user_id, body.username)
    return user_to_profile(user, service.settings)


@router.get("/{user_id}", response_model=UserProfile)
async def get_user(
    user_id: str,
    service: PredictionService = Depends(get_service),
) -> UserProfile:
    """Fetch a public profile, including derived badges."""
    user = await service.get_user(user_id)
    return user_to_profile(user, service.settings)


@leaderboard_router.get("", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    service: PredictionService = Depends(get_service),
) -> list[LeaderboardEntry]:
    """All users ranked by points."""
    users = await service.leaderboard()
    logger.info("Leaderboard fetched", extra={"data": {"users": len(users)}})
    return leaderboard_entries(users, service.settings)
