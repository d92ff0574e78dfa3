"""FastAPI dependencies and schema converters.

The caller's identity comes from the identity provider in front of the
API as an opaque ``X-User-Id`` header. The store is a process-wide
singleton scoped to ``Settings.app_id``; tests override ``get_service``.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import Depends, Header, HTTPException

from hottakes.api.response_schemas import LeaderboardEntry, PredictionView, UserProfile
from hottakes.common.config import Settings, get_settings
from hottakes.common.schemas import Prediction, User
from hottakes.lifecycle.state import prediction_status
from hottakes.lifecycle.voting import user_vote
from hottakes.service import PredictionService
from hottakes.settlement.badges import derive_badges
from hottakes.store.memory import InMemoryDocumentStore

_stores: dict[str, InMemoryDocumentStore] = {}


def get_service(settings: Settings = Depends(get_settings)) -> PredictionService:
    """Return a service bound to this tenant's store."""
    store = _stores.get(settings.app_id)
    if store is None:
        store = InMemoryDocumentStore(settings.app_id)
        _stores[settings.app_id] = store
    return PredictionService(store, settings)


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the authenticated user id, or raise 401 if none was supplied.

    Raises:
        HTTPException: 401 when the identity header is missing or blank.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Not authenticated: missing X-User-Id")
    return x_user_id.strip()


def user_to_profile(user: User, settings: Settings) -> UserProfile:
    """Convert a User record to its public profile with derived badges."""
    return UserProfile(
        id=user.id,
        username=user.username,
        points=user.points,
        streak=user.streak,
        badges=derive_badges(user, settings.badge_rules()),
    )


def prediction_to_view(prediction: Prediction, now: datetime, viewer_id: str | None) -> PredictionView:
    """Convert a Prediction to the feed representation as seen at ``now``."""
    return PredictionView(
        **prediction.model_dump(),
        status=prediction_status(prediction, now),
        hot_count=len(prediction.votes.hot),
        cold_count=len(prediction.votes.cold),
        my_vote=user_vote(prediction, viewer_id) if viewer_id else None,
    )


def leaderboard_entries(users: list[User], settings: Settings) -> list[LeaderboardEntry]:
    rules = settings.badge_rules()
    return [
        LeaderboardEntry(
            rank=rank,
            user_id=u.id,
            username=u.username,
            points=u.points,
            streak=u.streak,
            badges=derive_badges(u, rules),
        )
        for rank, u in enumerate(users, start=1)
    ]
