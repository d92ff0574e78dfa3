"""API request and response schemas -- types used only by the REST layer."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from hottakes.common.schemas import (
    Prediction,
    PredictionStatus,
    SettlementSummary,
    VoteSide,
)


class RegisterUserRequest(BaseModel):
    """Request body for choosing a username."""

    username: str


class UserProfile(BaseModel):
    """A user's public profile with derived badges."""

    id: str
    username: str
    points: int
    streak: int
    badges: list[str]


class LeaderboardEntry(BaseModel):
    """One row of the leaderboard."""

    rank: int
    user_id: str
    username: str
    points: int
    streak: int
    badges: list[str]


class PredictionCreateRequest(BaseModel):
    """Request body for posting a take."""

    title: str
    close_at: datetime
    description: str = ""
    category: str = "Sports"
    collaborators: list[str] = []
    image_url: str | None = None
    challenge_opponent_id: str | None = None


class PredictionEditRequest(BaseModel):
    """Request body for editing a take; omitted fields are unchanged."""

    title: str | None = None
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    close_at: datetime | None = None


class PredictionView(Prediction):
    """A prediction as shown in the feed, with derived state."""

    status: PredictionStatus
    hot_count: int
    cold_count: int
    my_vote: VoteSide | None = None


class VoteRequest(BaseModel):
    """Request body for casting a vote. Validated by the lifecycle."""

    side: str


class ResolveRequest(BaseModel):
    """Request body for resolving a take. Validated by the lifecycle."""

    outcome: str


class ResolveResponse(BaseModel):
    """The resolved prediction and what settlement did."""

    prediction: PredictionView
    settlement: SettlementSummary
