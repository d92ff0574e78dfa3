"""Pydantic schemas: the data contracts shared by every module.

Users and predictions are plain snapshots of documents held by the
external store. Every model here is frozen: lifecycle and settlement code
never mutates a snapshot, it returns a new one via ``model_copy(update=...)``.

RULES:
- Cross-module communication uses these types, never ad-hoc dicts.
- If you need a new shared type, add it HERE.
- Timestamps are timezone-aware UTC; naive inputs are taken as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

# ─── Literal Types ───

VoteSide = Literal["hot", "cold"]
Outcome = VoteSide
PredictionStatus = Literal["open", "closed", "resolved", "scored"]
ScoreRole = Literal["author", "voter"]
StreakAction = Literal["increment", "reset"]

VOTE_SIDES: tuple[str, ...] = ("hot", "cold")


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ─── Users ───


class User(BaseModel):
    """A participant's public record: identity plus reputation."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    points: int = 0  # May go negative
    streak: int = Field(default=0, ge=0)
    friends: frozenset[str] = frozenset()
    badges: frozenset[str] = frozenset()

    @field_serializer("friends", "badges")
    def _serialize_sorted(self, value: frozenset[str]) -> list[str]:
        return sorted(value)


# ─── Predictions ───


class VoteSets(BaseModel):
    """The two disjoint voter pools of a prediction."""

    model_config = ConfigDict(frozen=True)

    hot: frozenset[str] = frozenset()
    cold: frozenset[str] = frozenset()

    @model_validator(mode="after")
    def validate_disjoint(self) -> VoteSets:
        """A user may sit on at most one side."""
        overlap = self.hot & self.cold
        if overlap:
            msg = f"Users voted on both sides: {sorted(overlap)}"
            raise ValueError(msg)
        return self

    @field_serializer("hot", "cold")
    def _serialize_sorted(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    @property
    def total(self) -> int:
        return len(self.hot) + len(self.cold)

    def side_of(self, user_id: str) -> VoteSide | None:
        if user_id in self.hot:
            return "hot"
        if user_id in self.cold:
            return "cold"
        return None

    def pool(self, side: VoteSide) -> frozenset[str]:
        return self.hot if side == "hot" else self.cold


class Prediction(BaseModel):
    """A hot take: a binary claim, a deadline and its voting pool.

    Open/closed is never stored; it is derived from ``close_at`` and the
    caller's clock (see ``hottakes.lifecycle.state``).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    author_id: str
    author_name: str = ""
    title: str
    description: str = ""
    category: str = "Sports"
    collaborators: frozenset[str] = frozenset()
    created_at: datetime
    close_at: datetime
    image_url: str | None = None  # Object store reference, opaque here
    challenge_opponent_id: str | None = None
    votes: VoteSets = Field(default_factory=VoteSets)
    resolved: bool = False
    outcome: Outcome | None = None
    scored: bool = False

    @field_validator("created_at", "close_at")
    @classmethod
    def validate_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_resolution_flags(self) -> Prediction:
        """resolved <=> outcome set, and scored => resolved."""
        if self.resolved and self.outcome is None:
            msg = "A resolved prediction must carry an outcome"
            raise ValueError(msg)
        if not self.resolved and self.outcome is not None:
            msg = "An unresolved prediction cannot carry an outcome"
            raise ValueError(msg)
        if self.scored and not self.resolved:
            msg = "A prediction cannot be scored before it is resolved"
            raise ValueError(msg)
        return self

    @field_serializer("collaborators")
    def _serialize_sorted(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    @property
    def authors(self) -> tuple[str, ...]:
        """The author followed by collaborators, without duplicates."""
        return (self.author_id, *sorted(self.collaborators - {self.author_id}))

    def is_author(self, user_id: str) -> bool:
        """True for the author and for every collaborator."""
        return user_id == self.author_id or user_id in self.collaborators


# ─── Scoring ───


class ScoringRules(BaseModel):
    """Point constants used by the settlement engine."""

    model_config = ConfigDict(frozen=True)

    author_base_points: int = Field(default=10, ge=0)
    author_bonus_scale: int = Field(default=20, ge=0)
    author_loss_penalty: int = Field(default=5, ge=0)
    voter_base_points: int = Field(default=5, ge=0)
    voter_bonus_scale: int = Field(default=10, ge=0)


class BadgeRules(BaseModel):
    """Thresholds for the badges derived from a user's stats."""

    model_config = ConfigDict(frozen=True)

    centurion_points: int = 100
    hot_streak_length: int = Field(default=5, ge=1)


class ScoreDelta(BaseModel):
    """One point/streak adjustment produced by settlement."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: ScoreRole
    points: int
    streak_action: StreakAction


class SettlementSummary(BaseModel):
    """What a settlement did (or would do) to the registry."""

    prediction_id: str
    outcome: Outcome
    minority_factor: float = Field(ge=0.0, le=1.0)
    deltas: list[ScoreDelta]
    skipped_user_ids: list[str] = []
    applied: bool = False  # False when scoring had already been recorded
