"""Prediction lifecycle: creation, voting eligibility, and resolution.

Every function here is pure: it takes a snapshot plus the caller's clock
and returns a new snapshot or raises a LifecycleError before computing
anything. Persistence and retries belong to hottakes.service.

Public API:
    - state: derived open/closed/resolved/scored status
    - voting: cast_vote, retract_vote, eligibility predicates
    - resolution: can_resolve, resolve
    - creation: create_prediction, edit_prediction, register_user
    - feed: category listing and search filtering
"""

from __future__ import annotations

from hottakes.lifecycle.creation import create_prediction, edit_prediction, register_user
from hottakes.lifecycle.exceptions import (
    AlreadyResolvedError,
    IneligibleVoterError,
    InvalidOutcomeError,
    InvalidPredictionError,
    InvalidUsernameError,
    LifecycleError,
    NotAuthorizedError,
    TooEarlyError,
    UnknownUserError,
    UsernameTakenError,
    VotingClosedError,
)
from hottakes.lifecycle.feed import filter_predictions, list_categories
from hottakes.lifecycle.resolution import can_resolve, resolve
from hottakes.lifecycle.state import is_open, prediction_status, time_remaining
from hottakes.lifecycle.voting import can_vote, cast_vote, retract_vote, user_vote

__all__ = [
    "AlreadyResolvedError",
    "IneligibleVoterError",
    "InvalidOutcomeError",
    "InvalidPredictionError",
    "InvalidUsernameError",
    "LifecycleError",
    "NotAuthorizedError",
    "TooEarlyError",
    "UnknownUserError",
    "UsernameTakenError",
    "VotingClosedError",
    "can_resolve",
    "can_vote",
    "cast_vote",
    "create_prediction",
    "edit_prediction",
    "filter_predictions",
    "is_open",
    "list_categories",
    "prediction_status",
    "register_user",
    "resolve",
    "retract_vote",
    "time_remaining",
    "user_vote",
]
