"""Derived prediction state.

A prediction moves Open -> Closed -> Resolved -> Scored, but only the
resolved/scored flags are stored. Open versus Closed is a pure function of
``close_at`` and the caller's clock:

    now <  close_at  -> open    (voting allowed)
    now >= close_at  -> closed  (awaiting resolution)
"""

from __future__ import annotations

from datetime import datetime, timedelta

from hottakes.common.schemas import Prediction, PredictionStatus, ensure_utc


def is_open(prediction: Prediction, now: datetime) -> bool:
    """True while votes are accepted: unresolved and strictly before the deadline."""
    return not prediction.resolved and ensure_utc(now) < prediction.close_at


def is_past_deadline(prediction: Prediction, now: datetime) -> bool:
    return ensure_utc(now) >= prediction.close_at


def prediction_status(prediction: Prediction, now: datetime) -> PredictionStatus:
    """Return the lifecycle state of ``prediction`` as seen at ``now``."""
    if prediction.scored:
        return "scored"
    if prediction.resolved:
        return "resolved"
    if is_past_deadline(prediction, now):
        return "closed"
    return "open"


def time_remaining(prediction: Prediction, now: datetime) -> timedelta:
    """Time left before voting closes, never negative."""
    remaining = prediction.close_at - ensure_utc(now)
    return max(remaining, timedelta(0))
