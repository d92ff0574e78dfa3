"""Prediction resolution.

Resolution records the outcome exactly once. It never touches ``scored``:
that flag is written by the service together with the settled user records,
so a failed settlement leaves the prediction resolved-but-unscored and the
settlement can be recomputed from the frozen outcome and votes.

Checks run in this order:

1. outcome must be "hot" or "cold"        -> InvalidOutcomeError
2. caller is the author/a collaborator    -> NotAuthorizedError
3. prediction not yet resolved            -> AlreadyResolvedError
4. now is at or after close_at            -> TooEarlyError
"""

from __future__ import annotations

from datetime import datetime

from hottakes.common.logging import get_logger
from hottakes.common.schemas import VOTE_SIDES, Prediction
from hottakes.lifecycle.exceptions import (
    AlreadyResolvedError,
    InvalidOutcomeError,
    NotAuthorizedError,
    TooEarlyError,
)
from hottakes.lifecycle.state import is_past_deadline

logger = get_logger("RESOLVE")


def can_resolve(prediction: Prediction, user_id: str, now: datetime) -> bool:
    """True iff ``user_id`` may resolve ``prediction`` at ``now``."""
    return (
        prediction.is_author(user_id)
        and is_past_deadline(prediction, now)
        and not prediction.resolved
    )


def resolve(
    prediction: Prediction,
    user_id: str,
    outcome: str,
    now: datetime,
) -> Prediction:
    """Resolve ``prediction`` with ``outcome``.

    Args:
        prediction: Current snapshot. Not modified.
        user_id: The caller; must be the author or a collaborator.
        outcome: "hot" or "cold".
        now: Caller's clock.

    Returns:
        A new Prediction with ``resolved=True`` and the outcome set.

    Raises:
        InvalidOutcomeError, NotAuthorizedError, AlreadyResolvedError, TooEarlyError
    """
    context = {"prediction_id": prediction.id, "user_id": user_id}

    if outcome not in VOTE_SIDES:
        raise InvalidOutcomeError(
            f"Outcome must be 'hot' or 'cold', got {outcome!r}", context=context
        )
    if not prediction.is_author(user_id):
        raise NotAuthorizedError(
            "Only the author or a collaborator can resolve this take", context=context
        )
    if prediction.resolved:
        raise AlreadyResolvedError(
            "Prediction already resolved",
            context={**context, "outcome": prediction.outcome},
        )
    if not is_past_deadline(prediction, now):
        raise TooEarlyError(
            "Prediction cannot be resolved before its deadline",
            context={**context, "close_at": prediction.close_at.isoformat()},
        )

    logger.info(
        "Prediction resolved",
        extra={
            "data": {
                "prediction_id": prediction.id,
                "resolved_by": user_id,
                "outcome": outcome,
                "hot_votes": len(prediction.votes.hot),
                "cold_votes": len(prediction.votes.cold),
            }
        },
    )
    return prediction.model_copy(update={"resolved": True, "outcome": outcome})
