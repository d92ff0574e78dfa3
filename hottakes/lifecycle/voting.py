"""Vote casting and eligibility rules.

A vote is a toggle: the voter is removed from both pools and added to the
chosen side, so re-voting the same side changes nothing and switching sides
is a single call. Checks run in this order and stop at the first failure:

1. side must be "hot" or "cold"           -> InvalidOutcomeError
2. prediction unresolved and still open   -> VotingClosedError
3. voter is not the author/a collaborator -> IneligibleVoterError

Usage:
    from hottakes.lifecycle.voting import cast_vote

    updated = cast_vote(prediction, "u-42", "hot", now=datetime.now(UTC))
"""

from __future__ import annotations

from datetime import datetime

from hottakes.common.logging import get_logger
from hottakes.common.schemas import VOTE_SIDES, Prediction, VoteSets, VoteSide
from hottakes.lifecycle.exceptions import (
    IneligibleVoterError,
    InvalidOutcomeError,
    VotingClosedError,
)
from hottakes.lifecycle.state import is_open

logger = get_logger("VOTE")


def _check_window(prediction: Prediction, user_id: str, now: datetime) -> None:
    if prediction.resolved:
        raise VotingClosedError(
            "Voting is closed: prediction already resolved",
            context={"prediction_id": prediction.id, "user_id": user_id},
        )
    if not is_open(prediction, now):
        raise VotingClosedError(
            "Voting is closed: deadline has passed",
            context={
                "prediction_id": prediction.id,
                "user_id": user_id,
                "close_at": prediction.close_at.isoformat(),
            },
        )


def _check_eligible(prediction: Prediction, user_id: str) -> None:
    if prediction.is_author(user_id):
        raise IneligibleVoterError(
            "You cannot vote on your own take",
            context={"prediction_id": prediction.id, "user_id": user_id},
        )


def _without(votes: VoteSets, user_id: str) -> tuple[frozenset[str], frozenset[str]]:
    return votes.hot - {user_id}, votes.cold - {user_id}


def cast_vote(
    prediction: Prediction,
    user_id: str,
    side: str,
    now: datetime,
) -> Prediction:
    """Place (or switch) ``user_id``'s vote on ``side``.

    Args:
        prediction: Current snapshot. Not modified.
        user_id: The voter.
        side: "hot" or "cold".
        now: Caller's clock, compared against ``close_at``.

    Returns:
        A new Prediction with the voter in exactly one pool.

    Raises:
        InvalidOutcomeError: ``side`` is not a vote side.
        VotingClosedError: Prediction resolved or deadline passed.
        IneligibleVoterError: Voter is the author or a collaborator.
    """
    if side not in VOTE_SIDES:
        raise InvalidOutcomeError(
            f"Vote side must be 'hot' or 'cold', got {side!r}",
            context={"prediction_id": prediction.id, "user_id": user_id},
        )
    _check_window(prediction, user_id, now)
    _check_eligible(prediction, user_id)

    hot, cold = _without(prediction.votes, user_id)
    if side == "hot":
        hot = hot | {user_id}
    else:
        cold = cold | {user_id}

    previous = prediction.votes.side_of(user_id)
    logger.info(
        "Vote cast",
        extra={
            "data": {
                "prediction_id": prediction.id,
                "user_id": user_id,
                "side": side,
                "previous": previous,
            }
        },
    )
    return prediction.model_copy(update={"votes": VoteSets(hot=hot, cold=cold)})


def retract_vote(prediction: Prediction, user_id: str, now: datetime) -> Prediction:
    """Remove ``user_id`` from both pools. Same window rules as ``cast_vote``.

    Retracting without a prior vote returns an equal prediction.
    """
    _check_window(prediction, user_id, now)
    _check_eligible(prediction, user_id)

    hot, cold = _without(prediction.votes, user_id)
    logger.info(
        "Vote retracted",
        extra={"data": {"prediction_id": prediction.id, "user_id": user_id}},
    )
    return prediction.model_copy(update={"votes": VoteSets(hot=hot, cold=cold)})


def user_vote(prediction: Prediction, user_id: str) -> VoteSide | None:
    """The side ``user_id`` currently backs, or None."""
    return prediction.votes.side_of(user_id)


def can_vote(prediction: Prediction, user_id: str, now: datetime) -> bool:
    """Pure predicate mirroring the checks in ``cast_vote``."""
    return is_open(prediction, now) and not prediction.is_author(user_id)
