"""Score settlement for resolved predictions.

Given a resolved prediction and the current user registry, computes the
point and streak adjustments for the author group and the voters, and
returns a NEW registry. Nothing is mutated and nothing is persisted, so the
computation can be repeated safely; preventing a second *application* is
the caller's job (see hottakes.service, which commits ``scored=True`` in
the same atomic write as the users).

Algorithm (constants from ScoringRules, defaults shown):
    total           = |hot| + |cold|          (0 -> registry unchanged)
    winners/losers  = pool matching / opposing the outcome
    minority_factor = |losers| / total

    Author group = author + collaborators
        outcome "hot":  pool  = 10 + round(20 * minority_factor)
                        each += max(1, round(pool / group_size)), streak += 1
        outcome "cold": each -= 5, streak = 0
    Voters
        winners: += 5 + round(10 * minority_factor), streak += 1
        losers:  streak = 0 (points untouched)

"hot" always counts as the author being right: a take is a claim that the
thing WILL happen. Rounding is exact half-up (see rounding.py).

Usage:
    from hottakes.settlement.engine import settle

    new_registry = settle(prediction, registry)
"""

from __future__ import annotations

from collections.abc import Mapping
from fractions import Fraction

from hottakes.common.exceptions import SettlementError
from hottakes.common.logging import get_logger
from hottakes.common.schemas import (
    Prediction,
    ScoreDelta,
    ScoringRules,
    SettlementSummary,
    User,
)
from hottakes.settlement.rounding import round_half_up

logger = get_logger("SETTLE")


def _require_resolved(prediction: Prediction) -> None:
    if not prediction.resolved or prediction.outcome is None:
        raise SettlementError(
            "Cannot settle an unresolved prediction",
            context={"prediction_id": prediction.id},
        )


def minority_factor(prediction: Prediction) -> Fraction:
    """Fraction of voters who backed the losing side (0 when nobody voted)."""
    _require_resolved(prediction)
    total = prediction.votes.total
    if total == 0:
        return Fraction(0)
    losing_side = "cold" if prediction.outcome == "hot" else "hot"
    return Fraction(len(prediction.votes.pool(losing_side)), total)


def compute_deltas(prediction: Prediction, rules: ScoringRules | None = None) -> list[ScoreDelta]:
    """List every adjustment settlement would make, authors first.

    Raises:
        SettlementError: The prediction is not resolved.
    """
    rules = rules or ScoringRules()
    factor = minority_factor(prediction)
    if prediction.votes.total == 0:
        return []

    outcome = prediction.outcome
    winners = prediction.votes.pool(outcome)
    losers = prediction.votes.pool("cold" if outcome == "hot" else "hot")
    authors = prediction.authors

    deltas: list[ScoreDelta] = []
    if outcome == "hot":
        pool = rules.author_base_points + round_half_up(rules.author_bonus_scale * factor)
        share = max(1, round_half_up(Fraction(pool, len(authors))))
        deltas.extend(
            ScoreDelta(user_id=uid, role="author", points=share, streak_action="increment")
            for uid in authors
        )
    else:
        deltas.extend(
            ScoreDelta(
                user_id=uid,
                role="author",
                points=-rules.author_loss_penalty,
                streak_action="reset",
            )
            for uid in authors
        )

    voter_reward = rules.voter_base_points + round_half_up(rules.voter_bonus_scale * factor)
    deltas.extend(
        ScoreDelta(user_id=uid, role="voter", points=voter_reward, streak_action="increment")
        for uid in sorted(winners)
    )
    deltas.extend(
        ScoreDelta(user_id=uid, role="voter", points=0, streak_action="reset")
        for uid in sorted(losers)
    )
    return deltas


def apply_deltas(
    registry: Mapping[str, User],
    deltas: list[ScoreDelta],
) -> tuple[dict[str, User], list[str]]:
    """Apply ``deltas`` to a copy of ``registry``.

    Users missing from the registry are skipped rather than invented.

    Returns:
        Tuple of (new registry, ids that were skipped).
    """
    updated = dict(registry)
    skipped: list[str] = []
    for delta in deltas:
        user = updated.get(delta.user_id)
        if user is None:
            skipped.append(delta.user_id)
            continue
        streak = user.streak + 1 if delta.streak_action == "increment" else 0
        updated[delta.user_id] = user.model_copy(
            update={"points": user.points + delta.points, "streak": streak}
        )
    return updated, skipped


def settle_with_summary(
    prediction: Prediction,
    registry: Mapping[str, User],
    rules: ScoringRules | None = None,
) -> tuple[dict[str, User], SettlementSummary]:
    """Settle ``prediction`` and describe what changed.

    Raises:
        SettlementError: The prediction is not resolved.
    """
    deltas = compute_deltas(prediction, rules)
    factor = minority_factor(prediction)
    updated, skipped = apply_deltas(registry, deltas)

    if skipped:
        logger.warning(
            "Settlement skipped unknown users",
            extra={"data": {"prediction_id": prediction.id, "user_ids": skipped}},
        )

    summary = SettlementSummary(
        prediction_id=prediction.id,
        outcome=prediction.outcome,
        minority_factor=float(factor),
        deltas=deltas,
        skipped_user_ids=skipped,
    )
    logger.info(
        "Settlement computed",
        extra={
            "data": {
                "prediction_id": prediction.id,
                "outcome": prediction.outcome,
                "voters": prediction.votes.total,
                "minority_factor": round(float(factor), 4),
                "deltas": len(deltas),
            }
        },
    )
    return updated, summary


def settle(
    prediction: Prediction,
    registry: Mapping[str, User],
    rules: ScoringRules | None = None,
) -> dict[str, User]:
    """Return the registry after settling ``prediction``. Pure; see module docs."""
    updated, _ = settle_with_summary(prediction, registry, rules)
    return updated
