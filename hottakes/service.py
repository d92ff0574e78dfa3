"""Prediction service: runs the pure lifecycle/settlement core against a store.

The core functions only ever see snapshots. This module is the caller the
core assumes: it loads snapshots, applies a transition, and writes the
result back guarded by the revision it read. On a write conflict it reloads
and re-runs the transition (which re-validates against the fresh state), up
to ``Settings.write_retry_limit`` attempts.

Settlement is applied exactly once: the settled user records and
``scored=True`` go out in ONE compare-and-swap commit. If two settlements
race, the loser's commit is rejected; on reload it sees ``scored`` and
returns without applying anything. If the commit fails for any other
reason, ``scored`` stays False and ``settle`` can simply be called again:
the outcome and votes it recomputes from are frozen at resolution.

Usage:
    service = PredictionService(InMemoryDocumentStore("app"), get_settings())
    prediction = await service.cast_vote("p1", "u-42", "hot", now)
    prediction, summary = await service.resolve("p1", "u-1", "hot", now)
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

from hottakes.common.config import Settings, get_settings
from hottakes.common.exceptions import RetryExhaustedError, SettlementError
from hottakes.common.logging import get_logger
from hottakes.common.metrics import (
    POINTS_AWARDED_TOTAL,
    PREDICTIONS_CREATED_TOTAL,
    PREDICTIONS_RESOLVED_TOTAL,
    SETTLEMENTS_TOTAL,
    VOTES_CAST_TOTAL,
    VOTES_REJECTED_TOTAL,
)
from hottakes.common.schemas import Prediction, SettlementSummary, User
from hottakes.lifecycle import creation, feed, resolution, voting
from hottakes.lifecycle.exceptions import LifecycleError, UsernameTakenError
from hottakes.settlement.badges import leaderboard
from hottakes.settlement.engine import minority_factor, settle_with_summary
from hottakes.store.base import ABSENT, DocumentStore, Write
from hottakes.store.exceptions import WriteConflictError

logger = get_logger("LIFECYCLE")
settle_logger = get_logger("SETTLE")


def _category_label(category: str) -> str:
    """Metric label for a category; free-text categories collapse to "other"."""
    return category if category in feed.BASE_CATEGORIES else "other"


class PredictionService:
    """Orchestrates lifecycle transitions and settlement over a DocumentStore.

    Args:
        store: Tenant-scoped document store.
        settings: Application settings (retry limit, scoring constants).
    """

    def __init__(self, store: DocumentStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    # ─── Reads ───

    async def get_user(self, user_id: str) -> User:
        return (await self.store.get_user(user_id)).value

    async def get_prediction(self, prediction_id: str) -> Prediction:
        return (await self.store.get_prediction(prediction_id)).value

    async def list_predictions(
        self,
        category: str | None = None,
        search: str | None = None,
    ) -> list[Prediction]:
        """Feed order: newest first."""
        predictions = [s.value for s in await self.store.list_predictions()]
        predictions.sort(key=lambda p: p.created_at, reverse=True)
        return feed.filter_predictions(predictions, category=category, search=search)

    async def list_categories(self) -> list[str]:
        predictions = [s.value for s in await self.store.list_predictions()]
        predictions.sort(key=lambda p: p.created_at)
        return feed.list_categories(predictions)

    async def leaderboard(self) -> list[User]:
        registry, _ = await self.store.load_registry()
        return leaderboard(registry.values())

    # ─── Users ───

    async def register_user(self, user_id: str, username: str) -> User:
        """Create a profile; raises UsernameTakenError/InvalidUsernameError."""
        registry, _ = await self.store.load_registry()
        user = creation.register_user(user_id, username, registry)
        try:
            await self.store.commit([Write("users", user_id, user, ABSENT)])
        except WriteConflictError as exc:
            raise UsernameTakenError(
                "This account already has a username.",
                context={"user_id": user_id},
            ) from exc
        return user

    # ─── Predictions ───

    async def create_prediction(
        self,
        author_id: str,
        title: str,
        close_at: datetime,
        now: datetime,
        **fields,
    ) -> Prediction:
        """Validate and store a new take. ``fields`` as in ``create_prediction``."""
        registry, _ = await self.store.load_registry()
        prediction = creation.create_prediction(
            uuid.uuid4().hex, author_id, title, close_at, now, registry, **fields
        )
        await self.store.commit([Write("predictions", prediction.id, prediction, ABSENT)])
        PREDICTIONS_CREATED_TOTAL.labels(category=_category_label(prediction.category)).inc()
        return prediction

    async def edit_prediction(
        self,
        prediction_id: str,
        user_id: str,
        now: datetime,
        **changes,
    ) -> Prediction:
        return await self._update_prediction(
            prediction_id,
            lambda p: creation.edit_prediction(p, user_id, now, **changes),
            operation="edit",
        )

    async def cast_vote(
        self,
        prediction_id: str,
        user_id: str,
        side: str,
        now: datetime,
    ) -> Prediction:
        """Toggle ``user_id``'s vote, retrying on concurrent vote writes."""
        try:
            updated = await self._update_prediction(
                prediction_id,
                lambda p: voting.cast_vote(p, user_id, side, now),
                operation="vote",
            )
        except LifecycleError as exc:
            VOTES_REJECTED_TOTAL.labels(reason=type(exc).__name__).inc()
            raise
        VOTES_CAST_TOTAL.labels(side=side).inc()
        return updated

    async def retract_vote(self, prediction_id: str, user_id: str, now: datetime) -> Prediction:
        return await self._update_prediction(
            prediction_id,
            lambda p: voting.retract_vote(p, user_id, now),
            operation="retract",
        )

    async def resolve(
        self,
        prediction_id: str,
        user_id: str,
        outcome: str,
        now: datetime,
    ) -> tuple[Prediction, SettlementSummary]:
        """Resolve a take and settle it.

        If settlement fails after the resolution was written, the error is
        re-raised and the prediction stays resolved-but-unscored; call
        ``settle`` to finish it.
        """
        await self._update_prediction(
            prediction_id,
            lambda p: resolution.resolve(p, user_id, outcome, now),
            operation="resolve",
        )
        PREDICTIONS_RESOLVED_TOTAL.labels(outcome=outcome).inc()

        try:
            summary = await self.settle(prediction_id)
        except Exception:
            settle_logger.error(
                "Settlement failed after resolution; retry with settle()",
                extra={"data": {"prediction_id": prediction_id}},
            )
            raise
        return await self.get_prediction(prediction_id), summary

    async def settle(self, prediction_id: str) -> SettlementSummary:
        """Apply settlement for a resolved prediction at most once.

        Returns:
            The settlement summary. If scoring had already been recorded,
            nothing is recomputed or written: ``applied`` is False and
            ``deltas`` is empty.

        Raises:
            SettlementError: The prediction is not resolved.
            RetryExhaustedError: Commits kept conflicting.
        """
        rules = self.settings.scoring_rules()
        for attempt in range(1, self.settings.write_retry_limit + 1):
            snap = await self.store.get_prediction(prediction_id)
            prediction = snap.value
            if not prediction.resolved:
                raise SettlementError(
                    "Cannot settle an unresolved prediction",
                    context={"prediction_id": prediction_id},
                )

            if prediction.scored:
                SETTLEMENTS_TOTAL.labels(result="already_scored").inc()
                settle_logger.info(
                    "Settlement already recorded, skipping",
                    extra={"data": {"prediction_id": prediction_id}},
                )
                return SettlementSummary(
                    prediction_id=prediction_id,
                    outcome=prediction.outcome,
                    minority_factor=float(minority_factor(prediction)),
                    deltas=[],
                )

            registry, revisions = await self.store.load_registry()
            updated, summary = settle_with_summary(prediction, registry, rules)

            skipped = set(summary.skipped_user_ids)
            changed_ids = sorted({d.user_id for d in summary.deltas} - skipped)
            writes = [Write("users", uid, updated[uid], revisions[uid]) for uid in changed_ids]
            writes.append(
                Write(
                    "predictions",
                    prediction_id,
                    prediction.model_copy(update={"scored": True}),
                    snap.revision,
                )
            )

            try:
                await self.store.commit(writes)
            except WriteConflictError:
                SETTLEMENTS_TOTAL.labels(result="conflict").inc()
                settle_logger.info(
                    "Settlement commit conflicted, reloading",
                    extra={"data": {"prediction_id": prediction_id, "attempt": attempt}},
                )
                continue

            SETTLEMENTS_TOTAL.labels(result="applied").inc()
            for delta in summary.deltas:
                if delta.points > 0 and delta.user_id not in skipped:
                    POINTS_AWARDED_TOTAL.labels(role=delta.role).inc(delta.points)
            settle_logger.info(
                "Settlement applied",
                extra={
                    "data": {
                        "prediction_id": prediction_id,
                        "outcome": prediction.outcome,
                        "users_updated": len(changed_ids),
                    }
                },
            )
            return summary.model_copy(update={"applied": True})

        raise RetryExhaustedError(
            "Settlement kept conflicting with concurrent writes",
            context={"prediction_id": prediction_id, "attempts": self.settings.write_retry_limit},
        )

    # ─── Internals ───

    async def _update_prediction(
        self,
        prediction_id: str,
        transition: Callable[[Prediction], Prediction],
        operation: str,
    ) -> Prediction:
        """Read-modify-write one prediction with optimistic retries."""
        for attempt in range(1, self.settings.write_retry_limit + 1):
            snap = await self.store.get_prediction(prediction_id)
            updated = transition(snap.value)
            try:
                await self.store.commit([Write("predictions", prediction_id, updated, snap.revision)])
            except WriteConflictError:
                logger.info(
                    "Prediction write conflicted, retrying",
                    extra={
                        "data": {
                            "prediction_id": prediction_id,
                            "operation": operation,
                            "attempt": attempt,
                        }
                    },
                )
                continue
            return updated

        raise RetryExhaustedError(
            f"Could not {operation} prediction: too many concurrent writes",
            context={
                "prediction_id": prediction_id,
                "operation": operation,
                "attempts": self.settings.write_retry_limit,
            },
        )
