"""Tests for hottakes.lifecycle.resolution -- can_resolve and resolve."""

from __future__ import annotations

import pytest

from hottakes.lifecycle.exceptions import (
    AlreadyResolvedError,
    InvalidOutcomeError,
    NotAuthorizedError,
    TooEarlyError,
)
from hottakes.lifecycle.resolution import can_resolve, resolve
from tests.factories import AFTER_CLOSE, BEFORE_CLOSE, NOW, make_prediction


class TestCanResolve:
    def test_author_after_deadline(self) -> None:
        assert can_resolve(make_prediction(), "author", AFTER_CLOSE) is True

    def test_collaborator_after_deadline(self) -> None:
        prediction = make_prediction(collaborators=["c1"])
        assert can_resolve(prediction, "c1", AFTER_CLOSE) is True

    def test_exactly_at_deadline(self) -> None:
        assert can_resolve(make_prediction(), "author", NOW) is True

    def test_before_deadline(self) -> None:
        assert can_resolve(make_prediction(), "author", BEFORE_CLOSE) is False

    def test_voter_cannot_resolve(self) -> None:
        prediction = make_prediction(hot=["v1"])
        assert can_resolve(prediction, "v1", AFTER_CLOSE) is False

    def test_already_resolved(self) -> None:
        prediction = make_prediction(resolved=True, outcome="cold")
        assert can_resolve(prediction, "author", AFTER_CLOSE) is False


class TestResolve:
    @pytest.mark.parametrize("outcome", ["hot", "cold"])
    def test_sets_resolved_and_outcome(self, outcome: str) -> None:
        resolved = resolve(make_prediction(), "author", outcome, AFTER_CLOSE)
        assert resolved.resolved is True
        assert resolved.outcome == outcome

    def test_does_not_set_scored(self) -> None:
        resolved = resolve(make_prediction(), "author", "hot", AFTER_CLOSE)
        assert resolved.scored is False

    def test_votes_are_preserved(self) -> None:
        prediction = make_prediction(hot=["v1"], cold=["v2"])
        resolved = resolve(prediction, "author", "hot", AFTER_CLOSE)
        assert resolved.votes == prediction.votes

    def test_collaborator_may_resolve(self) -> None:
        prediction = make_prediction(collaborators=["c1"])
        assert resolve(prediction, "c1", "cold", AFTER_CLOSE).outcome == "cold"

    def test_too_early(self) -> None:
        with pytest.raises(TooEarlyError):
            resolve(make_prediction(), "author", "hot", BEFORE_CLOSE)

    def test_already_resolved(self) -> None:
        prediction = make_prediction(resolved=True, outcome="hot")
        with pytest.raises(AlreadyResolvedError):
            resolve(prediction, "author", "cold", AFTER_CLOSE)

    @pytest.mark.parametrize("user_id", ["v1", "stranger", ""])
    def test_not_authorized(self, user_id: str) -> None:
        prediction = make_prediction(collaborators=["c1"], hot=["v1"])
        with pytest.raises(NotAuthorizedError):
            resolve(prediction, user_id, "hot", AFTER_CLOSE)

    def test_not_authorized_even_before_deadline(self) -> None:
        with pytest.raises(NotAuthorizedError):
            resolve(make_prediction(), "v1", "hot", BEFORE_CLOSE)

    @pytest.mark.parametrize("outcome", ["", "HOT", "warm", None])
    def test_invalid_outcome(self, outcome) -> None:
        with pytest.raises(InvalidOutcomeError):
            resolve(make_prediction(), "author", outcome, AFTER_CLOSE)

    def test_failure_leaves_input_unchanged(self) -> None:
        prediction = make_prediction()
        with pytest.raises(TooEarlyError):
            resolve(prediction, "author", "hot", BEFORE_CLOSE)
        assert prediction.resolved is False
        assert prediction.outcome is None
