"""Tests for hottakes.settlement.engine: point and streak settlement.

Worked example used throughout (author alone, outcome "hot"):
    hot = [v1, v2], cold = [v3]  ->  minority_factor = 1/3
    author pool = 10 + round(20 / 3) = 17
    winners     = 5 + round(10 / 3)  = 8 each
"""

from __future__ import annotations

from fractions import Fraction

import pytest

from hottakes.common.exceptions import SettlementError
from hottakes.common.schemas import ScoringRules
from hottakes.settlement.engine import (
    compute_deltas,
    minority_factor,
    settle,
    settle_with_summary,
)
from tests.factories import make_prediction, make_registry, make_user


def _resolved(outcome: str, **kwargs):
    kwargs.setdefault("hot", ["v1", "v2"])
    kwargs.setdefault("cold", ["v3"])
    return make_prediction(resolved=True, outcome=outcome, **kwargs)


class TestNoVoters:
    @pytest.mark.parametrize("outcome", ["hot", "cold"])
    def test_registry_unchanged(self, outcome: str) -> None:
        registry = make_registry("author", "collab", "v1", points=3, streak=2)
        prediction = make_prediction(
            collaborators=["collab"], resolved=True, outcome=outcome
        )
        assert settle(prediction, registry) == registry

    def test_no_deltas(self) -> None:
        prediction = make_prediction(resolved=True, outcome="hot")
        assert compute_deltas(prediction) == []
        assert minority_factor(prediction) == 0


class TestHotOutcome:
    def test_worked_example(self) -> None:
        registry = make_registry("author", "v1", "v2", "v3")
        result = settle(_resolved("hot"), registry)

        assert result["author"].points == 17
        assert result["author"].streak == 1
        assert result["v1"].points == 8
        assert result["v1"].streak == 1
        assert result["v2"].points == 8
        assert result["v2"].streak == 1
        assert result["v3"].points == 0
        assert result["v3"].streak == 0

    def test_minority_factor(self) -> None:
        assert minority_factor(_resolved("hot")) == Fraction(1, 3)

    def test_streaks_accumulate_and_reset(self) -> None:
        registry = {
            "author": make_user("author", streak=4),
            "v1": make_user("v1", streak=2),
            "v2": make_user("v2"),
            "v3": make_user("v3", points=40, streak=7),
        }
        result = settle(_resolved("hot"), registry)
        assert result["author"].streak == 5
        assert result["v1"].streak == 3
        assert result["v3"].streak == 0
        assert result["v3"].points == 40  # Losing voters keep their points

    def test_unanimous_correct_crowd(self) -> None:
        """No losers: minority factor 0, base rewards only."""
        registry = make_registry("author", "v1", "v2")
        prediction = make_prediction(hot=["v1", "v2"], resolved=True, outcome="hot")
        result = settle(prediction, registry)
        assert result["author"].points == 10
        assert result["v1"].points == 5

    def test_everyone_bet_against_the_author(self) -> None:
        """All voters wrong: full bonus for the author, nobody to reward."""
        registry = make_registry("author", "v1", "v2")
        prediction = make_prediction(cold=["v1", "v2"], resolved=True, outcome="hot")
        result = settle(prediction, registry)
        assert result["author"].points == 30
        assert result["v1"].streak == 0
        assert result["v1"].points == 0

    def test_hot_always_means_author_was_right(self) -> None:
        """There is no stored 'predicted side': outcome hot rewards the author group."""
        registry = make_registry("author", "v1")
        prediction = make_prediction(cold=["v1"], resolved=True, outcome="hot")
        assert settle(prediction, registry)["author"].points > 0


class TestColdOutcome:
    def test_worked_example(self) -> None:
        registry = make_registry("author", "collab", "v1", "v2", "v3", points=20, streak=3)
        result = settle(_resolved("cold", collaborators=["collab"]), registry)

        for uid in ("author", "collab"):
            assert result[uid].points == 15
            assert result[uid].streak == 0
        assert result["v3"].points == 20 + 12
        assert result["v3"].streak == 4
        for uid in ("v1", "v2"):
            assert result[uid].points == 20
            assert result[uid].streak == 0

    def test_points_can_go_negative(self) -> None:
        registry = make_registry("author", "v1", "v2", "v3")
        result = settle(_resolved("cold"), registry)
        assert result["author"].points == -5


class TestAuthorSplit:
    def test_one_collaborator_splits_pool(self) -> None:
        """Pool 17 over two members: round(8.5) = 9 each."""
        registry = make_registry("author", "collab", "v1", "v2", "v3")
        result = settle(_resolved("hot", collaborators=["collab"]), registry)
        assert result["author"].points == 9
        assert result["collab"].points == 9
        assert result["collab"].streak == 1

    def test_share_never_below_one_point(self) -> None:
        """Pool 10 over 25 members rounds to 0, floored to 1."""
        collaborators = [f"c{i:02d}" for i in range(24)]
        registry = make_registry("author", "v1", *collaborators)
        prediction = make_prediction(
            collaborators=collaborators, hot=["v1"], resolved=True, outcome="hot"
        )
        result = settle(prediction, registry)
        assert result["author"].points == 1
        assert all(result[c].points == 1 for c in collaborators)
        assert result["v1"].points == 5

    def test_author_listed_as_collaborator_counts_once(self) -> None:
        registry = make_registry("author", "v1", "v2", "v3")
        prediction = _resolved("hot", collaborators=["author"])
        result = settle(prediction, registry)
        assert result["author"].points == 17
        assert result["author"].streak == 1


class TestPurity:
    def test_repeatable(self) -> None:
        registry = make_registry("author", "v1", "v2", "v3")
        prediction = _resolved("hot")
        assert settle(prediction, registry) == settle(prediction, registry)

    def test_input_registry_not_mutated(self) -> None:
        registry = make_registry("author", "v1", "v2", "v3")
        snapshot = dict(registry)
        settle(_resolved("cold"), registry)
        assert registry == snapshot

    def test_untouched_users_pass_through(self) -> None:
        registry = make_registry("author", "v1", "v2", "v3", "bystander")
        result = settle(_resolved("hot"), registry)
        assert result["bystander"] is registry["bystander"]

    def test_only_points_and_streak_change(self) -> None:
        registry = {
            "author": make_user(
                "author",
                username="Ace",
                friends=frozenset({"v1"}),
                badges=frozenset({"Centurion"}),
            ),
            "v1": make_user("v1"),
            "v2": make_user("v2"),
            "v3": make_user("v3"),
        }
        author = settle(_resolved("hot"), registry)["author"]
        assert author.username == "Ace"
        assert author.friends == {"v1"}
        assert author.badges == {"Centurion"}


class TestEdgeCases:
    def test_unresolved_prediction_rejected(self) -> None:
        registry = make_registry("author", "v1")
        with pytest.raises(SettlementError):
            settle(make_prediction(hot=["v1"]), registry)

    def test_unknown_users_skipped(self) -> None:
        registry = make_registry("author", "v1")  # v2 and v3 missing
        result, summary = settle_with_summary(_resolved("hot"), registry)
        assert set(result) == {"author", "v1"}
        assert sorted(summary.skipped_user_ids) == ["v2", "v3"]
        assert result["v1"].points == 8

    def test_custom_rules(self) -> None:
        rules = ScoringRules(
            author_base_points=100,
            author_bonus_scale=0,
            author_loss_penalty=50,
            voter_base_points=1,
            voter_bonus_scale=0,
        )
        registry = make_registry("author", "v1", "v2", "v3")
        hot = settle(_resolved("hot"), registry, rules)
        cold = settle(_resolved("cold"), registry, rules)
        assert hot["author"].points == 100
        assert hot["v1"].points == 1
        assert cold["author"].points == -50

    def test_summary_lists_authors_first(self) -> None:
        registry = make_registry("author", "v1", "v2", "v3")
        _, summary = settle_with_summary(_resolved("hot"), registry)
        assert summary.deltas[0].user_id == "author"
        assert summary.deltas[0].role == "author"
        assert [d.user_id for d in summary.deltas[1:]] == ["v1", "v2", "v3"]
        assert summary.minority_factor == pytest.approx(1 / 3)
        assert summary.applied is False
