"""Settlement engine: point and streak redistribution for resolved takes.

Public API:
    - engine: settle, settle_with_summary, compute_deltas, minority_factor
    - rounding: round_half_up
    - badges: derive_badges, leaderboard
"""

from __future__ import annotations

from hottakes.settlement.badges import derive_badges, leaderboard
from hottakes.settlement.engine import (
    apply_deltas,
    compute_deltas,
    minority_factor,
    settle,
    settle_with_summary,
)
from hottakes.settlement.rounding import round_half_up

__all__ = [
    "apply_deltas",
    "compute_deltas",
    "derive_badges",
    "leaderboard",
    "minority_factor",
    "round_half_up",
    "settle",
    "settle_with_summary",
]
