"""Derived badges and the leaderboard.

Badges are computed from a user's current stats on read and merged with
any badges already stored on the record; nothing here writes them back.
"""

from __future__ import annotations

from collections.abc import Iterable

from hottakes.common.schemas import BadgeRules, User

CENTURION = "Centurion"


def hot_streak_badge(rules: BadgeRules) -> str:
    return f"Hot Streak {rules.hot_streak_length}"


def derive_badges(user: User, rules: BadgeRules | None = None) -> list[str]:
    """Stored badges plus those earned by points and streak, sorted."""
    rules = rules or BadgeRules()
    badges = set(user.badges)
    if user.points >= rules.centurion_points:
        badges.add(CENTURION)
    if user.streak >= rules.hot_streak_length:
        badges.add(hot_streak_badge(rules))
    return sorted(badges)


def leaderboard(users: Iterable[User]) -> list[User]:
    """Users by points, highest first; ties broken by username."""
    return sorted(users, key=lambda u: (-u.points, u.username))
