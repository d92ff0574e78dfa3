"""Application configuration via environment variables.

Uses pydantic-settings to load from .env file and environment variables.
All config is centralized here. Import `get_settings()` rather than
reading the environment directly.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from hottakes.common.schemas import BadgeRules, ScoringRules


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ─── App ───
    app_id: str = "default-app-id"  # Tenant scope for every document
    environment: str = "development"
    log_level: str = "INFO"

    # ─── Store ───
    write_retry_limit: int = 3  # Attempts per vote/resolve on write conflict

    # ─── Scoring ───
    author_base_points: int = 10
    author_bonus_scale: int = 20
    author_loss_penalty: int = 5
    voter_base_points: int = 5
    voter_bonus_scale: int = 10

    # ─── Badges ───
    centurion_points: int = 100
    hot_streak_length: int = 5

    def scoring_rules(self) -> ScoringRules:
        """Build the scoring constants used by the settlement engine."""
        return ScoringRules(
            author_base_points=self.author_base_points,
            author_bonus_scale=self.author_bonus_scale,
            author_loss_penalty=self.author_loss_penalty,
            voter_base_points=self.voter_base_points,
            voter_bonus_scale=self.voter_bonus_scale,
        )

    def badge_rules(self) -> BadgeRules:
        """Build the badge thresholds used when deriving badges."""
        return BadgeRules(
            centurion_points=self.centurion_points,
            hot_streak_length=self.hot_streak_length,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton.

    Uses lru_cache so Settings is only instantiated once.
    In tests, call `get_settings.cache_clear()` to reset.
    """
    return Settings()
