"""
Configuration settings for the vocabulary engine.

Uses Pydantic Settings for environment variable management with .env file support.
Every setting can be overridden with a VOCAB_ prefixed environment variable,
e.g. VOCAB_PAGE_SIZE=12 or VOCAB_STORE_BACKEND=sql.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from src.lexicon.collation import Collator
    from src.lexicon.tiers import TierScale
    from src.review.scheduler import IntervalPolicy

DATA_DIR = Path.home() / ".vocab"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VOCAB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Corpus
    # ========================================
    corpus_path: str | None = Field(
        default=None,
        description="Path to the vocabulary JSON file",
    )
    corpus_url: str | None = Field(
        default=None,
        description="URL of the static vocabulary endpoint (used when corpus_path is unset)",
    )
    request_timeout: float = Field(
        default=10.0,
        description="HTTP timeout in seconds when fetching the corpus",
    )

    # ========================================
    # Storage
    # ========================================
    store_backend: Literal["memory", "json", "sql"] = Field(
        default="json",
        description="Key-value store backend",
    )
    store_dir: str = Field(
        default=str(DATA_DIR / "store"),
        description="Directory for the json backend",
    )
    database_url: str = Field(
        default=f"sqlite:///{DATA_DIR / 'vocab.db'}",
        description="SQLAlchemy URL for the sql backend",
    )

    # ========================================
    # Sessions
    # ========================================
    page_size: int = Field(
        default=10,
        gt=0,
        description="Words per study session",
    )
    tier_order: str = Field(
        default="A1,A2,B1,B2,C1,C2",
        description="Comma-separated difficulty tiers, weakest first",
    )
    collation: Literal["default", "turkish"] = Field(
        default="default",
        description="Ordering of display text within a tier",
    )

    # ========================================
    # Review scheduling (days per rating)
    # ========================================
    interval_hard: float = Field(default=1, description="Days until a 'hard' item is due")
    interval_medium: float = Field(default=3, description="Days until a 'medium' item is due")
    interval_easy: float = Field(default=7, description="Days until an 'easy' item is due")
    upcoming_window_hours: float = Field(
        default=24,
        description="Window for the 'upcoming' review statistic",
    )

    # ========================================
    # Modes
    # ========================================
    recommend_threshold: int = Field(
        default=10,
        description="Words learned before the quiz is recommended over flashcards",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level for the stderr sink",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional rotating log file",
    )

    @field_validator("tier_order")
    @classmethod
    def _tiers_not_empty(cls, value: str) -> str:
        if not [t for t in value.split(",") if t.strip()]:
            raise ValueError("tier_order needs at least one tier")
        return value

    def tier_scale(self) -> TierScale:
        from src.lexicon.tiers import TierScale

        return TierScale.from_labels(self.tier_order.split(","))

    def collator(self) -> Collator:
        from src.lexicon.collation import get_collator

        return get_collator(self.collation)

    def interval_policy(self) -> IntervalPolicy:
        from src.review.scheduler import IntervalPolicy

        return IntervalPolicy(
            hard=self.interval_hard,
            medium=self.interval_medium,
            easy=self.interval_easy,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
