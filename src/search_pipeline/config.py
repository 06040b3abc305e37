"""Centralized configuration for search-pipeline using Pydantic Settings."""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from search_pipeline.domain.search import DEFAULT_MAX_RESULTS


class Settings(BaseSettings):
    """Strictly typed engine defaults loaded from ``SEARCH_*`` environment variables.

    Values are validated at construction; a bad value raises a pydantic
    ``ValidationError`` before any engine is built.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Result shaping
    default_max_results: int = Field(
        default=DEFAULT_MAX_RESULTS, ge=1, description="Engine-wide cap on returned items"
    )

    # Classification
    exploratory_word_limit: int = Field(
        default=5, ge=1, description="Max words for a query to count as exploratory when it has a browse keyword"
    )

    # Recency boost
    recency_fresh_days: int = Field(default=30, ge=0, description="Age in days that still earns the full bonus")
    recency_stale_days: int = Field(default=365, ge=1, description="Age in days from which no bonus is given")
    recency_fresh_bonus: int = Field(default=20, ge=0, description="Bonus points for fresh documents")

    # Logging
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", description="Root logging level"
    )
    log_json: bool = Field(default=True, description="Emit structured JSON logs")
    log_hash_queries: bool = Field(default=False, description="Replace query text in log fields with a digest")
    log_pipeline_level: Literal["debug", "info", "warning", "error", "critical"] | None = Field(
        default=None, description="Level for the per-phase pipeline loggers; unset inherits log_level"
    )

    # Labels
    engine_name: str = Field(default="default", min_length=1, description="Engine label for logs and metrics")

    @field_validator("log_level", "log_pipeline_level", mode="before")
    @classmethod
    def _lower_log_level(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_recency_window(self) -> "Settings":
        if self.recency_stale_days <= self.recency_fresh_days:
            raise ValueError(
                "SEARCH_RECENCY_STALE_DAYS must be greater than SEARCH_RECENCY_FRESH_DAYS "
                f"(got stale={self.recency_stale_days}, fresh={self.recency_fresh_days})"
            )
        return self
