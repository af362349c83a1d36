from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BACKEND_DIR / ".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str

    # Runtime
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ENVIRONMENT"))
    frontend_origin: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("frontend_origin", "FRONTEND_ORIGIN"),
    )

    # Create missing tables on startup (dev / SQLite). Production schemas are managed externally.
    auto_create_tables: bool = Field(
        default=False,
        validation_alias=AliasChoices("auto_create_tables", "AUTO_CREATE_TABLES"),
    )

    # Generation policy
    # None or 0 disables the limit on periods of one subject/module per class per day.
    max_daily_periods_per_demand: int | None = Field(
        default=None,
        validation_alias=AliasChoices("max_daily_periods_per_demand", "MAX_DAILY_PERIODS_PER_DEMAND"),
    )
    teacher_daily_spread_threshold: int = Field(
        default=2,
        validation_alias=AliasChoices("teacher_daily_spread_threshold", "TEACHER_DAILY_SPREAD_THRESHOLD"),
    )
    backtrack_budget_multiplier: int = Field(
        default=3,
        validation_alias=AliasChoices("backtrack_budget_multiplier", "BACKTRACK_BUDGET_MULTIPLIER"),
    )
    default_max_weekly_periods: int | None = Field(
        default=40,
        validation_alias=AliasChoices("default_max_weekly_periods", "DEFAULT_MAX_WEEKLY_PERIODS"),
    )
    # Hard limit on back-to-back periods for one teacher on one day; 0 disables.
    max_consecutive_teacher_periods: int = Field(
        default=2,
        validation_alias=AliasChoices("max_consecutive_teacher_periods", "MAX_CONSECUTIVE_TEACHER_PERIODS"),
    )
    prefer_morning_for_core_modules: bool = Field(
        default=True,
        validation_alias=AliasChoices("prefer_morning_for_core_modules", "PREFER_MORNING_FOR_CORE_MODULES"),
    )
    generation_time_budget_seconds: float | None = Field(
        default=20.0,
        validation_alias=AliasChoices("generation_time_budget_seconds", "GENERATION_TIME_BUDGET_SECONDS"),
    )
    generation_lock_timeout_seconds: float = Field(
        default=5.0,
        validation_alias=AliasChoices("generation_lock_timeout_seconds", "GENERATION_LOCK_TIMEOUT_SECONDS"),
    )

    @field_validator("frontend_origin")
    @classmethod
    def _normalize_frontend_origin(cls, v: str) -> str:
        # Starlette CORS expects the Origin to match exactly (no trailing slash).
        return v.strip().rstrip("/")

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, v: str) -> str:
        return (v or "development").strip().lower()

    @field_validator("max_consecutive_teacher_periods")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("backtrack_budget_multiplier", "teacher_daily_spread_threshold")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


settings = Settings()
