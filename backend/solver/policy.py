from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GenerationPolicy:
    """Tunable knobs of the placement heuristic."""

    # None or 0 disables the per-demand daily repeat limit.
    max_daily_periods_per_demand: int | None = None
    teacher_daily_spread_threshold: int = 2
    backtrack_budget_multiplier: int = 3
    prefer_morning_for_core_modules: bool = True
    default_max_weekly_periods: int | None = None
    # None or 0 allows any number of back-to-back periods per teacher.
    max_consecutive_teacher_periods: int | None = None
    time_budget_seconds: float | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> "GenerationPolicy":
        return cls(
            max_daily_periods_per_demand=settings.max_daily_periods_per_demand or None,
            teacher_daily_spread_threshold=settings.teacher_daily_spread_threshold,
            backtrack_budget_multiplier=settings.backtrack_budget_multiplier,
            prefer_morning_for_core_modules=settings.prefer_morning_for_core_modules,
            default_max_weekly_periods=settings.default_max_weekly_periods,
            max_consecutive_teacher_periods=settings.max_consecutive_teacher_periods or None,
            time_budget_seconds=settings.generation_time_budget_seconds or None,
        )

    def retry_budget(self, periods_required: int) -> int:
        return max(1, self.backtrack_budget_multiplier) * max(0, periods_required)

    @property
    def daily_limit(self) -> int | None:
        limit = self.max_daily_periods_per_demand
        return limit if limit and limit > 0 else None
