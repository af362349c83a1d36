from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from solver.availability import (
    CLASS_BUSY,
    TEACHER_BUSY,
    TEACHER_CONSECUTIVE_LIMIT,
    TEACHER_UNAVAILABLE_DAY,
    TEACHER_UNAVAILABLE_PERIOD,
    TEACHER_WEEKLY_CAP_REACHED,
)
from solver.demands import Demand
from solver.slots import SlotId


# Solver-side reasons, alongside the tracker's blocking reasons.
DAILY_LIMIT_REACHED = "DAILY_LIMIT_REACHED"
TIME_BUDGET_EXHAUSTED = "TIME_BUDGET_EXHAUSTED"
BACKTRACKED = "BACKTRACKED"


class ConflictKind(str, Enum):
    UNPLACEABLE_PERIOD = "UNPLACEABLE_PERIOD"
    DEMAND_EXCEEDS_CAPACITY = "DEMAND_EXCEEDS_CAPACITY"
    QUOTA_VIOLATION = "QUOTA_VIOLATION"
    UNDER_SCHEDULED = "UNDER_SCHEDULED"
    TIMETABLES_EXIST = "TIMETABLES_EXIST"


SEVERITY_BY_KIND = {
    ConflictKind.UNPLACEABLE_PERIOD: "ERROR",
    ConflictKind.DEMAND_EXCEEDS_CAPACITY: "ERROR",
    ConflictKind.QUOTA_VIOLATION: "WARN",
    ConflictKind.UNDER_SCHEDULED: "WARN",
    ConflictKind.TIMETABLES_EXIST: "INFO",
}


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    message: str
    related_demand: Demand | None = None
    attempted_slots: tuple[SlotId, ...] = ()
    class_id: Any = None
    teacher_id: Any = None
    details: dict[str, Any] = field(default_factory=dict)
    suggestions: tuple[str, ...] = ()

    @property
    def severity(self) -> str:
        return SEVERITY_BY_KIND[self.kind]


SUGGESTIONS_BY_REASON = {
    TEACHER_BUSY: "Reduce the teacher's workload or move some assignments to another teacher.",
    CLASS_BUSY: "Add teaching time slots; the class is already busy at every free time for this teacher.",
    TEACHER_UNAVAILABLE_DAY: "Review the teacher's unavailable days.",
    TEACHER_UNAVAILABLE_PERIOD: "Review the teacher's unavailable periods.",
    TEACHER_WEEKLY_CAP_REACHED: "Raise the teacher's maximum weekly periods or assign another teacher.",
    TEACHER_CONSECUTIVE_LIMIT: "Free non-adjacent periods for the teacher or raise the consecutive period limit.",
    DAILY_LIMIT_REACHED: "Raise the daily limit for this lesson or spread it over more days.",
    TIME_BUDGET_EXHAUSTED: "Generate one class or teacher at a time, or raise the generation time budget.",
}
ADD_TIME_SLOTS = "Add more teaching time slots to the week."


def _humanize(reason: str) -> str:
    return reason.lower().replace("_", " ")


def summarize_reasons(reasons: Iterable[str]) -> dict[str, int]:
    return dict(sorted(Counter(reasons).items()))


def suggestions_for(reasons: dict[str, int]) -> tuple[str, ...]:
    """Actionable hints for the blocking reasons, most frequent first."""
    out: list[str] = []
    for reason, _count in sorted(reasons.items(), key=lambda kv: (-kv[1], kv[0])):
        hint = SUGGESTIONS_BY_REASON.get(reason)
        if hint and hint not in out:
            out.append(hint)
    if not out:
        out.append(ADD_TIME_SLOTS)
    return tuple(out)


def unplaceable_period(
    demand: Demand,
    *,
    unit_number: int,
    attempted: Iterable[SlotId],
    reasons: dict[str, int],
    retries_used: int,
    reason: str | None = None,
) -> Conflict:
    attempted_slots = tuple(attempted)
    if reason:
        why = _humanize(reason)
    elif reasons:
        why = ", ".join(f"{_humanize(k)} in {v} slot(s)" for k, v in reasons.items())
    else:
        why = "no candidate slots"
    return Conflict(
        kind=ConflictKind.UNPLACEABLE_PERIOD,
        message=(
            f"Could not schedule period {demand.already_placed + unit_number} of {demand.weekly_periods} of "
            f"{demand.describe()}: {why}."
        ),
        related_demand=demand,
        attempted_slots=attempted_slots,
        class_id=demand.class_id,
        teacher_id=demand.teacher_id,
        details={
            "reasons": reasons,
            "retries_used": retries_used,
            **({"reason": reason} if reason else {}),
        },
        suggestions=suggestions_for({reason: 1} if reason else reasons),
    )


def demand_exceeds_capacity(demand: Demand, *, teaching_slots: int) -> Conflict:
    return Conflict(
        kind=ConflictKind.DEMAND_EXCEEDS_CAPACITY,
        message=(
            f"{demand.describe()} requires {demand.weekly_periods} periods per week "
            f"but the week only has {teaching_slots} teaching slots."
        ),
        related_demand=demand,
        class_id=demand.class_id,
        teacher_id=demand.teacher_id,
        details={"required": demand.weekly_periods, "available": teaching_slots},
        suggestions=(
            f"Reduce the weekly periods of {demand.lesson_name or 'this lesson'}.",
            ADD_TIME_SLOTS,
        ),
    )


def quota_violation(*, teacher_id: Any, teacher_name: str | None, load: int, cap: int) -> Conflict:
    who = teacher_name or str(teacher_id)
    return Conflict(
        kind=ConflictKind.QUOTA_VIOLATION,
        message=f"{who} is scheduled for {load} periods, above the weekly maximum of {cap}.",
        teacher_id=teacher_id,
        details={"load": load, "max_weekly_periods": cap},
        suggestions=(
            "Move some of the teacher's classes to another teacher.",
            "Raise the teacher's maximum weekly periods.",
        ),
    )


def under_scheduled(*, class_id: Any, class_name: str | None, required: int, placed: int) -> Conflict:
    who = class_name or str(class_id)
    return Conflict(
        kind=ConflictKind.UNDER_SCHEDULED,
        message=f"{who} has {placed} of {required} required weekly periods scheduled.",
        class_id=class_id,
        details={"required": required, "placed": placed, "missing": required - placed},
    )


def timetables_exist(*, scope_label: str, existing: int) -> Conflict:
    return Conflict(
        kind=ConflictKind.TIMETABLES_EXIST,
        message=(
            f"Timetables already exist for {scope_label}. "
            "Set regenerate to replace them or incremental to keep them."
        ),
        details={"existing_entries": existing},
    )
