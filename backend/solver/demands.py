from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from solver.slots import SlotId


class LessonKind(str, Enum):
    SUBJECT = "SUBJECT"
    MODULE = "MODULE"


@dataclass(frozen=True)
class LessonRef:
    """What is taught: a subject (primary/secondary) or a module (TSS)."""

    kind: LessonKind
    id: Any

    @classmethod
    def subject(cls, subject_id: Any) -> "LessonRef":
        return cls(LessonKind.SUBJECT, subject_id)

    @classmethod
    def module(cls, module_id: Any) -> "LessonRef":
        return cls(LessonKind.MODULE, module_id)

    @property
    def is_module(self) -> bool:
        return self.kind is LessonKind.MODULE

    @property
    def subject_id(self) -> Any:
        return None if self.is_module else self.id

    @property
    def module_id(self) -> Any:
        return self.id if self.is_module else None


@dataclass(frozen=True)
class Assignment:
    """One teacher x class x subject (or trainer x class x module) row with its weekly quota."""

    class_id: Any
    teacher_id: Any
    lesson: LessonRef
    periods_per_week: int
    category: str | None = None
    class_name: str | None = None
    teacher_name: str | None = None
    lesson_name: str | None = None


@dataclass(frozen=True)
class Demand:
    class_id: Any
    teacher_id: Any
    lesson: LessonRef
    periods_required: int
    order: int
    category: str | None = None
    class_name: str | None = None
    teacher_name: str | None = None
    lesson_name: str | None = None
    # Periods of the same assignment placed by earlier passes of this run.
    already_placed: int = 0

    @property
    def is_module(self) -> bool:
        return self.lesson.is_module

    @property
    def subject_or_module_id(self) -> Any:
        return self.lesson.id

    def units(self) -> list["PlacementUnit"]:
        return [PlacementUnit(self, i) for i in range(max(0, self.periods_required))]

    @property
    def weekly_periods(self) -> int:
        return self.already_placed + self.periods_required

    def with_periods(self, periods_required: int, *, already_placed: int = 0) -> "Demand":
        return replace(self, periods_required=periods_required, already_placed=already_placed)

    def describe(self) -> str:
        lesson = self.lesson_name or str(self.lesson.id)
        cls = self.class_name or str(self.class_id)
        teacher = self.teacher_name or str(self.teacher_id)
        return f"{lesson} for {cls} with {teacher}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "class_id": str(self.class_id),
            "class_name": self.class_name,
            "teacher_id": str(self.teacher_id),
            "teacher_name": self.teacher_name,
            "lesson_kind": self.lesson.kind.value,
            "subject_id": str(self.lesson.subject_id) if self.lesson.subject_id is not None else None,
            "module_id": str(self.lesson.module_id) if self.lesson.module_id is not None else None,
            "lesson_name": self.lesson_name,
            "category": self.category,
            "periods_required": self.weekly_periods,
        }


@dataclass(frozen=True)
class PlacementUnit:
    demand: Demand
    index: int


@dataclass(frozen=True)
class ScheduledEntry:
    """A placed period. Mirrors the persisted timetable entry."""

    class_id: Any
    teacher_id: Any
    lesson: LessonRef
    slot: SlotId

    @classmethod
    def for_demand(cls, demand: Demand, slot: SlotId) -> "ScheduledEntry":
        return cls(class_id=demand.class_id, teacher_id=demand.teacher_id, lesson=demand.lesson, slot=slot)


@dataclass
class ExtractionResult:
    demands: list[Demand]
    warnings: list[str]


def build_demands(assignments: Iterable[Assignment], *, start_order: int = 0) -> ExtractionResult:
    """Turn assignment rows into demands, one per row, numbered in input order."""
    demands: list[Demand] = []
    warnings: list[str] = []
    for offset, a in enumerate(assignments):
        periods = max(0, int(a.periods_per_week or 0))
        demand = Demand(
            class_id=a.class_id,
            teacher_id=a.teacher_id,
            lesson=a.lesson,
            periods_required=periods,
            order=start_order + offset,
            category=a.category,
            class_name=a.class_name,
            teacher_name=a.teacher_name,
            lesson_name=a.lesson_name,
        )
        if periods == 0:
            warnings.append(f"{demand.describe()} has a weekly quota of 0; nothing to schedule.")
        demands.append(demand)
    return ExtractionResult(demands=demands, warnings=warnings)


def order_demands(demands: Sequence[Demand], flexibility: Callable[[Any], int]) -> list[Demand]:
    """Most-constrained first.

    Keys: fewest legally available slots for the teacher, then most periods,
    then creation order.
    """
    cache: dict[Any, int] = {}

    def _flex(teacher_id: Any) -> int:
        if teacher_id not in cache:
            cache[teacher_id] = int(flexibility(teacher_id))
        return cache[teacher_id]

    return sorted(demands, key=lambda d: (_flex(d.teacher_id), -d.periods_required, d.order))


def extract_demands(
    assignments: Iterable[Assignment],
    flexibility: Callable[[Any], int],
    *,
    start_order: int = 0,
) -> ExtractionResult:
    result = build_demands(assignments, start_order=start_order)
    result.demands = order_demands(result.demands, flexibility)
    return result
