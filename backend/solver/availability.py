from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from solver.slots import Day, SlotCatalog, SlotId


logger = logging.getLogger(__name__)


class TrackerError(RuntimeError):
    """Reserving an occupied slot or releasing one that was never reserved."""


@dataclass(frozen=True)
class TeacherConstraints:
    unavailable_days: frozenset[Day] = frozenset()
    unavailable_periods: frozenset[int] = frozenset()
    max_weekly_periods: int | None = None

    @classmethod
    def build(
        cls,
        *,
        unavailable_days: Iterable[Any] | None = None,
        unavailable_periods: Iterable[Any] | None = None,
        max_weekly_periods: int | None = None,
    ) -> "TeacherConstraints":
        # Days outside the school week (e.g. "SATURDAY") never match a slot.
        days: set[Day] = set()
        for d in unavailable_days or []:
            try:
                days.add(Day.parse(d))
            except ValueError:
                logger.warning("Ignoring unavailable day %r outside the school week", d)

        # Periods are stored as strings by older clients ("3"), accept both.
        periods: set[int] = set()
        for p in unavailable_periods or []:
            try:
                periods.add(int(p))
            except (TypeError, ValueError):
                logger.warning("Ignoring unavailable period %r (not a period number)", p)

        return cls(
            unavailable_days=frozenset(days),
            unavailable_periods=frozenset(periods),
            max_weekly_periods=None if max_weekly_periods is None else int(max_weekly_periods),
        )


NO_CONSTRAINTS = TeacherConstraints()

# Reasons reported by blocking_reason(); also used as conflict detail keys.
NOT_A_TEACHING_SLOT = "NOT_A_TEACHING_SLOT"
TEACHER_UNAVAILABLE_DAY = "TEACHER_UNAVAILABLE_DAY"
TEACHER_UNAVAILABLE_PERIOD = "TEACHER_UNAVAILABLE_PERIOD"
TEACHER_BUSY = "TEACHER_BUSY"
CLASS_BUSY = "CLASS_BUSY"
TEACHER_WEEKLY_CAP_REACHED = "TEACHER_WEEKLY_CAP_REACHED"
TEACHER_CONSECUTIVE_LIMIT = "TEACHER_CONSECUTIVE_LIMIT"


class AvailabilityTracker:
    """Run-local occupancy of every teacher and class across the slot grid.

    Seeded from committed entries that the current run must respect (entries
    outside the requested scope, and in-scope entries being kept). Only the
    solver mutates it, strictly sequentially, via reserve()/release().
    """

    def __init__(
        self,
        catalog: SlotCatalog,
        constraints: Mapping[Any, TeacherConstraints] | None = None,
        *,
        seed_entries: Iterable[Any] = (),
        default_max_weekly_periods: int | None = None,
        max_consecutive_periods: int | None = None,
    ):
        self.catalog = catalog
        self._constraints = dict(constraints or {})
        self._default_cap = default_max_weekly_periods
        # None or 0 disables the run-length check.
        self._max_consecutive = max_consecutive_periods or None
        self._teacher_slots: dict[Any, set[SlotId]] = defaultdict(set)
        self._class_slots: dict[Any, set[SlotId]] = defaultdict(set)

        for entry in seed_entries:
            self._teacher_slots[entry.teacher_id].add(entry.slot)
            self._class_slots[entry.class_id].add(entry.slot)

    def constraints_for(self, teacher_id: Any) -> TeacherConstraints:
        return self._constraints.get(teacher_id, NO_CONSTRAINTS)

    def weekly_cap(self, teacher_id: Any) -> int | None:
        cap = self.constraints_for(teacher_id).max_weekly_periods
        return self._default_cap if cap is None else cap

    def teacher_load(self, teacher_id: Any) -> int:
        return len(self._teacher_slots.get(teacher_id, ()))

    def teacher_day_load(self, teacher_id: Any, day: Day) -> int:
        return sum(1 for s in self._teacher_slots.get(teacher_id, ()) if s.day == day)

    def teacher_slots(self, teacher_id: Any) -> frozenset[SlotId]:
        return frozenset(self._teacher_slots.get(teacher_id, ()))

    def class_slots(self, class_id: Any) -> frozenset[SlotId]:
        return frozenset(self._class_slots.get(class_id, ()))

    def teacher_available(self, teacher_id: Any, slot: SlotId) -> bool:
        c = self.constraints_for(teacher_id)
        return slot.day not in c.unavailable_days and slot.period not in c.unavailable_periods

    def blocking_reason(self, teacher_id: Any, class_id: Any, slot: SlotId) -> str | None:
        if not self.catalog.is_teaching(slot):
            return NOT_A_TEACHING_SLOT
        c = self.constraints_for(teacher_id)
        if slot.day in c.unavailable_days:
            return TEACHER_UNAVAILABLE_DAY
        if slot.period in c.unavailable_periods:
            return TEACHER_UNAVAILABLE_PERIOD
        if slot in self._teacher_slots.get(teacher_id, ()):
            return TEACHER_BUSY
        if slot in self._class_slots.get(class_id, ()):
            return CLASS_BUSY
        if self._max_consecutive is not None and self.consecutive_run(teacher_id, slot) > self._max_consecutive:
            return TEACHER_CONSECUTIVE_LIMIT
        cap = self.weekly_cap(teacher_id)
        if cap is not None and self.teacher_load(teacher_id) >= cap:
            return TEACHER_WEEKLY_CAP_REACHED
        return None

    def consecutive_run(self, teacher_id: Any, slot: SlotId) -> int:
        """Length of the teacher's unbroken run of periods on that day if slot were taken."""
        busy = self._teacher_slots.get(teacher_id, ())
        run = 1
        p = slot.period - 1
        while SlotId(slot.day, p) in busy:
            run += 1
            p -= 1
        p = slot.period + 1
        while SlotId(slot.day, p) in busy:
            run += 1
            p += 1
        return run

    def is_free(self, teacher_id: Any, class_id: Any, slot: SlotId) -> bool:
        return self.blocking_reason(teacher_id, class_id, slot) is None

    def reserve(self, teacher_id: Any, class_id: Any, slot: SlotId) -> None:
        if slot in self._teacher_slots.get(teacher_id, ()):
            raise TrackerError(f"Teacher {teacher_id} already occupied at {slot.label}")
        if slot in self._class_slots.get(class_id, ()):
            raise TrackerError(f"Class {class_id} already occupied at {slot.label}")
        self._teacher_slots[teacher_id].add(slot)
        self._class_slots[class_id].add(slot)

    def release(self, teacher_id: Any, class_id: Any, slot: SlotId) -> None:
        teacher_busy = self._teacher_slots.get(teacher_id, set())
        class_busy = self._class_slots.get(class_id, set())
        if slot not in teacher_busy or slot not in class_busy:
            raise TrackerError(f"No reservation for teacher {teacher_id} / class {class_id} at {slot.label}")
        teacher_busy.discard(slot)
        class_busy.discard(slot)

    def flexibility(self, teacher_id: Any) -> int:
        """Slots the teacher could still legally take, bounded by the remaining weekly cap."""
        busy = self._teacher_slots.get(teacher_id, ())
        free = sum(
            1
            for s in self.catalog.teaching_slots
            if s not in busy and self.teacher_available(teacher_id, s)
        )
        cap = self.weekly_cap(teacher_id)
        if cap is not None:
            free = min(free, max(0, cap - self.teacher_load(teacher_id)))
        return free
