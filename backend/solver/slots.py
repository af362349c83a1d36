from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from enum import IntEnum
from typing import Any, Iterable, Iterator, NamedTuple


MIN_PERIOD = 1
MAX_PERIOD = 10


class Day(IntEnum):
    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4

    @classmethod
    def parse(cls, value: Any) -> "Day":
        """Accept a Day, a 0-based weekday index, or a name ("MON", "monday")."""
        if isinstance(value, Day):
            return value
        if isinstance(value, int):
            return cls(value)
        key = str(value or "").strip().upper()[:3]
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown day {value!r}") from None


class SlotId(NamedTuple):
    day: Day
    period: int

    @property
    def label(self) -> str:
        return f"{self.day.name}-{self.period}"


@dataclass(frozen=True)
class CatalogSlot:
    day: Day
    period: int | None
    start_time: time | None = None
    end_time: time | None = None
    session: str | None = None
    is_break: bool = False
    name: str | None = None
    # Persistence id of the underlying time slot row, if any.
    time_slot_id: Any = None

    @property
    def is_teaching(self) -> bool:
        if self.is_break or self.period is None:
            return False
        return MIN_PERIOD <= int(self.period) <= MAX_PERIOD

    @property
    def slot_id(self) -> SlotId:
        if self.period is None:
            raise ValueError(f"{self.name or 'break'} on {self.day.name} has no period")
        return SlotId(self.day, int(self.period))


class SlotCatalog:
    """Immutable weekly grid. Only teaching slots are ever placement candidates."""

    def __init__(self, slots: Iterable[CatalogSlot]):
        all_slots = sorted(
            slots,
            key=lambda s: (int(s.day), s.start_time or time.min, s.period or 0),
        )
        teaching: dict[SlotId, CatalogSlot] = {}
        for s in all_slots:
            if not s.is_teaching:
                continue
            sid = s.slot_id
            if sid in teaching:
                raise ValueError(f"Duplicate teaching slot {sid.label}")
            teaching[sid] = s

        self._all = tuple(all_slots)
        self._teaching = dict(sorted(teaching.items()))
        self._teaching_ids = tuple(self._teaching)

    @classmethod
    def uniform(cls, days: Iterable[Day | str | int], periods: Iterable[int]) -> "SlotCatalog":
        """Grid with the same teaching periods on every given day and no times."""
        period_list = list(periods)
        return cls(
            CatalogSlot(day=Day.parse(d), period=p)
            for d in days
            for p in period_list
        )

    @property
    def teaching_slots(self) -> tuple[SlotId, ...]:
        """Teaching slots in day-then-period order."""
        return self._teaching_ids

    @property
    def teaching_slot_count(self) -> int:
        return len(self._teaching_ids)

    @property
    def days(self) -> tuple[Day, ...]:
        return tuple(sorted({s.day for s in self._teaching_ids}))

    @property
    def all_slots(self) -> tuple[CatalogSlot, ...]:
        return self._all

    def is_teaching(self, slot: SlotId) -> bool:
        return slot in self._teaching

    def get(self, slot: SlotId) -> CatalogSlot | None:
        return self._teaching.get(slot)

    def __len__(self) -> int:
        return len(self._teaching_ids)

    def __iter__(self) -> Iterator[SlotId]:
        return iter(self._teaching_ids)

    def __contains__(self, slot: object) -> bool:
        return slot in self._teaching
