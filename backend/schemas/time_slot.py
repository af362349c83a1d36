from __future__ import annotations

import uuid

from schemas.base import CamelModel


class TimeSlotOut(CamelModel):
    id: uuid.UUID
    day: str
    period: int | None = None
    name: str
    start_time: str
    end_time: str
    session: str | None = None
    is_break: bool
    break_type: str | None = None


class TimeSlotsCreatedOut(CamelModel):
    message: str
    count: int
    time_slots: list[TimeSlotOut]
