from __future__ import annotations

import uuid

from schemas.base import CamelModel


class TimetableEntryOut(CamelModel):
    id: uuid.UUID
    class_id: uuid.UUID
    class_name: str | None = None
    teacher_id: uuid.UUID
    teacher_name: str | None = None
    subject_id: uuid.UUID | None = None
    subject_name: str | None = None
    module_id: uuid.UUID | None = None
    module_name: str | None = None
    module_category: str | None = None
    time_slot_id: uuid.UUID
    day: str
    period: int
    start_time: str
    end_time: str


class TimetableListOut(CamelModel):
    entries: list[TimetableEntryOut]
    count: int


class ExistingTimetablesOut(CamelModel):
    class_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None
    has_timetables: bool
    count: int


class DeleteTimetablesOut(CamelModel):
    message: str
    deleted_count: int
