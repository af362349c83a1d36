from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from models.base import Base


class TimetableEntry(Base):
    __tablename__ = "timetable_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, nullable=False, index=True)
    class_id = Column(Uuid, nullable=False, index=True)
    teacher_id = Column(Uuid, nullable=False, index=True)
    subject_id = Column(Uuid, nullable=True)
    module_id = Column(Uuid, nullable=True)
    time_slot_id = Column(Uuid, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "(subject_id is null) <> (module_id is null)",
            name="ck_timetable_entries_subject_xor_module",
        ),
        UniqueConstraint("teacher_id", "time_slot_id", name="uq_timetable_entries_teacher_slot"),
        UniqueConstraint("class_id", "time_slot_id", name="uq_timetable_entries_class_slot"),
    )
