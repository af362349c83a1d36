from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Integer, String, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, nullable=False, index=True)
    full_name = Column(Text, nullable=False)
    # TEACHER teaches subjects, TRAINER teaches TSS modules.
    role = Column(String(20), nullable=False, default="TEACHER")

    # Day names ("MONDAY") and period numbers ("3") the teacher cannot take.
    unavailable_days = Column(JSON, nullable=False, default=list)
    unavailable_periods = Column(JSON, nullable=False, default=list)
    # NULL falls back to the configured default cap.
    max_weekly_periods = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("role in ('TEACHER', 'TRAINER')", name="ck_teachers_role"),
        CheckConstraint(
            "max_weekly_periods is null or max_weekly_periods >= 0",
            name="ck_teachers_max_weekly_periods",
        ),
    )
