from __future__ import annotations

import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, Text, Time, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from models.base import Base


class TimeSlot(Base):
    __tablename__ = "time_slots"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, nullable=False, index=True)
    # 0 = Monday .. 4 = Friday
    day_of_week = Column(Integer, nullable=False)
    # 1..10 for teaching periods; NULL for breaks.
    period = Column(Integer, nullable=True)
    name = Column(Text, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    session = Column(String(20), nullable=True)
    is_break = Column(Boolean, nullable=False, default=False)
    break_type = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 and day_of_week <= 4", name="ck_time_slots_day"),
        CheckConstraint("period is null or (period >= 1 and period <= 10)", name="ck_time_slots_period"),
        UniqueConstraint("school_id", "day_of_week", "name", name="uq_time_slots_school_day_name"),
    )
