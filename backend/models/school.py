from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base


SCHOOL_STATUSES = ("PENDING", "APPROVED", "REJECTED")


class School(Base):
    __tablename__ = "schools"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("status in ('PENDING', 'APPROVED', 'REJECTED')", name="ck_schools_status"),
    )
