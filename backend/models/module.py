from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text, Uuid
from sqlalchemy.sql import func

from models.base import Base


MODULE_CATEGORIES = ("SPECIFIC", "GENERAL", "COMPLEMENTARY")


class Module(Base):
    """TSS (technical secondary school) module taught by a trainer."""

    __tablename__ = "modules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, nullable=False, index=True)
    code = Column(Text, nullable=True)
    name = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default="GENERAL")
    periods_per_week = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("category in ('SPECIFIC', 'GENERAL', 'COMPLEMENTARY')", name="ck_modules_category"),
        CheckConstraint("periods_per_week >= 0", name="ck_modules_periods_per_week"),
    )
