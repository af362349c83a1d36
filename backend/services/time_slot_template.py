from __future__ import annotations

import logging
import uuid
from datetime import time

from sqlalchemy import select
from sqlalchemy.orm import Session

from api.school import where_school
from models.time_slot import TimeSlot
from solver.slots import Day


logger = logging.getLogger(__name__)


# (name, period, start, end, session, break_type); period None marks a break.
DEFAULT_DAY_TEMPLATE: list[tuple[str, int | None, time, time, str | None, str | None]] = [
    ("Assembly", None, time(7, 45), time(8, 0), None, "ASSEMBLY"),
    ("Period 1", 1, time(8, 0), time(8, 40), "MORNING", None),
    ("Period 2", 2, time(8, 40), time(9, 20), "MORNING", None),
    ("Period 3", 3, time(9, 20), time(10, 0), "MORNING", None),
    ("Morning Break", None, time(10, 0), time(10, 20), None, "MORNING_BREAK"),
    ("Period 4", 4, time(10, 20), time(11, 0), "MORNING", None),
    ("Period 5", 5, time(11, 0), time(11, 40), "MORNING", None),
    ("Lunch Break", None, time(11, 40), time(13, 10), None, "LUNCH"),
    ("Period 6", 6, time(13, 10), time(13, 50), "AFTERNOON", None),
    ("Period 7", 7, time(13, 50), time(14, 30), "AFTERNOON", None),
    ("Period 8", 8, time(14, 30), time(15, 10), "AFTERNOON", None),
    ("Afternoon Break", None, time(15, 10), time(15, 30), None, "AFTERNOON_BREAK"),
    ("Period 9", 9, time(15, 30), time(16, 10), "AFTERNOON", None),
    ("Period 10", 10, time(16, 10), time(16, 50), "AFTERNOON", None),
]


def apply_default_time_slots(db: Session, school_id: uuid.UUID) -> list[TimeSlot]:
    """Install the standard Monday-Friday grid.

    Rows are matched by (day, name) and updated in place so existing timetable
    entries keep pointing at valid slots. Other active slots are deactivated.
    """
    existing = {
        (int(r.day_of_week), r.name): r
        for r in db.execute(where_school(select(TimeSlot), TimeSlot, school_id)).scalars().all()
    }
    keep: set[uuid.UUID] = set()
    slots: list[TimeSlot] = []

    for day in Day:
        for name, period, start, end, session, break_type in DEFAULT_DAY_TEMPLATE:
            row = existing.get((int(day), name))
            if row is None:
                row = TimeSlot(id=uuid.uuid4(), school_id=school_id, day_of_week=int(day), name=name)
                db.add(row)
            row.period = period
            row.start_time = start
            row.end_time = end
            row.session = session
            row.is_break = period is None
            row.break_type = break_type
            row.is_active = True
            keep.add(row.id)
            slots.append(row)

    for row in existing.values():
        if row.id not in keep and row.is_active:
            row.is_active = False

    db.commit()
    logger.info("Applied default time slot template to school %s (%d slots)", school_id, len(slots))
    return slots
