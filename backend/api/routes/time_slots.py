from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from api.deps import get_school, require_approved_school
from api.school import where_school
from core.database import get_db
from models.school import School
from models.time_slot import TimeSlot
from schemas.time_slot import TimeSlotOut, TimeSlotsCreatedOut
from services.time_slot_template import apply_default_time_slots
from solver.slots import Day


router = APIRouter()


def _to_out(r: TimeSlot) -> TimeSlotOut:
    return TimeSlotOut(
        id=r.id,
        day=Day(int(r.day_of_week)).name,
        period=r.period,
        name=r.name,
        start_time=r.start_time.strftime("%H:%M"),
        end_time=r.end_time.strftime("%H:%M"),
        session=r.session,
        is_break=bool(r.is_break),
        break_type=r.break_type,
    )


@router.get("", response_model=list[TimeSlotOut])
def list_time_slots(
    school: School = Depends(get_school),
    db: Session = Depends(get_db),
) -> list[TimeSlotOut]:
    q = where_school(select(TimeSlot).where(TimeSlot.is_active.is_(True)), TimeSlot, school.id).order_by(
        TimeSlot.day_of_week.asc(), TimeSlot.start_time.asc()
    )
    return [_to_out(r) for r in db.execute(q).scalars().all()]


@router.post("/default", response_model=TimeSlotsCreatedOut, status_code=201)
def create_default_time_slots(
    school: School = Depends(require_approved_school),
    db: Session = Depends(get_db),
) -> TimeSlotsCreatedOut:
    rows = apply_default_time_slots(db, school.id)
    slots = [_to_out(r) for r in rows]
    return TimeSlotsCreatedOut(message="Default time slots created", count=len(slots), time_slots=slots)
