from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from api.deps import require_approved_school
from core.config import settings
from core.database import get_db
from models.module import Module
from models.school import School
from models.school_class import SchoolClass
from models.subject import Subject
from models.teacher import Teacher
from models.time_slot import TimeSlot
from models.timetable_entry import TimetableEntry
from schemas.generation import GenerateTimetableRequest, GenerateTimetableResponse
from schemas.timetable import DeleteTimetablesOut, ExistingTimetablesOut, TimetableEntryOut, TimetableListOut
from services.generation import GenerationRequest, generate_timetables
from services.reporting import build_response
from services.scope import GenerationScope
from services.timetable_store import TimetableStore
from solver.slots import Day


logger = logging.getLogger(__name__)

router = APIRouter()


def _filtered(stmt, school_id: uuid.UUID, class_id: uuid.UUID | None, teacher_id: uuid.UUID | None):
    stmt = stmt.where(TimetableEntry.school_id == school_id)
    if class_id is not None:
        stmt = stmt.where(TimetableEntry.class_id == class_id)
    if teacher_id is not None:
        stmt = stmt.where(TimetableEntry.teacher_id == teacher_id)
    return stmt


@router.post("/generate", response_model=GenerateTimetableResponse, response_model_exclude_none=True)
def generate(
    payload: GenerateTimetableRequest,
    school: School = Depends(require_approved_school),
    db: Session = Depends(get_db),
) -> GenerateTimetableResponse:
    scope = GenerationScope.resolve(
        kind=payload.scope,
        class_id=payload.class_id,
        teacher_id=payload.teacher_id,
        school_scope=payload.school_scope,
    )
    request = GenerationRequest(scope=scope, regenerate=payload.regenerate, incremental=payload.incremental)
    logger.info(
        "Generate requested: school=%s scope=%s regenerate=%s incremental=%s",
        school.id,
        scope.kind.value,
        request.regenerate,
        request.incremental,
    )
    result = generate_timetables(db, school_id=school.id, request=request, settings=settings)
    return build_response(result)


@router.get("", response_model=TimetableListOut)
def list_timetables(
    class_id: uuid.UUID | None = Query(default=None, alias="classId"),
    teacher_id: uuid.UUID | None = Query(default=None, alias="teacherId"),
    school: School = Depends(require_approved_school),
    db: Session = Depends(get_db),
) -> TimetableListOut:
    q = (
        select(
            TimetableEntry,
            SchoolClass.name.label("class_name"),
            Teacher.full_name.label("teacher_name"),
            Subject.name.label("subject_name"),
            Module.name.label("module_name"),
            Module.category.label("module_category"),
            TimeSlot.day_of_week,
            TimeSlot.period,
            TimeSlot.start_time,
            TimeSlot.end_time,
        )
        .join(TimeSlot, TimeSlot.id == TimetableEntry.time_slot_id)
        .outerjoin(SchoolClass, SchoolClass.id == TimetableEntry.class_id)
        .outerjoin(Teacher, Teacher.id == TimetableEntry.teacher_id)
        .outerjoin(Subject, Subject.id == TimetableEntry.subject_id)
        .outerjoin(Module, Module.id == TimetableEntry.module_id)
        .order_by(TimeSlot.day_of_week.asc(), TimeSlot.period.asc(), SchoolClass.name.asc())
    )
    rows = db.execute(_filtered(q, school.id, class_id, teacher_id)).all()

    entries = [
        TimetableEntryOut(
            id=r.TimetableEntry.id,
            class_id=r.TimetableEntry.class_id,
            class_name=r.class_name,
            teacher_id=r.TimetableEntry.teacher_id,
            teacher_name=r.teacher_name,
            subject_id=r.TimetableEntry.subject_id,
            subject_name=r.subject_name,
            module_id=r.TimetableEntry.module_id,
            module_name=r.module_name,
            module_category=r.module_category,
            time_slot_id=r.TimetableEntry.time_slot_id,
            day=Day(int(r.day_of_week)).name,
            period=int(r.period),
            start_time=r.start_time.strftime("%H:%M"),
            end_time=r.end_time.strftime("%H:%M"),
        )
        for r in rows
    ]
    return TimetableListOut(entries=entries, count=len(entries))


@router.get("/existing", response_model=ExistingTimetablesOut, response_model_exclude_none=True)
def check_existing(
    class_id: uuid.UUID | None = Query(default=None, alias="classId"),
    teacher_id: uuid.UUID | None = Query(default=None, alias="teacherId"),
    school: School = Depends(require_approved_school),
    db: Session = Depends(get_db),
) -> ExistingTimetablesOut:
    q = _filtered(select(func.count(TimetableEntry.id)), school.id, class_id, teacher_id)
    count = int(db.execute(q).scalar_one())
    return ExistingTimetablesOut(class_id=class_id, teacher_id=teacher_id, has_timetables=count > 0, count=count)


@router.delete("", response_model=DeleteTimetablesOut)
def delete_timetables(
    class_id: uuid.UUID | None = Query(default=None, alias="classId"),
    teacher_id: uuid.UUID | None = Query(default=None, alias="teacherId"),
    school: School = Depends(require_approved_school),
    db: Session = Depends(get_db),
) -> DeleteTimetablesOut:
    deleted = TimetableStore(db, school.id).delete_entries(class_id=class_id, teacher_id=teacher_id)
    logger.info("Deleted %d timetable entries for school %s", deleted, school.id)
    return DeleteTimetablesOut(message=f"Deleted {deleted} timetable entries", deleted_count=deleted)
