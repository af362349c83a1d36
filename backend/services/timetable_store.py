from __future__ import annotations

import logging
import uuid
from typing import Iterable

from sqlalchemy import delete, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.school import where_school
from models.module import Module
from models.school_class import SchoolClass
from models.subject import Subject
from models.teacher import Teacher
from models.teacher_class_subject import TeacherClassSubject
from models.time_slot import TimeSlot
from models.timetable_entry import TimetableEntry
from models.trainer_class_module import TrainerClassModule
from services.errors import PersistenceError
from services.scope import GenerationScope, ScopeKind
from solver.availability import TeacherConstraints
from solver.demands import Assignment, LessonRef, ScheduledEntry
from solver.slots import CatalogSlot, Day, SlotCatalog, SlotId


logger = logging.getLogger(__name__)


class TimetableStore:
    """Reads generation inputs for one school and commits results atomically."""

    def __init__(self, db: Session, school_id: uuid.UUID):
        self.db = db
        self.school_id = school_id
        self._catalog: SlotCatalog | None = None

    # Lookups

    def class_name(self, class_id: uuid.UUID) -> str | None:
        q = where_school(select(SchoolClass.name).where(SchoolClass.id == class_id), SchoolClass, self.school_id)
        return self.db.execute(q).scalars().first()

    def teacher_name(self, teacher_id: uuid.UUID) -> str | None:
        q = where_school(select(Teacher.full_name).where(Teacher.id == teacher_id), Teacher, self.school_id)
        return self.db.execute(q).scalars().first()

    # Inputs

    def load_slot_catalog(self) -> SlotCatalog:
        q = where_school(select(TimeSlot).where(TimeSlot.is_active.is_(True)), TimeSlot, self.school_id)
        rows = self.db.execute(q).scalars().all()
        self._catalog = SlotCatalog(
            CatalogSlot(
                day=Day(int(r.day_of_week)),
                period=r.period,
                start_time=r.start_time,
                end_time=r.end_time,
                session=r.session,
                is_break=bool(r.is_break),
                name=r.name,
                time_slot_id=r.id,
            )
            for r in rows
        )
        return self._catalog

    def load_teacher_constraints(self) -> dict[uuid.UUID, TeacherConstraints]:
        q = where_school(select(Teacher), Teacher, self.school_id)
        out: dict[uuid.UUID, TeacherConstraints] = {}
        for t in self.db.execute(q).scalars().all():
            out[t.id] = TeacherConstraints.build(
                unavailable_days=t.unavailable_days or [],
                unavailable_periods=t.unavailable_periods or [],
                max_weekly_periods=t.max_weekly_periods,
            )
        return out

    def load_assignments(self, scope: GenerationScope) -> list[Assignment]:
        """Subject assignments first, then module assignments, each in creation order."""
        subject_q = (
            select(TeacherClassSubject, Teacher, SchoolClass, Subject)
            .join(Teacher, Teacher.id == TeacherClassSubject.teacher_id)
            .join(SchoolClass, SchoolClass.id == TeacherClassSubject.class_id)
            .join(Subject, Subject.id == TeacherClassSubject.subject_id)
            .where(TeacherClassSubject.school_id == self.school_id)
            .where(Teacher.is_active.is_(True))
            .where(SchoolClass.is_active.is_(True))
            .where(self._assignment_clause(scope, TeacherClassSubject.class_id, TeacherClassSubject.teacher_id))
            .order_by(TeacherClassSubject.created_at, TeacherClassSubject.id)
        )
        module_q = (
            select(TrainerClassModule, Teacher, SchoolClass, Module)
            .join(Teacher, Teacher.id == TrainerClassModule.trainer_id)
            .join(SchoolClass, SchoolClass.id == TrainerClassModule.class_id)
            .join(Module, Module.id == TrainerClassModule.module_id)
            .where(TrainerClassModule.school_id == self.school_id)
            .where(Teacher.is_active.is_(True))
            .where(SchoolClass.is_active.is_(True))
            .where(self._assignment_clause(scope, TrainerClassModule.class_id, TrainerClassModule.trainer_id))
            .order_by(TrainerClassModule.created_at, TrainerClassModule.id)
        )

        out: list[Assignment] = []
        for _tcs, teacher, klass, subject in self.db.execute(subject_q).all():
            out.append(
                Assignment(
                    class_id=klass.id,
                    teacher_id=teacher.id,
                    lesson=LessonRef.subject(subject.id),
                    periods_per_week=int(subject.periods_per_week or 0),
                    class_name=klass.name,
                    teacher_name=teacher.full_name,
                    lesson_name=subject.name,
                )
            )
        for _tcm, trainer, klass, module in self.db.execute(module_q).all():
            out.append(
                Assignment(
                    class_id=klass.id,
                    teacher_id=trainer.id,
                    lesson=LessonRef.module(module.id),
                    periods_per_week=int(module.periods_per_week or 0),
                    category=module.category,
                    class_name=klass.name,
                    teacher_name=trainer.full_name,
                    lesson_name=module.name,
                )
            )
        return out

    def load_entries(self) -> list[ScheduledEntry]:
        """Every committed entry of the school, keyed by (day, period)."""
        q = (
            select(TimetableEntry, TimeSlot.day_of_week, TimeSlot.period)
            .join(TimeSlot, TimeSlot.id == TimetableEntry.time_slot_id)
            .where(TimetableEntry.school_id == self.school_id)
            .order_by(TimeSlot.day_of_week, TimeSlot.period)
        )
        out: list[ScheduledEntry] = []
        for e, day, period in self.db.execute(q).all():
            if period is None:
                continue
            lesson = LessonRef.module(e.module_id) if e.module_id is not None else LessonRef.subject(e.subject_id)
            out.append(
                ScheduledEntry(
                    class_id=e.class_id,
                    teacher_id=e.teacher_id,
                    lesson=lesson,
                    slot=SlotId(Day(int(day)), int(period)),
                )
            )
        return out

    # Commit

    def replace_entries(self, scope: GenerationScope, entries: Iterable[ScheduledEntry]) -> int:
        """Delete in-scope entries and insert the new ones in a single transaction."""
        catalog = self._catalog or self.load_slot_catalog()
        rows: list[TimetableEntry] = []
        for e in entries:
            meta = catalog.get(e.slot)
            if meta is None or meta.time_slot_id is None:
                raise PersistenceError(f"No time slot row for {e.slot.label}")
            rows.append(
                TimetableEntry(
                    school_id=self.school_id,
                    class_id=e.class_id,
                    teacher_id=e.teacher_id,
                    subject_id=e.lesson.subject_id,
                    module_id=e.lesson.module_id,
                    time_slot_id=meta.time_slot_id,
                )
            )

        try:
            self.db.execute(
                delete(TimetableEntry)
                .where(TimetableEntry.school_id == self.school_id)
                .where(self._entry_clause(scope))
            )
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to commit %d timetable entries for school %s", len(rows), self.school_id)
            raise PersistenceError("Failed to save timetable entries; nothing was changed.") from exc
        return len(rows)

    def delete_entries(self, *, class_id: uuid.UUID | None = None, teacher_id: uuid.UUID | None = None) -> int:
        """Delete committed entries matching every given filter; no filter clears the school."""
        stmt = delete(TimetableEntry).where(TimetableEntry.school_id == self.school_id)
        if class_id is not None:
            stmt = stmt.where(TimetableEntry.class_id == class_id)
        if teacher_id is not None:
            stmt = stmt.where(TimetableEntry.teacher_id == teacher_id)
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("Failed to delete timetable entries.") from exc
        return int(result.rowcount or 0)

    @staticmethod
    def _assignment_clause(scope: GenerationScope, class_col, teacher_col):
        if scope.kind is ScopeKind.CLASS:
            return class_col == scope.class_id
        if scope.kind is ScopeKind.TEACHER:
            return teacher_col == scope.teacher_id
        return true()

    @classmethod
    def _entry_clause(cls, scope: GenerationScope):
        return cls._assignment_clause(scope, TimetableEntry.class_id, TimetableEntry.teacher_id)
