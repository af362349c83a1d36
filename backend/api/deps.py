from __future__ import annotations

import uuid

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from models.school import School
from services.errors import GenerationError, NotFoundError


class SchoolNotApprovedError(GenerationError):
    status_code = 403
    code = "SCHOOL_NOT_APPROVED"


def get_school(school_id: uuid.UUID, db: Session = Depends(get_db)) -> School:
    school = db.get(School, school_id)
    if school is None:
        raise NotFoundError("School not found", code="SCHOOL_NOT_FOUND")
    return school


def require_approved_school(school: School = Depends(get_school)) -> School:
    if (school.status or "").upper() != "APPROVED":
        raise SchoolNotApprovedError("School must be approved before timetables can be managed.")
    return school
