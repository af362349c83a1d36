from __future__ import annotations

import uuid
from typing import Any

from schemas.generation import ConflictOut, GenerateTimetableResponse
from services.errors import GenerationError
from services.generation import GenerationResult
from services.scope import GenerationScope, ScopeKind
from solver.conflicts import Conflict


def _uuid_or_none(value: Any) -> uuid.UUID | None:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def conflict_to_out(conflict: Conflict) -> ConflictOut:
    demand = conflict.related_demand
    details = dict(conflict.details)
    if demand is not None:
        details.setdefault("demand", demand.as_dict())
    return ConflictOut(
        type=conflict.kind.value,
        severity=conflict.severity,
        message=conflict.message,
        class_id=_uuid_or_none(conflict.class_id),
        teacher_id=_uuid_or_none(conflict.teacher_id),
        subject_id=_uuid_or_none(demand.lesson.subject_id) if demand is not None else None,
        module_id=_uuid_or_none(demand.lesson.module_id) if demand is not None else None,
        attempted_slots=[s.label for s in conflict.attempted_slots],
        details=details,
        suggestions=list(conflict.suggestions),
    )


def _success_message(result: GenerationResult) -> str:
    verb = "generated" if result.mode == "incremental" else "regenerated"
    scope = result.scope
    if scope.kind is ScopeKind.CLASS:
        target = f" for class {result.class_name}"
    elif scope.kind is ScopeKind.TEACHER:
        target = f" for teacher {result.teacher_name}"
    else:
        target = {
            "all-classes": " for all classes",
            "all-teachers": " for all teachers",
        }.get(scope.school_scope.value if scope.school_scope else "", " for the whole school")
    message = f"Timetable {verb} successfully{target}"
    if result.conflicts:
        message += f" with {len(result.conflicts)} conflict(s)"
    return message


def _target_name(result: GenerationResult) -> str:
    if result.scope.kind is ScopeKind.CLASS:
        return f"Class {result.class_name}"
    if result.scope.kind is ScopeKind.TEACHER:
        return f"Teacher {result.teacher_name}"
    return "This school"


def _scope_fields(scope: GenerationScope) -> dict[str, Any]:
    return {
        "scope": scope.kind.value,
        "school_scope": scope.school_scope.value if scope.school_scope else None,
        "class_id": _uuid_or_none(scope.class_id),
        "teacher_id": _uuid_or_none(scope.teacher_id),
    }


def build_response(result: GenerationResult) -> GenerateTimetableResponse:
    if result.skipped:
        message = f"{_target_name(result)} already has timetables. Use regeneration mode to overwrite."
    elif result.rejected:
        message = result.conflicts[0].message if result.conflicts else "Timetables already exist."
    else:
        message = _success_message(result)

    conflicts = [conflict_to_out(c) for c in result.conflicts]
    return GenerateTimetableResponse(
        message=message,
        conflicts=conflicts,
        conflict_count=len(conflicts),
        warnings=list(result.warnings),
        class_name=result.class_name,
        teacher_name=result.teacher_name,
        mode=result.mode,
        entries_written=result.entries_written,
        **_scope_fields(result.scope),
    )


def build_error_response(exc: GenerationError) -> GenerateTimetableResponse:
    return GenerateTimetableResponse(
        message=exc.message,
        error=exc.message,
        code=exc.code,
        conflicts=[],
        conflict_count=0,
    )
