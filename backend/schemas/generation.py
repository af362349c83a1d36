from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import Field

from schemas.base import CamelModel


class GenerateTimetableRequest(CamelModel):
    """Without an explicit scope, classId selects class scope, teacherId teacher scope, else school."""

    scope: Literal["class", "teacher", "school"] | None = None
    class_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None
    school_scope: Literal["all-classes", "all-teachers", "both"] | None = None
    regenerate: bool = False
    incremental: bool = False


class ConflictOut(CamelModel):
    type: str
    severity: Literal["INFO", "WARN", "ERROR"] = "ERROR"
    message: str
    class_id: uuid.UUID | None = None
    teacher_id: uuid.UUID | None = None
    subject_id: uuid.UUID | None = None
    module_id: uuid.UUID | None = None
    attempted_slots: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)
    suggestions: list[str] = Field(default_factory=list)


class GenerateTimetableResponse(CamelModel):
    message: str
    conflicts: list[ConflictOut] = Field(default_factory=list)
    conflict_count: int = 0
    warnings: list[str] = Field(default_factory=list)
    scope: Literal["class", "teacher", "school"] | None = None
    school_scope: Literal["all-classes", "all-teachers", "both"] | None = None
    class_id: uuid.UUID | None = None
    class_name: str | None = None
    teacher_id: uuid.UUID | None = None
    teacher_name: str | None = None
    mode: Literal["incremental", "regeneration"] | None = None
    entries_written: int = 0
    # Populated only for structural failures.
    error: str | None = None
    code: str | None = None
