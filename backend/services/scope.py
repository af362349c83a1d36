from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from services.errors import StructuralError


class ScopeKind(str, Enum):
    CLASS = "class"
    TEACHER = "teacher"
    SCHOOL = "school"


class SchoolScope(str, Enum):
    ALL_CLASSES = "all-classes"
    ALL_TEACHERS = "all-teachers"
    BOTH = "both"


@dataclass(frozen=True)
class GenerationScope:
    kind: ScopeKind
    class_id: Any = None
    teacher_id: Any = None
    school_scope: SchoolScope | None = None

    @classmethod
    def for_class(cls, class_id: Any) -> "GenerationScope":
        return cls(ScopeKind.CLASS, class_id=class_id)

    @classmethod
    def for_teacher(cls, teacher_id: Any) -> "GenerationScope":
        return cls(ScopeKind.TEACHER, teacher_id=teacher_id)

    @classmethod
    def for_school(cls, school_scope: SchoolScope | str = SchoolScope.BOTH) -> "GenerationScope":
        return cls(ScopeKind.SCHOOL, school_scope=SchoolScope(school_scope))

    @classmethod
    def resolve(
        cls,
        *,
        kind: str | None,
        class_id: Any = None,
        teacher_id: Any = None,
        school_scope: str | None = None,
    ) -> "GenerationScope":
        """Build a scope from request fields. Without an explicit kind it is inferred from the ids."""
        if kind is None:
            if class_id is not None:
                kind = ScopeKind.CLASS.value
            elif teacher_id is not None:
                kind = ScopeKind.TEACHER.value
            else:
                kind = ScopeKind.SCHOOL.value

        try:
            scope_kind = ScopeKind(kind)
        except ValueError:
            raise StructuralError(f"Unknown scope {kind!r}", code="INVALID_SCOPE") from None

        if scope_kind is ScopeKind.CLASS:
            if class_id is None:
                raise StructuralError("classId is required for class scope", code="CLASS_ID_REQUIRED")
            return cls.for_class(class_id)
        if scope_kind is ScopeKind.TEACHER:
            if teacher_id is None:
                raise StructuralError("teacherId is required for teacher scope", code="TEACHER_ID_REQUIRED")
            return cls.for_teacher(teacher_id)
        try:
            return cls.for_school(school_scope or SchoolScope.BOTH)
        except ValueError:
            raise StructuralError(f"Unknown school scope {school_scope!r}", code="INVALID_SCOPE") from None

    def covers(self, *, class_id: Any, teacher_id: Any) -> bool:
        if self.kind is ScopeKind.CLASS:
            return class_id == self.class_id
        if self.kind is ScopeKind.TEACHER:
            return teacher_id == self.teacher_id
        return True

    def covers_entry(self, entry: Any) -> bool:
        return self.covers(class_id=entry.class_id, teacher_id=entry.teacher_id)
