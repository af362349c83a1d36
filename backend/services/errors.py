from __future__ import annotations

from typing import Any


class GenerationError(Exception):
    """Failure that aborts a request before or during commit. Maps to an HTTP error body."""

    status_code: int = 500
    code: str = "GENERATION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


class StructuralError(GenerationError):
    """Invalid request or missing prerequisites (unknown ids, no slots, no assignments)."""

    status_code = 400
    code = "INVALID_REQUEST"


class NotFoundError(StructuralError):
    status_code = 404
    code = "NOT_FOUND"


class PersistenceError(GenerationError):
    """The atomic replace of timetable entries failed and was rolled back."""

    status_code = 500
    code = "PERSISTENCE_FAILED"


class GenerationInProgressError(GenerationError):
    status_code = 409
    code = "GENERATION_IN_PROGRESS"
