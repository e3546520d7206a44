"""Error kinds raised by the allocation core."""
from __future__ import annotations

from typing import Any


class CourseAllocError(Exception):
    """Base class carrying a stable ``code`` and diagnostic ``details``."""

    code = "COURSEALLOC_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class NotFoundError(CourseAllocError, LookupError):
    """A referenced instance, activity, teacher or period data is missing."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, key: Any, message: str | None = None) -> None:
        super().__init__(message or f"{entity} {key!r} not found", {"entity": entity, "key": key})
        self.entity = entity
        self.key = key


class TeacherOverloadedError(CourseAllocError):
    """A new instance would push the teacher past the per-period cap."""

    code = "TEACHER_OVERLOADED"

    def __init__(
        self,
        *,
        employment_id: str,
        current_count: int,
        study_year: int,
        study_period: str,
        limit: int,
    ) -> None:
        super().__init__(
            f"Teacher {employment_id} already has {current_count} course instances in period "
            f"{study_period} of year {study_year}; cannot allocate another instance.",
            {
                "employment_id": employment_id,
                "current_count": current_count,
                "study_year": study_year,
                "study_period": study_period,
                "limit": limit,
            },
        )
        self.employment_id = employment_id
        self.current_count = current_count
        self.study_year = study_year
        self.study_period = study_period
        self.limit = limit


class AggregationError(CourseAllocError):
    code = "AGGREGATION_FAILED"


class StorageError(CourseAllocError):
    """Wraps transaction and connection failures from the database layer."""

    code = "STORAGE_FAILED"


__all__ = [
    "AggregationError",
    "CourseAllocError",
    "NotFoundError",
    "StorageError",
    "TeacherOverloadedError",
]
