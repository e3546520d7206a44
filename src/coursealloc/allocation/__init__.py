"""Transactional teaching-allocation core public API."""

from .assignments import AssignmentService
from .contracts import (
    Allocated,
    AllocationOutcome,
    CourseInstanceCost,
    ExerciseAllocationInfo,
    Failed,
    Overloaded,
)
from .courses import CourseService
from .errors import (
    AggregationError,
    CourseAllocError,
    NotFoundError,
    StorageError,
    TeacherOverloadedError,
)
from .factories import AllocationServices, bootstrap, build_services
from .teaching import TeachingService
from .uow import SQLAlchemyUnitOfWork, UnitOfWork, UnitOfWorkFactory, run_in_transaction

__all__ = [
    "AggregationError",
    "Allocated",
    "AllocationOutcome",
    "AllocationServices",
    "AssignmentService",
    "CourseAllocError",
    "CourseInstanceCost",
    "CourseService",
    "ExerciseAllocationInfo",
    "Failed",
    "NotFoundError",
    "Overloaded",
    "SQLAlchemyUnitOfWork",
    "StorageError",
    "TeacherOverloadedError",
    "TeachingService",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "bootstrap",
    "build_services",
    "run_in_transaction",
]
