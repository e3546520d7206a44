"""Teaching allocation under the per-period instance cap."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from coursealloc.infrastructure.monitoring.metrics import record_allocation_outcome

from .contracts import Allocated, AllocationOutcome, Failed, Overloaded, TeachingRequest
from .errors import CourseAllocError, TeacherOverloadedError
from .repositories import (
    AllocationRepository,
    CourseInstanceRepository,
    PlannedActivityRepository,
    TeacherRepository,
    TeachingActivityRepository,
)
from .uow import UnitOfWorkFactory, run_in_transaction


logger = logging.getLogger(__name__)

DEFAULT_MAX_INSTANCES_PER_PERIOD = 4


class TeachingService:
    """Assign teachers to activities while enforcing the period cap.

    A teacher may hold allocations on at most ``max_instances_per_period``
    distinct course instances within one (study year, study period). The cap
    is only checked when the teacher is not yet on the target instance;
    adding or changing hours on an instance they already teach is always
    allowed.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        max_instances_per_period: int = DEFAULT_MAX_INSTANCES_PER_PERIOD,
    ) -> None:
        if max_instances_per_period < 1:
            raise ValueError("max_instances_per_period must be positive")
        self._uow_factory = uow_factory
        self._limit = max_instances_per_period

    def allocate_teaching(
        self,
        instance_id: str,
        employment_id: str,
        activity_name: str,
        hours: float,
    ) -> AllocationOutcome:
        request = TeachingRequest(
            instance_id=instance_id,
            employment_id=employment_id,
            activity_name=activity_name,
            hours=hours,
        )
        try:
            outcome: AllocationOutcome = run_in_transaction(
                self._uow_factory,
                lambda session: self._allocate(session, request),
                use_case="allocate_teaching",
            )
        except TeacherOverloadedError as error:
            logger.warning(
                "allocation rejected by period cap",
                extra={"code": error.code, **error.details, "instance_id": request.instance_id},
            )
            record_allocation_outcome("overloaded")
            return Overloaded.from_error(error)
        except CourseAllocError as error:
            logger.warning(
                "allocation failed",
                extra={"code": error.code, "instance_id": request.instance_id, "employment_id": request.employment_id},
            )
            record_allocation_outcome("failed")
            return Failed(error=error)
        record_allocation_outcome("allocated")
        return outcome

    def _allocate(self, session: Session, request: TeachingRequest) -> Allocated:
        activities = TeachingActivityRepository(session)
        instances = CourseInstanceRepository(session)
        teachers = TeacherRepository(session)
        allocations = AllocationRepository(session)
        planned = PlannedActivityRepository(session)

        activity_id = activities.get_id(request.activity_name)
        period = instances.period_of(request.instance_id)
        teachers.get_for_update(request.employment_id)

        already_on_instance = allocations.teacher_on_instance(request.instance_id, request.employment_id)
        if not already_on_instance:
            current = allocations.count_teacher_instances(request.employment_id, period)
            if current >= self._limit:
                raise TeacherOverloadedError(
                    employment_id=request.employment_id,
                    current_count=current,
                    study_year=period.study_year,
                    study_period=period.study_period,
                    limit=self._limit,
                )

        planned.upsert(request.instance_id, activity_id, request.hours)
        allocations.upsert(request.instance_id, activity_id, request.employment_id, request.hours)

        logger.info(
            "teaching allocated",
            extra={
                "code": "ALLOCATED",
                "instance_id": request.instance_id,
                "employment_id": request.employment_id,
                "activity": request.activity_name,
                "hours": request.hours,
            },
        )
        return Allocated(
            instance_id=request.instance_id,
            employment_id=request.employment_id,
            activity_name=request.activity_name,
            hours=request.hours,
            new_instance=not already_on_instance,
        )


__all__ = ["DEFAULT_MAX_INSTANCES_PER_PERIOD", "TeachingService"]
