"""Allocation changes that carry no workload rule: exercises and removals."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .contracts import DeallocationRequest, ExerciseAllocationInfo, ExerciseRequest
from .repositories import (
    AllocationRepository,
    CourseInstanceRepository,
    PlannedActivityRepository,
    TeacherRepository,
    TeachingActivityRepository,
)
from .uow import UnitOfWorkFactory, run_in_transaction


logger = logging.getLogger(__name__)

EXERCISE_ACTIVITY = "Exercise"


class AssignmentService:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        exercise_activity_name: str = EXERCISE_ACTIVITY,
    ) -> None:
        self._uow_factory = uow_factory
        self._exercise_activity_name = exercise_activity_name

    def add_exercise(self, instance_id: str, employment_id: str, planned_hours: float) -> ExerciseAllocationInfo:
        """Plan and allocate exercise hours for a teacher.

        The exercise activity is created on first use. Exercise work is exempt
        from the per-period instance cap.
        """

        request = ExerciseRequest(
            instance_id=instance_id,
            employment_id=employment_id,
            planned_hours=planned_hours,
        )
        return run_in_transaction(
            self._uow_factory,
            lambda session: self._add_exercise(session, request),
            use_case="add_exercise",
        )

    def _add_exercise(self, session: Session, request: ExerciseRequest) -> ExerciseAllocationInfo:
        instance = CourseInstanceRepository(session).get(request.instance_id)
        teacher = TeacherRepository(session).get(request.employment_id)
        activity = TeachingActivityRepository(session).get_or_create(self._exercise_activity_name)

        PlannedActivityRepository(session).upsert(request.instance_id, activity.id, request.planned_hours)
        AllocationRepository(session).upsert(
            request.instance_id, activity.id, request.employment_id, request.planned_hours
        )

        logger.info(
            "exercise allocated",
            extra={
                "code": "EXERCISE",
                "instance_id": request.instance_id,
                "employment_id": request.employment_id,
                "hours": request.planned_hours,
            },
        )
        return ExerciseAllocationInfo(
            course_code=instance.course_code,
            instance_id=instance.instance_id,
            period=instance.study_period,
            activity_name=activity.activity_name,
            teacher_name=teacher.full_name,
            planned_hours=request.planned_hours,
        )

    def deallocate_teaching(self, instance_id: str, employment_id: str, activity_name: str) -> bool:
        """Remove one allocation row; returns ``False`` when there was none."""

        request = DeallocationRequest(
            instance_id=instance_id,
            employment_id=employment_id,
            activity_name=activity_name,
        )
        return run_in_transaction(
            self._uow_factory,
            lambda session: self._deallocate(session, request),
            use_case="deallocate_teaching",
        )

    def _deallocate(self, session: Session, request: DeallocationRequest) -> bool:
        activity_id = TeachingActivityRepository(session).get_id(request.activity_name)
        removed = AllocationRepository(session).delete(request.instance_id, activity_id, request.employment_id)
        if removed:
            logger.info(
                "teaching deallocated",
                extra={"code": "DEALLOCATED", "instance_id": request.instance_id, "employment_id": request.employment_id},
            )
        else:
            logger.debug(
                "nothing to deallocate",
                extra={"code": "NOOP", "instance_id": request.instance_id, "employment_id": request.employment_id},
            )
        return removed


__all__ = ["AssignmentService", "EXERCISE_ACTIVITY"]
