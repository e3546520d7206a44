"""Course-instance use cases: teaching cost and student count."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from coursealloc.core.clock import Clock, SystemClock, current_study_year

from .contracts import CourseInstanceCost, InstanceRequest, StudentDeltaRequest
from .errors import AggregationError, NotFoundError
from .repositories import CourseInstanceRepository, PlannedActivityRepository, SalaryRepository
from .uow import UnitOfWorkFactory, run_in_transaction


logger = logging.getLogger(__name__)

KSEK = 1000.0


class CourseService:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        clock: Clock | None = None,
        study_year: int | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock or SystemClock()
        self._study_year = study_year

    def compute_course_cost(self, instance_id: str) -> CourseInstanceCost:
        """Planned and actual teaching cost of one instance, in kSEK.

        Planned cost prices the instance's total planned hours at the average
        current hourly salary. Actual cost prices each allocation at its own
        teacher's current salary. Both aggregates are read in one transaction
        so they describe the same snapshot.
        """

        instance_id = InstanceRequest(instance_id=instance_id).instance_id
        year = current_study_year(self._clock, self._study_year)
        return run_in_transaction(
            self._uow_factory,
            lambda session: self._compute_cost(session, instance_id, year),
            use_case="compute_course_cost",
        )

    def _compute_cost(self, session: Session, instance_id: str, year: int) -> CourseInstanceCost:
        instance = CourseInstanceRepository(session).get_in_year(instance_id, year)
        planned_hours = PlannedActivityRepository(session).total_hours_in_year(instance_id, year)
        if instance is None or planned_hours is None:
            raise NotFoundError(
                "planned hours",
                instance_id,
                f"no planned hours for instance {instance_id!r} in study year {year}",
            )

        salaries = SalaryRepository(session)
        average_salary = salaries.average_current()
        if average_salary is None:
            raise AggregationError("no current salary data; average hourly salary is undefined")
        actual = salaries.allocated_cost(instance_id, year)

        cost = CourseInstanceCost(
            course_code=instance.course_code,
            instance_id=instance.instance_id,
            period=instance.study_period,
            planned_cost_ksek=planned_hours * average_salary / KSEK,
            actual_cost_ksek=actual / KSEK,
        )
        logger.debug("course cost computed", extra={"code": "COST", "instance_id": instance_id, "study_year": year})
        return cost

    def increase_students(self, instance_id: str, delta: int) -> int:
        """Add ``delta`` (possibly negative) to the enrolled-student count.

        The result is not clamped at zero.
        """

        request = StudentDeltaRequest(instance_id=instance_id, delta=delta)
        return run_in_transaction(
            self._uow_factory,
            lambda session: self._increase(session, request),
            use_case="increase_students",
        )

    def _increase(self, session: Session, request: StudentDeltaRequest) -> int:
        instance = CourseInstanceRepository(session).get_for_update(request.instance_id)
        new_count = instance.num_students + request.delta
        instance.num_students = new_count
        session.flush()
        if new_count < 0:
            logger.warning(
                "student count is negative",
                extra={"code": "NEGATIVE_STUDENTS", "instance_id": request.instance_id, "num_students": new_count},
            )
        logger.info(
            "student count updated",
            extra={"code": "STUDENTS", "instance_id": request.instance_id, "delta": request.delta},
        )
        return new_count


__all__ = ["CourseService", "KSEK"]
