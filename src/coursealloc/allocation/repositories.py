"""Row primitives composed inside :func:`run_in_transaction`.

None of these commit; they only read and stage writes on the session they
were built with.
"""
from __future__ import annotations

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.orm import Session

from coursealloc.infrastructure.persistence.models import (
    AllocationModel,
    CourseInstanceModel,
    PlannedActivityModel,
    SalaryModel,
    TeacherModel,
    TeachingActivityModel,
)

from .contracts import InstancePeriod
from .errors import NotFoundError


class TeachingActivityRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find_id(self, activity_name: str) -> int | None:
        stmt = select(TeachingActivityModel.id).where(TeachingActivityModel.activity_name == activity_name)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_id(self, activity_name: str) -> int:
        activity_id = self.find_id(activity_name)
        if activity_id is None:
            raise NotFoundError("teaching activity", activity_name)
        return activity_id

    def get_or_create(self, activity_name: str) -> TeachingActivityModel:
        stmt = select(TeachingActivityModel).where(TeachingActivityModel.activity_name == activity_name)
        activity = self._session.execute(stmt).scalar_one_or_none()
        if activity is None:
            activity = TeachingActivityModel(activity_name=activity_name)
            self._session.add(activity)
            self._session.flush()
        return activity


class CourseInstanceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, instance_id: str) -> CourseInstanceModel:
        instance = self._session.get(CourseInstanceModel, instance_id)
        if instance is None:
            raise NotFoundError("course instance", instance_id)
        return instance

    def get_for_update(self, instance_id: str) -> CourseInstanceModel:
        stmt = (
            select(CourseInstanceModel)
            .where(CourseInstanceModel.instance_id == instance_id)
            .with_for_update()
        )
        instance = self._session.execute(stmt).scalar_one_or_none()
        if instance is None:
            raise NotFoundError("course instance", instance_id)
        return instance

    def get_in_year(self, instance_id: str, study_year: int) -> CourseInstanceModel | None:
        stmt = select(CourseInstanceModel).where(
            CourseInstanceModel.instance_id == instance_id,
            CourseInstanceModel.study_year == study_year,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def period_of(self, instance_id: str) -> InstancePeriod:
        stmt = select(CourseInstanceModel.study_year, CourseInstanceModel.study_period).where(
            CourseInstanceModel.instance_id == instance_id
        )
        row = self._session.execute(stmt).one_or_none()
        if row is None:
            raise NotFoundError("course instance", instance_id)
        return InstancePeriod(study_year=row.study_year, study_period=row.study_period)


class TeacherRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, employment_id: str) -> TeacherModel:
        teacher = self._session.get(TeacherModel, employment_id)
        if teacher is None:
            raise NotFoundError("teacher", employment_id)
        return teacher

    def get_for_update(self, employment_id: str) -> TeacherModel:
        """Lock the teacher row; concurrent allocations for them queue here."""

        stmt = select(TeacherModel).where(TeacherModel.employment_id == employment_id).with_for_update()
        teacher = self._session.execute(stmt).scalar_one_or_none()
        if teacher is None:
            raise NotFoundError("teacher", employment_id)
        return teacher


class PlannedActivityRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(self, instance_id: str, activity_id: int, planned_hours: float) -> PlannedActivityModel:
        row = self._session.get(
            PlannedActivityModel,
            (instance_id, activity_id),
            with_for_update=True,
        )
        if row is None:
            row = PlannedActivityModel(
                instance_id=instance_id,
                teaching_activity_id=activity_id,
                planned_hours=planned_hours,
            )
            self._session.add(row)
        else:
            row.planned_hours = planned_hours
        self._session.flush()
        return row

    def total_hours_in_year(self, instance_id: str, study_year: int) -> float | None:
        """Sum planned hours of the instance; ``None`` when it has no rows that year."""

        stmt = (
            select(func.sum(PlannedActivityModel.planned_hours))
            .join(CourseInstanceModel, CourseInstanceModel.instance_id == PlannedActivityModel.instance_id)
            .where(
                PlannedActivityModel.instance_id == instance_id,
                CourseInstanceModel.study_year == study_year,
            )
        )
        total = self._session.execute(stmt).scalar()
        return None if total is None else float(total)


class AllocationRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def teacher_on_instance(self, instance_id: str, employment_id: str) -> bool:
        stmt = (
            select(AllocationModel.instance_id)
            .where(
                AllocationModel.instance_id == instance_id,
                AllocationModel.employment_id == employment_id,
            )
            .limit(1)
        )
        return self._session.execute(stmt).first() is not None

    def count_teacher_instances(self, employment_id: str, period: InstancePeriod) -> int:
        stmt = (
            select(func.count(distinct(AllocationModel.instance_id)))
            .join(CourseInstanceModel, CourseInstanceModel.instance_id == AllocationModel.instance_id)
            .where(
                AllocationModel.employment_id == employment_id,
                CourseInstanceModel.study_year == period.study_year,
                CourseInstanceModel.study_period == period.study_period,
            )
        )
        return int(self._session.execute(stmt).scalar_one())

    def upsert(self, instance_id: str, activity_id: int, employment_id: str, hours: float) -> AllocationModel:
        row = self._session.get(
            AllocationModel,
            (instance_id, activity_id, employment_id),
            with_for_update=True,
        )
        if row is None:
            row = AllocationModel(
                instance_id=instance_id,
                teaching_activity_id=activity_id,
                employment_id=employment_id,
                allocated_hours=hours,
            )
            self._session.add(row)
        else:
            row.allocated_hours = hours
        self._session.flush()
        return row

    def delete(self, instance_id: str, activity_id: int, employment_id: str) -> bool:
        stmt = delete(AllocationModel).where(
            AllocationModel.instance_id == instance_id,
            AllocationModel.teaching_activity_id == activity_id,
            AllocationModel.employment_id == employment_id,
        )
        result = self._session.execute(stmt, execution_options={"synchronize_session": False})
        return bool(result.rowcount)


class SalaryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def average_current(self) -> float | None:
        stmt = select(func.avg(SalaryModel.hourly_salary)).where(SalaryModel.is_current.is_(True))
        value = self._session.execute(stmt).scalar()
        return None if value is None else float(value)

    def allocated_cost(self, instance_id: str, study_year: int) -> float:
        """Σ allocated hours × each teacher's current hourly salary."""

        stmt = (
            select(func.sum(AllocationModel.allocated_hours * SalaryModel.hourly_salary))
            .join(CourseInstanceModel, CourseInstanceModel.instance_id == AllocationModel.instance_id)
            .join(
                SalaryModel,
                (SalaryModel.employment_id == AllocationModel.employment_id) & SalaryModel.is_current.is_(True),
            )
            .where(
                AllocationModel.instance_id == instance_id,
                CourseInstanceModel.study_year == study_year,
            )
        )
        value = self._session.execute(stmt).scalar()
        return 0.0 if value is None else float(value)


__all__ = [
    "AllocationRepository",
    "CourseInstanceRepository",
    "PlannedActivityRepository",
    "SalaryRepository",
    "TeacherRepository",
    "TeachingActivityRepository",
]
