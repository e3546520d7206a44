from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from coursealloc.allocation.assignments import AssignmentService
from coursealloc.allocation.courses import CourseService
from coursealloc.allocation.teaching import TeachingService
from coursealloc.allocation.uow import sqlalchemy_uow_factory
from coursealloc.config.settings import DatabaseSettings
from coursealloc.infrastructure.persistence.models import (
    AllocationModel,
    CourseInstanceModel,
    PlannedActivityModel,
    SalaryModel,
    TeacherModel,
    TeachingActivityModel,
)
from coursealloc.infrastructure.persistence.session import (
    create_schema,
    make_engine,
    make_session_factory,
)


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self._wall = start or datetime(2025, 9, 1, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._wall

    def set(self, value: datetime) -> None:
        with self._lock:
            self._wall = value


@pytest.fixture()
def engine(tmp_path):
    settings = DatabaseSettings(dsn=f"sqlite:///{tmp_path / 'coursealloc.db'}", sqlite_busy_timeout_seconds=30)
    engine = make_engine(settings)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def uow_factory(session_factory):
    return sqlalchemy_uow_factory(session_factory)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def teaching(uow_factory) -> TeachingService:
    return TeachingService(uow_factory=uow_factory)


@pytest.fixture()
def courses(uow_factory, clock) -> CourseService:
    return CourseService(uow_factory=uow_factory, clock=clock)


@pytest.fixture()
def assignments(uow_factory) -> AssignmentService:
    return AssignmentService(uow_factory=uow_factory)


def seed_base_data(session: Session) -> None:
    session.add_all(
        [
            TeachingActivityModel(id=1, activity_name="Lecture"),
            TeachingActivityModel(id=2, activity_name="Tutorial"),
            TeachingActivityModel(id=3, activity_name="Lab"),
            TeacherModel(employment_id="T1", full_name="Ada Lovelace"),
            TeacherModel(employment_id="T2", full_name="Alan Turing"),
            TeacherModel(employment_id="T3", full_name="Grace Hopper"),
        ]
    )
    for suffix in "ABCDEF":
        session.add(
            CourseInstanceModel(
                instance_id=f"2025-{suffix}",
                course_code=f"IV13{ord(suffix) - 60}",
                study_year=2025,
                study_period="P1",
                num_students=50,
            )
        )
    session.add_all(
        [
            CourseInstanceModel(
                instance_id="2025-G", course_code="IV1400", study_year=2025, study_period="P2", num_students=30
            ),
            CourseInstanceModel(
                instance_id="2024-H", course_code="IV1500", study_year=2024, study_period="P1", num_students=20
            ),
        ]
    )
    session.add_all(
        [
            SalaryModel(employment_id="T1", hourly_salary=500.0, is_current=True),
            SalaryModel(employment_id="T1", hourly_salary=300.0, is_current=False),
            SalaryModel(employment_id="T2", hourly_salary=500.0, is_current=True),
        ]
    )
    session.commit()


def seed_allocation(session: Session, instance_id: str, employment_id: str, activity_id: int = 1, hours: float = 10.0) -> None:
    if session.get(PlannedActivityModel, (instance_id, activity_id)) is None:
        session.add(PlannedActivityModel(instance_id=instance_id, teaching_activity_id=activity_id, planned_hours=hours))
    session.add(
        AllocationModel(
            instance_id=instance_id,
            teaching_activity_id=activity_id,
            employment_id=employment_id,
            allocated_hours=hours,
        )
    )
    session.commit()


@pytest.fixture()
def seeded(session_factory):
    with session_factory() as session:
        seed_base_data(session)
    return session_factory


def allocation_rows(session_factory) -> list[tuple[str, int, str, float]]:
    stmt = select(AllocationModel).order_by(
        AllocationModel.instance_id,
        AllocationModel.employment_id,
        AllocationModel.teaching_activity_id,
    )
    with session_factory() as session:
        rows = session.execute(stmt).scalars().all()
        return [(r.instance_id, r.teaching_activity_id, r.employment_id, r.allocated_hours) for r in rows]


def planned_rows(session_factory) -> list[tuple[str, int, float]]:
    stmt = select(PlannedActivityModel).order_by(
        PlannedActivityModel.instance_id,
        PlannedActivityModel.teaching_activity_id,
    )
    with session_factory() as session:
        rows = session.execute(stmt).scalars().all()
        return [(r.instance_id, r.teaching_activity_id, r.planned_hours) for r in rows]
