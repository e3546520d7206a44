"""Factory helpers wiring allocation components together."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from coursealloc.config.settings import AppSettings, get_settings
from coursealloc.core.clock import Clock, SystemClock
from coursealloc.core.logging_config import setup_logging
from coursealloc.infrastructure.monitoring.metrics import set_metrics_enabled
from coursealloc.infrastructure.persistence.session import make_engine, make_session_factory

from .assignments import AssignmentService
from .courses import CourseService
from .teaching import TeachingService
from .uow import UnitOfWorkFactory, sqlalchemy_uow_factory


@dataclass(slots=True)
class AllocationServices:
    """The three services sharing one engine and unit-of-work factory."""

    engine: Engine
    session_factory: sessionmaker
    uow_factory: UnitOfWorkFactory
    teaching: TeachingService
    courses: CourseService
    assignments: AssignmentService

    def close(self) -> None:
        self.engine.dispose()


def build_services(
    settings: AppSettings | None = None,
    *,
    engine: Engine | None = None,
    clock: Clock | None = None,
) -> AllocationServices:
    """Create the services from settings; ``engine`` and ``clock`` override for tests."""

    settings = settings or get_settings()
    set_metrics_enabled(settings.metrics_enabled)
    engine = engine or make_engine(settings.database)
    session_factory = make_session_factory(engine)
    uow_factory = sqlalchemy_uow_factory(session_factory)
    return AllocationServices(
        engine=engine,
        session_factory=session_factory,
        uow_factory=uow_factory,
        teaching=TeachingService(
            uow_factory=uow_factory,
            max_instances_per_period=settings.allocation.max_instances_per_period,
        ),
        courses=CourseService(
            uow_factory=uow_factory,
            clock=clock or SystemClock(settings.timezone),
            study_year=settings.allocation.study_year,
        ),
        assignments=AssignmentService(
            uow_factory=uow_factory,
            exercise_activity_name=settings.allocation.exercise_activity_name,
        ),
    )


def bootstrap(settings: AppSettings | None = None) -> AllocationServices:
    """Configure logging from settings, then build the services."""

    settings = settings or get_settings()
    setup_logging(settings.logging.level, settings.logging.file)
    return build_services(settings)


__all__ = ["AllocationServices", "bootstrap", "build_services"]
