from __future__ import annotations

import pytest
from sqlalchemy import select

from coursealloc.allocation.assignments import AssignmentService
from coursealloc.allocation.contracts import Allocated, ExerciseAllocationInfo
from coursealloc.allocation.errors import NotFoundError
from coursealloc.infrastructure.persistence.models import TeachingActivityModel
from tests.conftest import allocation_rows, planned_rows, seed_allocation


def _activity_names(session_factory) -> list[str]:
    with session_factory() as session:
        return list(
            session.execute(select(TeachingActivityModel.activity_name).order_by(TeachingActivityModel.id)).scalars()
        )


def test_add_exercise_creates_activity_and_reports_summary(seeded, assignments) -> None:
    info = assignments.add_exercise("2025-A", "T1", 14)

    assert info == ExerciseAllocationInfo(
        course_code="IV135",
        instance_id="2025-A",
        period="P1",
        activity_name="Exercise",
        teacher_name="Ada Lovelace",
        planned_hours=14.0,
    )
    assert _activity_names(seeded) == ["Lecture", "Tutorial", "Lab", "Exercise"]
    assert planned_rows(seeded) == [("2025-A", 4, 14.0)]
    assert allocation_rows(seeded) == [("2025-A", 4, "T1", 14.0)]


def test_add_exercise_reuses_activity_and_overwrites_hours(seeded, assignments) -> None:
    assignments.add_exercise("2025-A", "T1", 14)
    assignments.add_exercise("2025-A", "T1", 9)

    assert _activity_names(seeded).count("Exercise") == 1
    assert planned_rows(seeded) == [("2025-A", 4, 9.0)]
    assert allocation_rows(seeded) == [("2025-A", 4, "T1", 9.0)]


def test_add_exercise_is_exempt_from_period_cap(seeded, assignments, teaching) -> None:
    with seeded() as session:
        for instance_id in ("2025-A", "2025-B", "2025-C", "2025-D"):
            seed_allocation(session, instance_id, "T1")

    info = assignments.add_exercise("2025-E", "T1", 6)

    assert info.instance_id == "2025-E"
    instances = {row[0] for row in allocation_rows(seeded) if row[2] == "T1"}
    assert len(instances) == 5


def test_add_exercise_missing_references(seeded, assignments) -> None:
    with pytest.raises(NotFoundError):
        assignments.add_exercise("2099-X", "T1", 3)
    with pytest.raises(NotFoundError):
        assignments.add_exercise("2025-A", "T9", 3)
    assert "Exercise" not in _activity_names(seeded)


def test_custom_exercise_activity_name(seeded, uow_factory) -> None:
    service = AssignmentService(uow_factory=uow_factory, exercise_activity_name="Tutorial")

    info = service.add_exercise("2025-B", "T2", 4)

    assert info.activity_name == "Tutorial"
    assert allocation_rows(seeded) == [("2025-B", 2, "T2", 4.0)]


def test_deallocate_keeps_shared_planned_row(seeded, teaching, assignments) -> None:
    assert isinstance(teaching.allocate_teaching("2025-A", "T1", "Lecture", 20), Allocated)
    assert isinstance(teaching.allocate_teaching("2025-A", "T2", "Lecture", 20), Allocated)

    removed = assignments.deallocate_teaching("2025-A", "T1", "Lecture")

    assert removed is True
    assert allocation_rows(seeded) == [("2025-A", 1, "T2", 20.0)]
    assert planned_rows(seeded) == [("2025-A", 1, 20.0)]


def test_deallocate_missing_row_is_noop(seeded, assignments) -> None:
    assert assignments.deallocate_teaching("2025-A", "T1", "Lecture") is False


def test_deallocate_unknown_activity(seeded, assignments) -> None:
    with pytest.raises(NotFoundError):
        assignments.deallocate_teaching("2025-A", "T1", "Seminar")


def test_deallocate_frees_a_slot_under_the_cap(seeded, teaching, assignments) -> None:
    with seeded() as session:
        for instance_id in ("2025-A", "2025-B", "2025-C", "2025-D"):
            seed_allocation(session, instance_id, "T1")
    assert teaching.allocate_teaching("2025-E", "T1", "Lecture", 5).status == "OVERLOADED"

    assignments.deallocate_teaching("2025-D", "T1", "Lecture")

    assert teaching.allocate_teaching("2025-E", "T1", "Lecture", 5).status == "OK"
