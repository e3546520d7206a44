# -*- coding: utf-8 -*-
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class CourseInstanceModel(Base):
    __tablename__ = "course_instance"

    instance_id = Column(String(32), primary_key=True)
    course_code = Column(String(16), nullable=False)
    study_year = Column(Integer, nullable=False)
    study_period = Column(String(8), nullable=False)
    # Negative counts are tolerated; see increase_students.
    num_students = Column(Integer, nullable=False, default=0)

    planned_activities = relationship("PlannedActivityModel", back_populates="instance")
    allocations = relationship("AllocationModel", back_populates="instance")

    __table_args__ = (Index("ix_course_instance_period", "study_year", "study_period"),)


class TeachingActivityModel(Base):
    __tablename__ = "teaching_activity"

    id = Column(Integer, primary_key=True, autoincrement=True)
    activity_name = Column(String(64), nullable=False, unique=True)


class TeacherModel(Base):
    __tablename__ = "teacher"

    employment_id = Column(String(32), primary_key=True)
    full_name = Column(String(128), nullable=False)

    salaries = relationship("SalaryModel", back_populates="teacher")


class PlannedActivityModel(Base):
    """Hours budgeted for one activity of one instance, independent of teacher."""

    __tablename__ = "planned_activity"

    instance_id = Column(
        String(32),
        ForeignKey("course_instance.instance_id", ondelete="CASCADE"),
        primary_key=True,
    )
    teaching_activity_id = Column(
        Integer,
        ForeignKey("teaching_activity.id"),
        primary_key=True,
    )
    planned_hours = Column(Float, nullable=False, default=0.0)

    instance = relationship("CourseInstanceModel", back_populates="planned_activities")
    activity = relationship("TeachingActivityModel")

    __table_args__ = (
        CheckConstraint("planned_hours >= 0", name="ck_planned_hours_non_negative"),
    )


class AllocationModel(Base):
    """One teacher's committed hours on one activity of one instance."""

    __tablename__ = "allocation"

    instance_id = Column(
        String(32),
        ForeignKey("course_instance.instance_id", ondelete="CASCADE"),
        primary_key=True,
    )
    teaching_activity_id = Column(
        Integer,
        ForeignKey("teaching_activity.id"),
        primary_key=True,
    )
    employment_id = Column(
        String(32),
        ForeignKey("teacher.employment_id"),
        primary_key=True,
    )
    allocated_hours = Column(Float, nullable=False, default=0.0)

    instance = relationship("CourseInstanceModel", back_populates="allocations")
    activity = relationship("TeachingActivityModel")
    teacher = relationship("TeacherModel")

    __table_args__ = (
        CheckConstraint("allocated_hours >= 0", name="ck_allocated_hours_non_negative"),
        Index("ix_allocation_teacher", "employment_id", "instance_id"),
    )


class SalaryModel(Base):
    __tablename__ = "salary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employment_id = Column(
        String(32),
        ForeignKey("teacher.employment_id", ondelete="CASCADE"),
        nullable=False,
    )
    hourly_salary = Column(Float, nullable=False)
    is_current = Column(Boolean, nullable=False, default=True)

    teacher = relationship("TeacherModel", back_populates="salaries")

    __table_args__ = (
        CheckConstraint("hourly_salary > 0", name="ck_hourly_salary_positive"),
        Index("ix_salary_current", "employment_id", "is_current"),
    )


__all__ = [
    "AllocationModel",
    "Base",
    "CourseInstanceModel",
    "PlannedActivityModel",
    "SalaryModel",
    "TeacherModel",
    "TeachingActivityModel",
]
