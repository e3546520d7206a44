"""Request DTOs, result records and allocation outcomes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .errors import CourseAllocError, TeacherOverloadedError


def _require_identifier(value: Any) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValueError("identifier must not be empty")
    return text


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, frozen=True)


class TeachingRequest(_Request):
    """Inputs of ``allocate_teaching``."""

    instance_id: str = Field(validation_alias=AliasChoices("instanceId", "instance_id"))
    employment_id: str = Field(validation_alias=AliasChoices("employmentId", "employment_id"))
    activity_name: str = Field(validation_alias=AliasChoices("activityName", "activity_name"))
    hours: float = Field(ge=0, allow_inf_nan=False)

    @field_validator("instance_id", "employment_id", "activity_name", mode="before")
    @classmethod
    def _identifier(cls, value: Any) -> str:
        return _require_identifier(value)


class DeallocationRequest(_Request):
    instance_id: str = Field(validation_alias=AliasChoices("instanceId", "instance_id"))
    employment_id: str = Field(validation_alias=AliasChoices("employmentId", "employment_id"))
    activity_name: str = Field(validation_alias=AliasChoices("activityName", "activity_name"))

    @field_validator("instance_id", "employment_id", "activity_name", mode="before")
    @classmethod
    def _identifier(cls, value: Any) -> str:
        return _require_identifier(value)


class ExerciseRequest(_Request):
    instance_id: str = Field(validation_alias=AliasChoices("instanceId", "instance_id"))
    employment_id: str = Field(validation_alias=AliasChoices("employmentId", "employment_id"))
    planned_hours: float = Field(
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("plannedHours", "planned_hours"),
    )

    @field_validator("instance_id", "employment_id", mode="before")
    @classmethod
    def _identifier(cls, value: Any) -> str:
        return _require_identifier(value)


class InstanceRequest(_Request):
    instance_id: str = Field(validation_alias=AliasChoices("instanceId", "instance_id"))

    @field_validator("instance_id", mode="before")
    @classmethod
    def _identifier(cls, value: Any) -> str:
        return _require_identifier(value)


class StudentDeltaRequest(InstanceRequest):
    delta: int

    @field_validator("delta", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("delta must be an integer")
        return value


@dataclass(frozen=True, slots=True)
class InstancePeriod:
    study_year: int
    study_period: str


@dataclass(frozen=True, slots=True)
class CourseInstanceCost:
    """Course code, instance, period, planned and actual cost in kSEK."""

    course_code: str
    instance_id: str
    period: str
    planned_cost_ksek: float
    actual_cost_ksek: float


@dataclass(frozen=True, slots=True)
class ExerciseAllocationInfo:
    course_code: str
    instance_id: str
    period: str
    activity_name: str
    teacher_name: str
    planned_hours: float


@dataclass(frozen=True, slots=True)
class Allocated:
    """The allocation was written."""

    instance_id: str
    employment_id: str
    activity_name: str
    hours: float
    new_instance: bool
    status: Literal["OK"] = "OK"

    def unwrap(self) -> "Allocated":
        return self


@dataclass(frozen=True, slots=True)
class Overloaded:
    """The period cap rejected a new instance; nothing was written."""

    employment_id: str
    current_count: int
    study_year: int
    study_period: str
    limit: int
    status: Literal["OVERLOADED"] = "OVERLOADED"

    @classmethod
    def from_error(cls, error: TeacherOverloadedError) -> "Overloaded":
        return cls(
            employment_id=error.employment_id,
            current_count=error.current_count,
            study_year=error.study_year,
            study_period=error.study_period,
            limit=error.limit,
        )

    @property
    def message(self) -> str:
        return str(self.to_error())

    def to_error(self) -> TeacherOverloadedError:
        return TeacherOverloadedError(
            employment_id=self.employment_id,
            current_count=self.current_count,
            study_year=self.study_year,
            study_period=self.study_period,
            limit=self.limit,
        )

    def unwrap(self) -> Allocated:
        raise self.to_error()


@dataclass(frozen=True, slots=True)
class Failed:
    """The allocation could not run: missing reference data or a storage fault."""

    error: CourseAllocError
    status: Literal["FAILED"] = "FAILED"

    @property
    def code(self) -> str:
        return self.error.code

    def unwrap(self) -> Allocated:
        raise self.error


AllocationOutcome = Union[Allocated, Overloaded, Failed]


__all__ = [
    "Allocated",
    "AllocationOutcome",
    "CourseInstanceCost",
    "DeallocationRequest",
    "ExerciseAllocationInfo",
    "ExerciseRequest",
    "Failed",
    "InstancePeriod",
    "InstanceRequest",
    "Overloaded",
    "StudentDeltaRequest",
    "TeachingRequest",
]
