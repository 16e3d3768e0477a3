"""Input payloads checked before anything reaches the record store."""

from __future__ import annotations

import datetime as dt
import math
from typing import Dict, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from logit.core.attribution import local_naive
from logit.core.formatting import fixed

# Largest magnitude accepted for grades, scores, point totals and targets.
NUMBER_LIMIT = 1_000_000


class InvalidInput(ValueError):
    pass


class _Payload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, allow_inf_nan=False)


class NamePayload(_Payload):
    name: str = Field(min_length=1)


class SessionPayload(_Payload):
    subject: str = Field(min_length=1)
    start_time: dt.datetime
    end_time: dt.datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def _to_local(cls, value: dt.datetime) -> dt.datetime:
        return local_naive(value)

    @model_validator(mode="after")
    def _ordered(self) -> "SessionPayload":
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

    @property
    def duration_seconds(self) -> int:
        return (self.end_time - self.start_time) // dt.timedelta(seconds=1)


class AssessmentPayload(_Payload):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    date: dt.date
    grade: Optional[str] = None

    @field_validator("grade", mode="before")
    @classmethod
    def _format_grade(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "0.0"
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("Grade must be a number") from exc
        if not math.isfinite(number):
            raise ValueError("Grade must be a number")
        if abs(number) > NUMBER_LIMIT:
            raise ValueError(f"Grade must be between -{NUMBER_LIMIT} and {NUMBER_LIMIT}")
        try:
            return fixed(number, 1)
        except ArithmeticError as exc:
            raise ValueError("Grade must be a number") from exc


class GradeEntryPayload(_Payload):
    name: str = Field(min_length=1)
    score: float = Field(ge=-NUMBER_LIMIT, le=NUMBER_LIMIT)
    total_points: float = Field(gt=0, le=NUMBER_LIMIT)
    category: str = Field(min_length=1)


class WeightsPayload(_Payload):
    weights: Dict[str, float]


class TargetPayload(_Payload):
    target_grade: float = Field(ge=0, le=NUMBER_LIMIT)


Payload = TypeVar("Payload", bound=BaseModel)

_FIELD_LABELS = {
    "name": "Name",
    "subject": "Class",
    "start_time": "Start time",
    "end_time": "End time",
    "type": "Type",
    "date": "Date",
    "grade": "Grade",
    "score": "Score",
    "total_points": "Total points",
    "category": "Category",
    "weights": "Weights",
    "target_grade": "Target grade",
}


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ())]
        message = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        if loc:
            parts.append(f"{_FIELD_LABELS.get(loc[0], loc[0])}: {message}")
        else:
            parts.append(message)
    return "; ".join(parts) or "Invalid input"


def parse(model: Type[Payload], **data) -> Payload:
    try:
        return model(**data)
    except ValidationError as exc:
        raise InvalidInput(_describe(exc)) from exc


def clean_name(name: Optional[str]) -> str:
    return parse(NamePayload, name=name).name


def require_new_category(name: Optional[str], existing: Sequence[str], *, allow: Optional[str] = None) -> str:
    cleaned = clean_name(name)
    if cleaned in existing and cleaned != allow:
        raise InvalidInput("Type already exists")
    return cleaned


def require_category(name: str, existing: Sequence[str]) -> str:
    if name not in existing:
        raise InvalidInput(f"Unknown category: {name}")
    return name


def clean_target(value) -> float:
    return parse(TargetPayload, target_grade=value).target_grade
