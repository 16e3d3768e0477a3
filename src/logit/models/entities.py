from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class Semester:
    id: int
    name: str
    archived: bool = False


@dataclass(frozen=True)
class Subject:
    id: int
    semester_id: int
    name: str
    assignment_types: tuple[str, ...] = ()
    grade_weights: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Session:
    id: int
    semester_id: int
    subject: str
    start_time: datetime
    end_time: datetime
    duration_seconds: int


@dataclass(frozen=True)
class Assessment:
    id: int
    subject_id: int
    name: str
    type: str
    date: date
    grade: str


@dataclass(frozen=True)
class ManualGradeEntry:
    id: int
    subject_id: int
    name: str
    score: float
    total_points: float
    category: str


@dataclass(frozen=True)
class AnnotatedAssessment:
    id: int
    subject_id: int
    name: str
    type: str
    date: date
    grade: str
    calculated_time: int
    hours: float
    numeric_grade: float
    efficiency: float
