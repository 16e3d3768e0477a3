from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Tuple

from logit.core.formatting import fixed
from logit.models.entities import AnnotatedAssessment, Semester, Session


@dataclass(frozen=True)
class SubjectSummary:
    name: str
    total_seconds: int


def subject_summaries(sessions: Iterable[Session]) -> list[SubjectSummary]:
    totals: Dict[str, int] = {}
    for session in sessions:
        totals[session.subject] = totals.get(session.subject, 0) + session.duration_seconds
    summaries = [SubjectSummary(name, seconds) for name, seconds in totals.items()]
    return sorted(summaries, key=lambda s: s.total_seconds, reverse=True)


def semester_total_seconds(sessions: Iterable[Session]) -> int:
    return sum(s.duration_seconds for s in sessions)


def filter_visible(
    annotated: Iterable[AnnotatedAssessment],
    visible_types: Mapping[str, bool],
) -> list[AnnotatedAssessment]:
    return [a for a in annotated if visible_types.get(a.type)]


def graded_points(annotated: Iterable[AnnotatedAssessment]) -> list[Tuple[float, float, str]]:
    """(hours, grade, label) for every graded assessment, for the scatter plot."""
    return [(a.hours, a.numeric_grade, f"{a.name} ({a.type})") for a in annotated if a.numeric_grade > 0]


def efficiency_points(annotated: Iterable[AnnotatedAssessment]) -> list[Tuple[str, float]]:
    return [(a.name, a.efficiency) for a in annotated if a.numeric_grade > 0]


def average_efficiency(annotated: Iterable[AnnotatedAssessment]) -> str:
    graded = [a.efficiency for a in annotated if a.numeric_grade > 0]
    if not graded:
        return "0"
    return fixed(sum(graded) / len(graded), 1)


def displayed_semesters(semesters: Iterable[Semester], viewing_archived: bool) -> list[Semester]:
    return [s for s in semesters if bool(s.archived) == viewing_archived]


def format_duration(seconds: float) -> str:
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = int(seconds % 60)
    return f"{h}h {m}m {s}s"
