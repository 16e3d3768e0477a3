"""
Attribute study time to graded assessments.

Each assessment owns the sessions that started after the previous assessment
of the same category (end of that day) and no later than the end of its own
day. The first assessment of a category owns everything before it.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, Sequence

from logit.core.formatting import parse_number, round_half_up
from logit.models.entities import AnnotatedAssessment, Assessment, Session

END_OF_DAY = time(23, 59, 59, 999000)


def end_of_day(day: date) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, END_OF_DAY)


def local_naive(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def sessions_for_subject(sessions: Iterable[Session], subject_name: str) -> list[Session]:
    return [s for s in sessions if s.subject == subject_name]


def seconds_in_window(
    sessions: Iterable[Session],
    lower: datetime | None,
    upper: datetime,
) -> int:
    """Sum whole session durations whose start lies in (lower, upper]."""
    total = 0
    for session in sessions:
        started = local_naive(session.start_time)
        if lower is not None and started <= lower:
            continue
        if started <= upper:
            total += session.duration_seconds
    return total


def _annotate(assessment: Assessment, seconds: int) -> AnnotatedAssessment:
    hours = round_half_up(seconds / 3600, 1)
    numeric_grade = parse_number(assessment.grade)
    efficiency = round_half_up(numeric_grade / hours, 1) if hours > 0 else 0.0
    return AnnotatedAssessment(
        id=assessment.id,
        subject_id=assessment.subject_id,
        name=assessment.name,
        type=assessment.type,
        date=assessment.date,
        grade=assessment.grade,
        calculated_time=seconds,
        hours=hours,
        numeric_grade=numeric_grade,
        efficiency=efficiency,
    )


def annotate_assessments(
    assessments: Sequence[Assessment],
    sessions: Sequence[Session],
    categories: Sequence[str],
) -> list[AnnotatedAssessment]:
    """
    sessions must already be scoped to the subject being analysed
    (see sessions_for_subject). Assessments outside categories are dropped.
    """
    if not assessments:
        return []

    annotated: list[AnnotatedAssessment] = []
    for category in categories:
        in_category = sorted((a for a in assessments if a.type == category), key=lambda a: a.date)
        lower: datetime | None = None
        for assessment in in_category:
            upper = end_of_day(assessment.date)
            annotated.append(_annotate(assessment, seconds_in_window(sessions, lower, upper)))
            lower = upper

    return sorted(annotated, key=lambda a: a.date)
