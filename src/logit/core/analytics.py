"""One render cycle of derived numbers for the selected class."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from logit.core.attribution import annotate_assessments, sessions_for_subject
from logit.core.grades import WeightedGradeResult, calculate_weighted_grade
from logit.core.regression import Regression, fit_regression
from logit.core.summaries import (
    SubjectSummary,
    average_efficiency,
    filter_visible,
    semester_total_seconds,
    subject_summaries,
)
from logit.models.entities import AnnotatedAssessment, Assessment, ManualGradeEntry, Session, Subject


@dataclass(frozen=True)
class SemesterOverview:
    total_seconds: int
    summaries: list[SubjectSummary]


@dataclass(frozen=True)
class SubjectAnalytics:
    annotated: list[AnnotatedAssessment]
    visible: list[AnnotatedAssessment]
    regression: Optional[Regression]
    grade: Optional[WeightedGradeResult]
    average_efficiency: str


def semester_overview(sessions: Sequence[Session]) -> SemesterOverview:
    return SemesterOverview(total_seconds=semester_total_seconds(sessions), summaries=subject_summaries(sessions))


def analyse_subject(
    subject: Subject,
    sessions: Sequence[Session],
    assessments: Sequence[Assessment],
    grade_entries: Sequence[ManualGradeEntry],
    target_grade: float,
    visible_types: Optional[Mapping[str, bool]] = None,
) -> SubjectAnalytics:
    categories = list(subject.assignment_types)
    annotated = annotate_assessments(assessments, sessions_for_subject(sessions, subject.name), categories)
    regression = fit_regression(annotated)
    grade = calculate_weighted_grade(
        categories,
        subject.grade_weights,
        grade_entries,
        assessments,
        target_grade,
        regression,
    )
    if visible_types is None:
        visible_types = {c: True for c in categories}
    return SubjectAnalytics(
        annotated=annotated,
        visible=filter_visible(annotated, visible_types),
        regression=regression,
        grade=grade,
        average_efficiency=average_efficiency(annotated),
    )
