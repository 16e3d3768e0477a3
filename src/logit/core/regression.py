from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from logit.models.entities import AnnotatedAssessment


@dataclass(frozen=True)
class Regression:
    slope: float
    intercept: float

    def predict_grade(self, hours: float) -> float:
        return self.slope * hours + self.intercept

    def hours_for_grade(self, grade: float) -> float | None:
        if self.slope == 0:
            return None
        return (grade - self.intercept) / self.slope


def fit_regression(annotated: Iterable[AnnotatedAssessment]) -> Regression | None:
    """
    Least-squares line of grade (y) over hours studied (x).
    Only assessments with both a grade and attributed hours count.
    Returns None with fewer than two points or when every x is the same.
    """
    points = [(a.hours, a.numeric_grade) for a in annotated if a.numeric_grade > 0 and a.hours > 0]
    if len(points) < 2:
        return None

    n = len(points)
    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for x, y in points:
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return None

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return Regression(slope=slope, intercept=intercept)
