from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence

from logit.core.formatting import fixed, parse_number
from logit.core.regression import Regression
from logit.models.entities import Assessment, ManualGradeEntry


@dataclass(frozen=True)
class CategoryScore:
    name: str
    weight: float
    item_count: int
    average: float

    @property
    def weighted_points(self) -> float:
        return self.average * self.weight


@dataclass(frozen=True)
class GradeBreakdown:
    categories: Dict[str, CategoryScore] = field(default_factory=dict)
    points_locked_in: float = 0.0
    total_weight_used: float = 0.0

    @property
    def current_grade(self) -> float:
        if self.total_weight_used > 0:
            return (self.points_locked_in / self.total_weight_used) * 100
        return 0.0

    @property
    def absolute_score(self) -> float:
        return self.points_locked_in

    @property
    def remaining_weight(self) -> float:
        return 100 - self.total_weight_used


@dataclass(frozen=True)
class WeightedGradeResult:
    current_grade: str
    absolute_average: str
    required_score: str
    remaining_weight: str
    predicted_hours: str
    has_regression: bool


def _ratio(score: float, total: float) -> float:
    if total <= 0:
        raise ValueError(f"total points must be greater than 0, got {total}")
    return score / total


def weighted_breakdown(
    categories: Sequence[str],
    weights: Mapping[str, float],
    grade_entries: Iterable[ManualGradeEntry],
    assessments: Iterable[Assessment],
) -> GradeBreakdown:
    items: Dict[str, list[float]] = {name: [] for name in categories}

    for entry in grade_entries:
        if entry.category in items:
            items[entry.category].append(_ratio(entry.score, entry.total_points))
    for assessment in assessments:
        if assessment.type in items:
            items[assessment.type].append(parse_number(assessment.grade) / 100)

    scores: Dict[str, CategoryScore] = {}
    points = 0.0
    used = 0.0
    for name, ratios in items.items():
        # Ungraded categories count toward neither side of the average.
        if not ratios:
            continue
        weight = float(weights.get(name) or 0)
        score = CategoryScore(name=name, weight=weight, item_count=len(ratios), average=sum(ratios) / len(ratios))
        scores[name] = score
        points += score.weighted_points
        used += weight

    return GradeBreakdown(categories=scores, points_locked_in=points, total_weight_used=used)


def required_score(breakdown: GradeBreakdown, target_grade: float) -> float:
    remaining = breakdown.remaining_weight
    if remaining > 0:
        return (target_grade - breakdown.points_locked_in) / (remaining / 100)
    return 0.0


def predicted_hours(required: float, regression: Optional[Regression]) -> float:
    if regression is None:
        return 0.0
    hours = regression.hours_for_grade(required)
    return hours if hours is not None else 0.0


def calculate_weighted_grade(
    categories: Sequence[str],
    weights: Mapping[str, float],
    grade_entries: Sequence[ManualGradeEntry],
    assessments: Sequence[Assessment],
    target_grade: float,
    regression: Optional[Regression] = None,
) -> Optional[WeightedGradeResult]:
    if not grade_entries and not assessments and not categories:
        return None

    breakdown = weighted_breakdown(categories, weights, grade_entries, assessments)
    required = required_score(breakdown, target_grade)
    hours = predicted_hours(required, regression)

    return WeightedGradeResult(
        current_grade=fixed(breakdown.current_grade, 2),
        absolute_average=fixed(breakdown.absolute_score, 2),
        required_score=fixed(required, 2),
        remaining_weight=fixed(breakdown.remaining_weight, 0),
        predicted_hours=fixed(hours, 1) if hours > 0 else "0",
        has_regression=regression is not None,
    )


def percentage_from_points(score: float, total: float) -> str:
    """Raw points as a one-decimal percentage string, "0" for a non-positive total."""
    if total <= 0:
        return "0"
    return fixed((score / total) * 100, 1)
