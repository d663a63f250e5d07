"""Grade aggregation.

Sums graded submissions into overall, per-type and per-class buckets.
A submission counts only when it is GRADED and carries a total score;
everything else still counts toward the number of assessments.
Percentages are floats and are not rounded.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from lms.catalog.models import Assessment

from .models import GradeStatus, Submission


@dataclass
class ScoreBucket:
    earned: Decimal = Decimal(0)
    possible: Decimal = Decimal(0)
    graded: int = 0
    total: int = 0

    def add(self, max_points: Decimal, score: Decimal | None) -> None:
        self.total += 1
        if score is not None:
            self.earned += score
            self.possible += max_points
            self.graded += 1

    @property
    def average(self) -> float:
        if self.possible <= 0:
            return 0
        return float(self.earned / self.possible * 100)

    @property
    def completion_rate(self) -> float:
        if self.total == 0:
            return 0
        return self.graded / self.total * 100


@dataclass
class GradeSummary:
    overall: ScoreBucket = field(default_factory=ScoreBucket)
    by_type: dict[str, ScoreBucket] = field(default_factory=dict)
    by_class: dict[UUID, ScoreBucket] = field(default_factory=dict)


def grade_status(submission: Submission | None) -> GradeStatus:
    if submission is None:
        return GradeStatus.NOT_SUBMITTED
    if submission.is_graded:
        return GradeStatus.GRADED
    return GradeStatus.PENDING


def score_percentage(submission: Submission | None, max_points: Decimal) -> float | None:
    """Percentage for a single graded submission, else None."""
    if submission is None or not submission.is_graded or max_points <= 0:
        return None
    return float(submission.total_score / max_points * 100)


def summarize_grades(
    assessments: Iterable[Assessment],
    submissions: Mapping[UUID, Submission],
) -> GradeSummary:
    """Aggregate one student's submissions over a set of assessments.

    Args:
        assessments: Assessments to report on (any number of classes)
        submissions: The student's submissions keyed by assessment id

    Type and class buckets only appear once they hold a graded submission.
    """
    summary = GradeSummary()
    by_type: dict[str, ScoreBucket] = {}
    by_class: dict[UUID, ScoreBucket] = {}

    for assessment in assessments:
        submission = submissions.get(assessment.id)
        score = submission.total_score if submission and submission.is_graded else None

        summary.overall.add(assessment.max_points, score)
        by_type.setdefault(assessment.type, ScoreBucket()).add(
            assessment.max_points, score
        )
        by_class.setdefault(assessment.class_id, ScoreBucket()).add(
            assessment.max_points, score
        )

    summary.by_type = {t: b for t, b in by_type.items() if b.graded > 0}
    summary.by_class = {c: b for c, b in by_class.items() if b.graded > 0}
    return summary
