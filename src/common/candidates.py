# ABOUTME: Narrows a question bank to the candidate pool handed to the engine.
# ABOUTME: Applies grade and difficulty windows, exclusions, focus concepts, and broadening.

from __future__ import annotations

from typing import Iterable, List

from .features import parse_grade
from .schemas import CandidateQuestion, RecommendationRequest

MIN_POOL_SIZE = 20
GRADE_WINDOW = 2
BROAD_GRADE_WINDOW = 3


def filter_candidates(
    questions: Iterable[CandidateQuestion],
    learner_grade: str,
    request: RecommendationRequest,
    min_pool_size: int = MIN_POOL_SIZE,
) -> List[CandidateQuestion]:
    """
    Select candidates suited to the learner's grade and the requested difficulty.

    Questions without a grade count as grade 1. When fewer than
    ``min_pool_size`` questions survive the strict filter, the pool is
    rebuilt from every non-excluded question within three grades.
    """

    pool = list(questions)
    grade = parse_grade(learner_grade)
    target = request.target_difficulty or grade
    low, high = max(1, target - 1), min(5, target + 1)
    excluded = set(request.exclude_question_ids or ())
    focus = set(request.focus_concepts) if request.focus_concepts is not None else None

    def grade_gap(question: CandidateQuestion) -> int:
        return abs(parse_grade(question.grade) - grade)

    strict = [
        q
        for q in pool
        if grade_gap(q) <= GRADE_WINDOW
        and low <= q.difficulty <= high
        and q.id not in excluded
        and (focus is None or focus.intersection(q.concepts))
    ]
    if len(strict) >= min_pool_size:
        return strict

    return [q for q in pool if grade_gap(q) <= BROAD_GRADE_WINDOW and q.id not in excluded]
