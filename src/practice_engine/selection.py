# ABOUTME: Orders scored candidates and picks a session-sized, type-diverse subset.
# ABOUTME: Applies a per-type quota, backfills open slots, then orders by priority and difficulty.

from __future__ import annotations

import math
from typing import Dict, List, Sequence

from src.common.schemas import QuestionRecommendation, RecommendationType


def rank_candidates(scored: Sequence[QuestionRecommendation]) -> List[QuestionRecommendation]:
    """Priority first, then score descending; ties keep input order."""
    return sorted(scored, key=lambda r: (-r.priority.rank, -r.score))


def difficulty_progression(selected: Sequence[QuestionRecommendation]) -> List[QuestionRecommendation]:
    """High priority first, easier questions first within a priority band."""
    return sorted(selected, key=lambda r: (-r.priority.rank, r.difficulty))


class RecommendationSelector:
    def select(
        self, scored: Sequence[QuestionRecommendation], max_questions: int
    ) -> List[QuestionRecommendation]:
        ranked = rank_candidates(scored)
        max_per_type = math.ceil(max_questions / 3)

        result: List[QuestionRecommendation] = []
        chosen = set()
        type_counts: Dict[RecommendationType, int] = {t: 0 for t in RecommendationType}

        for rec in ranked:
            if len(result) >= max_questions:
                break
            if rec.question_id in chosen:
                continue
            if type_counts[rec.recommendation_type] < max_per_type:
                result.append(rec)
                chosen.add(rec.question_id)
                type_counts[rec.recommendation_type] += 1

        for rec in ranked:
            if len(result) >= max_questions:
                break
            if rec.question_id not in chosen:
                result.append(rec)
                chosen.add(rec.question_id)

        return difficulty_progression(result)
