# ABOUTME: Scores candidate questions against a learner's state using four weighted factors.
# ABOUTME: Classifies each candidate into a recommendation type, priority, and reasoning line.

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Sequence

from src.common.features import clamp, days_since, parse_grade
from src.common.schemas import (
    CandidateQuestion,
    ConceptMastery,
    PerformanceRecord,
    Priority,
    QuestionRecommendation,
    RecommendationType,
    UserProfile,
)

from .config import DEFAULT_CONFIG, EngineConfig
from .learning_state import LearningState

NEW_CONCEPT_MASTERY = 0.3
NO_CONCEPT_MASTERY = 0.5

# Exposure count -> novelty; three or more exposures fall through to the floor.
NOVELTY_BY_EXPOSURE = {0: 1.0, 1: 0.8, 2: 0.5}
NOVELTY_FLOOR = 0.2

REASONING_TEMPLATES = {
    RecommendationType.REMEDIATE: "Addressing fundamental gaps in {level} concepts",
    RecommendationType.REVIEW: "Reinforcing {level} understanding through targeted practice",
    RecommendationType.REINFORCE: "Building confidence in {level} skills",
    RecommendationType.ADVANCE: "Introducing new concepts building on {level} foundation",
    RecommendationType.CHALLENGE: "Pushing boundaries with advanced problems in {level} areas",
}


@dataclass(frozen=True)
class ScoredFactors:
    concept_mastery: float
    difficulty_match: float
    novelty: float
    spaced_repetition: float


def mastery_index(masteries: Iterable[ConceptMastery]) -> Dict[str, ConceptMastery]:
    """Map concept name to its mastery record; later duplicates replace earlier ones."""
    return {m.concept: m for m in masteries}


def exposure_counts(history: Iterable[PerformanceRecord]) -> Dict:
    counts: Dict = {}
    for record in history:
        counts[record.question_id] = counts.get(record.question_id, 0) + 1
    return counts


def _matched(concepts: Sequence[str], index: Mapping[str, ConceptMastery]) -> List[ConceptMastery]:
    seen = set()
    matched = []
    for concept in concepts:
        if concept in seen:
            continue
        seen.add(concept)
        record = index.get(concept)
        if record is not None:
            matched.append(record)
    return matched


def concept_mastery_score(concepts: Sequence[str], index: Mapping[str, ConceptMastery]) -> float:
    """Average mastery over the concepts the learner has records for."""
    if not concepts:
        return NO_CONCEPT_MASTERY
    matched = _matched(concepts, index)
    if not matched:
        return NEW_CONCEPT_MASTERY
    return sum(m.mastery for m in matched) / len(matched)


def optimal_difficulty(grade_level: int, overall_accuracy: float) -> float:
    return clamp(grade_level + (overall_accuracy - 0.7) * 2, 1, 5)


def difficulty_match_score(question_difficulty: float, optimal: float) -> float:
    return max(0.0, 1 - abs(question_difficulty - optimal) / 4)


def novelty_score(exposures: int) -> float:
    return NOVELTY_BY_EXPOSURE.get(exposures, NOVELTY_FLOOR)


def review_interval_days(practice_count: int, mastery: float) -> float:
    """``2 ** practice_count * (1 - mastery + 0.1)``; infinite when it exceeds float range."""
    try:
        return math.ldexp(1.0 - mastery + 0.1, practice_count)
    except OverflowError:
        return math.inf


def spaced_repetition_score(
    concepts: Sequence[str],
    index: Mapping[str, ConceptMastery],
    as_of: datetime,
) -> float:
    """
    Average due-ness across matched concepts.

    Each concept's interval is ``2 ** practice_count * (1 - mastery + 0.1)``
    days; it counts 1.0 once 80% of that interval has elapsed and 0.5 from
    60%.
    """
    matched = _matched(concepts, index)
    if not matched:
        return 0.0

    total = 0.0
    for m in matched:
        elapsed = days_since(as_of, m.last_practiced)
        interval = review_interval_days(m.practice_count, m.mastery)
        if elapsed >= interval * 0.8:
            total += 1.0
        elif elapsed >= interval * 0.6:
            total += 0.5
    return min(1.0, total / len(matched))


def classify_recommendation(
    factors: ScoredFactors, overall_accuracy: float
) -> RecommendationType:
    if factors.concept_mastery < 0.4:
        return RecommendationType.REMEDIATE
    if factors.concept_mastery < 0.7 and overall_accuracy < 0.6:
        return RecommendationType.REVIEW
    if factors.concept_mastery > 0.8 and factors.difficulty_match > 0.7:
        return RecommendationType.CHALLENGE
    if factors.novelty > 0.8:
        return RecommendationType.ADVANCE
    return RecommendationType.REINFORCE


def classify_priority(
    rec_type: RecommendationType, concept_mastery: float, overall_accuracy: float
) -> Priority:
    # LOW is never produced by the current rules.
    if rec_type is RecommendationType.REMEDIATE or concept_mastery < 0.3:
        return Priority.HIGH
    if rec_type is RecommendationType.REVIEW or overall_accuracy < 0.5:
        return Priority.HIGH
    return Priority.MEDIUM


def mastery_descriptor(concept_mastery: float) -> str:
    if concept_mastery < 0.3:
        return "weak"
    if concept_mastery < 0.7:
        return "developing"
    return "strong"


def generate_reasoning(rec_type: RecommendationType, concept_mastery: float) -> str:
    return REASONING_TEMPLATES[rec_type].format(level=mastery_descriptor(concept_mastery))


class QuestionScorer:
    """Scores candidates for one learner; the weights come from the engine config."""

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config
        self.weights = config.weights

    def composite_score(
        self, factors: ScoredFactors, overall_accuracy: float, question_difficulty: float
    ) -> float:
        w = self.weights
        score = (
            factors.concept_mastery * w.concept_mastery
            + factors.difficulty_match * w.difficulty_match
            + factors.novelty * w.novelty
            + factors.spaced_repetition * w.spaced_repetition
        )

        if overall_accuracy < 0.6:
            score *= 1.2 if question_difficulty <= 2 else 0.8
        elif overall_accuracy > 0.8:
            score *= 1.2 if question_difficulty >= 3 else 0.9

        return clamp(score, 0.0, 1.0)

    def score(
        self,
        candidates: Sequence[CandidateQuestion],
        profile: UserProfile,
        state: LearningState,
        as_of: datetime,
    ) -> List[QuestionRecommendation]:
        """Score every candidate independently; output order follows input order."""
        index = mastery_index(profile.concept_mastery)
        exposures = exposure_counts(profile.performance_history)
        optimal = optimal_difficulty(parse_grade(profile.grade), state.overall_accuracy)

        return [
            self._score_one(question, index, exposures, optimal, state, as_of)
            for question in candidates
        ]

    def _score_one(
        self,
        question: CandidateQuestion,
        index: Mapping[str, ConceptMastery],
        exposures: Mapping,
        optimal: float,
        state: LearningState,
        as_of: datetime,
    ) -> QuestionRecommendation:
        concepts = tuple(question.concepts or ())
        factors = ScoredFactors(
            concept_mastery=concept_mastery_score(concepts, index),
            difficulty_match=difficulty_match_score(question.difficulty, optimal),
            novelty=novelty_score(exposures.get(question.id, 0)),
            spaced_repetition=spaced_repetition_score(concepts, index, as_of),
        )
        accuracy = state.overall_accuracy
        rec_type = classify_recommendation(factors, accuracy)

        return QuestionRecommendation(
            question_id=question.id,
            score=self.composite_score(factors, accuracy, question.difficulty),
            reasoning=generate_reasoning(rec_type, factors.concept_mastery),
            category=question.category,
            difficulty=question.difficulty,
            concepts=concepts,
            recommendation_type=rec_type,
            priority=classify_priority(rec_type, factors.concept_mastery, accuracy),
        )
