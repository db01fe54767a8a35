# ABOUTME: Tests per-candidate factor scoring, composite weighting, and classification.
# ABOUTME: Exercises unseen concepts, spaced-repetition due-ness, and reasoning text.

import math
from datetime import datetime, timedelta, timezone

import pytest

from src.common.schemas import (
    CandidateQuestion,
    ConceptMastery,
    PerformanceRecord,
    Priority,
    RecommendationRequest,
    RecommendationType,
    UserProfile,
)
from src.practice_engine.config import EngineConfig, ScoringWeights
from src.practice_engine.engine import RecommendationEngine
from src.practice_engine.learning_state import LearningState
from src.practice_engine.scoring import (
    QuestionScorer,
    ScoredFactors,
    classify_priority,
    classify_recommendation,
    concept_mastery_score,
    difficulty_match_score,
    generate_reasoning,
    mastery_index,
    novelty_score,
    optimal_difficulty,
    review_interval_days,
    spaced_repetition_score,
)

AS_OF = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _mastery(concept, mastery, days_ago=1.0, practice_count=0):
    return ConceptMastery(
        concept=concept,
        mastery=mastery,
        confidence=0.6,
        last_practiced=AS_OF - timedelta(days=days_ago),
        practice_count=practice_count,
    )


def _state(accuracy=0.7, velocity=0.0):
    return LearningState(
        overall_accuracy=accuracy,
        concept_strengths=(),
        concept_weaknesses=(),
        difficulty_trend=0.0,
        engagement_level=0.5,
        learning_velocity=velocity,
        review_needs=(),
    )


def _question(qid, difficulty=3, concepts=("fractions",)):
    return CandidateQuestion(id=qid, category="math", difficulty=difficulty, concepts=tuple(concepts))


def test_concept_mastery_averages_known_concepts_only():
    index = mastery_index([_mastery("fractions", 0.8), _mastery("decimals", 0.4)])

    assert concept_mastery_score([], index) == 0.5
    assert concept_mastery_score(["geometry"], index) == 0.3
    assert concept_mastery_score(["fractions", "geometry"], index) == pytest.approx(0.8)
    assert concept_mastery_score(["fractions", "decimals"], index) == pytest.approx(0.6)
    # Repeating a concept does not weight it twice.
    assert concept_mastery_score(["fractions", "fractions", "decimals"], index) == pytest.approx(0.6)


def test_difficulty_match_centres_on_grade_and_accuracy():
    assert optimal_difficulty(3, 0.7) == pytest.approx(3.0)
    assert optimal_difficulty(5, 0.9) == 5
    assert optimal_difficulty(1, 0.2) == 1

    assert difficulty_match_score(3, 3.0) == 1.0
    assert difficulty_match_score(5, 3.0) == pytest.approx(0.5)
    assert difficulty_match_score(1, 5.0) == 0.0


def test_novelty_decays_with_exposure():
    assert [novelty_score(n) for n in range(5)] == [1.0, 0.8, 0.5, 0.2, 0.2]


def test_spaced_repetition_due_after_eighty_percent_of_interval():
    # Two practices at mastery 0.5: interval = 4 * 0.6 = 2.4 days.
    index = mastery_index([_mastery("fractions", 0.5, days_ago=10, practice_count=2)])
    assert spaced_repetition_score(["fractions"], index, AS_OF) == 1.0


def test_spaced_repetition_partial_and_not_due():
    half = mastery_index([_mastery("fractions", 0.5, days_ago=1.5, practice_count=2)])
    fresh = mastery_index([_mastery("fractions", 0.5, days_ago=1.0, practice_count=2)])

    assert spaced_repetition_score(["fractions"], half, AS_OF) == 0.5
    assert spaced_repetition_score(["fractions"], fresh, AS_OF) == 0.0
    assert spaced_repetition_score(["unknown"], fresh, AS_OF) == 0.0


def test_classification_rules_apply_in_order():
    def factors(mastery, match=0.5, novelty=0.5):
        return ScoredFactors(concept_mastery=mastery, difficulty_match=match, novelty=novelty, spaced_repetition=0.0)

    assert classify_recommendation(factors(0.35), 0.9) is RecommendationType.REMEDIATE
    assert classify_recommendation(factors(0.5), 0.5) is RecommendationType.REVIEW
    assert classify_recommendation(factors(0.9, match=0.8, novelty=1.0), 0.7) is RecommendationType.CHALLENGE
    assert classify_recommendation(factors(0.5, novelty=1.0), 0.7) is RecommendationType.ADVANCE
    assert classify_recommendation(factors(0.9, match=0.5, novelty=0.8), 0.7) is RecommendationType.REINFORCE


def test_priority_rules():
    assert classify_priority(RecommendationType.REMEDIATE, 0.35, 0.9) is Priority.HIGH
    assert classify_priority(RecommendationType.REVIEW, 0.6, 0.55) is Priority.HIGH
    assert classify_priority(RecommendationType.REINFORCE, 0.75, 0.45) is Priority.HIGH
    assert classify_priority(RecommendationType.REINFORCE, 0.75, 0.7) is Priority.MEDIUM
    assert classify_priority(RecommendationType.CHALLENGE, 0.9, 0.9) is Priority.MEDIUM


def test_reasoning_names_type_and_mastery_level():
    assert generate_reasoning(RecommendationType.REMEDIATE, 0.2) == "Addressing fundamental gaps in weak concepts"
    assert "developing" in generate_reasoning(RecommendationType.REVIEW, 0.5)
    assert "strong" in generate_reasoning(RecommendationType.CHALLENGE, 0.9)


def test_composite_score_adjusts_for_struggling_learner():
    scorer = QuestionScorer()
    factors = ScoredFactors(concept_mastery=0.5, difficulty_match=1.0, novelty=1.0, spaced_repetition=0.0)

    # Base = 0.2 + 0.3 + 0.15 = 0.65
    assert scorer.composite_score(factors, 0.7, 3) == pytest.approx(0.65)
    assert scorer.composite_score(factors, 0.5, 2) == pytest.approx(0.78)
    assert scorer.composite_score(factors, 0.5, 4) == pytest.approx(0.52)
    assert scorer.composite_score(factors, 0.9, 2) == pytest.approx(0.585)


def test_composite_score_is_clamped_to_one():
    scorer = QuestionScorer()
    factors = ScoredFactors(concept_mastery=1.0, difficulty_match=1.0, novelty=1.0, spaced_repetition=1.0)
    assert scorer.composite_score(factors, 0.9, 3) == 1.0


def test_custom_weights_change_composite():
    config = EngineConfig(weights=ScoringWeights(concept_mastery=0.0, difficulty_match=1.0, novelty=0.0, spaced_repetition=0.0))
    factors = ScoredFactors(concept_mastery=0.9, difficulty_match=0.5, novelty=1.0, spaced_repetition=1.0)
    assert QuestionScorer(config).composite_score(factors, 0.7, 3) == pytest.approx(0.5)


def test_unseen_concept_is_remediated_with_high_priority():
    profile = UserProfile(id="u1", grade="3", concept_mastery=(_mastery("fractions", 0.9),))
    scored = QuestionScorer().score([_question("q1", concepts=("probability",))], profile, _state(), AS_OF)

    rec = scored[0]
    assert rec.recommendation_type is RecommendationType.REMEDIATE
    assert rec.priority is Priority.HIGH
    assert rec.reasoning == "Addressing fundamental gaps in developing concepts"
    assert rec.concepts == ("probability",)


def test_score_tracks_prior_exposure_and_input_order():
    history = tuple(
        PerformanceRecord(
            question_id="seen",
            category="math",
            difficulty=3,
            correct=True,
            time_spent=30.0,
            timestamp=AS_OF - timedelta(days=i + 1),
        )
        for i in range(2)
    )
    profile = UserProfile(id="u1", grade="3", performance_history=history)
    candidates = [_question("seen", concepts=()), _question("new", concepts=())]

    scored = QuestionScorer().score(candidates, profile, _state(), AS_OF)

    assert [r.question_id for r in scored] == ["seen", "new"]
    # No concepts: mastery 0.5, difficulty match 1.0; novelty 0.5 vs 1.0.
    assert scored[0].score == pytest.approx(0.2 + 0.3 + 0.075)
    assert scored[1].score == pytest.approx(0.2 + 0.3 + 0.15)
    assert all(0.0 <= r.score <= 1.0 for r in scored)


def test_review_interval_saturates_instead_of_overflowing():
    assert review_interval_days(2, 0.5) == pytest.approx(2.4)
    assert review_interval_days(1100, 0.9) == math.inf


def test_very_high_practice_count_is_never_due():
    index = mastery_index([_mastery("addition", 0.9, days_ago=2, practice_count=1100)])
    assert spaced_repetition_score(["addition"], index, AS_OF) == 0.0

    profile = UserProfile(id="u1", grade="2", concept_mastery=tuple(index.values()))
    request = RecommendationRequest(user_id="u1", max_questions=1)
    response = RecommendationEngine().generate_recommendations(
        request, profile, [_question("q1", difficulty=2, concepts=("addition",))], as_of=AS_OF
    )

    assert len(response.recommendations) == 1
    assert 0.0 <= response.recommendations[0].score <= 1.0
