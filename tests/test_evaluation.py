# ABOUTME: Tests recommendation evaluation metrics against observed learner outcomes.
# ABOUTME: Checks each metric on a small hand-computed session plus degenerate inputs.

from datetime import datetime, timezone

import pytest

from src.common.evaluation import METRICS, engagement_score, evaluate_recommendations
from src.common.schemas import PerformanceRecord, Priority, QuestionRecommendation, RecommendationType

AS_OF = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _mk_rec(qid, score, difficulty, concepts):
    return QuestionRecommendation(
        question_id=qid,
        score=score,
        reasoning="",
        category="math",
        difficulty=difficulty,
        concepts=tuple(concepts),
        recommendation_type=RecommendationType.REINFORCE,
        priority=Priority.MEDIUM,
    )


def _mk_outcome(qid, correct, time_spent=30.0, concepts=()):
    return PerformanceRecord(
        question_id=qid,
        category="math",
        difficulty=3,
        correct=correct,
        time_spent=time_spent,
        timestamp=AS_OF,
        concepts=tuple(concepts),
    )


def test_engagement_score_peaks_at_optimal_time():
    assert engagement_score(30) == pytest.approx(1.0)
    assert engagement_score(60) < engagement_score(40) < 1.0


def test_evaluate_recommendations_metrics():
    recs = [_mk_rec("q1", 0.8, 2, ["a"]), _mk_rec("q2", 0.4, 3, ["b"])]
    outcomes = [
        _mk_outcome("q1", True, concepts=["a"]),
        _mk_outcome("q2", False),
        _mk_outcome("q3", True, concepts=["a"]),
    ]

    metrics = evaluate_recommendations(recs, outcomes)

    assert set(metrics) == set(METRICS)
    assert metrics["accuracy_prediction"] == pytest.approx(2 / 3)
    assert metrics["engagement_prediction"] == pytest.approx(1.0)
    assert metrics["difficulty_alignment"] == pytest.approx(1 - (2 / 3) / 4)
    assert metrics["concept_coverage"] == pytest.approx(0.5)
    assert metrics["score_auc"] == pytest.approx(1.0)


def test_auc_is_zero_when_outcomes_single_class():
    recs = [_mk_rec("q1", 0.8, 2, ["a"]), _mk_rec("q2", 0.4, 3, ["b"])]
    outcomes = [_mk_outcome("q1", True), _mk_outcome("q2", True)]

    assert evaluate_recommendations(recs, outcomes, metrics=["score_auc"]) == {"score_auc": 0.0}


def test_empty_inputs_score_zero():
    assert evaluate_recommendations([], [_mk_outcome("q1", True)]) == {m: 0.0 for m in METRICS}
    assert evaluate_recommendations([_mk_rec("q1", 0.5, 3, [])], [], metrics=["concept_coverage"]) == {
        "concept_coverage": 0.0
    }


def test_unknown_metric_raises():
    with pytest.raises(ValueError, match="Unsupported metric"):
        evaluate_recommendations([], [], metrics=["precision_at_k"])
