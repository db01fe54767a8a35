# ABOUTME: Defines evaluation helpers for judging recommendations against observed outcomes.
# ABOUTME: Computes prediction accuracy, engagement, difficulty alignment, coverage, and AUC.

from typing import Dict, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score

from .schemas import PerformanceRecord, QuestionRecommendation

SUCCESS_SCORE = 0.6
OPTIMAL_TIME_SECONDS = 30.0

METRICS = (
    "accuracy_prediction",
    "engagement_prediction",
    "difficulty_alignment",
    "concept_coverage",
    "score_auc",
)


def engagement_score(time_spent: float, optimal_time: float = OPTIMAL_TIME_SECONDS) -> float:
    """Gaussian bump around the optimal time-on-task."""
    ratio = time_spent / optimal_time
    return float(np.exp(-((ratio - 1) ** 2) / 0.5))


def evaluate_recommendations(
    recommendations: Sequence[QuestionRecommendation],
    outcomes: Sequence[PerformanceRecord],
    metrics: Iterable[str] = METRICS,
) -> Mapping[str, float]:
    """
    Evaluate how well a recommended session matched what the learner did.

    Parameters
    ----------
    recommendations : Sequence[QuestionRecommendation]
        The session as it was recommended.
    outcomes : Sequence[PerformanceRecord]
        Observed answers, matched to recommendations by question id.
    metrics : Iterable[str]
        Any of ``METRICS``.
    """

    metrics = list(metrics)
    for metric in metrics:
        if metric not in METRICS:
            raise ValueError(f"Unsupported metric '{metric}'.")

    if not recommendations or not outcomes:
        return {metric: 0.0 for metric in metrics}

    by_id: Dict = {}
    for rec in recommendations:
        by_id.setdefault(rec.question_id, rec)

    rows = []
    for outcome in outcomes:
        rec = by_id.get(outcome.question_id)
        rows.append(
            {
                "correct": bool(outcome.correct),
                "time_spent": float(outcome.time_spent),
                "matched": rec is not None,
                "score": rec.score if rec is not None else np.nan,
                "rec_difficulty": float(rec.difficulty) if rec is not None else np.nan,
            }
        )
    df = pd.DataFrame(rows)
    matched = df[df["matched"]]

    results = {}
    for metric in metrics:
        if metric == "accuracy_prediction":
            hits = ((matched["score"] > SUCCESS_SCORE) == matched["correct"]).sum()
            results[metric] = float(hits) / len(df)
        elif metric == "engagement_prediction":
            engagement = df["time_spent"].apply(engagement_score).mean()
            results[metric] = float(min(1.0, engagement))
        elif metric == "difficulty_alignment":
            observed = (df["time_spent"] / OPTIMAL_TIME_SECONDS * 3).clip(1, 5)
            errors = (df["rec_difficulty"] - observed).abs().fillna(1.0)
            results[metric] = float(max(0.0, 1 - errors.mean() / 4))
        elif metric == "concept_coverage":
            results[metric] = _concept_coverage(recommendations, outcomes)
        elif metric == "score_auc":
            # roc_auc_score requires both classes; return 0.0 when degenerate.
            if matched.empty or matched["correct"].nunique() < 2:
                results[metric] = 0.0
            else:
                results[metric] = float(roc_auc_score(matched["correct"].astype(int), matched["score"]))

    return results


def _concept_coverage(
    recommendations: Sequence[QuestionRecommendation], outcomes: Sequence[PerformanceRecord]
) -> float:
    recommended = {c for rec in recommendations for c in rec.concepts}
    if not recommended:
        return 0.0
    practised = {c for outcome in outcomes for c in outcome.concepts}
    return len(recommended & practised) / len(recommended)
