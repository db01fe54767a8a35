# ABOUTME: Generates learner insights and performance trend directions from recent history.
# ABOUTME: Surfaces strongest concepts, emerging strengths, persistent challenges, and focus areas.

from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd

from .features import accuracy, build_performance_frame, mean_or, parse_grade
from .schemas import ConceptMastery, LearningInsights, PerformanceTrends, UserProfile

TREND_DELTA = 0.1
RECENT_RECORDS = 20

CONCEPTS_BY_GRADE: Dict[int, List[str]] = {
    0: ["counting", "number_recognition", "basic_shapes"],
    1: ["addition", "subtraction", "place_value", "time"],
    2: ["multiplication", "division", "fractions_intro", "measurement"],
    3: ["fractions", "decimals", "area_perimeter", "data_analysis"],
    4: ["long_division", "equivalent_fractions", "angles", "patterns"],
    5: ["decimals_operations", "ratios", "coordinate_plane", "volume"],
    6: ["percentages", "negative_numbers", "expressions", "statistics"],
}


def trend_direction(difference: float) -> str:
    if difference > TREND_DELTA:
        return "improving"
    if difference < -TREND_DELTA:
        return "declining"
    return "stable"


def grade_appropriate_concepts(grade: str) -> List[str]:
    level = min(6, max(0, parse_grade(grade)))
    return CONCEPTS_BY_GRADE[level]


def _concept_mask(frame: pd.DataFrame, concept: str) -> pd.Series:
    return frame["concepts"].apply(lambda concepts: concept in concepts)


def analyze_learning_trend(frame: pd.DataFrame) -> str:
    if len(frame) < 5:
        return "insufficient_data"
    latest = frame.iloc[:5]
    older = frame.iloc[5:10]
    latest_accuracy = accuracy(latest)
    older_accuracy = accuracy(older) if not older.empty else latest_accuracy
    return trend_direction(latest_accuracy - older_accuracy)


def identify_strongest_concepts(masteries: Sequence[ConceptMastery]) -> List[str]:
    strong = [m for m in masteries if m.mastery > 0.8 and m.confidence > 0.7]
    strong.sort(key=lambda m: m.mastery, reverse=True)
    return [m.concept for m in strong[:3]]


def identify_emerging_strengths(frame: pd.DataFrame, masteries: Sequence[ConceptMastery]) -> List[str]:
    """Concepts whose latest attempts run well ahead of their stored mastery."""
    latest = frame.iloc[:10]
    if latest.empty:
        return []

    exploded = latest[["concepts", "correct"]].explode("concepts").dropna(subset=["concepts"])
    stored = {m.concept: m.mastery for m in masteries}

    emerging = []
    for concept, group in exploded.groupby("concepts", sort=False):
        if len(group) < 3:
            continue
        recent_accuracy = float(group["correct"].iloc[:3].astype(float).mean())
        if recent_accuracy > 0.8 and recent_accuracy > stored.get(concept, 0.5) + 0.2:
            emerging.append(concept)
    return emerging


def identify_persistent_challenges(frame: pd.DataFrame, masteries: Sequence[ConceptMastery]) -> List[str]:
    challenges = []
    if frame.empty:
        return challenges
    for m in masteries:
        if m.mastery >= 0.5:
            continue
        attempts = frame[_concept_mask(frame, m.concept)].iloc[:5]
        if len(attempts) >= 2 and accuracy(attempts) < 0.6:
            challenges.append(m.concept)
    return challenges


def recommend_focus_areas(profile: UserProfile, frame: pd.DataFrame) -> List[str]:
    focus = identify_persistent_challenges(frame, profile.concept_mastery)[:2]

    ready = [m for m in profile.concept_mastery if 0.7 < m.mastery < 0.9]
    ready.sort(key=lambda m: m.mastery, reverse=True)
    focus.extend(m.concept for m in ready[:2])

    known = {m.concept for m in profile.concept_mastery}
    new_concepts = [c for c in grade_appropriate_concepts(profile.grade) if c not in known]
    focus.extend(new_concepts[:1])

    return list(dict.fromkeys(focus))[:5]


def generate_learning_insights(profile: UserProfile) -> LearningInsights:
    frame = build_performance_frame(profile.performance_history).head(RECENT_RECORDS)
    return LearningInsights(
        learning_trend=analyze_learning_trend(frame),
        strongest_concepts=identify_strongest_concepts(profile.concept_mastery),
        emerging_strengths=identify_emerging_strengths(frame, profile.concept_mastery),
        persistent_challenges=identify_persistent_challenges(frame, profile.concept_mastery),
        recommended_focus=recommend_focus_areas(profile, frame),
    )


def performance_trends(profile: UserProfile) -> PerformanceTrends:
    """Compare the latest ten answers against the ten before them."""
    frame = build_performance_frame(profile.performance_history)
    if frame.empty:
        return PerformanceTrends()

    recent = frame.iloc[:10]
    older = frame.iloc[10:20]

    recent_accuracy = accuracy(recent)
    older_accuracy = accuracy(older, default=recent_accuracy)
    recent_difficulty = mean_or(recent, "difficulty")
    older_difficulty = mean_or(older, "difficulty", default=recent_difficulty)
    recent_time = mean_or(recent, "time_spent")
    older_time = mean_or(older, "time_spent", default=recent_time)

    return PerformanceTrends(
        accuracy_trend=trend_direction(recent_accuracy - older_accuracy),
        difficulty_trend=trend_direction(recent_difficulty - older_difficulty),
        # Less time per answer counts as improvement.
        speed_trend=trend_direction(older_time - recent_time),
        engagement_trend="stable",
    )
