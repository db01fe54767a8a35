# ABOUTME: Summarizes a learner's current state from performance history and concept mastery.
# ABOUTME: Produces accuracy, strengths, weaknesses, trend, engagement, velocity, and review needs.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence, Tuple

import pandas as pd

from src.common.features import (
    accuracy,
    build_performance_frame,
    days_since,
    identify_strengths,
    identify_weaknesses,
    mean_or,
)
from src.common.schemas import ConceptMastery, UserProfile

from .config import DEFAULT_CONFIG, EngineConfig


@dataclass(frozen=True)
class LearningState:
    """Compact learner summary consumed by the scorer and the session planner."""

    overall_accuracy: float
    concept_strengths: Tuple[str, ...]
    concept_weaknesses: Tuple[str, ...]
    # Not consumed by scoring or planning; kept for callers that report it.
    difficulty_trend: float
    engagement_level: float
    learning_velocity: float
    review_needs: Tuple[str, ...]


class LearningThresholds:
    TREND_WINDOW = 5
    MIN_VELOCITY_HISTORY = 10
    REVIEW_BASE_DAYS = 7


class LearningStateAnalyzer:
    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config

    def analyze(self, profile: UserProfile, as_of: datetime) -> LearningState:
        history = build_performance_frame(profile.performance_history)
        recent = history.head(self.config.recent_window)

        return LearningState(
            overall_accuracy=accuracy(recent),
            concept_strengths=identify_strengths(profile.concept_mastery),
            concept_weaknesses=identify_weaknesses(profile.concept_mastery),
            difficulty_trend=difficulty_trend(recent),
            engagement_level=self._engagement(recent),
            learning_velocity=self._velocity(history),
            review_needs=identify_review_needs(profile.concept_mastery, as_of),
        )

    def _engagement(self, recent: pd.DataFrame) -> float:
        """Bell-shaped score peaking when average time-on-task hits the optimum."""
        if recent.empty:
            return 0.5
        optimal = self.config.optimal_time_seconds
        avg_time = mean_or(recent, "time_spent")
        return max(0.0, 1 - abs(avg_time - optimal) / optimal)

    def _velocity(self, history: pd.DataFrame) -> float:
        if len(history) < LearningThresholds.MIN_VELOCITY_HISTORY:
            return 0.5
        window = self.config.recent_window
        recent = history.iloc[:window]
        older = history.iloc[window : 2 * window]
        return max(0.0, accuracy(recent) - accuracy(older))


def difficulty_trend(recent: pd.DataFrame) -> float:
    """Average difficulty of the latest five answers minus the five before them."""
    size = LearningThresholds.TREND_WINDOW
    if len(recent) < size:
        return 0.0
    latest = recent.iloc[:size]
    preceding = recent.iloc[size : 2 * size]
    if preceding.empty:
        return 0.0
    return mean_or(latest, "difficulty") - mean_or(preceding, "difficulty")


def identify_review_needs(masteries: Sequence[ConceptMastery], as_of: datetime) -> Tuple[str, ...]:
    """Concepts left unpractised longer than ``7 * (1 - mastery)`` days."""
    needs: List[str] = []
    for m in masteries:
        allowed_gap = LearningThresholds.REVIEW_BASE_DAYS * (1 - m.mastery)
        if days_since(as_of, m.last_practiced) > allowed_gap:
            needs.append(m.concept)
    return tuple(needs)
