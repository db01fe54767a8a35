# ABOUTME: Derives adaptive session parameters and session metadata from a learner's state.
# ABOUTME: Sets starting difficulty, adjustment rate, target concepts, and duration estimates.

from __future__ import annotations

from datetime import datetime

from src.common.features import as_utc, clamp, parse_grade
from src.common.schemas import AdaptiveSettings, RecommendationRequest, SessionMetadata, UserProfile

from .config import DEFAULT_CONFIG, EngineConfig
from .learning_state import LearningState

FAST_ADJUSTMENT_RATE = 0.3
SLOW_ADJUSTMENT_RATE = 0.1
VELOCITY_THRESHOLD = 0.1
TARGET_CONCEPT_COUNT = 3


def make_session_id(user_id, as_of: datetime) -> str:
    millis = int(as_utc(as_of).timestamp() * 1000)
    return f"session_{millis}_{user_id}"


class SessionPlanner:
    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config

    def adaptive_settings(self, profile: UserProfile, state: LearningState) -> AdaptiveSettings:
        grade = parse_grade(profile.grade)
        rate = FAST_ADJUSTMENT_RATE if state.learning_velocity > VELOCITY_THRESHOLD else SLOW_ADJUSTMENT_RATE
        return AdaptiveSettings(
            initial_difficulty=clamp(grade + (state.overall_accuracy - 0.7), 1, 5),
            difficulty_adjustment_rate=rate,
            mastery_threshold=self.config.mastery_threshold,
            spaced_repetition_interval=self.config.spaced_repetition_interval_days,
        )

    def session_metadata(
        self,
        request: RecommendationRequest,
        profile: UserProfile,
        max_questions: int,
        as_of: datetime,
    ) -> SessionMetadata:
        """
        Build metadata for one session.

        ``max_questions`` is the engine's effective session size; the session
        id is derived from the user and ``as_of`` so repeated calls with the
        same inputs agree.
        """
        grade = parse_grade(profile.grade)
        if request.focus_concepts is not None:
            targets = tuple(request.focus_concepts)
        else:
            targets = tuple(profile.weaknesses[:TARGET_CONCEPT_COUNT])

        return SessionMetadata(
            session_id=make_session_id(profile.id, as_of),
            user_id=profile.id,
            start_time=as_utc(as_of),
            estimated_duration=max_questions * self.config.minutes_per_question,
            target_concepts=targets,
            difficulty_range=(1, int(clamp(grade + 2, 1, 5))),
        )
