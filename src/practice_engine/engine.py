# ABOUTME: Orchestrates state analysis, scoring, selection, and session planning.
# ABOUTME: Exposes the single generate_recommendations entrypoint of the practice engine.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from src.common.schemas import (
    CandidateQuestion,
    RecommendationRequest,
    RecommendationResponse,
    UserProfile,
)
from src.common.validation import InvalidRequestError

from .config import DEFAULT_CONFIG, EngineConfig
from .learning_state import LearningStateAnalyzer
from .scoring import QuestionScorer
from .selection import RecommendationSelector
from .session import SessionPlanner


class RecommendationEngine:
    """
    Stateless recommendation pipeline.

    Algorithm:
    1. Summarize the learner (accuracy, strengths, velocity, review needs)
    2. Score each distinct, non-excluded candidate on mastery, difficulty fit,
       novelty, and spaced-repetition due-ness
    3. Select a type-diverse subset ordered by priority and difficulty
    4. Derive adaptive settings and session metadata

    Instances hold only immutable configuration, so one engine can serve
    concurrent requests.
    """

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config
        self.analyzer = LearningStateAnalyzer(config)
        self.scorer = QuestionScorer(config)
        self.selector = RecommendationSelector()
        self.planner = SessionPlanner(config)

    def effective_max_questions(self, request: RecommendationRequest) -> int:
        max_questions = request.max_questions
        if max_questions is None:
            return self.config.default_max_questions
        if isinstance(max_questions, bool) or not isinstance(max_questions, int) or max_questions <= 0:
            raise InvalidRequestError(
                "Invalid request", [f"max_questions must be a positive integer, got {max_questions!r}"]
            )
        return min(max_questions, self.config.max_questions_limit)

    def generate_recommendations(
        self,
        request: RecommendationRequest,
        profile: UserProfile,
        candidates: Iterable[CandidateQuestion],
        as_of: Optional[datetime] = None,
    ) -> RecommendationResponse:
        """
        Rank ``candidates`` for ``profile`` and plan the session.

        ``as_of`` anchors every elapsed-time calculation and the session
        metadata; pass it explicitly for reproducible output. It defaults to
        the current UTC time.
        """
        max_questions = self.effective_max_questions(request)
        if as_of is None:
            as_of = datetime.now(timezone.utc)

        pool = _distinct_candidates(candidates, request.exclude_question_ids or ())
        state = self.analyzer.analyze(profile, as_of)
        scored = self.scorer.score(pool, profile, state, as_of)
        recommendations = self.selector.select(scored, max_questions)

        return RecommendationResponse(
            recommendations=tuple(recommendations),
            session_metadata=self.planner.session_metadata(request, profile, max_questions, as_of),
            adaptive_settings=self.planner.adaptive_settings(profile, state),
        )


def _distinct_candidates(candidates: Iterable[CandidateQuestion], excluded) -> List[CandidateQuestion]:
    """First occurrence of each question id wins; excluded ids are dropped."""
    skip = set(excluded)
    seen = set()
    pool = []
    for question in candidates:
        if question.id in skip or question.id in seen:
            continue
        seen.add(question.id)
        pool.append(question)
    return pool


def generate_recommendations(
    request: RecommendationRequest,
    profile: UserProfile,
    candidates: Iterable[CandidateQuestion],
    as_of: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RecommendationResponse:
    """Convenience wrapper around a default-configured RecommendationEngine."""
    return RecommendationEngine(config).generate_recommendations(request, profile, candidates, as_of)
