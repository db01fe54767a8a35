# ABOUTME: Makes the shared common package importable across the engine, scripts, and tests.
# ABOUTME: Re-exports schema types, boundary validation, and history helpers for convenience.

from .schemas import (
    AdaptiveSettings,
    CandidateQuestion,
    ConceptMastery,
    FeedbackRecord,
    PerformanceRecord,
    Priority,
    QuestionRecommendation,
    RecommendationRequest,
    RecommendationResponse,
    RecommendationType,
    SessionMetadata,
    SessionType,
    UserProfile,
)
from .features import build_performance_frame, build_mastery_frame
from .validation import InvalidRequestError, validate_request, validate_feedback
from .evaluation import evaluate_recommendations

__all__ = [
    "AdaptiveSettings",
    "CandidateQuestion",
    "ConceptMastery",
    "FeedbackRecord",
    "PerformanceRecord",
    "Priority",
    "QuestionRecommendation",
    "RecommendationRequest",
    "RecommendationResponse",
    "RecommendationType",
    "SessionMetadata",
    "SessionType",
    "UserProfile",
    "build_performance_frame",
    "build_mastery_frame",
    "InvalidRequestError",
    "validate_request",
    "validate_feedback",
    "evaluate_recommendations",
]
