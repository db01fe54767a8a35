# ABOUTME: Exposes the practice recommendation engine entrypoints.
# ABOUTME: Groups state analysis, scoring, selection, session planning, and exporters.

from .config import EngineConfig, ScoringWeights, load_engine_config
from .engine import RecommendationEngine, generate_recommendations
from .learning_state import LearningState, LearningStateAnalyzer
from .scoring import QuestionScorer, ScoredFactors
from .selection import RecommendationSelector
from .session import SessionPlanner

__all__ = [
    "EngineConfig",
    "ScoringWeights",
    "load_engine_config",
    "RecommendationEngine",
    "generate_recommendations",
    "LearningState",
    "LearningStateAnalyzer",
    "QuestionScorer",
    "ScoredFactors",
    "RecommendationSelector",
    "SessionPlanner",
]
