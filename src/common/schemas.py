# ABOUTME: Defines canonical data structures shared by the practice recommendation engine.
# ABOUTME: Centralizes learner history, mastery, candidate, and response schema definitions.

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

QuestionId = Union[int, str]


class RecommendationType(str, Enum):
    """Pedagogical intent behind suggesting a question."""

    REVIEW = "review"
    ADVANCE = "advance"
    REINFORCE = "reinforce"
    CHALLENGE = "challenge"
    REMEDIATE = "remediate"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort weight: HIGH sorts before MEDIUM before LOW."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class SessionType(str, Enum):
    PRACTICE = "practice"
    ASSESSMENT = "assessment"
    REVIEW = "review"


@dataclass(frozen=True)
class PerformanceRecord:
    """A single answered question from the learner's history."""

    question_id: QuestionId
    category: str
    difficulty: int
    correct: bool
    time_spent: float
    timestamp: datetime
    concepts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ConceptMastery:
    """Externally estimated competence for one concept."""

    concept: str
    mastery: float
    confidence: float
    last_practiced: datetime
    practice_count: int = 0


@dataclass(frozen=True)
class UserProfile:
    id: QuestionId
    grade: str
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    learning_style: str = "Visual"
    performance_history: Tuple[PerformanceRecord, ...] = ()
    concept_mastery: Tuple[ConceptMastery, ...] = ()


@dataclass(frozen=True)
class CandidateQuestion:
    id: QuestionId
    category: str
    difficulty: int
    concepts: Tuple[str, ...] = ()
    grade: Optional[str] = None


@dataclass(frozen=True)
class RecommendationRequest:
    user_id: QuestionId
    session_type: Optional[SessionType] = None
    max_questions: int = 10
    target_difficulty: Optional[int] = None
    focus_concepts: Optional[Tuple[str, ...]] = None
    exclude_question_ids: Optional[Tuple[QuestionId, ...]] = None


@dataclass(frozen=True)
class QuestionRecommendation:
    question_id: QuestionId
    score: float
    reasoning: str
    category: str
    difficulty: int
    concepts: Tuple[str, ...]
    recommendation_type: RecommendationType
    priority: Priority


@dataclass(frozen=True)
class SessionMetadata:
    session_id: str
    user_id: QuestionId
    start_time: datetime
    estimated_duration: int
    target_concepts: Tuple[str, ...]
    difficulty_range: Tuple[int, int]


@dataclass(frozen=True)
class AdaptiveSettings:
    initial_difficulty: float
    difficulty_adjustment_rate: float
    mastery_threshold: float
    spaced_repetition_interval: int


@dataclass(frozen=True)
class RecommendationResponse:
    recommendations: Tuple[QuestionRecommendation, ...]
    session_metadata: SessionMetadata
    adaptive_settings: AdaptiveSettings

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view with enums as their values and timestamps as ISO strings."""
        return _plain(asdict(self))


@dataclass(frozen=True)
class FeedbackRecord:
    """Learner feedback on one recommended question."""

    session_id: str
    question_id: QuestionId
    correct: bool
    time_spent: float
    difficulty_rating: Optional[int] = None
    engagement_rating: Optional[int] = None


@dataclass
class LearningInsights:
    learning_trend: str
    strongest_concepts: List[str] = field(default_factory=list)
    emerging_strengths: List[str] = field(default_factory=list)
    persistent_challenges: List[str] = field(default_factory=list)
    recommended_focus: List[str] = field(default_factory=list)


@dataclass
class PerformanceTrends:
    accuracy_trend: str = "stable"
    difficulty_trend: str = "stable"
    speed_trend: str = "stable"
    engagement_trend: str = "stable"


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value
