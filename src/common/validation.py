# ABOUTME: Validates raw recommendation and feedback payloads at the service boundary.
# ABOUTME: Defines the invalid-request error kind raised for out-of-contract inputs.

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from .schemas import FeedbackRecord, RecommendationRequest, SessionType

MAX_QUESTIONS_LIMIT = 50
DEFAULT_MAX_QUESTIONS = 10
DIFFICULTY_RANGE = (1, 5)
RATING_RANGE = (1, 5)


class InvalidRequestError(ValueError):
    """Raised when a request falls outside the documented input contract."""

    def __init__(self, message: str, details: Optional[List[str]] = None):
        self.details = list(details or [])
        if self.details:
            message = f"{message}: {'; '.join(self.details)}"
        super().__init__(message)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_range(name: str, value: Any, low: int, high: int, problems: List[str]) -> None:
    if not _is_int(value):
        problems.append(f"{name} must be an integer, got {value!r}")
    elif not low <= value <= high:
        problems.append(f"{name} must be between {low} and {high}, got {value}")


def _string_list(name: str, value: Any, problems: List[str]) -> Optional[tuple]:
    if value is None:
        return None
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        problems.append(f"{name} must be a list of strings")
        return None
    if not all(isinstance(v, str) for v in value):
        problems.append(f"{name} must contain only strings")
        return None
    return tuple(value)


def validate_request(payload: Mapping[str, Any]) -> RecommendationRequest:
    """
    Validate a raw recommendation request and build a RecommendationRequest.

    Every problem is collected before raising so callers can report them all.
    """

    problems: List[str] = []

    user_id = payload.get("user_id")
    if user_id is None or user_id == "":
        problems.append("user_id is required")

    max_questions = payload.get("max_questions")
    if max_questions is None:
        max_questions = DEFAULT_MAX_QUESTIONS
    else:
        _check_range("max_questions", max_questions, 1, MAX_QUESTIONS_LIMIT, problems)

    target_difficulty = payload.get("target_difficulty")
    if target_difficulty is not None:
        _check_range("target_difficulty", target_difficulty, *DIFFICULTY_RANGE, problems)

    session_type = payload.get("session_type")
    if session_type is not None:
        try:
            session_type = SessionType(session_type)
        except ValueError:
            allowed = ", ".join(t.value for t in SessionType)
            problems.append(f"session_type must be one of: {allowed}; got {session_type!r}")

    focus_concepts = _string_list("focus_concepts", payload.get("focus_concepts"), problems)

    exclude_ids = payload.get("exclude_question_ids")
    if exclude_ids is not None:
        if isinstance(exclude_ids, str) or not isinstance(exclude_ids, (list, tuple)):
            problems.append("exclude_question_ids must be a list")
            exclude_ids = None
        else:
            exclude_ids = tuple(exclude_ids)

    if problems:
        raise InvalidRequestError("Invalid request parameters", problems)

    return RecommendationRequest(
        user_id=user_id,
        session_type=session_type,
        max_questions=max_questions,
        target_difficulty=target_difficulty,
        focus_concepts=focus_concepts,
        exclude_question_ids=exclude_ids,
    )


def validate_feedback(payload: Mapping[str, Any]) -> FeedbackRecord:
    problems: List[str] = []

    session_id = payload.get("session_id")
    if not isinstance(session_id, str) or not session_id:
        problems.append("session_id must be a non-empty string")

    question_id = payload.get("question_id")
    if question_id is None:
        problems.append("question_id is required")

    correct = payload.get("correct")
    if not isinstance(correct, bool):
        problems.append("correct must be a boolean")

    time_spent = payload.get("time_spent")
    if isinstance(time_spent, bool) or not isinstance(time_spent, (int, float)):
        problems.append("time_spent must be a number")
    elif time_spent < 0:
        problems.append("time_spent must be >= 0")

    for name in ("difficulty_rating", "engagement_rating"):
        if payload.get(name) is not None:
            _check_range(name, payload[name], *RATING_RANGE, problems)

    if problems:
        raise InvalidRequestError("Invalid feedback data", problems)

    return FeedbackRecord(
        session_id=session_id,
        question_id=question_id,
        correct=correct,
        time_spent=float(time_spent),
        difficulty_rating=payload.get("difficulty_rating"),
        engagement_rating=payload.get("engagement_rating"),
    )
