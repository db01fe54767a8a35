# ABOUTME: Builds learner profiles from stored module sessions and analytics mastery data.
# ABOUTME: Normalizes mastery scales and maps practice modules to categories and concepts.

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .features import as_utc, clamp, identify_strengths, identify_weaknesses, parse_grade
from .schemas import ConceptMastery, PerformanceRecord, UserProfile

MODULE_CATEGORIES = {
    "math_rush_addition": "addition",
    "math_rush_multiplication": "multiplication",
    "math_facts_addition": "addition",
    "math_facts_subtraction": "subtraction",
    "math_facts_multiplication": "multiplication",
    "math_facts_division": "division",
    "fractions_puzzle": "fractions",
    "decimal_defender": "decimals",
    "ratios_proportions": "ratios",
    "measurement_mastery": "measurement",
    "algebra": "algebra",
}

MODULE_CONCEPTS = {
    "math_rush_addition": ("addition", "basic_arithmetic", "mental_math"),
    "math_rush_multiplication": ("multiplication", "basic_arithmetic", "mental_math"),
    "math_facts_addition": ("addition", "fact_fluency"),
    "math_facts_subtraction": ("subtraction", "fact_fluency"),
    "math_facts_multiplication": ("multiplication", "fact_fluency"),
    "math_facts_division": ("division", "fact_fluency"),
    "fractions_puzzle": ("fractions", "parts_and_wholes", "equivalent_fractions"),
    "decimal_defender": ("decimals", "place_value", "decimal_operations"),
    "ratios_proportions": ("ratios", "proportions", "scaling"),
    "measurement_mastery": ("measurement", "units", "conversions"),
    "algebra": ("algebra", "variables", "equations", "expressions"),
}

MODULE_BASE_DIFFICULTY = {
    "math_rush_addition": 1,
    "math_rush_multiplication": 2,
    "math_facts_addition": 1,
    "math_facts_subtraction": 1,
    "math_facts_multiplication": 2,
    "math_facts_division": 3,
    "fractions_puzzle": 3,
    "decimal_defender": 4,
    "ratios_proportions": 4,
    "measurement_mastery": 3,
    "algebra": 5,
}

STRENGTH_DEFAULTS = {"mastery": 0.8, "confidence": 0.7, "practice_count": 5}
WEAKNESS_DEFAULTS = {"mastery": 0.3, "confidence": 0.6, "practice_count": 2}


def normalize_mastery(score: float) -> float:
    """Map 1-, 5-, 10- and 100-point scores onto [0, 1]."""
    score = float(score)
    if score <= 1:
        return max(0.0, score)
    if score <= 5:
        return score / 5
    if score <= 10:
        return score / 10
    return min(1.0, score / 100)


def infer_difficulty(module_name: str, grade: str) -> int:
    base = MODULE_BASE_DIFFICULTY.get(module_name, 2)
    return int(clamp(base + parse_grade(grade) // 2 - 1, 1, 5))


def _timestamp(value: Any, fallback: Optional[datetime] = None) -> datetime:
    if value is None:
        if fallback is None:
            raise ValueError("Timestamp missing and no fallback available.")
        return fallback
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(pd.Timestamp(value).to_pydatetime())


def records_from_module_history(sessions: Iterable[Mapping[str, Any]], grade: str) -> List[PerformanceRecord]:
    """Expand module-session summaries into one record per question, newest first."""
    records: List[PerformanceRecord] = []
    for session in sessions:
        total = int(session.get("questions_total") or 0)
        if total <= 0:
            continue
        module = session.get("module_name", "")
        correct = int(session.get("questions_correct") or 0)
        completed_at = _timestamp(session.get("completed_at"))
        difficulty = session.get("difficulty_level") or infer_difficulty(module, grade)
        per_question = float(session.get("time_spent_seconds") or 0) / total

        for i in range(total):
            records.append(
                PerformanceRecord(
                    question_id=int(session["id"]) * 1000 + i,
                    category=MODULE_CATEGORIES.get(module, "general"),
                    difficulty=int(difficulty),
                    correct=i < correct,
                    time_spent=per_question,
                    timestamp=completed_at,
                    concepts=MODULE_CONCEPTS.get(module, ("general_math",)),
                )
            )

    # Stable: questions from one session keep their order.
    records.sort(key=lambda r: r.timestamp, reverse=True)
    return records


def masteries_from_analytics(
    analytics: Optional[Mapping[str, Mapping[str, Any]]],
    last_active: datetime,
    strength_concepts: Iterable[str] = (),
    weakness_concepts: Iterable[str] = (),
) -> List[ConceptMastery]:
    masteries: Dict[str, ConceptMastery] = {}
    for concept, data in (analytics or {}).items():
        raw = data.get("weighted_score") or data.get("score") or 0
        masteries[concept] = ConceptMastery(
            concept=concept,
            mastery=normalize_mastery(raw),
            confidence=float(data.get("confidence") or 0.5),
            last_practiced=_timestamp(data.get("last_practiced"), last_active),
            practice_count=int(data.get("practice_count") or 1),
        )

    for concepts, defaults in ((strength_concepts, STRENGTH_DEFAULTS), (weakness_concepts, WEAKNESS_DEFAULTS)):
        for concept in concepts:
            if concept in masteries:
                continue
            masteries[concept] = ConceptMastery(concept=concept, last_practiced=last_active, **defaults)

    return list(masteries.values())


def build_user_profile(
    user: Mapping[str, Any],
    analytics: Optional[Mapping[str, Mapping[str, Any]]] = None,
    module_history: Iterable[Mapping[str, Any]] = (),
) -> UserProfile:
    """
    Build a UserProfile from stored user, analytics, and module-session data.

    Strengths and weaknesses fall back to those derived from the mastery set
    when the user record lists none.
    """
    grade = str(user.get("grade") or "K")
    last_active = _timestamp(user.get("last_active"), fallback=_timestamp("1970-01-01T00:00:00Z"))
    strengths = tuple(user.get("strength_concepts") or ())
    weaknesses = tuple(user.get("weakness_concepts") or ())

    masteries = masteries_from_analytics(analytics, last_active, strengths, weaknesses)
    history = records_from_module_history(module_history, grade)

    return UserProfile(
        id=user["id"],
        grade=grade,
        strengths=strengths or identify_strengths(masteries),
        weaknesses=weaknesses or identify_weaknesses(masteries),
        learning_style=user.get("learning_style") or "Visual",
        performance_history=tuple(history),
        concept_mastery=tuple(masteries),
    )
