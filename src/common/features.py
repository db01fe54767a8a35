# ABOUTME: Declares reusable feature builders operating on learner history records.
# ABOUTME: Provides frame conversion plus time, grade, and clamping helpers for the engine.

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

import pandas as pd

from .schemas import ConceptMastery, PerformanceRecord

PERFORMANCE_COLUMNS = [
    "question_id",
    "category",
    "difficulty",
    "correct",
    "time_spent",
    "timestamp",
    "concepts",
]
MASTERY_COLUMNS = ["concept", "mastery", "confidence", "last_practiced", "practice_count"]

SECONDS_PER_DAY = 60 * 60 * 24
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def as_utc(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC so aware and naive inputs compare cleanly."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def days_since(as_of: datetime, ts: datetime) -> float:
    return (as_utc(as_of) - as_utc(ts)).total_seconds() / SECONDS_PER_DAY


def parse_grade(grade, default: int = 1) -> int:
    """
    Parse a grade label into an integer using its leading digits.

    "3" and "3rd" both give 3; labels without leading digits such as "K"
    fall back to ``default``.
    """
    if grade is None:
        return default
    if isinstance(grade, bool):
        return default
    if isinstance(grade, int):
        return grade
    match = _LEADING_INT.match(str(grade))
    if not match:
        return default
    return int(match.group(1))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def build_performance_frame(records: Iterable[PerformanceRecord]) -> pd.DataFrame:
    """
    Convert performance records into a most-recent-first DataFrame.

    Ties on timestamp keep their input order so downstream windows stay
    deterministic.
    """

    rows = [
        {
            "question_id": record.question_id,
            "category": record.category,
            "difficulty": float(record.difficulty),
            "correct": bool(record.correct),
            "time_spent": float(record.time_spent),
            "timestamp": as_utc(record.timestamp),
            "concepts": list(record.concepts),
        }
        for record in records
    ]

    if not rows:
        return pd.DataFrame(columns=PERFORMANCE_COLUMNS)

    df = pd.DataFrame(rows, columns=PERFORMANCE_COLUMNS)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df = df.sort_values("timestamp", ascending=False, kind="mergesort")
    return df.reset_index(drop=True)


def build_mastery_frame(masteries: Iterable[ConceptMastery]) -> pd.DataFrame:
    rows = [
        {
            "concept": m.concept,
            "mastery": float(m.mastery),
            "confidence": float(m.confidence),
            "last_practiced": as_utc(m.last_practiced),
            "practice_count": int(m.practice_count),
        }
        for m in masteries
    ]
    if not rows:
        return pd.DataFrame(columns=MASTERY_COLUMNS)
    df = pd.DataFrame(rows, columns=MASTERY_COLUMNS)
    df["last_practiced"] = pd.to_datetime(df["last_practiced"], utc=True)
    return df


def accuracy(frame: pd.DataFrame, default: float = 0.5) -> float:
    """Fraction of correct answers in ``frame``; ``default`` when empty."""
    if frame.empty:
        return default
    return float(frame["correct"].astype(float).mean())


def mean_or(frame: pd.DataFrame, column: str, default: Optional[float] = None) -> Optional[float]:
    if frame.empty:
        return default
    return float(frame[column].astype(float).mean())


STRENGTH_MASTERY = 0.75
WEAKNESS_MASTERY = 0.5
TOP_CONCEPTS = 5


def identify_strengths(masteries: Iterable[ConceptMastery]) -> Tuple[str, ...]:
    strong = [m for m in masteries if m.mastery > STRENGTH_MASTERY]
    strong.sort(key=lambda m: m.mastery, reverse=True)
    return tuple(m.concept for m in strong[:TOP_CONCEPTS])


def identify_weaknesses(masteries: Iterable[ConceptMastery]) -> Tuple[str, ...]:
    weak = [m for m in masteries if m.mastery < WEAKNESS_MASTERY]
    weak.sort(key=lambda m: m.mastery)
    return tuple(m.concept for m in weak[:TOP_CONCEPTS])
