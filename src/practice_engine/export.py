# ABOUTME: Runs the practice engine over profile and candidate files and exports the session.
# ABOUTME: Writes parquet and markdown outputs consumed by reports and demos.

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from src.common.schemas import (
    CandidateQuestion,
    ConceptMastery,
    PerformanceRecord,
    RecommendationRequest,
    RecommendationResponse,
    UserProfile,
)
from src.common.features import as_utc, identify_strengths, identify_weaknesses

from .config import DEFAULT_CONFIG, EngineConfig, config_to_dict
from .engine import RecommendationEngine

RECOMMENDATION_COLUMNS = [
    "rank",
    "question_id",
    "score",
    "recommendation_type",
    "priority",
    "category",
    "difficulty",
    "concepts",
    "reasoning",
]


def _ts(value):
    return as_utc(pd.Timestamp(value).to_pydatetime())


def profile_from_dict(data: Mapping[str, Any]) -> UserProfile:
    """
    Build a UserProfile from its JSON form (snake_case keys, ISO timestamps).

    Missing or empty strengths and weaknesses are derived from the mastery records.
    """
    history = [
        PerformanceRecord(
            question_id=row["question_id"],
            category=row.get("category", "general"),
            difficulty=int(row["difficulty"]),
            correct=bool(row["correct"]),
            time_spent=float(row.get("time_spent", 0.0)),
            timestamp=_ts(row["timestamp"]),
            concepts=tuple(row.get("concepts") or ()),
        )
        for row in data.get("performance_history", [])
    ]
    masteries = [
        ConceptMastery(
            concept=row["concept"],
            mastery=float(row["mastery"]),
            confidence=float(row.get("confidence", 0.5)),
            last_practiced=_ts(row["last_practiced"]),
            practice_count=int(row.get("practice_count", 0)),
        )
        for row in data.get("concept_mastery", [])
    ]
    return UserProfile(
        id=data["id"],
        grade=str(data.get("grade", "K")),
        strengths=tuple(data.get("strengths") or ()) or identify_strengths(masteries),
        weaknesses=tuple(data.get("weaknesses") or ()) or identify_weaknesses(masteries),
        learning_style=data.get("learning_style", "Visual"),
        performance_history=tuple(history),
        concept_mastery=tuple(masteries),
    )


def candidates_from_frame(df: pd.DataFrame) -> List[CandidateQuestion]:
    candidates = []
    for _, row in df.iterrows():
        concepts = row.get("concepts")
        if isinstance(concepts, str):
            concepts = [c.strip() for c in concepts.split(",") if c.strip()]
        elif concepts is None or (isinstance(concepts, float) and pd.isna(concepts)):
            concepts = []
        grade = row.get("grade")
        question_id = row["id"]
        if hasattr(question_id, "item"):
            question_id = question_id.item()
        candidates.append(
            CandidateQuestion(
                id=question_id,
                category=str(row.get("category", "general")),
                difficulty=int(row["difficulty"]),
                concepts=tuple(str(c) for c in concepts),
                grade=None if grade is None or pd.isna(grade) else str(grade),
            )
        )
    return candidates


def load_profile(profile_path: Path) -> UserProfile:
    with open(profile_path) as f:
        return profile_from_dict(json.load(f))


def load_candidates(candidates_path: Path) -> List[CandidateQuestion]:
    """Read candidates from a parquet file or a JSON list of objects."""
    if candidates_path.suffix == ".parquet":
        df = pd.read_parquet(candidates_path)
    else:
        with open(candidates_path) as f:
            df = pd.DataFrame(json.load(f))
    if df.empty:
        return []
    return candidates_from_frame(df)


def recommendations_frame(response: RecommendationResponse) -> pd.DataFrame:
    rows = [
        {
            "rank": rank,
            "question_id": str(rec.question_id),
            "score": rec.score,
            "recommendation_type": rec.recommendation_type.value,
            "priority": rec.priority.value,
            "category": rec.category,
            "difficulty": rec.difficulty,
            "concepts": list(rec.concepts),
            "reasoning": rec.reasoning,
        }
        for rank, rec in enumerate(response.recommendations, start=1)
    ]
    return pd.DataFrame(rows, columns=RECOMMENDATION_COLUMNS)


def export_recommendations(
    profile_path: Path,
    candidates_path: Path,
    output_dir: Path,
    request: Optional[RecommendationRequest] = None,
    config: EngineConfig = DEFAULT_CONFIG,
    as_of=None,
) -> RecommendationResponse:
    """
    Generate a session for one learner and export it.

    Args:
        profile_path: JSON file holding the learner profile
        candidates_path: Parquet or JSON file holding candidate questions
        output_dir: Directory to write output artifacts
        request: Optional request; defaults to the engine's default session size
        config: Engine configuration
        as_of: Optional reference time for elapsed-time calculations
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"[practice-export] Loading profile from {profile_path}")
    profile = load_profile(profile_path)
    print(f"[practice-export] Loading candidates from {candidates_path}")
    candidates = load_candidates(candidates_path)
    print(f"[practice-export] {len(candidates)} candidates, {len(profile.performance_history)} history records")

    if request is None:
        request = RecommendationRequest(user_id=profile.id, max_questions=config.default_max_questions)

    engine = RecommendationEngine(config)
    response = engine.generate_recommendations(request, profile, candidates, as_of=as_of)

    recs_df = recommendations_frame(response)
    recs_path = output_dir / "recommendations.parquet"
    recs_df.to_parquet(recs_path, index=False)
    print(f"✅ Exported {len(recs_df)} recommendations to {recs_path}")

    summary_path = output_dir / "session_summary.md"
    _write_session_summary(response, recs_df, config, summary_path)
    print(f"✅ Exported session summary to {summary_path}")

    return response


def _write_session_summary(
    response: RecommendationResponse,
    recs_df: pd.DataFrame,
    config: EngineConfig,
    output_path: Path,
) -> None:
    """Generate markdown report summarizing the planned session."""
    meta = response.session_metadata
    settings = response.adaptive_settings
    weights: Dict[str, float] = config_to_dict(config)["weights"]

    with open(output_path, "w") as f:
        f.write("# Practice Session Summary\n\n")
        f.write(f"- Session: {meta.session_id}\n")
        f.write(f"- Learner: {meta.user_id}\n")
        f.write(f"- Start: {meta.start_time.isoformat()}\n")
        f.write(f"- Estimated duration: {meta.estimated_duration} minutes\n")
        f.write(f"- Target concepts: {', '.join(meta.target_concepts) or 'none'}\n")
        f.write(f"- Difficulty range: {meta.difficulty_range[0]}-{meta.difficulty_range[1]}\n\n")

        f.write("## Adaptive Settings\n\n")
        f.write(f"- Initial difficulty: {settings.initial_difficulty:.2f}\n")
        f.write(f"- Adjustment rate: {settings.difficulty_adjustment_rate:.2f}\n")
        f.write(f"- Mastery threshold: {settings.mastery_threshold:.2f}\n")
        f.write(f"- Spaced repetition interval: {settings.spaced_repetition_interval} days\n\n")

        f.write("## Scoring Weights\n\n")
        for name, value in weights.items():
            f.write(f"- {name}: {value:.2f}\n")
        f.write("\n")

        if recs_df.empty:
            f.write("No recommendations: the candidate pool was empty.\n")
            return

        f.write("## Recommendation Mix\n\n")
        for rec_type, count in recs_df["recommendation_type"].value_counts().items():
            f.write(f"- {rec_type}: {count}\n")
        for priority, count in recs_df["priority"].value_counts().items():
            f.write(f"- priority {priority}: {count}\n")

        f.write("\n## Ranked Questions\n\n")
        f.write("| rank | question_id | type | priority | difficulty | score |\n")
        f.write("|------|-------------|------|----------|------------|-------|\n")
        for _, row in recs_df.iterrows():
            f.write(
                f"| {row['rank']} | {row['question_id']} | {row['recommendation_type']} | "
                f"{row['priority']} | {row['difficulty']} | {row['score']:.3f} |\n"
            )
        f.write("\n")
