# ABOUTME: Provides a CLI that plans a personalized practice session for one learner.
# ABOUTME: Renders recommendations, learner insights, and session evaluations as rich tables.

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.common.evaluation import evaluate_recommendations
from src.common.insights import generate_learning_insights, performance_trends
from src.common.schemas import Priority, QuestionRecommendation, RecommendationType
from src.common.validation import InvalidRequestError, validate_request
from src.practice_engine.config import DEFAULT_CONFIG, EngineConfig, load_engine_config
from src.practice_engine.export import export_recommendations, load_candidates, load_profile
from src.practice_engine.engine import RecommendationEngine

console = Console()
app = typer.Typer(help="Rank practice questions for a learner and plan the session.")

DEFAULT_CONFIG_PATH = Path("configs/practice_engine.yaml")
PRIORITY_COLORS = {"high": "red", "medium": "yellow", "low": "green"}


def _load_config(config_path: Optional[Path]) -> EngineConfig:
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return DEFAULT_CONFIG
        config_path = DEFAULT_CONFIG_PATH
    if not config_path.exists():
        console.print(f"[red]Missing engine config at {config_path}[/red]")
        raise typer.Exit(code=1)
    try:
        return load_engine_config(config_path)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def _question_ids(value: Optional[str]) -> Optional[list]:
    ids = _split(value)
    if ids is None:
        return None
    return [int(v) if v.isdigit() else v for v in ids]


def _recommendation_table(recs) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Question")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("Difficulty")
    table.add_column("Score")
    table.add_column("Reason")
    for rank, rec in enumerate(recs, start=1):
        color = PRIORITY_COLORS.get(rec.priority.value, "white")
        table.add_row(
            str(rank),
            str(rec.question_id),
            rec.recommendation_type.value,
            f"[{color}]{rec.priority.value}[/{color}]",
            str(rec.difficulty),
            f"{rec.score:.3f}",
            rec.reasoning,
        )
    return table


@app.command()
def recommend(
    profile_path: Path = typer.Option(..., "--profile", help="Learner profile JSON."),
    candidates_path: Path = typer.Option(..., "--candidates", help="Candidate questions (parquet or JSON list)."),
    max_questions: int = typer.Option(10, "--max-questions", help="Session size (1-50)."),
    session_type: str = typer.Option(None, "--session-type", help="practice, assessment, or review."),
    target_difficulty: int = typer.Option(None, "--target-difficulty", help="Requested difficulty (1-5)."),
    focus_concepts: str = typer.Option(None, "--focus-concepts", help="Comma-separated concepts to target."),
    exclude: str = typer.Option(None, "--exclude", help="Comma-separated question ids to skip."),
    config_path: Path = typer.Option(None, "--config", help="Engine config YAML."),
    output_dir: Path = typer.Option(None, "--output-dir", help="Also export parquet and markdown here."),
) -> None:
    """
    Rank candidate questions and print the planned session.
    """
    config = _load_config(config_path)
    profile = load_profile(profile_path)

    try:
        request = validate_request(
            {
                "user_id": profile.id,
                "max_questions": max_questions,
                "session_type": session_type,
                "target_difficulty": target_difficulty,
                "focus_concepts": _split(focus_concepts),
                "exclude_question_ids": _question_ids(exclude),
            }
        )
    except InvalidRequestError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if output_dir is not None:
        response = export_recommendations(profile_path, candidates_path, output_dir, request=request, config=config)
    else:
        candidates = load_candidates(candidates_path)
        response = RecommendationEngine(config).generate_recommendations(request, profile, candidates)

    meta = response.session_metadata
    settings = response.adaptive_settings
    console.rule("[bold blue]Practice Session[/bold blue]")
    console.print(f"[bold]Learner:[/] {meta.user_id}")
    console.print(f"[bold]Session:[/] {meta.session_id}")
    console.print(f"[bold]Target concepts:[/] {', '.join(meta.target_concepts) or '-'}")
    console.print(f"[bold]Difficulty range:[/] {meta.difficulty_range[0]}-{meta.difficulty_range[1]}")
    console.print(f"[bold]Estimated duration:[/] {meta.estimated_duration} min")
    console.print(
        f"[bold]Initial difficulty:[/] {settings.initial_difficulty:.2f} "
        f"(adjustment rate {settings.difficulty_adjustment_rate:.1f})"
    )
    console.print()

    if not response.recommendations:
        console.print("[yellow]No candidates to recommend.[/yellow]")
        return
    console.print(_recommendation_table(response.recommendations))


@app.command()
def insights(
    profile_path: Path = typer.Option(..., "--profile", help="Learner profile JSON."),
) -> None:
    """
    Summarize learning trend, strengths, challenges, and focus areas.
    """
    profile = load_profile(profile_path)
    summary = generate_learning_insights(profile)
    trends = performance_trends(profile)

    console.rule(f"[bold blue]Insights for {profile.id}[/bold blue]")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Signal")
    table.add_column("Value")
    table.add_row("Learning trend", summary.learning_trend)
    table.add_row("Strongest concepts", ", ".join(summary.strongest_concepts) or "-")
    table.add_row("Emerging strengths", ", ".join(summary.emerging_strengths) or "-")
    table.add_row("Persistent challenges", ", ".join(summary.persistent_challenges) or "-")
    table.add_row("Recommended focus", ", ".join(summary.recommended_focus) or "-")
    table.add_row("Accuracy trend", trends.accuracy_trend)
    table.add_row("Difficulty trend", trends.difficulty_trend)
    table.add_row("Speed trend", trends.speed_trend)
    console.print(table)


@app.command()
def evaluate(
    session_path: Path = typer.Option(..., "--session", help="JSON list of recommendations as delivered."),
    outcomes_path: Path = typer.Option(..., "--outcomes", help="Profile JSON whose history holds the outcomes."),
) -> None:
    """
    Score a delivered session against what the learner actually did.
    """
    with open(session_path) as f:
        rows = json.load(f)
    recs = [
        QuestionRecommendation(
            question_id=row["question_id"],
            score=float(row["score"]),
            reasoning=row.get("reasoning", ""),
            category=row.get("category", "general"),
            difficulty=int(row["difficulty"]),
            concepts=tuple(row.get("concepts") or ()),
            recommendation_type=RecommendationType(row["recommendation_type"]),
            priority=Priority(row["priority"]),
        )
        for row in rows
    ]
    outcomes = load_profile(outcomes_path).performance_history

    metrics = evaluate_recommendations(recs, outcomes)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric")
    table.add_column("Value")
    for name, value in metrics.items():
        table.add_row(name, f"{value:.3f}")
    console.print(table)


if __name__ == "__main__":
    app()
