# ABOUTME: Verifies the session CLI exposes recommend, insights, and evaluate commands.
# ABOUTME: Runs the commands through Typer's runner against small JSON fixtures.

import json

from typer.testing import CliRunner

from scripts import recommend_session

runner = CliRunner()

PROFILE = {
    "id": "learner-5",
    "grade": "2",
    "performance_history": [
        {
            "question_id": "q1",
            "difficulty": 2,
            "correct": True,
            "time_spent": 30,
            "timestamp": "2024-02-20T09:00:00Z",
            "concepts": ["addition"],
        }
    ],
    "concept_mastery": [
        {"concept": "addition", "mastery": 0.6, "last_practiced": "2024-02-20T09:00:00Z", "practice_count": 1}
    ],
}


def _write(tmp_path):
    profile_path = tmp_path / "profile.json"
    candidates_path = tmp_path / "candidates.json"
    profile_path.write_text(json.dumps(PROFILE))
    candidates_path.write_text(
        json.dumps([{"id": f"c{i}", "category": "math", "difficulty": 1 + i % 3, "concepts": ["addition"]} for i in range(4)])
    )
    return profile_path, candidates_path


def test_cli_has_session_commands():
    app = recommend_session.app
    command_names = {cmd.name or cmd.callback.__name__ for cmd in app.registered_commands}
    assert {"recommend", "insights", "evaluate"} <= command_names


def test_recommend_prints_session(tmp_path):
    profile_path, candidates_path = _write(tmp_path)

    result = runner.invoke(
        recommend_session.app,
        ["recommend", "--profile", str(profile_path), "--candidates", str(candidates_path), "--max-questions", "3"],
    )

    assert result.exit_code == 0, result.output
    assert "learner-5" in result.output


def test_recommend_rejects_bad_session_size(tmp_path):
    profile_path, candidates_path = _write(tmp_path)

    result = runner.invoke(
        recommend_session.app,
        ["recommend", "--profile", str(profile_path), "--candidates", str(candidates_path), "--max-questions", "0"],
    )

    assert result.exit_code == 1


def test_insights_command_runs(tmp_path):
    profile_path, _ = _write(tmp_path)

    result = runner.invoke(recommend_session.app, ["insights", "--profile", str(profile_path)])

    assert result.exit_code == 0, result.output
    assert "insufficient_data" in result.output
