"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(*args: str, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m ielts_center.cli.main'
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    env = {**os.environ, "DATABASE_URL": "sqlite://", "COLUMNS": "200"}
    result = subprocess.run(
        [sys.executable, "-m", "ielts_center.cli.main", *args],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def test_file(tmp_path):
    """A one-section test definition with embedded answers."""
    path = tmp_path / "reading.json"
    path.write_text(json.dumps({
        "title": "Mini Reading",
        "skill": "READING",
        "sections": [{
            "title": "Passage 1",
            "questions": [
                {"id": 1, "type": "MULTIPLE_CHOICE", "options": ["A", "B", "C"], "correct_answers": ["B"]},
                {
                    "id": 2,
                    "type": "MATCHING",
                    "sub_questions": ["Paragraph A", "Paragraph B"],
                    "options": ["i", "ii", "iii"],
                    "correct_answers": ["ii", "i"],
                },
            ],
        }],
        "answers": {"1": "B", "2": "{\"0\":\"ii\",\"1\":\"iii\"}"},
    }))
    return path


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "score" in stdout
        assert "assess" in stdout

    def test_db_help(self):
        """DB subcommand help should work."""
        code, stdout, stderr = run_cli_command("db", "--help")

        assert code == 0, f"DB help failed: {stderr}"
        assert "init" in stdout


class TestScoreCommand:

    def test_score_table(self, test_file):
        """Should print the per-question table and the band."""
        code, stdout, stderr = run_cli_command("score", str(test_file))

        assert code == 0, f"Score failed: {stderr}"
        assert "Mini Reading" in stdout
        assert "Band 6.0" in stdout

    def test_score_json(self, test_file):
        code, stdout, stderr = run_cli_command("score", str(test_file), "--json")

        assert code == 0, f"Score failed: {stderr}"
        result = json.loads(stdout)
        assert result["correct_count"] == 2
        assert result["total_questions"] == 3
        assert result["sections"][0]["questions"][1]["is_correct"] == [True, False]

    def test_separate_answers_file(self, test_file, tmp_path):
        answers = tmp_path / "answers.json"
        answers.write_text(json.dumps({"1": " b", "2": {"0": "ii", "1": "i"}}))

        code, stdout, stderr = run_cli_command("score", str(test_file), "-a", str(answers), "--lenient", "--json")

        assert code == 0, f"Score failed: {stderr}"
        assert json.loads(stdout)["score"] == 9.0

    def test_missing_file(self, tmp_path):
        code, stdout, _ = run_cli_command("score", str(tmp_path / "missing.json"))

        assert code == 1
        assert "File not found" in stdout


class TestAssessCommand:

    def test_assess_essay(self, tmp_path, sample_essay):
        essay = tmp_path / "essay.txt"
        essay.write_text(sample_essay)

        code, stdout, stderr = run_cli_command("assess", str(essay), "--type", "IELTS_TASK2")

        assert code == 0, f"Assess failed: {stderr}"
        assert "Overall" in stdout
        assert "Competent writing" in stdout
