"""
Typer CLI for ielts-center.

Commands:
    ielts-center db init            - Create database tables
    ielts-center db drop --yes      - Drop all tables
    ielts-center score FILE         - Score answers against a test definition file
    ielts-center assess FILE        - Automated rubric assessment of an essay
    ielts-center serve              - Run the API server

Usage:
    ielts-center --help
    ielts-center score reading_test.json --answers answers.json
    ielts-center assess essay.txt --type IELTS_TASK2
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from ielts_center.grading import MatchPolicy

console = Console()

app = typer.Typer(
    help="ielts-center CLI: IELTS test scoring and service management",
    no_args_is_help=True,
)


# =============================================================================
# Database
# =============================================================================

db_app = typer.Typer(help="Database management (init, drop)")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    from ielts_center.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


@db_app.command("drop")
def db_drop(
    yes: bool = typer.Option(False, "--yes", help="Confirm dropping every table"),
) -> None:
    """Drop all ielts-center tables."""
    if not yes:
        rprint("[yellow]Refusing to drop tables without --yes[/yellow]")
        raise typer.Exit(code=1)

    from ielts_center.db.database import drop_db

    drop_db()
    rprint("[green]✓[/green] Tables dropped")


# =============================================================================
# Scoring
# =============================================================================


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        rprint(f"[red]File not found:[/red] {path}")
        raise typer.Exit(code=1)
    except json.JSONDecodeError as e:
        rprint(f"[red]Invalid JSON in {path}:[/red] {e}")
        raise typer.Exit(code=1)


def _format_answers(values: list[str | None]) -> str:
    return ", ".join("-" if v is None else v for v in values)


def _format_verdicts(is_correct: bool | list[bool]) -> str:
    flags = is_correct if isinstance(is_correct, list) else [is_correct]
    return " ".join("[green]✓[/green]" if flag else "[red]✗[/red]" for flag in flags)


@app.command("score")
def score(
    test_file: Path = typer.Argument(..., help="Test definition JSON (optionally with an 'answers' key)"),
    answers_file: Path | None = typer.Option(None, "--answers", "-a", help="Answers JSON keyed by question id"),
    lenient: bool = typer.Option(False, "--lenient", help="Ignore case and surrounding whitespace"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
) -> None:
    """
    Score a set of answers against a test definition.

    The test file holds sections with question groups:

        {"title": "...", "skill": "READING", "sections": [
            {"title": "Passage 1", "questions": [
                {"id": 1, "type": "MULTIPLE_CHOICE", "options": ["A", "B"],
                 "correct_answers": ["B"]}]}],
         "answers": {"1": "B"}}
    """
    from ielts_center.scoring import TestDefinition, aggregate

    data = _load_json(test_file)
    answers = _load_json(answers_file) if answers_file else data.get("answers", {})
    if not isinstance(answers, dict):
        rprint("[red]Answers must be a JSON object keyed by question id[/red]")
        raise typer.Exit(code=1)

    policy = MatchPolicy.from_name("lenient" if lenient else get_settings().answer_matching)
    result = aggregate(TestDefinition.from_dict(data), answers, policy)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    table = Table(title=result.test_title or str(test_file.name))
    table.add_column("Section", style="dim")
    table.add_column("Q", justify="right")
    table.add_column("Type")
    table.add_column("Answer")
    table.add_column("Correct")
    table.add_column("Result")
    table.add_column("Points", justify="right")

    for section in result.sections:
        for review in section.questions:
            table.add_row(
                section.title,
                str(review.question_id),
                review.type,
                _format_answers(review.user_answers),
                _format_answers(list(review.correct_answers)),
                _format_verdicts(review.is_correct),
                f"{review.points_earned:g}/{review.points:g}",
            )

    console.print(table)
    console.print(Panel(
        f"[bold]Band {result.score:.1f}[/bold]  "
        f"({result.correct_count}/{result.total_question_count} correct, {result.percentage:.0f}%)\n"
        f"{result.feedback}",
        title="Result",
        border_style="cyan",
    ))
    if result.skipped_question_ids:
        rprint(f"[yellow]Skipped answers for unknown questions:[/yellow] {result.skipped_question_ids}")


@app.command("assess")
def assess(
    essay_file: Path = typer.Argument(..., help="Plain-text essay"),
    task_type: str = typer.Option("IELTS_TASK2", "--type", "-t", help="IELTS_TASK1 or IELTS_TASK2"),
) -> None:
    """Automated rubric assessment of an essay."""
    from ielts_center.scoring import HeuristicWritingAssessor

    try:
        content = essay_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        rprint(f"[red]File not found:[/red] {essay_file}")
        raise typer.Exit(code=1)

    min_words = get_settings().min_words_for(task_type)
    assessment = HeuristicWritingAssessor().assess(content, min_words)

    table = Table(title=f"{essay_file.name} ({task_type})")
    table.add_column("Criterion")
    table.add_column("Band", justify="right")
    for name, value in assessment.score.criteria().items():
        table.add_row(name.replace("_", " ").title(), f"{value:.1f}")
    table.add_row("[bold]Overall[/bold]", f"[bold]{assessment.score.overall:.1f}[/bold]")
    console.print(table)

    feedback = assessment.feedback
    rprint(f"\n{feedback.general}")
    for title, items, style in (
        ("Strengths", feedback.strengths, "green"),
        ("Improvements", feedback.improvements, "yellow"),
        ("Suggestions", feedback.suggestions, "cyan"),
    ):
        if items:
            rprint(f"[{style}]{title}:[/{style}]")
            for item in items:
                rprint(f"  • {item}")


# =============================================================================
# Server
# =============================================================================


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default API_HOST)"),
    port: int | None = typer.Option(None, "--port", help="Port (default API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ielts_center.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    from ielts_center.log import configure_logging

    configure_logging(level="WARNING" if "--json" in sys.argv else None)
    app()


if __name__ == "__main__":
    main()
