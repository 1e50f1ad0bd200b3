"""
Typer CLI for the quizwise service.

Commands:
    quizwise db init                    - Create database tables
    quizwise db check                   - Check connectivity and provisioned features
    quizwise quiz import FILE --user U  - Validate and store a quiz JSON document
    quizwise quiz list --user U         - List a user's quizzes
    quizwise mastery --user U           - Show a user's topic mastery
    quizwise token USER_ID              - Issue a bearer token for local testing
    quizwise serve                      - Run the API server
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from quizwise import __version__
from quizwise.core.exceptions import QuizValidationError
from quizwise.logging_setup import configure_logging

app = typer.Typer(
    help="quizwise CLI: adaptive quiz practice service",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(get_settings(), level="DEBUG" if verbose else None)


# ========================================
# Context Builder (Dependency Injection)
# ========================================


class CLIContext:
    """
    Dependency injection container for CLI commands.

    Repositories are created on first use so commands that do not touch the
    database never open a connection.
    """

    def __init__(self):
        self.settings = get_settings()
        self._quiz_repository = None
        self._adaptive_repository = None

    @property
    def quiz_repository(self):
        """Lazy load QuizRepository."""
        if self._quiz_repository is None:
            from quizwise.db.database import get_session_factory
            from quizwise.db.quiz_repository import QuizRepository

            self._quiz_repository = QuizRepository(
                get_session_factory(), max_page_size=self.settings.quiz_list_max_limit
            )
        return self._quiz_repository

    @property
    def adaptive_repository(self):
        """Lazy load AdaptiveRepository."""
        if self._adaptive_repository is None:
            from quizwise.db.adaptive_repository import AdaptiveRepository
            from quizwise.db.database import get_session_factory

            self._adaptive_repository = AdaptiveRepository(get_session_factory())
        return self._adaptive_repository

    @property
    def practice_engine(self):
        from quizwise.adaptive.engine import PracticeEngine

        return PracticeEngine(self.quiz_repository, self.adaptive_repository)


def _build_context() -> CLIContext:
    """Build CLI context with dependency injection."""
    return CLIContext()


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management (init, check)")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Create all tables defined in quizwise.db.models if they don't exist.

    Safe to run multiple times (idempotent).
    """
    from quizwise.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


@db_app.command("check")
def db_check() -> None:
    """Check database connectivity and which features have their tables."""
    from sqlalchemy.exc import SQLAlchemyError

    from quizwise.core.schema_validator import SchemaValidator
    from quizwise.db.database import check_database, get_engine

    status, error = check_database()
    if status != "ok":
        rprint(f"[red]✗[/red] Database unreachable: {error}")
        raise typer.Exit(code=1)

    rprint(f"[green]✓[/green] Connected to {get_settings().get_public_config()['database']}")

    try:
        features = SchemaValidator(get_engine()).get_available_features()
    except SQLAlchemyError as e:
        rprint(f"[red]✗[/red] Schema inspection failed: {e}")
        raise typer.Exit(code=1)

    table = Table(title="Features", show_header=True)
    table.add_column("Feature", style="cyan")
    table.add_column("Available", justify="center")
    for feature, available in features.items():
        table.add_row(feature, "[green]yes[/green]" if available else "[red]no[/red]")
    console.print(table)


# ========================================
# QUIZ COMMANDS
# ========================================

quiz_app = typer.Typer(help="Quiz management (import, list)")
app.add_typer(quiz_app, name="quiz")


@quiz_app.command("import")
def quiz_import(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Quiz JSON document"),
    user: str = typer.Option(..., "--user", "-u", help="Owner user id"),
) -> None:
    """Validate a quiz JSON file and store it for a user."""
    from quizwise.quiz.schema import ensure_quiz_payload

    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        rprint(f"[red]✗[/red] {file} is not valid JSON: {e}")
        raise typer.Exit(code=1)

    try:
        payload = ensure_quiz_payload(data)
    except QuizValidationError as e:
        rprint("[red]✗[/red] Quiz validation failed:")
        for issue in e.issues:
            rprint(f"  - {issue}")
        raise typer.Exit(code=1)

    ctx = _build_context()
    quiz = ctx.quiz_repository.create_quiz(payload, user)
    rprint(
        f"[green]✓[/green] Imported quiz [bold]{quiz['id']}[/bold] "
        f"({len(quiz['multiple_choice'])} MCQ, {len(quiz['essay'])} essay)"
    )


@quiz_app.command("list")
def quiz_list(
    user: str = typer.Option(..., "--user", "-u", help="Owner user id"),
    topic: str | None = typer.Option(None, "--topic", help="Topic filter"),
    level: str | None = typer.Option(None, "--level", help="X, XI, XII or General"),
    status: str | None = typer.Option(None, "--status", help="draft, published or archived"),
    limit: int = typer.Option(20, "--limit", "-n", min=1),
) -> None:
    """List a user's quizzes, newest first."""
    ctx = _build_context()
    page = ctx.quiz_repository.list_quizzes(user, topic=topic, level=level, status=status, limit=limit)

    if not page.quizzes:
        rprint("[yellow]No quizzes found.[/yellow]")
        return

    table = Table(title=f"Quizzes ({len(page.quizzes)} of {page.total})", show_header=True)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Topic", style="cyan", no_wrap=True)
    table.add_column("Level")
    table.add_column("Status")
    table.add_column("MCQ", justify="right", style="green")
    table.add_column("Essay", justify="right")
    for quiz in page.quizzes:
        meta = quiz["metadata"]
        counts = quiz["question_counts"]
        table.add_row(quiz["id"], meta["topic"], meta["level"], meta["status"], str(counts["mcq"]), str(counts["essay"]))
    console.print(table)


# ========================================
# PRACTICE COMMANDS
# ========================================


@app.command("mastery")
def mastery(
    user: str = typer.Option(..., "--user", "-u", help="Learner user id"),
) -> None:
    """Show rating, streak and next review per topic."""
    ctx = _build_context()
    rows = ctx.practice_engine.list_mastery(user)

    if not rows:
        rprint("[yellow]No mastery records yet.[/yellow]")
        return

    table = Table(title=f"Mastery for {user}", show_header=True)
    table.add_column("Topic", style="cyan", no_wrap=True)
    table.add_column("Rating", justify="right", style="green")
    table.add_column("Streak", justify="right")
    table.add_column("Answered", justify="right")
    table.add_column("Next review")
    table.add_column("Due", justify="center")
    for row in rows:
        next_review = row["next_review_at"].strftime("%Y-%m-%d %H:%M") if row["next_review_at"] else "-"
        table.add_row(
            row["topic"],
            f"{row['rating']:.0f}",
            str(row["streak"]),
            str(row["total_answered"]),
            next_review,
            "[red]●[/red]" if row["due"] else "",
        )
    console.print(table)


# ========================================
# SERVICE COMMANDS
# ========================================


@app.command("token")
def token(
    user_id: str = typer.Argument(..., help="User id to put in the token subject"),
    ttl: int | None = typer.Option(None, "--ttl", min=1, help="Lifetime in minutes"),
) -> None:
    """Issue a bearer token for local testing."""
    from quizwise.api.auth import create_token

    typer.echo(create_token(user_id, ttl_minutes=ttl))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "quizwise.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("version")
def version() -> None:
    """Show version information."""
    rprint(f"[bold]quizwise[/bold] v{__version__}")
    rprint("  Adaptive quiz practice: Elo rating, spaced review, weakest-first selection")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
