"""CLI commands for vocabdrill.

Commands:
- init-db: Create the database schema
- add-user: Register a learner
- add-word / list-words / delete-word: Manage vocabulary
- quiz: Take an interactive spaced-repetition quiz
- sessions: Show quiz history
- stats: Show the learning dashboard
- serve: Run the web API with uvicorn

The database path comes from VOCABDRILL_DB, else from config. The web API
resolves it the same way.
"""

import time

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from vocabdrill.config.app_config import load_app_config
from vocabdrill.core.errors import EmptyQuizPoolError, VocabDrillError
from vocabdrill.core.grader import is_correct
from vocabdrill.core.quiz_session import QuizAnswer, begin_quiz, submit_quiz
from vocabdrill.core.stats import compute_stats
from vocabdrill.db.database import init_db, use_db
from vocabdrill.db.progress_repository import list_progress_for_user
from vocabdrill.db.session_repository import get_session, list_sessions
from vocabdrill.db.users_repository import create_user, require_user
from vocabdrill.db.vocabulary_repository import (
    create_item,
    delete_item,
    get_user_item,
    list_items_for_user,
)
from vocabdrill.utils.timestamps import utc_now

app = typer.Typer(
    name="vocab",
    help="Spaced-repetition vocabulary trainer.",
    no_args_is_help=True,
)

console = Console()


def _open_db() -> None:
    """Initialize the database at VOCABDRILL_DB or the configured path."""
    init_db()


def _fail(error: Exception) -> None:
    """Print an error and exit with code 1."""
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


def _ask_answer() -> str:
    """Ask for the word and loop until non-empty."""
    while True:
        raw = typer.prompt("Word").strip()

        if raw:
            return raw
        console.print("[yellow]⚠ The answer cannot be empty[/yellow]")


# =============================================================================
# SETUP COMMANDS
# =============================================================================


@app.command(name="init-db")
def init_database() -> None:
    """Create the database and its tables."""
    _open_db()
    console.print("[green]✓ Database ready[/green]")


@app.command(name="add-user")
def add_user(
    name: str = typer.Argument(..., help="Learner name"),
) -> None:
    """Register a learner and print their user id."""
    _open_db()
    try:
        user = create_user(name)
    except VocabDrillError as e:
        _fail(e)

    console.print(f"[green]✓ User created: {user.name}[/green]")
    console.print(f"  [dim]user_id:[/dim] {user.user_id}")


# =============================================================================
# VOCABULARY COMMANDS
# =============================================================================


@app.command(name="add-word")
def add_word(
    user_id: str = typer.Argument(..., help="Owner user id"),
    word: str = typer.Argument(..., help="The word to learn"),
    definition: str = typer.Argument(..., help="Definition shown as the quiz prompt"),
    example: str | None = typer.Option(None, "--example", "-e", help="Example sentence"),
    category: str | None = typer.Option(None, "--category", "-c", help="Category label"),
    difficulty: int = typer.Option(1, "--difficulty", "-d", help="Difficulty 1-5"),
) -> None:
    """Add a word to a learner's vocabulary."""
    _open_db()
    try:
        with use_db() as conn:
            require_user(user_id, conn=conn)
            item = create_item(
                user_id,
                word=word,
                definition=definition,
                example=example,
                category=category,
                difficulty=difficulty,
                conn=conn,
            )
    except VocabDrillError as e:
        _fail(e)

    console.print(f"[green]✓ Added '{item.word}'[/green]")
    console.print(f"  [dim]item_id:[/dim] {item.item_id}")


@app.command(name="list-words")
def list_words(
    user_id: str = typer.Argument(..., help="Owner user id"),
) -> None:
    """List a learner's vocabulary with mastery levels."""
    _open_db()
    try:
        with use_db() as conn:
            require_user(user_id, conn=conn)
            items = list_items_for_user(user_id, conn=conn)
            progress = list_progress_for_user(user_id, conn=conn)
    except VocabDrillError as e:
        _fail(e)

    if not items:
        console.print("[yellow]⚠ No vocabulary yet. Add words with: vocab add-word[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Word")
    table.add_column("Definition")
    table.add_column("Diff", justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Next review")
    table.add_column("ID", style="dim")

    for item in items:
        record = progress.get(item.item_id)
        table.add_row(
            item.word,
            item.definition,
            str(item.difficulty),
            str(record.level) if record else "new",
            record.next_review.strftime("%Y-%m-%d %H:%M") if record else "now",
            item.item_id,
        )

    console.print(table)


@app.command(name="delete-word")
def delete_word(
    user_id: str = typer.Argument(..., help="Owner user id"),
    item_id: str = typer.Argument(..., help="Vocabulary item id"),
) -> None:
    """Delete a word and its progress."""
    _open_db()
    try:
        with use_db() as conn:
            item = get_user_item(user_id, item_id, conn=conn)
            delete_item(item_id, conn=conn)
    except VocabDrillError as e:
        _fail(e)

    console.print(f"[green]✓ Deleted '{item.word}'[/green]")


# =============================================================================
# QUIZ COMMANDS
# =============================================================================


@app.command()
def quiz(
    user_id: str = typer.Argument(..., help="Learner user id"),
    n: int | None = typer.Option(None, "-n", help="Number of questions (default from config)"),
) -> None:
    """Take an interactive quiz on the words that are due.

    Example:
        vocab quiz 3f2a... -n 5
    """
    _open_db()

    try:
        items = begin_quiz(user_id, limit=n)
    except EmptyQuizPoolError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        return
    except VocabDrillError as e:
        _fail(e)

    console.print(f"\n[bold]Quiz: {len(items)} words[/bold]")

    answers: list[QuizAnswer] = []
    quiz_started = time.monotonic()
    for i, item in enumerate(items, 1):
        console.print(f"\n[blue]Question {i}/{len(items)}[/blue]")
        console.print(f"[bold]{item.definition}[/bold]")
        if item.category:
            console.print(f"  [dim]category:[/dim] {item.category}")

        started = time.monotonic()
        response = _ask_answer()
        answers.append(
            QuizAnswer(
                vocabulary_id=item.item_id,
                submitted_text=response,
                time_taken=round(time.monotonic() - started),
            )
        )

        if is_correct(response, item.word):
            console.print("[green]✓ Correct[/green]")
        else:
            console.print(f"[red]✗ Answer: {item.word}[/red]")

    try:
        session_id = submit_quiz(
            user_id,
            answers,
            round(time.monotonic() - quiz_started),
            expected_questions=len(items),
        )
    except VocabDrillError as e:
        _fail(e)

    session = get_session(session_id)
    console.print("\n[green]✓ Quiz completed[/green]")
    console.print(f"[dim]Score:[/dim] {session.score}/{session.total_questions}")
    console.print(f"[dim]Session:[/dim] {session_id}")


@app.command()
def sessions(
    user_id: str = typer.Argument(..., help="Learner user id"),
    limit: int | None = typer.Option(None, "--limit", "-l", help="Sessions to show"),
) -> None:
    """Show quiz history, most recent first."""
    _open_db()
    if limit is None:
        limit = load_app_config().stats.history_limit

    try:
        with use_db() as conn:
            require_user(user_id, conn=conn)
            history = list_sessions(user_id, limit=limit, conn=conn)
    except VocabDrillError as e:
        _fail(e)

    if not history:
        console.print("[yellow]⚠ No quizzes taken yet[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Completed")
    table.add_column("Score", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Time", justify="right")

    for s in history:
        table.add_row(
            s.completed_at.strftime("%Y-%m-%d %H:%M"),
            f"{s.score}/{s.total_questions}",
            f"{s.accuracy:.0%}",
            f"{s.time_spent}s",
        )

    console.print(table)


@app.command()
def stats(
    user_id: str = typer.Argument(..., help="Learner user id"),
) -> None:
    """Show the learning dashboard."""
    _open_db()
    try:
        summary = compute_stats(user_id, now=utc_now())
    except VocabDrillError as e:
        _fail(e)

    console.print(f"\n[bold]Words:[/bold] {summary.total_words}")
    console.print(f"  [dim]new:[/dim]      {summary.new_words}")
    console.print(f"  [dim]learning:[/dim] {summary.learning_words}")
    console.print(f"  [dim]mastered:[/dim] {summary.mastered_words}")
    console.print(f"  [dim]due now:[/dim]  {summary.due_words}")

    levels = "  ".join(f"L{level}: {count}" for level, count in summary.words_by_level.items())
    console.print(f"[bold]By level:[/bold] {levels}")

    console.print(f"\n[bold]Quizzes:[/bold] {summary.total_sessions}")
    console.print(f"  [dim]accuracy:[/dim]    {summary.average_accuracy}%")
    console.print(f"  [dim]recent:[/dim]      {summary.recent_accuracy}%")
    console.print(f"  [dim]study time:[/dim]  {summary.total_study_minutes}m")
    console.print(f"  [dim]active days:[/dim] {summary.active_days_last_week}/7")


# =============================================================================
# SERVER
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
) -> None:
    """Run the web API."""
    _open_db()
    console.print(f"[green]✓ Serving on http://{host}:{port}[/green]")
    uvicorn.run("vocabdrill.web.api:app", host=host, port=port)


if __name__ == "__main__":
    app()
