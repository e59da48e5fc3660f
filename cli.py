import json
import logging
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from typing import Optional
from datetime import datetime

from backend.config import settings
from backend.database import SessionLocal, init_db
from backend.errors import StorageError
from backend.crud import (
    create_user, get_user, update_preferences, get_credits,
    create_subject, get_subjects,
    create_topic, get_topics, update_topic_progress, review_topic
)
from backend.schemas import UserCreate, PreferencesUpdate, SubjectCreate, TopicCreate, TopicResponse
from backend.intervals import is_due_for_review
from backend.orchestrator import get_study_schedule, get_full_schedule
from backend.priority import get_priority_ranked_topics
from backend.models.user import DAILY_STUDY_GOALS, PRIORITY_WEIGHTS
from backend.models.topic import DIFFICULTIES

app = typer.Typer(help="Study Planner CLI - adaptive daily study scheduling")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")):
    """Configure logging for every command"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _fail(message: str):
    console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _as_json(topics) -> str:
    return json.dumps([TopicResponse.model_validate(t).model_dump(mode="json") for t in topics])


def _subject_label(topic) -> str:
    if topic.subject is None:
        return "-"
    if topic.subject.exam_date:
        return f"{topic.subject.name} (exam {topic.subject.exam_date})"
    return topic.subject.name


@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")


@app.command()
def create_profile(
    name: str = typer.Option(..., prompt="Name"),
    goal: str = typer.Option("1 hour", help=f"Daily study goal: {', '.join(DAILY_STUDY_GOALS)}"),
    topics_per_day: Optional[int] = typer.Option(None, help="Override topics per day"),
    weight: str = typer.Option("Balanced", help=f"Topic priority: {', '.join(PRIORITY_WEIGHTS)}")
):
    """Create a new student profile"""
    if goal not in DAILY_STUDY_GOALS:
        _fail(f"Unknown daily goal '{goal}'")
    if weight not in PRIORITY_WEIGHTS:
        _fail(f"Unknown priority weight '{weight}'")

    db = SessionLocal()
    try:
        user = create_user(db, UserCreate(
            name=name,
            daily_study_goal=goal,
            topics_per_day=topics_per_day,
            topic_priority_weight=weight
        ))
        console.print(f"[green]✓[/green] Profile created successfully! User ID: {user.id}")
        console.print(f"  Daily goal: {user.daily_study_goal}")
    finally:
        db.close()


@app.command()
def set_preferences(
    user_id: int = typer.Option(..., prompt="User ID"),
    goal: Optional[str] = typer.Option(None, help="New daily study goal"),
    topics_per_day: Optional[int] = typer.Option(None, help="New topics per day override"),
    weight: Optional[str] = typer.Option(None, help="New topic priority weight")
):
    """Update study preferences"""
    updates = {}
    if goal:
        if goal not in DAILY_STUDY_GOALS:
            _fail(f"Unknown daily goal '{goal}'")
        updates["daily_study_goal"] = goal
    if topics_per_day:
        updates["topics_per_day"] = topics_per_day
    if weight:
        if weight not in PRIORITY_WEIGHTS:
            _fail(f"Unknown priority weight '{weight}'")
        updates["topic_priority_weight"] = weight

    db = SessionLocal()
    try:
        user = update_preferences(db, user_id, PreferencesUpdate(**updates))
        if user:
            console.print("[green]✓[/green] Preferences updated successfully!")
        else:
            _fail(f"User ID {user_id} not found")
    finally:
        db.close()


@app.command()
def add_subject(
    user_id: int = typer.Option(..., prompt="User ID"),
    name: str = typer.Option(..., prompt="Subject name"),
    exam_date: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="Exam date (YYYY-MM-DD)")
):
    """Add a subject, optionally with an exam date"""
    db = SessionLocal()
    try:
        if not get_user(db, user_id):
            _fail(f"User ID {user_id} not found")
        subject = create_subject(db, user_id, SubjectCreate(
            name=name,
            exam_date=exam_date.date() if exam_date else None
        ))
        console.print(f"[green]✓[/green] Subject added! ID: {subject.id}")
    finally:
        db.close()


@app.command()
def add_topic(
    user_id: int = typer.Option(..., prompt="User ID"),
    name: str = typer.Option(..., prompt="Topic name"),
    subject_id: Optional[int] = typer.Option(None, help="Subject ID"),
    difficulty: str = typer.Option("medium", help=f"One of: {', '.join(DIFFICULTIES)}")
):
    """Add a topic to the backlog"""
    if difficulty not in DIFFICULTIES:
        _fail(f"Unknown difficulty '{difficulty}'")

    db = SessionLocal()
    try:
        if not get_user(db, user_id):
            _fail(f"User ID {user_id} not found")
        topic = create_topic(db, user_id, TopicCreate(
            name=name,
            subject_id=subject_id,
            difficulty=difficulty
        ))
        console.print(f"[green]✓[/green] Topic added! ID: {topic.id}")
    finally:
        db.close()


@app.command()
def list_topics(user_id: int):
    """List all topics with progress and review state"""
    db = SessionLocal()
    try:
        topics = get_topics(db, user_id)
        if not topics:
            console.print("[yellow]No topics yet.[/yellow]")
            return

        subject_names = {s.id: s.name for s in get_subjects(db, user_id)}
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Subject", style="cyan")
        table.add_column("Topic", style="green")
        table.add_column("Status", style="yellow")
        table.add_column("Progress", justify="right")
        table.add_column("Scheduled", style="blue")
        table.add_column("Review", style="red")

        for topic in topics:
            table.add_row(
                str(topic.id),
                subject_names.get(topic.subject_id, "-"),
                topic.name,
                topic.status,
                f"{topic.completion_percent}%",
                str(topic.scheduled_date or "-") + (" (moved)" if topic.rescheduled else ""),
                "due" if is_due_for_review(topic.next_review_date) else "",
            )
        console.print(table)
    finally:
        db.close()


@app.command()
def review(
    user_id: int = typer.Option(..., prompt="User ID"),
    topic_id: int = typer.Option(..., prompt="Topic ID")
):
    """Mark a topic review as done"""
    db = SessionLocal()
    try:
        topic = review_topic(db, user_id, topic_id)
        if not topic:
            _fail(f"Topic ID {topic_id} not found")
        console.print(f"[green]✓[/green] Reviewed '{topic.name}' (level {topic.repetition_level})")
        console.print(f"  Next review: {topic.next_review_date:%Y-%m-%d}")
    finally:
        db.close()


@app.command()
def progress(
    user_id: int = typer.Option(..., prompt="User ID"),
    topic_id: int = typer.Option(..., prompt="Topic ID"),
    percent: int = typer.Option(..., prompt="Completion percent (0-100)")
):
    """Record study progress on a topic"""
    db = SessionLocal()
    try:
        topic = update_topic_progress(db, user_id, topic_id, percent)
        if not topic:
            _fail(f"Topic ID {topic_id} not found")
        console.print(f"[green]✓[/green] '{topic.name}' is {topic.completion_percent}% done ({topic.status})")
    finally:
        db.close()


@app.command()
def today(user_id: int, as_json: bool = typer.Option(False, "--json", help="Print as JSON")):
    """Show today's study plan"""
    db = SessionLocal()
    try:
        try:
            topics = get_study_schedule(db, user_id)
        except StorageError as exc:
            _fail(str(exc))

        if as_json:
            console.print_json(_as_json(topics))
            return

        if not topics:
            console.print("[yellow]Nothing scheduled for today.[/yellow]")
            return

        console.print(f"\n[bold]Today's Plan[/bold] ({datetime.now():%Y-%m-%d})")
        for topic in topics:
            marker = " [red](rescheduled)[/red]" if topic.rescheduled else ""
            console.print(f"  • {topic.name} - {_subject_label(topic)}{marker}")
        console.print(f"\nCredits: {get_credits(db, user_id)}")
    finally:
        db.close()


@app.command()
def schedule(user_id: int, as_json: bool = typer.Option(False, "--json", help="Print as JSON")):
    """Show the upcoming schedule grouped by day"""
    db = SessionLocal()
    try:
        try:
            plan = get_full_schedule(db, user_id)
        except StorageError as exc:
            _fail(str(exc))

        if as_json:
            console.print_json(json.dumps({day: json.loads(_as_json(topics)) for day, topics in plan.items()}))
            return

        if not plan:
            console.print("[yellow]No upcoming schedule.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Date", style="cyan", width=12)
        table.add_column("Topics", style="green")
        table.add_column("Count", style="blue", justify="right")
        for day, topics in plan.items():
            table.add_row(day, "\n".join(f"{t.name} ({_subject_label(t)})" for t in topics), str(len(topics)))
        console.print(table)
    finally:
        db.close()


@app.command()
def priorities(user_id: int, limit: Optional[int] = typer.Option(None, help="Number of topics")):
    """Show topics ranked by priority score"""
    db = SessionLocal()
    try:
        try:
            topics = get_priority_ranked_topics(db, user_id, limit)
        except StorageError as exc:
            _fail(str(exc))

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Rank", justify="right")
        table.add_column("Topic", style="green")
        table.add_column("Subject", style="cyan")
        table.add_column("Score", style="yellow", justify="right")
        for rank, topic in enumerate(topics, 1):
            table.add_row(str(rank), topic.name, _subject_label(topic), f"{topic.priority_score:.1f}")
        console.print(table)
    finally:
        db.close()


@app.command()
def credits(user_id: int):
    """Show the credit balance"""
    db = SessionLocal()
    try:
        user = get_user(db, user_id)
        if not user:
            _fail(f"User ID {user_id} not found")
        console.print(f"Credits: [bold]{user.credits}[/bold]")
    finally:
        db.close()


if __name__ == "__main__":
    app()
