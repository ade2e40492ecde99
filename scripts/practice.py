#!/usr/bin/env python3
"""Log a self-rating for a question and show the user's review queue.

Run: uv run python scripts/practice.py --user alice --question q-42 --rating good
"""

from dataclasses import dataclass
from datetime import datetime, timezone

import simple_parsing as sp
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from qdrill.config import Config
from qdrill.db.database import Database
from qdrill.practice.service import PracticeService
from qdrill.srs.errors import SchedulingError
from qdrill.srs.status import QuestionStatus


@dataclass
class Args:
    """Log a practice event and print the resulting schedule."""

    user: str  # User ID
    question: str = ""  # Question ID to rate (omit to only show the queue)
    rating: str = "good"  # poor, fair, good or great
    time_spent: int | None = None  # Seconds spent answering
    locale: str = ""  # Due-text locale (defaults to DEFAULT_LOCALE)
    upcoming: bool = False  # Also list questions that are not due yet
    status: str = ""  # Only list new, learning or mastered questions
    history: bool = False  # Also show recent practice and daily activity


console = Console()


def show_queue(service: PracticeService, args: Args, now: datetime, limit: int) -> None:
    """Print the user's review queue."""
    entries = service.get_questions_due_for_review(
        args.user,
        now,
        limit=limit,
        locale=args.locale or None,
        include_upcoming=args.upcoming,
        status=QuestionStatus(args.status) if args.status else None,
    )

    table = Table(title=f"Review queue for {args.user}")
    table.add_column("Question", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Reps", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Due", style="green")

    for entry in entries:
        table.add_row(
            entry["questionId"],
            entry["status"],
            str(entry["repetitions"]),
            f"{entry['intervalDays']}d",
            f"{entry['easeFactor']:.2f}",
            entry["dueStatus"]["text"],
        )

    console.print(table)
    console.print(f"[dim]{service.get_due_count(args.user, now)} question(s) due now[/dim]")


def show_history(service: PracticeService, args: Args, now: datetime) -> None:
    """Print recent practice and per-day activity for the last week."""
    table = Table(title=f"Recent practice for {args.user}")
    table.add_column("When", style="dim")
    table.add_column("Question", style="cyan")
    table.add_column("Rating", style="yellow")
    table.add_column("Seconds", justify="right")
    table.add_column("Notes")

    for log in service.get_history(args.user, limit=10):
        seconds = log["timeSpentSeconds"]
        table.add_row(
            log["practicedAt"][:16],
            log["questionId"],
            log["rating"],
            str(seconds) if seconds is not None else "-",
            log["notes"] or "",
        )
    console.print(table)

    for day in service.get_daily_activity(now, days=7, user_id=args.user):
        console.print(f"{day['date']}: {day['sessions']} session(s), {day['timeSpentMinutes']} min")


def main() -> None:
    args = sp.parse(Args)

    config = Config.from_env()
    config.configure_logging()

    db = Database(config.database_path)
    db.init_schema()
    service = PracticeService(db, default_locale=config.default_locale)
    now = datetime.now(timezone.utc)

    try:
        if args.question:
            result = service.log_practice(
                args.question,
                args.rating,
                now,
                user_id=args.user,
                time_spent_seconds=args.time_spent,
                locale=args.locale or None,
            )
            uq = result.user_question
            console.print(Panel(
                f"Rating: [bold]{result.log.self_rating.value}[/bold]\n"
                f"Status: {result.status.value}\n"
                f"Repetitions: {uq.repetitions}  Interval: {uq.interval_days}d  "
                f"Ease: {uq.ease_factor:.2f}\n"
                f"{result.due_status.text}",
                title=args.question,
            ))

        show_queue(service, args, now, config.due_queue_limit)
        if args.history:
            show_history(service, args, now)

    except (SchedulingError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
    finally:
        db.close()


if __name__ == "__main__":
    main()
