"""Practice logging and review queue.

This is the only caller of the scheduler: each submitted self-rating is
logged once and moves the user's review state forward by one step.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from qdrill.config import DUE_QUEUE_LIMIT
from qdrill.constants import DEFAULT_LOCALE
from qdrill.db.database import Database, as_utc
from qdrill.db.models import PracticeLog, UserQuestion
from qdrill.srs.due import DueStatus, DueTextFormatter, classify_due_status
from qdrill.srs.errors import InvalidRating
from qdrill.srs.sm2 import SelfRating, parse_rating, schedule_next_review
from qdrill.srs.status import QuestionStatus, count_by_status, derive_question_status

logger = logging.getLogger(__name__)


@dataclass
class PracticeResult:
    """Outcome of logging one practice event."""

    log: PracticeLog
    user_question: UserQuestion | None  # None for anonymous practice
    status: QuestionStatus
    due_status: DueStatus


class PracticeService:
    """Logs practice events and reports what is due for review."""

    def __init__(self, db: Database, default_locale: str = DEFAULT_LOCALE):
        self.db = db
        self.default_locale = default_locale

    def log_practice(
        self,
        question_id: str,
        rating: SelfRating | str,
        now: datetime,
        user_id: str | None = None,
        time_spent_seconds: int | None = None,
        notes: str | None = None,
        locale: str | None = None,
    ) -> PracticeResult:
        """
        Record a self-rating and reschedule the question for the user.

        Anonymous practice (no user_id) is logged but schedules nothing.

        Raises:
            InvalidRating: rating is not poor/fair/good/great
            InvalidState: the stored review state is corrupt
            ValueError: time_spent_seconds is negative
        """
        try:
            self_rating = parse_rating(rating)
        except InvalidRating:
            logger.warning(f"Rejected practice log for question {question_id}: bad rating {rating!r}")
            raise
        if time_spent_seconds is not None and time_spent_seconds < 0:
            logger.warning(
                f"Rejected practice log for question {question_id}: negative time spent {time_spent_seconds}"
            )
            raise ValueError(f"time_spent_seconds must be >= 0, got {time_spent_seconds}")
        now = as_utc(now)

        log = PracticeLog(
            user_id=user_id,
            question_id=question_id,
            self_rating=self_rating,
            time_spent_seconds=time_spent_seconds,
            notes=notes,
            practiced_at=now,
        )
        formatter = self._formatter(locale)

        if user_id is None:
            self.db.add_practice_log(log)
            return PracticeResult(
                log=log,
                user_question=None,
                status=QuestionStatus.NEW,
                due_status=classify_due_status(None, now, formatter),
            )

        uq = self.db.record_practice(
            log, lambda state: schedule_next_review(state, self_rating, now)
        )
        logger.info(
            f"User {user_id} rated question {question_id} {self_rating.value}; "
            f"next review in {uq.interval_days} day(s)"
        )
        return PracticeResult(
            log=log,
            user_question=uq,
            status=derive_question_status(uq.repetitions),
            due_status=classify_due_status(uq.next_review_at, now, formatter),
        )

    def get_questions_due_for_review(
        self,
        user_id: str,
        now: datetime,
        limit: int = DUE_QUEUE_LIMIT,
        locale: str | None = None,
        include_upcoming: bool = False,
        status: QuestionStatus | None = None,
    ) -> list[dict[str, Any]]:
        """
        Review queue for a user, soonest first.

        With include_upcoming, questions not yet due are listed after the
        due ones, each with its due status. With status, only questions in
        that learning status are listed.
        """
        now = as_utc(now)
        if include_upcoming:
            rows = self.db.get_user_questions(user_id, limit=limit, status=status)
        else:
            rows = self.db.get_due_user_questions(user_id, now, limit=limit, status=status)
        formatter = self._formatter(locale)
        return [self._format_entry(uq, now, formatter) for uq in rows]

    def get_due_count(self, user_id: str | None, now: datetime) -> int:
        """Number of questions due; anonymous users have none."""
        if user_id is None:
            return 0
        return self.db.count_due(user_id, now)

    def get_history(self, user_id: str | None = None, limit: int = 20) -> list[dict[str, Any]]:
        """Most recent practice logs, newest first; everyone's when user_id is None."""
        return [self._format_log(log) for log in self.db.get_practice_logs(user_id, limit=limit)]

    def get_daily_activity(
        self,
        now: datetime,
        days: int = 30,
        user_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Sessions and minutes practiced per UTC day over the last `days` days."""
        since = as_utc(now) - timedelta(days=days)
        return [
            {
                "date": row["day"],
                "sessions": row["sessions"],
                "timeSpentMinutes": round(row["seconds"] / 60),
            }
            for row in self.db.get_daily_activity(since, user_id=user_id)
        ]

    def get_stats(
        self,
        user_id: str,
        now: datetime,
        total_questions: int | None = None,
    ) -> dict[str, Any]:
        """
        Practice summary for a user.

        Args:
            user_id: The user
            now: Reference time for the due count
            total_questions: Size of the question library; questions the
                user never practiced are counted as new
        """
        repetitions = self.db.get_repetitions(user_id)
        untracked = total_questions - len(repetitions) if total_questions is not None else 0
        totals = self.db.get_practice_totals(user_id)

        return {
            "totalQuestions": total_questions if total_questions is not None else len(repetitions),
            "totalPracticeSessions": totals["sessions"],
            "totalPracticeTimeSeconds": totals["seconds"],
            "totalPracticeTimeMinutes": round(totals["seconds"] / 60),
            "questionsByStatus": count_by_status(repetitions, untracked=untracked),
            "practiceByRating": {
                rating.value: totals["by_rating"].get(rating.value, 0) for rating in SelfRating
            },
            "questionsNeedingReview": self.db.count_due(user_id, now),
            "recentLogs": self.get_history(user_id, limit=5),
        }

    def _formatter(self, locale: str | None) -> DueTextFormatter:
        return DueTextFormatter(locale or self.default_locale)

    def _format_log(self, log: PracticeLog) -> dict[str, Any]:
        return {
            "id": log.id,
            "questionId": log.question_id,
            "rating": log.self_rating.value,
            "timeSpentSeconds": log.time_spent_seconds,
            "notes": log.notes,
            "practicedAt": log.practiced_at.isoformat(),
        }

    def _format_entry(self, uq: UserQuestion, now: datetime, formatter: DueTextFormatter) -> dict[str, Any]:
        return {
            "questionId": uq.question_id,
            "status": derive_question_status(uq.repetitions).value,
            "easeFactor": uq.ease_factor,
            "intervalDays": uq.interval_days,
            "repetitions": uq.repetitions,
            "nextReviewAt": uq.next_review_at.isoformat() if uq.next_review_at else None,
            "dueStatus": classify_due_status(uq.next_review_at, now, formatter).to_dict(),
        }
