"""SQLite storage for per-user review state and practice logs.

Timestamps are stored as fixed-width UTC ISO strings so that SQL text
comparison orders them by instant. Naive datetimes are taken to be UTC;
every datetime read back is UTC-aware.
"""

import logging
import sqlite3
import threading
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from qdrill.config import DUE_QUEUE_LIMIT
from qdrill.constants import MASTERED_REPETITIONS
from qdrill.db.models import PracticeLog, UserQuestion
from qdrill.srs.sm2 import ReviewState, SelfRating
from qdrill.srs.status import QuestionStatus

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS user_questions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    question_id TEXT NOT NULL,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    interval_days INTEGER NOT NULL DEFAULT 0,
    repetitions INTEGER NOT NULL DEFAULT 0,
    next_review_at TIMESTAMP,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(user_id, question_id)
);

CREATE TABLE IF NOT EXISTS practice_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT,
    question_id TEXT NOT NULL,
    self_rating TEXT NOT NULL,
    time_spent_seconds INTEGER,
    notes TEXT,
    practiced_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_uq_user_next_review ON user_questions(user_id, next_review_at);
CREATE INDEX IF NOT EXISTS idx_logs_user ON practice_logs(user_id);
CREATE INDEX IF NOT EXISTS idx_logs_question ON practice_logs(question_id);
"""

# Overdue and never-scheduled rows, NULLs first
DUE_CONDITION = "(next_review_at IS NULL OR next_review_at <= ?)"

# Repetition ranges behind each learning status
STATUS_CONDITIONS = {
    QuestionStatus.NEW: "repetitions = 0",
    QuestionStatus.LEARNING: f"repetitions BETWEEN 1 AND {MASTERED_REPETITIONS - 1}",
    QuestionStatus.MASTERED: f"repetitions >= {MASTERED_REPETITIONS}",
}


def as_utc(value: datetime) -> datetime:
    """UTC-aware copy of value; naive values are already UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_db_time(value: datetime | None) -> str | None:
    return as_utc(value).isoformat(timespec="microseconds") if value else None


def _from_db_time(value: str | None) -> datetime | None:
    return as_utc(datetime.fromisoformat(value)) if value else None


class Database:
    """SQLite database wrapper with thread-local connection pooling."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._local = threading.local()
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a thread-local database connection."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self.db_path, timeout=10.0)
            self._local.conn.row_factory = sqlite3.Row
        return self._local.conn

    @contextmanager
    def connection(self):
        """Get a database connection (reuses thread-local connection)."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    @contextmanager
    def transaction(self):
        """Connection holding the write lock until the block exits."""
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            yield conn

    def close(self) -> None:
        """Close the thread-local connection if open."""
        if hasattr(self._local, "conn") and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def init_schema(self) -> None:
        """Initialize the database schema."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    # Review state operations
    def get_user_question(self, user_id: str, question_id: str) -> UserQuestion | None:
        """Get the review state row for a user/question pair."""
        with self.connection() as conn:
            return self._fetch_user_question(conn, user_id, question_id)

    def save_user_question(self, uq: UserQuestion) -> int:
        """Insert or update a review state row, returning its ID."""
        with self.connection() as conn:
            return self._upsert_user_question(conn, uq)

    def get_user_questions(
        self,
        user_id: str,
        limit: int | None = None,
        status: QuestionStatus | None = None,
    ) -> list[UserQuestion]:
        """All review state rows for a user, soonest review first."""
        query = "SELECT * FROM user_questions WHERE user_id = ?"
        if status is not None:
            query += f" AND {STATUS_CONDITIONS[status]}"
        query += " ORDER BY next_review_at IS NOT NULL, next_review_at, id"
        params: tuple = (user_id,)
        if limit is not None:
            query += " LIMIT ?"
            params += (limit,)
        with self.connection() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_user_question(row) for row in rows]

    def get_due_user_questions(
        self,
        user_id: str,
        now: datetime,
        limit: int = DUE_QUEUE_LIMIT,
        status: QuestionStatus | None = None,
    ) -> list[UserQuestion]:
        """Rows due at `now`, never-scheduled first, then most overdue."""
        status_filter = f"AND {STATUS_CONDITIONS[status]}" if status is not None else ""
        with self.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM user_questions
                WHERE user_id = ? AND {DUE_CONDITION} {status_filter}
                ORDER BY next_review_at IS NOT NULL, next_review_at, id
                LIMIT ?
                """,
                (user_id, _to_db_time(now), limit),
            ).fetchall()
            return [self._row_to_user_question(row) for row in rows]

    def count_due(self, user_id: str, now: datetime) -> int:
        """Number of questions due for a user at `now`."""
        with self.connection() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) FROM user_questions WHERE user_id = ? AND {DUE_CONDITION}",
                (user_id, _to_db_time(now)),
            ).fetchone()
            return row[0]

    def get_repetitions(self, user_id: str) -> list[int]:
        """Repetition counts of every question the user has practiced."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT repetitions FROM user_questions WHERE user_id = ?", (user_id,)
            ).fetchall()
            return [row["repetitions"] for row in rows]

    # Practice log operations
    def add_practice_log(self, log: PracticeLog) -> int:
        """Save a practice log without touching review state."""
        with self.connection() as conn:
            return self._insert_practice_log(conn, log)

    def record_practice(
        self,
        log: PracticeLog,
        schedule: Callable[[ReviewState], ReviewState],
    ) -> UserQuestion:
        """
        Save a practice log and reschedule the user's question atomically.

        The current state is loaded (or created with defaults), passed to
        `schedule`, and the result stored, all under one write lock so that
        concurrent ratings of the same question cannot lose an update.

        Args:
            log: The practice event; must have a user_id
            schedule: Maps the current ReviewState to the next one

        Returns:
            The stored UserQuestion row.
        """
        if log.user_id is None:
            raise ValueError("record_practice needs a user_id; use add_practice_log for anonymous practice")

        with self.transaction() as conn:
            uq = self._fetch_user_question(conn, log.user_id, log.question_id)
            if uq is None:
                uq = UserQuestion(user_id=log.user_id, question_id=log.question_id)

            uq.apply(schedule(uq.to_review_state()))
            uq.id = self._upsert_user_question(conn, uq)
            self._insert_practice_log(conn, log)

        logger.debug(
            f"Rescheduled question {log.question_id} for user {log.user_id}: "
            f"reps={uq.repetitions} interval={uq.interval_days}d"
        )
        return uq

    def get_practice_logs(self, user_id: str | None = None, limit: int = 5) -> list[PracticeLog]:
        """Most recent practice logs, for one user or for everyone."""
        query = "SELECT * FROM practice_logs"
        params: tuple = ()
        if user_id is not None:
            query += " WHERE user_id = ?"
            params = (user_id,)
        query += " ORDER BY practiced_at DESC, id DESC LIMIT ?"
        with self.connection() as conn:
            rows = conn.execute(query, params + (limit,)).fetchall()
            return [self._row_to_practice_log(row) for row in rows]

    def get_practice_totals(self, user_id: str | None = None) -> dict:
        """Log count, total seconds and per-rating counts."""
        where, params = ("WHERE user_id = ?", (user_id,)) if user_id is not None else ("", ())
        with self.connection() as conn:
            totals = conn.execute(
                f"""
                SELECT COUNT(*) AS sessions, COALESCE(SUM(time_spent_seconds), 0) AS seconds
                FROM practice_logs {where}
                """,
                params,
            ).fetchone()
            rating_rows = conn.execute(
                f"SELECT self_rating, COUNT(*) AS n FROM practice_logs {where} GROUP BY self_rating",
                params,
            ).fetchall()
        return {
            "sessions": totals["sessions"],
            "seconds": totals["seconds"],
            "by_rating": {row["self_rating"]: row["n"] for row in rating_rows},
        }

    def get_daily_activity(self, since: datetime, user_id: str | None = None) -> list[sqlite3.Row]:
        """Sessions and seconds per UTC day for logs at or after `since`, oldest day first."""
        query = """
            SELECT substr(practiced_at, 1, 10) AS day,
                   COUNT(*) AS sessions,
                   COALESCE(SUM(time_spent_seconds), 0) AS seconds
            FROM practice_logs
            WHERE practiced_at >= ?
        """
        params: tuple = (_to_db_time(since),)
        if user_id is not None:
            query += " AND user_id = ?"
            params += (user_id,)
        query += " GROUP BY day ORDER BY day"
        with self.connection() as conn:
            return conn.execute(query, params).fetchall()

    # Row helpers
    def _fetch_user_question(
        self, conn: sqlite3.Connection, user_id: str, question_id: str
    ) -> UserQuestion | None:
        row = conn.execute(
            "SELECT * FROM user_questions WHERE user_id = ? AND question_id = ?",
            (user_id, question_id),
        ).fetchone()
        return self._row_to_user_question(row) if row else None

    def _upsert_user_question(self, conn: sqlite3.Connection, uq: UserQuestion) -> int:
        now = _to_db_time(datetime.now(timezone.utc))
        conn.execute(
            """
            INSERT INTO user_questions
                (user_id, question_id, ease_factor, interval_days, repetitions,
                 next_review_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, question_id) DO UPDATE SET
                ease_factor = excluded.ease_factor,
                interval_days = excluded.interval_days,
                repetitions = excluded.repetitions,
                next_review_at = excluded.next_review_at,
                updated_at = excluded.updated_at
            """,
            (
                uq.user_id,
                uq.question_id,
                uq.ease_factor,
                uq.interval_days,
                uq.repetitions,
                _to_db_time(uq.next_review_at),
                now,
                now,
            ),
        )
        row = conn.execute(
            "SELECT id FROM user_questions WHERE user_id = ? AND question_id = ?",
            (uq.user_id, uq.question_id),
        ).fetchone()
        return row["id"]

    def _insert_practice_log(self, conn: sqlite3.Connection, log: PracticeLog) -> int:
        cursor = conn.execute(
            """
            INSERT INTO practice_logs
                (user_id, question_id, self_rating, time_spent_seconds, notes, practiced_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                log.user_id,
                log.question_id,
                log.self_rating.value,
                log.time_spent_seconds,
                log.notes,
                _to_db_time(log.practiced_at),
            ),
        )
        log.id = cursor.lastrowid
        return log.id

    def _row_to_user_question(self, row: sqlite3.Row) -> UserQuestion:
        return UserQuestion(
            id=row["id"],
            user_id=row["user_id"],
            question_id=row["question_id"],
            ease_factor=row["ease_factor"],
            interval_days=row["interval_days"],
            repetitions=row["repetitions"],
            next_review_at=_from_db_time(row["next_review_at"]),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
        )

    def _row_to_practice_log(self, row: sqlite3.Row) -> PracticeLog:
        return PracticeLog(
            id=row["id"],
            user_id=row["user_id"],
            question_id=row["question_id"],
            self_rating=SelfRating(row["self_rating"]),
            time_spent_seconds=row["time_spent_seconds"],
            notes=row["notes"],
            practiced_at=_from_db_time(row["practiced_at"]),
        )
