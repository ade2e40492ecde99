"""Database models for qdrill."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from qdrill.constants import DEFAULT_EASE_FACTOR
from qdrill.srs.sm2 import ReviewState, SelfRating


@dataclass
class UserQuestion:
    """SM-2 review state of one question for one user."""

    id: int | None = None
    user_id: str = ""
    question_id: str = ""
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    repetitions: int = 0
    next_review_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_review_state(self) -> ReviewState:
        """Scheduler view of this row. Validates the stored values."""
        return ReviewState(
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            repetitions=self.repetitions,
            next_review_at=self.next_review_at,
        )

    def apply(self, state: ReviewState) -> None:
        """Copy a newly scheduled state onto this row."""
        self.ease_factor = state.ease_factor
        self.interval_days = state.interval_days
        self.repetitions = state.repetitions
        self.next_review_at = state.next_review_at


@dataclass
class PracticeLog:
    """Record of a single practice event."""

    id: int | None = None
    user_id: str | None = None  # None for anonymous practice
    question_id: str = ""
    self_rating: SelfRating = SelfRating.FAIR
    time_spent_seconds: int | None = None
    notes: str | None = None
    practiced_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
