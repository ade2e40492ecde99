"""SM-2 Spaced Repetition Algorithm.

Based on the SuperMemo SM-2 algorithm by Piotr Wozniak.
https://www.supermemo.com/en/blog/application-of-a-computer-to-improve-the-results-obtained-in-working-with-the-supermemo-method

Users rate their recall on a 4-point scale (poor/fair/good/great) rather than
SM-2's native 0-5 quality, so ratings are mapped onto quality first.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from qdrill.constants import DEFAULT_EASE_FACTOR, MIN_EASE_FACTOR, PASS_QUALITY
from qdrill.srs.errors import InvalidRating, InvalidState


class SelfRating(Enum):
    """Self-assessed recall quality, given after revealing the answer."""

    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    GREAT = "great"


# Only POOR falls below PASS_QUALITY
RATING_QUALITY = {
    SelfRating.POOR: 1,  # Poor recall
    SelfRating.FAIR: 3,  # Hard recall
    SelfRating.GOOD: 4,  # Good recall
    SelfRating.GREAT: 5,  # Perfect recall
}


@dataclass
class ReviewState:
    """Per-user SM-2 state for one question."""

    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    repetitions: int = 0
    next_review_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.interval_days < 0:
            raise InvalidState(f"interval_days must be >= 0, got {self.interval_days}")
        if self.repetitions < 0:
            raise InvalidState(f"repetitions must be >= 0, got {self.repetitions}")
        # Ease below the floor is clamped, not rejected
        self.ease_factor = max(MIN_EASE_FACTOR, float(self.ease_factor))

    @classmethod
    def initial(cls) -> "ReviewState":
        """State for a question the user has never practiced."""
        return cls()


@dataclass
class SM2Result:
    """Result of an SM-2 calculation."""

    easiness_factor: float
    interval_days: int
    repetitions: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def calculate_sm2(
    quality: int,
    easiness_factor: float = DEFAULT_EASE_FACTOR,
    interval_days: int = 0,
    repetitions: int = 0,
) -> SM2Result:
    """
    Calculate the next review interval using the SM-2 algorithm.

    Args:
        quality: SM-2 quality, clamped to 0-5. Self-ratings arrive through
            RATING_QUALITY: poor=1, fair=3, good=4, great=5. Anything below
            PASS_QUALITY (only poor) is a lapse that resets repetitions and
            brings the question back tomorrow.

        easiness_factor: Current easiness factor (default 2.5)
        interval_days: Current interval in days
        repetitions: Number of consecutive correct responses

    Returns:
        SM2Result with updated values.
    """
    # Clamp quality to valid range
    quality = max(0, min(5, quality))

    # Update easiness factor, lapses included
    new_ef = easiness_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    if quality >= PASS_QUALITY:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = 1
        elif new_repetitions == 2:
            new_interval = 6
        else:
            new_interval = round_half_up(interval_days * new_ef)
    else:
        # Incorrect response - review again tomorrow
        new_interval = 1
        new_repetitions = 0

    return SM2Result(
        easiness_factor=new_ef,
        interval_days=new_interval,
        repetitions=new_repetitions,
    )


def parse_rating(value: SelfRating | str) -> SelfRating:
    """Convert user input to a SelfRating, raising InvalidRating if unknown."""
    if isinstance(value, SelfRating):
        return value
    if isinstance(value, str):
        try:
            return SelfRating(value.strip().lower())
        except ValueError:
            pass
    raise InvalidRating(value)


def quality_for_rating(rating: SelfRating | str) -> int:
    """SM-2 quality (0-5) for a self-rating."""
    return RATING_QUALITY[parse_rating(rating)]


def schedule_next_review(
    state: ReviewState,
    rating: SelfRating | str,
    now: datetime,
) -> ReviewState:
    """
    Compute the review state after one practice event.

    Args:
        state: Current state (ReviewState.initial() for a first practice)
        rating: The user's self-rating
        now: Time of the practice event; next_review_at is measured from it

    Returns:
        A new ReviewState. The input state is left untouched.
    """
    result = calculate_sm2(
        quality=quality_for_rating(rating),
        easiness_factor=state.ease_factor,
        interval_days=state.interval_days,
        repetitions=state.repetitions,
    )
    return ReviewState(
        ease_factor=result.easiness_factor,
        interval_days=result.interval_days,
        repetitions=result.repetitions,
        next_review_at=now + timedelta(days=result.interval_days),
    )
