"""Learning status derived from a user's SM-2 repetition count."""

from collections.abc import Iterable
from enum import Enum

from qdrill.constants import MASTERED_REPETITIONS


class QuestionStatus(Enum):
    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


def derive_question_status(repetitions: int) -> QuestionStatus:
    """
    Map a repetition count onto a learning status.

    - repetitions = 0   -> NEW       (never practiced, or reset by a lapse)
    - repetitions 1-3   -> LEARNING
    - repetitions >= 4  -> MASTERED

    Negative counts are treated as 0.
    """
    if repetitions >= MASTERED_REPETITIONS:
        return QuestionStatus.MASTERED
    if repetitions >= 1:
        return QuestionStatus.LEARNING
    return QuestionStatus.NEW


def count_by_status(repetitions: Iterable[int], untracked: int = 0) -> dict[str, int]:
    """Count questions per status; untracked questions count as new."""
    counts = {status.value: 0 for status in QuestionStatus}
    for reps in repetitions:
        counts[derive_question_status(reps).value] += 1
    counts[QuestionStatus.NEW.value] += max(0, untracked)
    return counts
