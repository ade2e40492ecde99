"""Due-for-review classification.

Review state only changes when a practice event is logged, while due status
changes with the wall clock, so it is computed on read and never stored.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from qdrill.constants import DEFAULT_LOCALE

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


class DueTag(Enum):
    NEVER_REVIEWED = "never_reviewed"
    DUE_NOW = "due_now"
    DUE_IN_N_DAYS = "due_in_n_days"


DueFormatter = Callable[[DueTag, int | None], str]


# Keyed by locale, then by message id
DUE_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "never_reviewed": "Not reviewed yet",
        "due_now": "Due now",
        "due_tomorrow": "Due tomorrow",
        "due_in_days": "Due in {days} days",
        "due_in_weeks": "Due in ~{weeks} weeks",
    },
    "vi": {
        "never_reviewed": "Chưa ôn tập",
        "due_now": "Đến hạn ôn tập",
        "due_tomorrow": "Đến hạn vào ngày mai",
        "due_in_days": "Đến hạn sau {days} ngày",
        "due_in_weeks": "Đến hạn sau ~{weeks} tuần",
    },
}


class DueTextFormatter:
    """Render a due tag as human text in one locale.

    Up to a week out the text counts days; beyond that it rounds up to weeks.
    """

    def __init__(self, locale: str = DEFAULT_LOCALE):
        if locale not in DUE_MESSAGES:
            logger.debug(f"No due-text messages for locale {locale!r}, using {DEFAULT_LOCALE}")
            locale = DEFAULT_LOCALE
        self.locale = locale
        self.messages = DUE_MESSAGES[locale]

    def __call__(self, tag: DueTag, days_until: int | None) -> str:
        if tag is DueTag.NEVER_REVIEWED:
            return self.messages["never_reviewed"]
        if tag is DueTag.DUE_NOW or not days_until or days_until <= 0:
            return self.messages["due_now"]
        if days_until == 1:
            return self.messages["due_tomorrow"]
        if days_until <= 7:
            return self.messages["due_in_days"].format(days=days_until)
        return self.messages["due_in_weeks"].format(weeks=math.ceil(days_until / 7))


@dataclass
class DueStatus:
    """Where a question stands relative to now."""

    is_due: bool
    days_until: int | None
    tag: DueTag
    text: str

    def to_dict(self) -> dict[str, Any]:
        """API shape: isDue/daysUntil/text, daysUntil omitted when unknown."""
        data: dict[str, Any] = {"isDue": self.is_due, "text": self.text, "tag": self.tag.value}
        if self.days_until is not None:
            data["daysUntil"] = self.days_until
        return data


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, partial days rounded up."""
    return math.ceil((end - start) / ONE_DAY)


def classify_due_status(
    next_review_at: datetime | None,
    now: datetime,
    formatter: DueFormatter | None = None,
) -> DueStatus:
    """
    Classify a scheduled review time relative to now.

    Args:
        next_review_at: When the question is next due, None if never scheduled
        now: Reference time
        formatter: Renders (tag, days_until) into text; English by default

    Returns:
        DueStatus. Overdue questions report days_until=0.
    """
    formatter = formatter or DueTextFormatter()

    if next_review_at is None:
        tag, is_due, days_until = DueTag.NEVER_REVIEWED, True, None
    elif next_review_at <= now:
        tag, is_due, days_until = DueTag.DUE_NOW, True, 0
    else:
        tag, is_due, days_until = DueTag.DUE_IN_N_DAYS, False, days_between(now, next_review_at)

    return DueStatus(
        is_due=is_due,
        days_until=days_until,
        tag=tag,
        text=formatter(tag, days_until),
    )
