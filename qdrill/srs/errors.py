"""Errors raised by the scheduling core."""


class SchedulingError(Exception):
    """Base class for scheduling input errors."""


class InvalidRating(SchedulingError, ValueError):
    """A self-rating outside poor/fair/good/great."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid self-rating: {value!r} (expected poor, fair, good or great)")


class InvalidState(SchedulingError, ValueError):
    """Stored review state that cannot have been produced by the scheduler."""
