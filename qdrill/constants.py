"""Shared constants for qdrill."""

# SM-2 defaults
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
PASS_QUALITY = 3  # Quality at or above this is a successful recall

# Repetition count at which a question counts as mastered
MASTERED_REPETITIONS = 4

# Locales with due-text translations - the first is the fallback
LOCALES = ("en", "vi")
DEFAULT_LOCALE = LOCALES[0]

# As a frozenset for O(1) membership testing
SUPPORTED_LOCALES = frozenset(LOCALES)
