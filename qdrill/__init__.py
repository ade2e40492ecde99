"""Spaced-repetition practice core for an interview-question library."""

__version__ = "0.1.0"
