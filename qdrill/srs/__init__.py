"""SM-2 scheduling, due classification and status derivation."""
