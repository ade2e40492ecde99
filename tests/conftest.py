"""Shared pytest fixtures for the qdrill test suite."""

import pytest
from datetime import datetime, timezone

from qdrill.config import Config
from qdrill.db.database import Database
from qdrill.db.models import PracticeLog, UserQuestion
from qdrill.practice.service import PracticeService
from qdrill.srs.sm2 import ReviewState, SelfRating


@pytest.fixture
def now():
    """Fixed reference time so schedules are reproducible."""
    return datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def memory_db(tmp_path):
    """Create a temporary SQLite database for fast tests.

    Note: We use a temp file instead of :memory: because SQLite
    in-memory databases don't persist between connections, and
    each thread gets its own connection.
    """
    db_path = tmp_path / "memory_test.db"
    db = Database(str(db_path))
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def service(memory_db):
    """Practice service over the temporary database."""
    return PracticeService(memory_db)


@pytest.fixture
def initial_state():
    """Review state for a never-practiced question."""
    return ReviewState.initial()


@pytest.fixture
def learning_state(now):
    """Review state after two successful reviews."""
    return ReviewState(ease_factor=2.5, interval_days=6, repetitions=2, next_review_at=now)


@pytest.fixture
def sample_user_question(now):
    """Sample stored review state."""
    return UserQuestion(
        user_id="user-1",
        question_id="q-closures",
        ease_factor=2.36,
        interval_days=6,
        repetitions=2,
        next_review_at=now,
    )


@pytest.fixture
def sample_log(now):
    """Sample practice log for testing."""
    return PracticeLog(
        user_id="user-1",
        question_id="q-closures",
        self_rating=SelfRating.GOOD,
        time_spent_seconds=90,
        notes="Forgot about late binding",
        practiced_at=now,
    )


@pytest.fixture
def config():
    """Test configuration."""
    return Config(database_path=":memory:", default_locale="en")
