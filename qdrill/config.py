"""Configuration management for qdrill."""

# This module centralizes all environment variable loading and configuration
# for qdrill: database location, display locale, queue sizes and log level.

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from qdrill.constants import DEFAULT_LOCALE, SUPPORTED_LOCALES

DEFAULT_DATABASE_PATH = "data/qdrill.db"

# Number of questions returned by the due-for-review queue
DUE_QUEUE_LIMIT = 20


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Database
    database_path: str = DEFAULT_DATABASE_PATH

    # Presentation
    default_locale: str = DEFAULT_LOCALE
    due_queue_limit: int = DUE_QUEUE_LIMIT

    # Logging
    log_level: str = "INFO"

    @staticmethod
    def _safe_int(value: str, default: int = 0) -> int:
        """Safely parse an integer, returning default if invalid."""
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    @staticmethod
    def _safe_locale(value: str | None) -> str:
        """Return value if it is a supported locale, else the default."""
        if value and value.lower() in SUPPORTED_LOCALES:
            return value.lower()
        return DEFAULT_LOCALE

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        return cls(
            database_path=os.environ.get("DATABASE_PATH", DEFAULT_DATABASE_PATH),
            default_locale=cls._safe_locale(os.environ.get("DEFAULT_LOCALE")),
            due_queue_limit=cls._safe_int(
                os.environ.get("DUE_QUEUE_LIMIT", str(DUE_QUEUE_LIMIT)), DUE_QUEUE_LIMIT
            ),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def ensure_database_dir(self) -> None:
        """Ensure the database directory exists."""
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

    def configure_logging(self) -> None:
        """Set up root logging at the configured level."""
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
