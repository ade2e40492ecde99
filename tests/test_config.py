"""Tests for configuration management."""

import logging
import os
from unittest.mock import patch

import pytest

from qdrill.config import Config, DEFAULT_DATABASE_PATH, DUE_QUEUE_LIMIT
from qdrill.db.database import Database
from qdrill.practice.service import PracticeService


class TestConfigDefaults:
    """Tests for Config dataclass defaults."""

    def test_config_default_values(self):
        """Config should have sensible defaults."""
        config = Config()
        assert config.database_path == DEFAULT_DATABASE_PATH
        assert config.default_locale == "en"
        assert config.due_queue_limit == DUE_QUEUE_LIMIT
        assert config.log_level == "INFO"


class TestConfigFromEnv:
    """Tests for Config.from_env() loading."""

    def test_from_env_loads_all_vars(self):
        """from_env should load all environment variables."""
        env_vars = {
            "DATABASE_PATH": "/tmp/qdrill-test.db",
            "DEFAULT_LOCALE": "vi",
            "DUE_QUEUE_LIMIT": "50",
            "LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env_vars, clear=True), patch("qdrill.config.load_dotenv"):
            config = Config.from_env()

        assert config.database_path == "/tmp/qdrill-test.db"
        assert config.default_locale == "vi"
        assert config.due_queue_limit == 50
        assert config.log_level == "DEBUG"

    def test_from_env_uses_defaults_for_missing(self):
        """from_env should use defaults when vars are missing."""
        with patch.dict(os.environ, {}, clear=True), patch("qdrill.config.load_dotenv"):
            config = Config.from_env()

        assert config.database_path == DEFAULT_DATABASE_PATH
        assert config.default_locale == "en"
        assert config.due_queue_limit == DUE_QUEUE_LIMIT

    def test_from_env_rejects_unsupported_locale(self):
        with patch.dict(os.environ, {"DEFAULT_LOCALE": "klingon"}, clear=True), patch(
            "qdrill.config.load_dotenv"
        ):
            config = Config.from_env()
        assert config.default_locale == "en"

    def test_from_env_bad_queue_limit(self):
        with patch.dict(os.environ, {"DUE_QUEUE_LIMIT": "lots"}, clear=True), patch(
            "qdrill.config.load_dotenv"
        ):
            config = Config.from_env()
        assert config.due_queue_limit == DUE_QUEUE_LIMIT

    def test_from_env_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DATABASE_PATH=/srv/qdrill.db\n")
        with patch.dict(os.environ, {}, clear=True):
            config = Config.from_env(str(env_file))
        assert config.database_path == "/srv/qdrill.db"


class TestSafeInt:
    """Tests for Config._safe_int helper."""

    def test_safe_int_valid_integer(self):
        assert Config._safe_int("123") == 123
        assert Config._safe_int("-5") == -5

    def test_safe_int_invalid_returns_default(self):
        assert Config._safe_int("not_a_number") == 0
        assert Config._safe_int("12.5") == 0
        assert Config._safe_int("") == 0

    def test_safe_int_none_returns_default(self):
        assert Config._safe_int(None, default=99) == 99


class TestEnsureDatabaseDir:
    def test_creates_parent(self, tmp_path):
        config = Config(database_path=str(tmp_path / "nested" / "qdrill.db"))
        config.ensure_database_dir()
        assert (tmp_path / "nested").is_dir()


class TestConfigureLogging:
    def test_uses_configured_level(self):
        with patch("qdrill.config.logging.basicConfig") as basic_config:
            Config(log_level="WARNING").configure_logging()
        assert basic_config.call_args.kwargs["level"] == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        with patch("qdrill.config.logging.basicConfig") as basic_config:
            Config(log_level="CHATTY").configure_logging()
        assert basic_config.call_args.kwargs["level"] == logging.INFO

    def test_default_level_is_info(self, config):
        with patch("qdrill.config.logging.basicConfig") as basic_config:
            config.configure_logging()
        assert basic_config.call_args.kwargs["level"] == logging.INFO


class TestConfigWiring:
    """Tests for building the storage and service layers from a Config."""

    def test_in_memory_database_path(self, config):
        """An in-memory path needs no directory and serves a working store."""
        db = Database(config.database_path)
        db.init_schema()
        try:
            assert db.get_practice_logs() == []
        finally:
            db.close()

    def test_service_uses_configured_locale(self, config):
        config.default_locale = "vi"
        service = PracticeService(Database(config.database_path), default_locale=config.default_locale)
        assert service.default_locale == "vi"
