"""
Tests for configuration loading and indexing backend selection.
"""

import json

import pytest

from feedpress.config.settings import AIProvider, FeedPressSettings, QueueBackend, load_settings
from feedpress.indexing.database_queue import DatabaseIndexingQueue
from feedpress.indexing.factory import create_indexing_queue, resolve_backend
from feedpress.indexing.memory_queue import MemoryIndexingQueue
from feedpress.utils.exceptions import ConfigurationError


class TestSettings:
    """Test suite for FeedPressSettings."""

    def test_defaults(self):
        settings = FeedPressSettings()

        assert settings.app_name == "FeedPress"
        assert settings.indexing.enabled is False
        assert settings.indexing.max_retries == 3
        assert settings.indexing.rate_limit_delay == 1.0
        assert settings.indexing.queue_backend == QueueBackend.AUTO
        assert settings.scheduler.sweep_interval_minutes == 30
        assert settings.features.text_replacements_enabled is False
        assert settings.ai.provider_order == [AIProvider.GEMINI, AIProvider.GROQ, AIProvider.OPENROUTER]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FEEDPRESS_INDEXING__MAX_RETRIES", "5")
        monkeypatch.setenv("FEEDPRESS_AI__GROQ_API_KEY", "gsk-test")
        monkeypatch.setenv("FEEDPRESS_DEBUG", "true")

        settings = FeedPressSettings()

        assert settings.indexing.max_retries == 5
        assert settings.ai.get_api_key(AIProvider.GROQ) == "gsk-test"
        assert settings.ai.has_credentials()
        assert settings.get_effective_log_level() == "DEBUG"

    def test_site_url_trailing_slash_removed(self):
        settings = FeedPressSettings(indexing={"site_url": "https://news.example.com/"})
        assert settings.indexing.site_url == "https://news.example.com"

    def test_service_account_parsing(self):
        info = {"project_id": "feedpress-test", "client_email": "bot@example.com"}
        settings = FeedPressSettings(indexing={"service_account_json": json.dumps(info)})
        assert settings.indexing.get_service_account_info() == info

    def test_invalid_service_account_json(self):
        settings = FeedPressSettings(indexing={"service_account_json": "{not json"})
        with pytest.raises(ConfigurationError):
            settings.indexing.get_service_account_info()

    def test_indexing_requires_site_url(self, tmp_path):
        settings = FeedPressSettings(
            database={"path": str(tmp_path / "db" / "feedpress.db")},
            logging={"file_path": None},
            indexing={"enabled": True},
        )
        with pytest.raises(ConfigurationError, match="site_url"):
            settings.validate_configuration()

    def test_valid_configuration_creates_directories(self, tmp_path):
        settings = FeedPressSettings(
            database={"path": str(tmp_path / "db" / "feedpress.db")},
            logging={"file_path": str(tmp_path / "logs" / "feedpress.log")},
            indexing={"enabled": True, "site_url": "https://news.example.com"},
        )

        settings.validate_configuration()

        assert (tmp_path / "db").is_dir()
        assert (tmp_path / "logs").is_dir()

    def test_load_settings_wraps_invalid_values(self, monkeypatch):
        monkeypatch.setenv("FEEDPRESS_INDEXING__MAX_RETRIES", "-1")
        with pytest.raises(ConfigurationError):
            load_settings()

    @pytest.mark.parametrize(
        "environment, debug, production",
        [("production", False, True), ("Production", False, True), ("production", True, False), ("test", False, False)],
    )
    def test_production_mode(self, environment, debug, production):
        assert FeedPressSettings(environment=environment, debug=debug).is_production_mode() is production


class TestQueueBackendSelection:
    @pytest.mark.parametrize(
        "backend, environment, expected",
        [
            ("auto", "production", QueueBackend.MEMORY),
            ("auto", "development", QueueBackend.DATABASE),
            ("database", "production", QueueBackend.DATABASE),
            ("memory", "development", QueueBackend.MEMORY),
        ],
    )
    def test_resolve_backend(self, backend, environment, expected):
        settings = FeedPressSettings(environment=environment, indexing={"queue_backend": backend})
        assert resolve_backend(settings) == expected

    def test_database_backend(self, test_settings, db_connection, fake_notifier):
        queue = create_indexing_queue(test_settings, db_connection, notifier=fake_notifier, auto_drain=False)

        assert isinstance(queue, DatabaseIndexingQueue)
        assert queue.max_retries == 3
        assert queue.rate_limit_delay == 0.0

    def test_database_backend_without_connection_uses_memory(self, test_settings, fake_notifier):
        queue = create_indexing_queue(test_settings, None, notifier=fake_notifier)
        assert isinstance(queue, MemoryIndexingQueue)

    def test_memory_backend(self, fake_notifier):
        settings = FeedPressSettings(indexing={"queue_backend": "memory"})
        assert isinstance(create_indexing_queue(settings, notifier=fake_notifier), MemoryIndexingQueue)
