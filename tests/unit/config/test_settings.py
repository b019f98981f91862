"""Unit tests for configuration."""

from pathlib import Path

import pytest
from markdown_index_sync.config import Environment, SyncConfig
from markdown_index_sync.config.settings import DEV_POLL_INTERVAL, PROD_POLL_INTERVAL
from markdown_index_sync.models import ConfigurationError


class TestSyncConfig:
    """Test cases for SyncConfig."""

    def test_defaults(self):
        config = SyncConfig(_env_file=None)

        assert config.content_dir == Path("md")
        assert config.db_path == Path("idx.db")
        assert config.content_extensions == [".md"]
        assert config.environment == Environment.PROD
        assert config.force_reindex is False
        assert config.prune_orphans is False

    def test_environment_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MARKDOWN_INDEX_SYNC_CONTENT_DIR", str(tmp_path))
        monkeypatch.setenv("MARKDOWN_INDEX_SYNC_FORCE_REINDEX", "true")

        config = SyncConfig(_env_file=None)

        assert config.content_dir == tmp_path
        assert config.force_reindex is True

    def test_poll_interval_by_environment(self):
        assert SyncConfig(_env_file=None, environment="prod").poll_interval == PROD_POLL_INTERVAL
        assert SyncConfig(_env_file=None, environment="dev").poll_interval == DEV_POLL_INTERVAL
        assert SyncConfig(_env_file=None, environment="dev", poll_interval_seconds=5).poll_interval == 5

    def test_extensions_normalised(self):
        config = SyncConfig(_env_file=None, content_extensions=["MD", ".Markdown"])

        assert config.content_extensions == [".md", ".markdown"]
        assert config.is_file_supported("/docs/readme.MD")
        assert not config.is_file_supported("/docs/readme.txt")

    def test_empty_extensions_rejected(self):
        with pytest.raises(ConfigurationError):
            SyncConfig(_env_file=None, content_extensions=[])

    def test_search_url(self):
        config = SyncConfig(_env_file=None, search_url="http://search:5678/api/")

        assert config.search_url == "http://search:5678/api"
        assert config.endpoint("index/remove") == "http://search:5678/api/index/remove"

    def test_invalid_search_url(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SyncConfig(_env_file=None, search_url="search:5678")

        assert exc_info.value.context["config_key"] == "search_url"

    def test_should_ignore_file(self, tmp_path):
        config = SyncConfig(_env_file=None, content_dir=tmp_path, ignored_patterns=["drafts/*", "*.swp", "demo.md"])

        assert config.should_ignore_file(tmp_path / "drafts" / "a.md")
        assert config.should_ignore_file(tmp_path / "notes" / "demo.md")
        assert config.should_ignore_file(tmp_path / ".a.md.swp")
        assert not config.should_ignore_file(tmp_path / "notes" / "a.md")

    def test_log_config(self, tmp_path):
        config = SyncConfig(_env_file=None, log_file=tmp_path / "sync.log", debug_mode=True)

        log_config = config.get_log_config()

        assert log_config["handlers"]["default"]["class"] == "logging.FileHandler"
        assert log_config["handlers"]["default"]["filename"] == str(tmp_path / "sync.log")
        assert log_config["loggers"]["markdown_index_sync"]["level"] == "DEBUG"
