"""Unit tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from subscription_feed import config as config_module
from subscription_feed.config import (
    AggregatorConfig,
    Config,
    DatabaseConfig,
    FetcherConfig,
    get_config,
    load_config_from_yaml,
    reload_config,
)


@pytest.fixture(autouse=True)
def reset_global_config():
    """Drop the cached global configuration around each test."""
    config_module._config = None
    yield
    config_module._config = None


class TestDefaults:
    """Tests for default settings."""

    def test_aggregator_defaults(self):
        """Test the default cutoff window and fetch settings."""
        config = AggregatorConfig()

        assert config.cutoff_weeks == 4
        assert config.parallel_fetch is True
        assert config.max_workers == 4

    def test_fetcher_defaults(self):
        """Test default fetcher settings."""
        config = FetcherConfig()

        assert config.timeout_seconds == 30
        assert config.max_retries == 2
        assert config.follow_redirects is True

    def test_get_config_is_cached(self):
        """Test the global configuration is created once."""
        assert get_config() is get_config()


class TestValidation:
    """Tests for settings validation."""

    def test_cutoff_weeks_bounds(self):
        """Test the cutoff window must be positive."""
        with pytest.raises(ValidationError):
            AggregatorConfig(cutoff_weeks=0)

    def test_max_workers_bounds(self):
        """Test the fetch pool size is bounded."""
        with pytest.raises(ValidationError):
            AggregatorConfig(max_workers=0)

    def test_database_directory_created(self, tmp_path):
        """Test the database directory is created on validation."""
        db_path = tmp_path / "nested" / "feed.db"

        DatabaseConfig(path=str(db_path))

        assert db_path.parent.is_dir()

    def test_memory_database(self):
        """Test the in-memory database path is accepted as is."""
        assert DatabaseConfig(path=":memory:").path == ":memory:"


class TestEnvironment:
    """Tests for environment variable overrides."""

    def test_aggregator_env(self, monkeypatch):
        """Test AGGREGATOR_ variables override defaults."""
        monkeypatch.setenv("AGGREGATOR_CUTOFF_WEEKS", "2")
        monkeypatch.setenv("AGGREGATOR_PARALLEL_FETCH", "false")

        config = Config()

        assert config.aggregator.cutoff_weeks == 2
        assert config.aggregator.parallel_fetch is False

    def test_fetcher_env(self, monkeypatch):
        """Test FETCHER_ variables override defaults."""
        monkeypatch.setenv("FETCHER_TIMEOUT_SECONDS", "5")

        assert Config().fetcher.timeout_seconds == 5


class TestLoadConfigFromYaml:
    """Tests for load_config_from_yaml."""

    def test_load_nested_sections(self, tmp_path):
        """Test loading nested sections from YAML."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({
            "debug": True,
            "aggregator": {"cutoff_weeks": 8, "max_workers": 2},
            "scheduler": {"refresh_interval_minutes": 10},
            "database": {"path": ":memory:"},
        }))

        config = load_config_from_yaml(str(config_file))

        assert config.debug is True
        assert config.aggregator.cutoff_weeks == 8
        assert config.aggregator.max_workers == 2
        assert config.aggregator.parallel_fetch is True
        assert config.scheduler.refresh_interval_minutes == 10
        assert config.database.path == ":memory:"

    def test_env_fills_unset_fields(self, tmp_path, monkeypatch):
        """Test environment variables still apply to fields missing in YAML."""
        monkeypatch.setenv("AGGREGATOR_MAX_WORKERS", "7")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"aggregator": {"cutoff_weeks": 3}}))

        config = load_config_from_yaml(str(config_file))

        assert config.aggregator.cutoff_weeks == 3
        assert config.aggregator.max_workers == 7

    def test_empty_file(self, tmp_path):
        """Test an empty YAML file yields defaults."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        config = load_config_from_yaml(str(config_file))

        assert config.aggregator.cutoff_weeks == 4

    def test_invalid_value(self, tmp_path):
        """Test invalid values in YAML are rejected."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"aggregator": {"cutoff_weeks": 100}}))

        with pytest.raises(ValidationError):
            load_config_from_yaml(str(config_file))

    def test_missing_file(self, tmp_path):
        """Test loading a file that does not exist."""
        with pytest.raises(FileNotFoundError):
            load_config_from_yaml(str(tmp_path / "missing.yaml"))


class TestReloadConfig:
    """Tests for reload_config."""

    def test_reload_reads_config_yaml(self, tmp_path, monkeypatch):
        """Test config/config.yaml in the working directory is picked up."""
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text(yaml.dump({"fetcher": {"max_retries": 0}}))
        monkeypatch.chdir(tmp_path)

        config = reload_config()

        assert config.fetcher.max_retries == 0
        assert get_config() is config

    def test_reload_without_yaml(self, tmp_path, monkeypatch):
        """Test reloading without a YAML file uses defaults."""
        monkeypatch.chdir(tmp_path)

        config = reload_config()

        assert config.fetcher.max_retries == 2
