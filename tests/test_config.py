"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for application configs.
"""

import os
import tempfile

import pytest
import yaml

from cost_dashboard.config.loader import (
    DEFAULT_DASHBOARDS_PATH,
    DEFAULT_RECORDS_PATH,
    AggregationConfig,
    AppConfig,
    LoggingConfig,
    StorageConfig,
    load_config
)


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_data = {
            "storage": {
                "records_path": "/srv/data/records.json",
                "dashboards_path": "/srv/data/charts.json"
            },
            "aggregation": {
                "default_max_display": "5"
            },
            "logging": {
                "level": "debug"
            }
        }

        config = load_config(self._write_config(config_data))

        assert config.storage.records_path == "/srv/data/records.json"
        assert config.storage.dashboards_path == "/srv/data/charts.json"
        assert config.aggregation.default_max_display == "5"
        assert config.logging.level == "DEBUG"

    def test_optional_sections_default(self):
        """Test that aggregation and logging sections are optional."""
        config_data = {
            "storage": {
                "records_path": "records.json",
                "dashboards_path": "charts.json"
            }
        }

        config = load_config(self._write_config(config_data))

        assert config.aggregation.default_max_display == "all"
        assert config.logging.level == "INFO"

    def test_integer_max_display_is_accepted(self):
        config_data = {
            "storage": {"records_path": "r.json", "dashboards_path": "c.json"},
            "aggregation": {"default_max_display": 3}
        }

        config = load_config(self._write_config(config_data))

        assert config.aggregation.default_max_display == "3"

    def test_no_path_returns_defaults(self):
        config = load_config(None)

        assert config == AppConfig.default()
        assert config.storage.records_path == DEFAULT_RECORDS_PATH
        assert config.storage.dashboards_path == DEFAULT_DASHBOARDS_PATH

    def test_missing_file_raises_error(self):
        """Test that missing config file raises error."""
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config("nonexistent.yaml")

    def test_empty_config_raises_error(self):
        """Test that empty config file raises error."""
        config_path = self._write_config({})

        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_config(config_path)

    def test_invalid_yaml_raises_error(self):
        """Test that invalid YAML raises error."""
        config_path = os.path.join(self.temp_dir, "invalid.yaml")
        with open(config_path, 'w') as f:
            f.write("invalid: yaml: content: [")

        with pytest.raises(yaml.YAMLError):
            load_config(config_path)

    def test_non_mapping_config_raises_error(self):
        config_path = self._write_config(["storage"])

        with pytest.raises(ValueError, match="must be a dictionary"):
            load_config(config_path)

    def test_missing_storage_raises_error(self):
        """Test that missing storage section raises error."""
        config_path = self._write_config({"logging": {"level": "INFO"}})

        with pytest.raises(ValueError, match="Missing required 'storage' section"):
            load_config(config_path)

    def test_missing_storage_path_raises_error(self):
        config_path = self._write_config({"storage": {"records_path": "r.json"}})

        with pytest.raises(ValueError, match="Missing required 'dashboards_path'"):
            load_config(config_path)

    def test_unknown_top_level_key_raises_error(self):
        config_data = {
            "storage": {"records_path": "r.json", "dashboards_path": "c.json"},
            "cors": {"origins": ["http://localhost:3000"]}
        }

        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_config(self._write_config(config_data))

    def test_unknown_section_key_raises_error(self):
        config_data = {
            "storage": {"records_path": "r.json", "dashboards_path": "c.json", "backend": "s3"}
        }

        with pytest.raises(ValueError, match="Unknown storage keys"):
            load_config(self._write_config(config_data))

    def test_section_must_be_mapping(self):
        config_data = {
            "storage": {"records_path": "r.json", "dashboards_path": "c.json"},
            "logging": "INFO"
        }

        with pytest.raises(ValueError, match="'logging' must be a dictionary"):
            load_config(self._write_config(config_data))

    def test_non_string_path_raises_error(self):
        config_data = {"storage": {"records_path": 42, "dashboards_path": "c.json"}}

        with pytest.raises(ValueError, match="'records_path' in storage must be a string"):
            load_config(self._write_config(config_data))

    def test_invalid_max_display_raises_error(self):
        config_data = {
            "storage": {"records_path": "r.json", "dashboards_path": "c.json"},
            "aggregation": {"default_max_display": "top-ten"}
        }

        with pytest.raises(ValueError, match="invalid default_max_display"):
            load_config(self._write_config(config_data))

    def test_invalid_log_level_raises_error(self):
        config_data = {
            "storage": {"records_path": "r.json", "dashboards_path": "c.json"},
            "logging": {"level": "LOUD"}
        }

        with pytest.raises(ValueError, match="logging level must be one of"):
            load_config(self._write_config(config_data))


class TestConfigDataclasses:
    """Test configuration dataclass validation."""

    def test_empty_paths_rejected(self):
        with pytest.raises(ValueError, match="records_path cannot be empty"):
            StorageConfig(records_path="", dashboards_path="c.json")
        with pytest.raises(ValueError, match="dashboards_path cannot be empty"):
            StorageConfig(records_path="r.json", dashboards_path="")

    def test_aggregation_default_accepts_all(self):
        assert AggregationConfig("ALL").default_max_display == "ALL"

    def test_negative_max_display_rejected(self):
        with pytest.raises(ValueError):
            AggregationConfig("-3")

    def test_configs_are_frozen(self):
        config = LoggingConfig()
        with pytest.raises(Exception):
            config.level = "DEBUG"
