"""
Configuration management and loading.

Handles storage paths, aggregation defaults and log level.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cost_dashboard.core.aggregation import ParseError, parse_max_display

DEFAULT_RECORDS_PATH = "data/mockData.json"
DEFAULT_DASHBOARDS_PATH = "data/charts.json"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class StorageConfig:
    """Locations of the record file and the dashboard document."""
    records_path: str = DEFAULT_RECORDS_PATH
    dashboards_path: str = DEFAULT_DASHBOARDS_PATH

    def __post_init__(self):
        """Validate paths are non-empty."""
        if not self.records_path:
            raise ValueError("records_path cannot be empty")
        if not self.dashboards_path:
            raise ValueError("dashboards_path cannot be empty")


@dataclass(frozen=True)
class AggregationConfig:
    """Defaults applied to aggregation queries."""
    default_max_display: str = "all"

    def __post_init__(self):
        """Validate the default max-display value."""
        try:
            parse_max_display(self.default_max_display)
        except ParseError as e:
            raise ValueError(f"invalid default_max_display: {e}")


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"

    def __post_init__(self):
        if self.level not in LOG_LEVELS:
            raise ValueError(f"logging level must be one of: {list(LOG_LEVELS)}")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def default(cls) -> "AppConfig":
        """Configuration with built-in defaults."""
        return cls()


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration from a YAML file.

    Validation is strict: unknown keys and wrong types are rejected
    instead of being ignored.

    Args:
        path: Path to YAML configuration file, or None for defaults

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    if path is None:
        return AppConfig.default()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'storage', 'aggregation', 'logging'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    # Storage is the only required section
    if 'storage' not in raw_config:
        raise ValueError("Missing required 'storage' section")

    storage_data = _section(raw_config, 'storage', {'records_path', 'dashboards_path'})
    for key in ('records_path', 'dashboards_path'):
        if key not in storage_data:
            raise ValueError(f"Missing required '{key}' in storage")
        if not isinstance(storage_data[key], str):
            raise ValueError(f"'{key}' in storage must be a string")

    storage = StorageConfig(
        records_path=storage_data['records_path'],
        dashboards_path=storage_data['dashboards_path']
    )

    aggregation_data = _section(raw_config, 'aggregation', {'default_max_display'})
    max_display = aggregation_data.get('default_max_display', "all")
    if isinstance(max_display, bool) or not isinstance(max_display, (str, int)):
        raise ValueError("'default_max_display' must be \"all\" or an integer")
    aggregation = AggregationConfig(default_max_display=str(max_display))

    logging_data = _section(raw_config, 'logging', {'level'})
    level = logging_data.get('level', "INFO")
    if not isinstance(level, str):
        raise ValueError("'level' in logging must be a string")

    return AppConfig(
        storage=storage,
        aggregation=aggregation,
        logging=LoggingConfig(level=level.upper())
    )


def _section(raw_config: Dict[str, Any], name: str, allowed_keys: set) -> Dict[str, Any]:
    """Return a validated configuration section, or {} if absent.

    Raises:
        ValueError: If the section is not a dictionary or has unknown keys
    """
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown {name} keys: {unknown_keys}")
    return data
