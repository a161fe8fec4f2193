"""Configuration management for storyfeed."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import toml

from storyfeed.gateways.graphql import DEFAULT_ENDPOINT_URL, DEFAULT_TIMEOUT
from storyfeed.ui.constants import (
    FILTER_DEBOUNCE_MS,
    POST_ITEM_HEIGHT,
    POST_OVERSCAN,
    POSTS_PER_PAGE,
    SCROLL_ROOT_MARGIN,
    SCROLL_THRESHOLD,
)

ALLOWED_THEMES = ["Newsprint", "Midnight", "Solarized"]
LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
CONFIG_FILE_PATH = Path.home() / ".storyfeed.config"


@dataclass
class FeedConfig:
    """Feed browser configuration settings."""

    endpoint_url: str = DEFAULT_ENDPOINT_URL
    category_id: Optional[str] = None
    page_size: int = POSTS_PER_PAGE
    debounce_ms: int = FILTER_DEBOUNCE_MS
    item_height: int = POST_ITEM_HEIGHT
    overscan: int = POST_OVERSCAN
    root_margin: int = SCROLL_ROOT_MARGIN
    threshold: float = SCROLL_THRESHOLD
    request_timeout: float = DEFAULT_TIMEOUT
    hard_cancel: bool = True
    theme: str = "Newsprint"
    log_file: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration settings."""
        if not self.endpoint_url or not self.endpoint_url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid endpoint URL '{self.endpoint_url}'. It must start with http:// or https://")

        for name in ("page_size", "item_height"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"'{name}' must be a positive integer, got {value!r}")

        for name in ("debounce_ms", "overscan", "root_margin"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"'{name}' must be a non-negative integer, got {value!r}")

        if not 0 <= self.threshold <= 1:
            raise ValueError(f"'threshold' must be between 0 and 1, got {self.threshold!r}")

        if self.request_timeout <= 0:
            raise ValueError(f"'request_timeout' must be positive, got {self.request_timeout!r}")

        # Validate theme
        if self.theme not in ALLOWED_THEMES:
            raise ValueError(f"Invalid theme '{self.theme}'. Allowed themes: {', '.join(ALLOWED_THEMES)}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level '{self.log_level}'. Allowed levels: {', '.join(LOG_LEVELS)}")
        self.log_level = self.log_level.upper()

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def load_config(config_file_path: Optional[str] = None) -> FeedConfig:
    """Load configuration from file."""
    if config_file_path:
        config_path = Path(config_file_path)
    else:
        config_path = CONFIG_FILE_PATH

    if not config_path.exists():
        return FeedConfig()

    try:
        with open(config_path, "r") as f:
            config_data = toml.load(f)

        # Extract only the fields that belong to FeedConfig
        valid_fields = {field.name for field in FeedConfig.__dataclass_fields__.values()}

        # Filter config data to only include valid fields
        filtered_config = {key: value for key, value in config_data.items() if key in valid_fields}

        return FeedConfig(**filtered_config)

    except Exception as e:
        raise ValueError(f"Error loading config file {config_path}: {e}")


def merge_config_with_cli_args(config: FeedConfig, **cli_args) -> FeedConfig:
    """Merge configuration with CLI arguments, giving priority to CLI args."""
    # Start with config values
    merged_config = {}

    # Add all config values
    for field_name in FeedConfig.__dataclass_fields__:
        merged_config[field_name] = getattr(config, field_name)

    # Override with CLI args where provided (not None)
    for key, value in cli_args.items():
        if value is not None:
            merged_config[key] = value

    return FeedConfig(**merged_config)
