"""
Configuration settings for the parkrun wrapped service.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration class for service settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent
    DATA_DIR = Path(os.environ.get("PARKRUN_DATA_DIR", PROJECT_ROOT / "data"))
    LOGS_DIR = PROJECT_ROOT / "logs"
    CONFIG_DIR = PROJECT_ROOT / "config"
    # Raw pages written when an extraction comes back empty
    DEBUG_DIR = PROJECT_ROOT / "debug"

    # URLs
    RUNNER_URL_TEMPLATE = "https://www.parkrun.co.nl/parkrunner/{runner_id}/all/"

    # Reporting period and derived numbers
    TARGET_YEAR = int(os.environ.get("PARKRUN_TARGET_YEAR", "2025"))
    CACHE_TTL_SECONDS = 60 * 60
    PER_RUN_DISTANCE_KM = 5.0

    # Fetch strategy: "direct", "headless" or "external"
    FETCHER = os.environ.get("PARKRUN_FETCHER", "direct")

    FETCH_SETTINGS = {
        "request_timeout": 20,  # Seconds, direct + external
        "page_load_timeout": 30,  # Seconds, headless navigation
        "ready_state_timeout": 10,  # Seconds
        "settle_delay": 2,  # Seconds after the document is complete
        "max_output_bytes": 10 * 1024 * 1024,
        "curl_binary": "curl",
    }

    # Browser settings
    BROWSER_SETTINGS = {
        "headless": True,
        "window_size": "1366,768",
        "user_agents": [
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
        ],
    }

    # Extraction settings
    EXTRACTION_SETTINGS = {
        "name_selectors": "h1, h2, h3, h4, h5, h6, .name, .runner-name, .athlete-name, .title",
        "name_exclude_tokens": ["parkrun", "Netherlands"],
        "min_cells": 5,
        "max_position": 999,
    }

    DEBUG_ARTIFACTS = _env_flag("PARKRUN_DEBUG_ARTIFACTS", False)

    # File naming patterns
    FILE_PATTERNS = {
        "runner": "{name}.json",
        "debug_html": "debug-{name}.html",
        "logs": "parkrun_wrapped_{name}.log",
    }

    # Logging settings
    LOGGING_SETTINGS = {
        "level": os.environ.get("PARKRUN_LOG_LEVEL", "INFO"),
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    }

    @classmethod
    def ensure_directories(cls):
        """Ensure all required directories exist."""
        directories = [
            cls.DATA_DIR,
            cls.LOGS_DIR,
            cls.CONFIG_DIR,
        ]

        for directory in directories:
            Path(directory).mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_file_path(cls, file_type: str, name: str = None) -> Path:
        """
        Get file path for a specific file type.

        Args:
            file_type: Type of file (runner, debug_html, logs)
            name: Runner id for per-runner files, date string for logs

        Returns:
            Path object for the file
        """
        if name is None:
            name = datetime.now().strftime("%Y-%m-%d")

        pattern = cls.FILE_PATTERNS.get(file_type, f"{file_type}_{{name}}.json")
        filename = pattern.format(name=name)

        if file_type == "runner":
            return Path(cls.DATA_DIR) / filename
        elif file_type == "debug_html":
            return Path(cls.DEBUG_DIR) / filename
        elif file_type == "logs":
            return Path(cls.LOGS_DIR) / filename
        else:
            return Path(cls.DATA_DIR) / filename

    @classmethod
    def load_custom_config(cls, config_file: str = "custom_config.json") -> Dict[str, Any]:
        """
        Load custom configuration from JSON file.

        Args:
            config_file: Name of the config file

        Returns:
            Dictionary with custom configuration
        """
        config_path = Path(cls.CONFIG_DIR) / config_file
        if config_path.exists():
            try:
                with open(config_path, "r") as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                logging.getLogger(__name__).warning("Error loading custom config %s: %s", config_path, e)

        return {}

    @classmethod
    def save_custom_config(cls, config_data: Dict[str, Any], config_file: str = "custom_config.json"):
        """
        Save custom configuration to JSON file.

        Args:
            config_data: Configuration data to save
            config_file: Name of the config file
        """
        cls.ensure_directories()
        config_path = Path(cls.CONFIG_DIR) / config_file

        with open(config_path, "w") as f:
            json.dump(config_data, f, indent=2)

    @classmethod
    def apply_overrides(cls, overrides: Dict[str, Any]) -> None:
        """Apply upper-case keys from an override mapping; settings dicts are merged."""
        for key, value in overrides.items():
            if not key.isupper() or not hasattr(cls, key):
                continue
            current = getattr(cls, key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged = dict(current)
                merged.update(value)
                setattr(cls, key, merged)
            elif key.endswith("_DIR"):
                setattr(cls, key, Path(value))
            else:
                setattr(cls, key, value)


# Create default configuration instance
config = Config()
