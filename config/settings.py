"""
Configuration settings loader for Newswire.
Loads settings from YAML config file and environment variables.
"""
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from newswire.utils.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# Config file paths
CONFIG_DIR = Path(__file__).parent
CONFIG_FILE = CONFIG_DIR / "config.yaml"
CONFIG_EXAMPLE_FILE = CONFIG_DIR / "config.example.yaml"

# ${VAR} or ${VAR:-default}
_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def _resolve_env_vars(value: Any) -> Any:
    """Resolve environment variables in config values."""
    if isinstance(value, str):
        def replace(match: re.Match) -> str:
            var_name, default = match.group(1), match.group(2)
            env_value = os.getenv(var_name)
            if env_value is None or env_value == "":
                return default or ""
            return env_value

        return _ENV_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from YAML file with environment variable resolution."""
    if config_path is None:
        config_path = CONFIG_FILE
        if not config_path.exists():
            # Fall back to example config
            config_path = CONFIG_EXAMPLE_FILE

    if not config_path.exists():
        raise ConfigurationError(
            f"Config file not found: {config_path}",
            details={"path": str(config_path)},
        )

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}", cause=e)

    return _resolve_env_vars(config)


def _as_number(value: Any, default: float, key: str) -> float:
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid numeric value for {key}: {value!r}",
            details={"config_key": key},
            cause=e,
        )
    if number <= 0:
        raise ConfigurationError(
            f"{key} must be positive, got {number}",
            details={"config_key": key},
        )
    return number


class Settings:
    """Application settings loaded from YAML."""

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Load configuration."""
        self._config = load_config(self._config_path)

    def reload(self) -> None:
        """Reload configuration."""
        self._load()

    @property
    def config(self) -> dict:
        """Get full configuration."""
        return self._config

    # Convenience properties
    @property
    def app_name(self) -> str:
        return self._config.get("app", {}).get("name", "newswire")

    @property
    def env(self) -> str:
        return self._config.get("app", {}).get("env", "development")

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def log_level(self) -> str:
        return self._config.get("app", {}).get("log_level", "INFO")

    @property
    def log_dir(self) -> Optional[str]:
        return self._config.get("app", {}).get("log_dir") or None

    @property
    def news_config(self) -> dict:
        news = dict(self._config.get("news", {}))
        news["cache"] = self.cache_config
        return news

    @property
    def cache_config(self) -> dict:
        cache = dict(self._config.get("news", {}).get("cache", {}))
        cache["ttl_seconds"] = self.cache_ttl_seconds
        return cache

    @property
    def scheduler_config(self) -> dict:
        return self._config.get("scheduler", {})

    @property
    def cache_ttl_seconds(self) -> float:
        raw = self._config.get("news", {}).get("cache", {}).get("ttl_seconds")
        return _as_number(raw, 900, "news.cache.ttl_seconds")

    @property
    def refresh_interval_minutes(self) -> float:
        raw = self.scheduler_config.get("refresh_interval_minutes")
        return _as_number(raw, 15, "scheduler.refresh_interval_minutes")

    @property
    def configured_sources(self) -> list:
        """Names of enabled sources that have a credential."""
        return [
            source.get("name")
            for source in self._config.get("news", {}).get("sources", [])
            if source.get("enabled", True) and source.get("api_key")
        ]
