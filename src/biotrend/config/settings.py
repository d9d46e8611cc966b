"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".biotrend"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "biotrend.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class ReviewConfig:
    """Weekly review configuration."""

    query_days: int = 14
    sparkline_points: int = 7


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class DefaultsConfig:
    """Default values for various operations."""

    output_format: str = "table"  # "table" or "json"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.biotrend/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        if "database" in data:
            db_data = data["database"] or {}
            if "path" in db_data:
                settings.database.path = Path(db_data["path"]).expanduser()

        if "review" in data:
            review_data = data["review"] or {}
            if "query_days" in review_data:
                settings.review.query_days = int(review_data["query_days"])
            if "sparkline_points" in review_data:
                settings.review.sparkline_points = int(review_data["sparkline_points"])

        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        if "defaults" in data:
            def_data = data["defaults"] or {}
            if "output_format" in def_data:
                settings.defaults.output_format = def_data["output_format"]

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.biotrend/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "review": {
                "query_days": self.review.query_days,
                "sparkline_points": self.review.sparkline_points,
            },
            "logging": {
                "level": self.logging.level,
            },
            "defaults": {
                "output_format": self.defaults.output_format,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
