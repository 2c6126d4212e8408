"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import Literal, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.slot_tiler import SLOT_DURATION_MINUTES


class StoreConfig(BaseModel):
    """Where blocked ranges are persisted."""
    backend: Literal["memory", "json"] = "json"
    path: Path = Path("blocked_slots.json")


class DirectoryConfig(BaseModel):
    """Where salon and artist opening hours come from."""
    backend: Literal["file", "http"] = "file"
    path: Path = Path("salons.yaml")
    base_url: Optional[str] = None
    timeout_seconds: float = 10.0

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure the HTTP timeout is positive."""
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_backend_settings(self) -> "DirectoryConfig":
        """Ensure the http backend has a URL to talk to."""
        if self.backend == "http" and not self.base_url:
            raise ValueError("directory.base_url is required for the http backend")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "local"
    slot_duration_minutes: int = SLOT_DURATION_MINUTES
    fail_open: bool = True  # treat slots as free when the block store fails
    log_level: str = "WARNING"
    store: StoreConfig = Field(default_factory=StoreConfig)
    directory: DirectoryConfig = Field(default_factory=DirectoryConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is 'local' or a known IANA name."""
        if value == "local":
            return value
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("slot_duration_minutes")
    @classmethod
    def validate_slot_duration(cls, value: int) -> int:
        """Only the fixed slot size is supported."""
        if value != SLOT_DURATION_MINUTES:
            raise ValueError(f"slot_duration_minutes must be {SLOT_DURATION_MINUTES}, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensure the level is one the logging module knows."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def resolve_paths(self, base_dir: Path) -> "AppConfig":
        """Return a copy whose relative data paths are anchored at base_dir."""
        store = self.store.model_copy(update={"path": _anchor(self.store.path, base_dir)})
        directory = self.directory.model_copy(update={"path": _anchor(self.directory.path, base_dir)})
        return self.model_copy(update={"store": store, "directory": directory})

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative store and directory paths are resolved against the config
        file's directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data).resolve_paths(config_path.parent)


def _anchor(path: Path, base_dir: Path) -> Path:
    return path if path.is_absolute() else base_dir / path


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
