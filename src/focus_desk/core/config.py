"""Configuration management with Pydantic and YAML support."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class TimerConfig(BaseModel):
    """Focus timer and interval chunking configuration."""

    base_focus_minutes: int = Field(default=25, ge=1, description="Focus chunk size when breaks are on")
    base_break_minutes: int = Field(default=5, ge=1, description="Break inserted between focus chunks")
    default_focus_minutes: int = Field(default=25, ge=1, description="Requested focus total on first run")
    default_break_minutes: int = Field(default=5, ge=0, description="Break length of a fresh engine")
    breaks_enabled: bool = True
    tick_seconds: float = Field(default=1.0, gt=0, description="Seconds between timer ticks")
    snapshot_every_seconds: int = Field(
        default=10, ge=0, description="Persist the running timer every N ticks (0 disables)"
    )


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FOCUS_DESK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/focus-desk")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".local/state/focus-desk")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config/focus-desk")

    # Log level
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Sub-configurations
    timer: TimerConfig = Field(default_factory=TimerConfig)

    @property
    def db_path(self) -> Path:
        """Path to SQLite database."""
        return self.data_dir / "focus_desk.db"

    @property
    def log_file(self) -> Path:
        """Path to the application log file."""
        return self.log_dir / "focus-desk.log"

    @property
    def config_file(self) -> Path:
        """Path to YAML config file."""
        return self.config_dir / "config.yaml"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        os.chmod(self.data_dir, 0o700)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from YAML file, environment variables, and defaults.

        Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values
        """
        if config_path is None:
            config_dir = os.environ.get("FOCUS_DESK_CONFIG_DIR")
            config_path = (Path(config_dir) if config_dir else Path.home() / ".config/focus-desk") / "config.yaml"

        yaml_config: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        # Create config with YAML as init data, env vars will override
        return cls(**yaml_config)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment first so it wins over the YAML passed as init data
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def save(self, config_path: Path | None = None) -> None:
        """Save current configuration to YAML file."""
        config_path = config_path or self.config_file
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        for key in ["data_dir", "log_dir", "config_dir"]:
            if key in data:
                data[key] = str(data[key])

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        os.chmod(config_path, 0o600)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.load()
