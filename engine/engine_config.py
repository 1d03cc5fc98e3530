"""Engine configuration classes and settings management.

This module provides the pydantic models describing logging, storage,
notification and tick settings for the timer engine.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

APP_NAME = "oxyclock"


def default_state_file() -> str:
    """Return the per-user state file path.

    Uses $XDG_STATE_HOME when set, otherwise ~/.local/state.
    """
    state_home = os.environ.get("XDG_STATE_HOME") or os.path.join(
        os.path.expanduser("~"), ".local", "state"
    )
    return os.path.join(state_home, APP_NAME, "state.json")


class LoggingConfig(BaseModel):
    """Configuration settings for the logging system.

    Defines log level, file output settings and per-logger overrides.
    """

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_file_max_size: int = 1  # MB
    disable_console_logging: Optional[bool] = None
    loggers: Optional[dict[str, str]] = None


class StorageConfig(BaseModel):
    """Location and first-run policy of the persisted timer collection."""

    state_file: str = Field(default_factory=default_state_file)
    create_if_missing: bool = True

    @field_validator("state_file")
    @classmethod
    def _expand_path(cls, value: str) -> str:
        return os.path.expanduser(os.path.expandvars(value))


class NotificationConfig(BaseModel):
    """What to show and play when a timer finishes."""

    enabled: bool = True
    app_name: str = APP_NAME
    summary: str = "Timer is done!"
    body: str = "Your timer has finished"
    timeout: int = 10
    desktop_notification: bool = True
    play_sound: bool = True
    sound_file: str = "/usr/share/sounds/lofi-alarm-clock.mp3"


class TickConfig(BaseModel):
    """Pacing of the wall-clock tick source."""

    interval_seconds: float = 1.0

    @field_validator("interval_seconds")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("interval_seconds must be positive")
        return value


class EngineConfig(BaseModel):
    """Main configuration class for the timer engine."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    tick: TickConfig = Field(default_factory=TickConfig)

    @classmethod
    def default(cls) -> "EngineConfig":
        return cls()
