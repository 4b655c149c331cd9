"""Core application components."""

from focus_desk.core.app import FocusDesk
from focus_desk.core.config import Config, TimerConfig, get_config

__all__ = ["Config", "FocusDesk", "TimerConfig", "get_config"]
