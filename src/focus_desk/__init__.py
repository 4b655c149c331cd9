"""Focus Desk: pomodoro focus timer, task list and focus calendar."""

__version__ = "0.1.0"
