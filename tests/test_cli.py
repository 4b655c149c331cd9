"""Tests for the command line interface."""

from typer.testing import CliRunner

from focus_desk import __version__
from focus_desk.cli.main import app, format_minutes

runner = CliRunner()


def invoke(*args):
    result = runner.invoke(app, list(args))
    return result


def test_version(isolated_config):
    result = invoke("version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_format_minutes():
    assert format_minutes(0) == "0m"
    assert format_minutes(45) == "45m"
    assert format_minutes(125) == "2h 05m"


def test_plan_with_breaks(isolated_config):
    result = invoke("plan", "--minutes", "60", "--breaks")
    assert result.exit_code == 0
    assert "60 min plan (breaks on)" in result.output
    assert result.output.count("focus") == 3
    # Two break rows plus the title
    assert result.output.count("break") == 3


def test_plan_short_total_turns_breaks_off(isolated_config):
    result = invoke("plan", "-m", "20", "--breaks")
    assert result.exit_code == 0
    assert "breaks off" in result.output


def test_plan_rejects_zero(isolated_config):
    result = invoke("plan", "-m", "0")
    assert result.exit_code == 1


def test_task_commands(isolated_config):
    assert invoke("tasks", "add", "Write report").exit_code == 0
    assert invoke("tasks", "add", "Review PR").exit_code == 0

    result = invoke("tasks", "done", "1")
    assert result.exit_code == 0
    assert "Done: Write report" in result.output

    result = invoke("tasks", "remove", "2")
    assert result.exit_code == 0
    assert "Removed: Review PR" in result.output

    result = invoke("tasks", "list")
    assert "Write report" in result.output
    assert "Review PR" not in result.output

    assert invoke("tasks", "remove", "9").exit_code == 1
    assert invoke("tasks", "add", "   ").exit_code == 1


def test_goal(isolated_config):
    assert "No long-term goal set" in invoke("goal").output
    invoke("goal", "Ship v1")
    assert "Ship v1" in invoke("goal").output


def test_status_without_timer(isolated_config):
    result = invoke("status")
    assert result.exit_code == 0
    assert "No saved timer" in result.output


def test_run_records_focus(isolated_config):
    result = invoke("run", "--minutes", "1", "--no-breaks")
    assert result.exit_code == 0, result.output
    assert "Focus interval done" in result.output

    result = invoke("calendar")
    assert result.exit_code == 0
    assert "Total focus this month: 1m" in result.output

    result = invoke("status")
    assert "Focus today" in result.output
    assert "simple" in result.output


def test_run_rejects_invalid_minutes(isolated_config):
    result = invoke("run", "--minutes", "0")
    assert result.exit_code == 1


def test_reset(isolated_config):
    result = invoke("reset")
    assert result.exit_code == 0
    assert "Timer reset" in result.output
    assert "Remaining" in invoke("status").output


def test_config_show(isolated_config):
    result = invoke("config-show")
    assert result.exit_code == 0
    assert "Focus Chunk" in result.output


def test_calendar_offset_moves_across_years(isolated_config):
    result = invoke("calendar", "--year", "2026", "--month", "1", "--offset", "-1")
    assert result.exit_code == 0
    assert "December 2025" in result.output

    result = invoke("calendar", "-y", "2026", "-m", "12", "-o", "1")
    assert "January 2027" in result.output
