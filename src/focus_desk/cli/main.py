"""CLI commands for Focus Desk using Typer."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from focus_desk import __version__
from focus_desk.core.app import FocusDesk
from focus_desk.core.config import Config, get_config
from focus_desk.records.month_grid import build_month_grid, shift_month
from focus_desk.timer.engine import EngineState, SnapshotError
from focus_desk.timer.events import IntervalCompleteEvent, Phase, SequenceCompleteEvent, TickEvent
from focus_desk.timer.sequencer import IntervalSequencer, InvalidPlanError, SequencePolicy
from focus_desk.timer.session import TIMER_STATE_KEY

# Initialize Typer app
app = typer.Typer(
    name="focus-desk",
    help="Pomodoro focus timer with a task list and a focus calendar.",
    add_completion=False,
)
tasks_app = typer.Typer(help="Manage the task list.")
app.add_typer(tasks_app, name="tasks")

console = Console()


def setup_logging(log_level: str, log_file: Path | None = None, stream: bool = False) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if stream:
        handlers.append(logging.StreamHandler())

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    # Reduce noise from external libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def _load_config(verbose: bool = False) -> Config:
    config = get_config()
    setup_logging("DEBUG" if verbose else config.log_level, config.log_file, stream=verbose)
    return config


def _sequencer(config: Config) -> IntervalSequencer:
    return IntervalSequencer(
        SequencePolicy(
            base_focus_minutes=config.timer.base_focus_minutes,
            base_break_minutes=config.timer.base_break_minutes,
        )
    )


def _format_seconds(seconds: int) -> str:
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_minutes(minutes: int) -> str:
    """Format focus minutes as e.g. 1h 05m."""
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"


def render_timer(event: TickEvent, label: str) -> Panel:
    """Countdown panel for the live display."""
    focusing = event.phase == Phase.FOCUSING
    color = "green" if focusing else "cyan"
    title = "Focus" if focusing else "Break"

    clock = Text(_format_seconds(event.remaining_seconds), style=f"bold {color}", justify="center")
    bar = ProgressBar(total=100, completed=event.remaining_percent, complete_style=color)
    return Panel(Group(clock, bar), title=f"[bold]{title}[/bold]", subtitle=label, border_style=color)


class TimerDisplay:
    """Session listener that drives the live countdown."""

    def __init__(self, desk: FocusDesk, live: Live):
        self.desk = desk
        self.live = live
        self.done = asyncio.Event()
        self.completed_focus = 0

    def _label(self) -> str:
        engine = self.desk.engine
        sequence = engine.sequence
        if sequence is None:
            return "simple"
        return f"interval {engine.cursor + 1}/{len(sequence)}"

    def on_tick(self, event: TickEvent) -> None:
        self.live.update(render_timer(event, self._label()))

    def on_interval_complete(self, event: IntervalCompleteEvent) -> None:
        if event.was_focusing:
            self.completed_focus += event.duration_seconds // 60
            console.print(f"[green]Focus interval done[/green] ({event.duration_seconds // 60} min)")
        else:
            console.print("[cyan]Break over[/cyan]")

        # Simple mode pauses after each interval; a finished sequence pauses too
        if not self.desk.engine.is_running:
            self.done.set()

    def on_sequence_complete(self, event: SequenceCompleteEvent) -> None:
        console.print(f"[bold green]All {event.intervals_completed} intervals complete![/bold green]")
        self.done.set()


@app.command()
def run(
    minutes: Optional[int] = typer.Option(
        None,
        "--minutes",
        "-m",
        help="Total focus minutes (split into chunks when breaks are on)",
    ),
    breaks: Optional[bool] = typer.Option(
        None,
        "--breaks/--no-breaks",
        help="Insert breaks between focus chunks",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to the terminal"),
) -> None:
    """Run the focus timer, resuming a saved countdown when there is one.

    Examples:
        focus-desk run -m 60 --breaks
        focus-desk run            # resume or start the saved plan
    """
    config = _load_config(verbose)

    async def run_timer() -> None:
        async with FocusDesk(config) as desk:
            session = desk.session
            resumed = await session.restore()

            if minutes is not None or breaks is not None:
                current = session.requested_plan
                await session.configure(
                    minutes if minutes is not None else current.focus_minutes,
                    breaks if breaks is not None else current.break_enabled,
                )
                if resumed:
                    # A running countdown keeps going; restart so the new plan applies now
                    await session.stop()
                    await session.reset()
                    resumed = False

            plan = session.requested_plan
            console.print(
                f"[bold]Focus Desk[/bold] {plan.focus_minutes} min, "
                f"breaks {'on' if plan.break_enabled else 'off'}"
                + (" [dim](resumed)[/dim]" if resumed else "")
            )
            console.print("[dim]Press Ctrl+C to pause[/dim]\n")

            state = desk.engine.state
            first = TickEvent(
                remaining_seconds=state.remaining_seconds,
                phase=state.phase,
                total_seconds=state.current_interval_total_seconds,
            )
            with Live(render_timer(first, "starting"), console=console, refresh_per_second=4) as live:
                display = TimerDisplay(desk, live)
                session.add_listener(display)
                await session.start()

                try:
                    await display.done.wait()
                except (KeyboardInterrupt, asyncio.CancelledError):
                    await session.stop()
                    console.print("\n[yellow]Timer paused and saved[/yellow]")
                    return

            if display.completed_focus:
                console.print(f"Recorded {format_minutes(display.completed_focus)} of focus today")

    try:
        asyncio.run(run_timer())
    except InvalidPlanError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        pass


@app.command()
def status() -> None:
    """Show the saved timer state and today's focus."""
    config = _load_config()

    async def load_status() -> tuple[object, int, float, bool]:
        async with FocusDesk(config) as desk:
            snapshot = await desk.db.load(TIMER_STATE_KEY)
            today = desk.records.minutes_on(date.today())
            size = await desk.db.get_size_mb()
            healthy = await desk.db.check_integrity()
            return snapshot, today, size, healthy

    snapshot, today, size, healthy = asyncio.run(load_status())

    table = Table(title="Focus Desk Status", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    if snapshot is None:
        table.add_row("Timer", "[dim]No saved timer[/dim]")
    else:
        try:
            state = EngineState.from_dict(snapshot)
        except SnapshotError as e:
            table.add_row("Timer", f"[red]Unreadable ({e})[/red]")
        else:
            table.add_row("Phase", state.phase.value)
            table.add_row("Remaining", state.time_remaining_display)
            table.add_row("Running", "[green]yes[/green]" if state.running else "no")
            if state.sequence is not None:
                table.add_row("Mode", f"sequenced, interval {state.cursor + 1}/{len(state.sequence)}")
            else:
                table.add_row("Mode", "simple")

    table.add_row("Focus today", format_minutes(today))
    table.add_row("Database", f"{size:.2f} MB" + ("" if healthy else " [red](integrity check failed)[/red]"))

    console.print(table)


@app.command()
def reset() -> None:
    """Reset the saved timer to the start of the current plan."""
    config = _load_config()

    async def reset_timer() -> None:
        async with FocusDesk(config) as desk:
            await desk.session.restore()
            await desk.session.stop()
            await desk.session.reset()

    asyncio.run(reset_timer())
    console.print("[green]Timer reset[/green]")


@app.command()
def plan(
    minutes: Optional[int] = typer.Option(None, "--minutes", "-m", help="Total focus minutes"),
    breaks: Optional[bool] = typer.Option(None, "--breaks/--no-breaks", help="Insert breaks"),
) -> None:
    """Print the focus/break intervals a plan runs as."""
    config = _load_config()
    sequencer = _sequencer(config)

    try:
        normalized = sequencer.normalize(
            minutes if minutes is not None else config.timer.default_focus_minutes,
            breaks if breaks is not None else config.timer.breaks_enabled,
        )
    except InvalidPlanError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    sequence = sequencer.build(normalized.focus_minutes, normalized.break_enabled)

    table = Table(
        title=f"{normalized.focus_minutes} min plan (breaks {'on' if normalized.break_enabled else 'off'})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Length", justify="right")

    for i, interval in enumerate(sequence, 1):
        kind = "[green]focus[/green]" if interval.is_focus else "[cyan]break[/cyan]"
        table.add_row(str(i), kind, format_minutes(interval.duration_seconds // 60))

    console.print(table)


@tasks_app.command("list")
def tasks_list() -> None:
    """List tasks."""
    config = _load_config()

    async def load_tasks():
        async with FocusDesk(config) as desk:
            return list(desk.tasks.tasks), desk.tasks.long_term_goal

    tasks, goal = asyncio.run(load_tasks())

    if goal:
        console.print(Panel(goal, title="Long-term goal", border_style="magenta"))

    if not tasks:
        console.print("[dim]No tasks yet. Add one with: focus-desk tasks add \"...\"[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Done")
    table.add_column("Task")
    for i, task in enumerate(tasks, 1):
        text = f"[strike dim]{task.text}[/strike dim]" if task.completed else task.text
        table.add_row(str(i), "[green]x[/green]" if task.completed else "", text)
    console.print(table)


@tasks_app.command("add")
def tasks_add(text: str = typer.Argument(..., help="Task description")) -> None:
    """Add a task."""
    config = _load_config()

    async def add():
        async with FocusDesk(config) as desk:
            return await desk.tasks.add_task(text)

    task = asyncio.run(add())
    if task is None:
        console.print("[red]Task text is empty[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Added:[/green] {task.text}")


@tasks_app.command("done")
def tasks_done(index: int = typer.Argument(..., help="Task number from 'tasks list'")) -> None:
    """Toggle a task between open and done."""
    config = _load_config()

    async def toggle():
        async with FocusDesk(config) as desk:
            return await desk.tasks.toggle_task(index - 1)

    task = asyncio.run(toggle())
    if task is None:
        console.print(f"[red]No task #{index}[/red]")
        raise typer.Exit(1)
    console.print(f"{'Done' if task.completed else 'Reopened'}: {task.text}")


@tasks_app.command("remove")
def tasks_remove(index: int = typer.Argument(..., help="Task number from 'tasks list'")) -> None:
    """Delete a task."""
    config = _load_config()

    async def delete():
        async with FocusDesk(config) as desk:
            return await desk.tasks.delete_task(index - 1)

    task = asyncio.run(delete())
    if task is None:
        console.print(f"[red]No task #{index}[/red]")
        raise typer.Exit(1)
    console.print(f"Removed: {task.text}")


@app.command()
def goal(text: Optional[str] = typer.Argument(None, help="New long-term goal")) -> None:
    """Show or set the long-term goal."""
    config = _load_config()

    async def update():
        async with FocusDesk(config) as desk:
            if text is not None:
                await desk.tasks.set_long_term_goal(text)
            return desk.tasks.long_term_goal

    current = asyncio.run(update())
    if current:
        console.print(Panel(current, title="Long-term goal", border_style="magenta"))
    else:
        console.print("[dim]No long-term goal set[/dim]")


@app.command("calendar")
def calendar_view(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year (default: this year)"),
    month: Optional[int] = typer.Option(None, "--month", "-m", min=1, max=12, help="Month 1-12"),
    offset: int = typer.Option(
        0,
        "--offset",
        "-o",
        help="Months to move from the chosen month (-1 previous, 1 next)",
    ),
) -> None:
    """Show focus minutes for each day of a month.

    Examples:
        focus-desk calendar            # this month
        focus-desk calendar -o -1      # last month
    """
    config = _load_config()
    today = date.today()
    year, month = shift_month(year or today.year, month or today.month, offset)

    async def load_month():
        async with FocusDesk(config) as desk:
            return desk.records.records_for_month(year, month)

    records = asyncio.run(load_month())

    table = Table(title=date(year, month, 1).strftime("%B %Y"), show_header=True, header_style="bold cyan")
    for name in ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"):
        table.add_column(name, justify="center")

    for week in build_month_grid(year, month):
        cells = []
        for day in week:
            if day is None:
                cells.append("")
                continue
            current = date(year, month, day)
            label = f"[bold]{day}[/bold]" if current == today else str(day)
            record = records.get(current)
            if record and record.total_minutes:
                label += f"\n[green]{format_minutes(record.total_minutes)}[/green]"
            cells.append(label)
        table.add_row(*cells)

    console.print(table)
    total = sum(record.total_minutes for record in records.values())
    console.print(f"Total focus this month: [bold]{format_minutes(total)}[/bold]")


@app.command("config-show")
def config_show() -> None:
    """Show current configuration."""
    config = get_config()

    table = Table(title="Focus Desk Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    # Paths
    table.add_row("[bold]Paths[/bold]", "")
    table.add_row("  Data Directory", str(config.data_dir))
    table.add_row("  Log Directory", str(config.log_dir))
    table.add_row("  Config File", str(config.config_file))
    table.add_row("  Database", str(config.db_path))

    # Timer
    timer = config.timer
    table.add_row("[bold]Timer[/bold]", "")
    table.add_row("  Focus Chunk", f"{timer.base_focus_minutes} min")
    table.add_row("  Break Chunk", f"{timer.base_break_minutes} min")
    table.add_row("  Default Focus", f"{timer.default_focus_minutes} min")
    table.add_row("  Breaks", "on" if timer.breaks_enabled else "off")
    table.add_row("  Tick", f"{timer.tick_seconds}s")
    table.add_row("  Snapshot Every", f"{timer.snapshot_every_seconds} ticks")

    table.add_row("[bold]Logging[/bold]", "")
    table.add_row("  Level", config.log_level)

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Focus Desk v{__version__}")


if __name__ == "__main__":
    app()
