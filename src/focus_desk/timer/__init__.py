"""Focus timer: interval sequencing, countdown engine and session control."""

from focus_desk.timer.engine import EngineState, SnapshotError, TimerEngine
from focus_desk.timer.events import (
    IntervalCompleteEvent,
    NullListener,
    Phase,
    SequenceCompleteEvent,
    TickEvent,
    TimerListener,
)
from focus_desk.timer.sequencer import (
    Interval,
    IntervalKind,
    IntervalSequencer,
    InvalidPlanError,
    SequencePolicy,
    SessionPlan,
    build_sequence,
)
from focus_desk.timer.session import SessionController
from focus_desk.timer.ticker import Ticker

__all__ = [
    "EngineState",
    "Interval",
    "IntervalCompleteEvent",
    "IntervalKind",
    "IntervalSequencer",
    "InvalidPlanError",
    "NullListener",
    "Phase",
    "SequenceCompleteEvent",
    "SequencePolicy",
    "SessionController",
    "SessionPlan",
    "SnapshotError",
    "TickEvent",
    "Ticker",
    "TimerEngine",
    "TimerListener",
    "build_sequence",
]
