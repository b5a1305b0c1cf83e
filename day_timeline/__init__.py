"""Top-level package for the live day timeline."""

from __future__ import annotations

from .scheduler import Scheduler, next_tick_boundary
from .timeline import DayTimeline, InvalidTimezone

__all__ = [
    "__version__",
    "DayTimeline",
    "InvalidTimezone",
    "Scheduler",
    "next_tick_boundary",
]

__version__ = "0.1.0"
