"""Interval layout and live-window engine for the day timeline."""

from .clusters import Cluster, build_clusters
from .columns import Placement, assign_columns, priority_key
from .focus import FocusState, LiveFocusSelector, compute_live, next_upcoming, resolve_focus
from .layout import DayLayout, LaidOutInterval, TimeWindow, layout_day
from .normalize import Interval, InvalidTimezone, RawEvent, normalize, resolve_timezone
from .state import (
    ClearPin,
    DayTimeline,
    PinFocus,
    ScrollBy,
    ScrollTo,
    SnapToNow,
    Tick,
    TimelineSnapshot,
)
from .window import WindowScheduler, WindowState

__all__ = [
    "ClearPin",
    "Cluster",
    "DayLayout",
    "DayTimeline",
    "FocusState",
    "Interval",
    "InvalidTimezone",
    "LaidOutInterval",
    "LiveFocusSelector",
    "PinFocus",
    "Placement",
    "RawEvent",
    "ScrollBy",
    "ScrollTo",
    "SnapToNow",
    "Tick",
    "TimeWindow",
    "TimelineSnapshot",
    "WindowScheduler",
    "WindowState",
    "assign_columns",
    "build_clusters",
    "compute_live",
    "layout_day",
    "next_upcoming",
    "normalize",
    "priority_key",
    "resolve_focus",
    "resolve_timezone",
]
