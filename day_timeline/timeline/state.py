"""Per-day owner of the layout, window and focus state.

Every input is a discrete action passed to :meth:`DayTimeline.dispatch`: timer
ticks, scroll input and focus pins all go through the same method, so the
window and focus state are only ever mutated in one place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Hashable, Iterable, Mapping, Optional, Tuple, Union

from zoneinfo import ZoneInfo

from ..config import TimelineSettings
from .focus import FocusState, LiveFocusSelector
from .layout import DayLayout, LaidOutInterval, TimeWindow, layout_day
from .normalize import RawEvent, day_bounds, normalize, resolve_timezone, to_local
from .window import WindowScheduler, WindowState

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tick:
    now: datetime


@dataclass(frozen=True)
class ScrollTo:
    offset: timedelta


@dataclass(frozen=True)
class ScrollBy:
    delta: timedelta


@dataclass(frozen=True)
class SnapToNow:
    pass


@dataclass(frozen=True)
class PinFocus:
    interval_id: Hashable


@dataclass(frozen=True)
class ClearPin:
    pass


Action = Union[Tick, ScrollTo, ScrollBy, SnapToNow, PinFocus, ClearPin]


@dataclass(frozen=True)
class TimelineSnapshot:
    """Everything a renderer needs for one frame."""

    layout: DayLayout
    window: WindowState
    focus: FocusState
    visible: Tuple[LaidOutInterval, ...]

    @property
    def now(self) -> datetime:
        """The latest tick, in the timezone of the day."""

        return to_local(self.window.anchor_instant, self.layout.tz)

    @property
    def visible_window(self) -> TimeWindow:
        return self.window.visible_window

    @property
    def focused(self) -> Optional[LaidOutInterval]:
        if self.focus.focused_interval_id is None:
            return None
        return self.layout.get(self.focus.focused_interval_id)

    @property
    def next_upcoming(self) -> Optional[LaidOutInterval]:
        if self.focus.next_upcoming_id is None:
            return None
        return self.layout.get(self.focus.next_upcoming_id)


class DayTimeline:
    """Layout plus live window and focus for one rendered day."""

    def __init__(
        self,
        layout: DayLayout,
        *,
        now: datetime,
        settings: TimelineSettings | None = None,
    ) -> None:
        self.settings = settings or TimelineSettings()
        self.layout = layout
        self.window = WindowScheduler(
            layout.day_start,
            layout.day_end,
            now=self._localize(now),
            past_span=self.settings.past_span,
            future_span=self.settings.future_span,
            follow_threshold=self.settings.follow_threshold,
        )
        self.focus = LiveFocusSelector()
        self._snapshot = self._build_snapshot()

    @classmethod
    def from_events(
        cls,
        raw_events: Iterable[Union[RawEvent, Mapping[str, Any]]],
        reference_day: Union[date, datetime],
        *,
        now: datetime,
        timezone: Union[str, ZoneInfo, None] = None,
        settings: TimelineSettings | None = None,
    ) -> "DayTimeline":
        """Normalize ``raw_events`` and lay them out for ``reference_day``.

        Raises:
            InvalidTimezone: if the timezone cannot be resolved.
        """

        settings = settings or TimelineSettings()
        tz = resolve_timezone(timezone if timezone is not None else settings.timezone)
        day_start, day_end = day_bounds(reference_day, tz)
        intervals = normalize(
            raw_events,
            reference_day,
            tz,
            default_duration=settings.default_duration,
            min_visual_duration=settings.min_visual_duration,
        )
        layout = layout_day(intervals, day_start, day_end)
        LOGGER.debug(
            "Laid out %d intervals in %d clusters for %s",
            len(layout.items),
            layout.cluster_count,
            layout.local_day_start.date().isoformat(),
        )
        return cls(layout, now=now, settings=settings)

    @property
    def snapshot(self) -> TimelineSnapshot:
        return self._snapshot

    def dispatch(self, action: Action) -> TimelineSnapshot:
        """Apply ``action`` and return the resulting snapshot."""

        if isinstance(action, Tick):
            self.window.tick(self._localize(action.now))
        elif isinstance(action, ScrollTo):
            self.window.scroll_to(action.offset)
        elif isinstance(action, ScrollBy):
            self.window.scroll_by(action.delta)
        elif isinstance(action, SnapToNow):
            self.window.snap_to_now()
        elif isinstance(action, PinFocus):
            self.focus.pin(action.interval_id)
        elif isinstance(action, ClearPin):
            self.focus.clear_pin()
        else:
            raise TypeError(f"Unsupported timeline action: {action!r}")

        self._snapshot = self._build_snapshot()
        return self._snapshot

    def _localize(self, moment: datetime) -> datetime:
        tz = self.layout.tz
        if moment.tzinfo is None:
            return moment.replace(tzinfo=tz)
        return to_local(moment, tz)

    def _build_snapshot(self) -> TimelineSnapshot:
        window_state = self.window.state
        focus_state = self.focus.update(window_state.anchor_instant, self.layout.intervals)
        return TimelineSnapshot(
            layout=self.layout,
            window=window_state,
            focus=focus_state,
            visible=tuple(self.layout.visible(window_state.visible_window)),
        )


__all__ = [
    "Action",
    "ClearPin",
    "DayTimeline",
    "PinFocus",
    "ScrollBy",
    "ScrollTo",
    "SnapToNow",
    "Tick",
    "TimelineSnapshot",
]
