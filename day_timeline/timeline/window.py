"""Sliding visible window that follows "now" until the user scrolls away."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from .layout import TimeWindow
from .normalize import to_utc

LOGGER = logging.getLogger(__name__)

DEFAULT_PAST_SPAN = timedelta(hours=1)
DEFAULT_FUTURE_SPAN = timedelta(hours=3)
DEFAULT_FOLLOW_THRESHOLD = timedelta(minutes=5)


@dataclass(frozen=True)
class WindowState:
    """Read-only snapshot of a :class:`WindowScheduler`."""

    anchor_instant: datetime
    past_span: timedelta
    future_span: timedelta
    scroll_offset: timedelta
    is_following: bool
    visible_window: TimeWindow


class WindowScheduler:
    """Own the scroll position of one rendered day.

    The scroll offset is measured from the start of the day and always kept in
    ``[0, day_length - window_length]``. Instants are held in UTC so offsets
    measure elapsed time. Following is derived: the view follows
    while the offset is within ``follow_threshold`` of the position anchored on
    the latest tick. All operations are synchronous and constant time.
    """

    def __init__(
        self,
        day_start: datetime,
        day_end: datetime,
        *,
        now: datetime,
        past_span: timedelta = DEFAULT_PAST_SPAN,
        future_span: timedelta = DEFAULT_FUTURE_SPAN,
        follow_threshold: timedelta = DEFAULT_FOLLOW_THRESHOLD,
    ) -> None:
        day_start, day_end = to_utc(day_start), to_utc(day_end)
        if day_end <= day_start:
            raise ValueError("day_end must be after day_start")
        if past_span < timedelta(0) or future_span < timedelta(0):
            raise ValueError("window spans must not be negative")
        if past_span + future_span <= timedelta(0):
            raise ValueError("window must have a positive length")

        self.day_start = day_start
        self.day_end = day_end
        self.past_span = past_span
        self.future_span = future_span
        self.follow_threshold = follow_threshold
        self._anchor = to_utc(now)
        self._scroll_offset = self._anchored_offset()

    # ------------------------------------------------------------------
    @property
    def day_length(self) -> timedelta:
        return self.day_end - self.day_start

    @property
    def window_length(self) -> timedelta:
        return min(self.past_span + self.future_span, self.day_length)

    @property
    def max_offset(self) -> timedelta:
        return self.day_length - self.window_length

    @property
    def anchor_instant(self) -> datetime:
        return self._anchor

    @property
    def scroll_offset(self) -> timedelta:
        return self._scroll_offset

    @property
    def state(self) -> WindowState:
        return WindowState(
            anchor_instant=self._anchor,
            past_span=self.past_span,
            future_span=self.future_span,
            scroll_offset=self._scroll_offset,
            is_following=self.is_following(),
            visible_window=self.get_visible_window(),
        )

    # ------------------------------------------------------------------
    def tick(self, now: datetime) -> None:
        """Advance the anchor to ``now``; re-snap the offset if following."""

        following = self.is_following()
        self._anchor = to_utc(now)
        if following:
            self._scroll_offset = self._anchored_offset()
        LOGGER.debug(
            "Tick at %s (following=%s, offset=%s)",
            now.isoformat(),
            following,
            self._scroll_offset,
        )

    def scroll_to(self, offset: timedelta) -> None:
        """Move the window to ``offset`` from the start of the day, clamped."""

        self._scroll_offset = self._clamp(offset)
        if not self.is_following():
            LOGGER.debug("Stopped following now at offset %s", self._scroll_offset)

    def scroll_by(self, delta: timedelta) -> None:
        self.scroll_to(self._scroll_offset + delta)

    def snap_to_now(self) -> None:
        self._scroll_offset = self._anchored_offset()

    def is_following(self) -> bool:
        return abs(self._scroll_offset - self._anchored_offset()) <= self.follow_threshold

    def get_visible_window(self) -> TimeWindow:
        """Return the visible slice of the day.

        While following, the window is ``[anchor - past_span, anchor + future_span]``
        clipped to the day, so it shrinks at the day boundaries. Otherwise it
        is the full-length window at the current scroll offset.
        """

        if self.is_following():
            start = max(self._anchor - self.past_span, self.day_start)
            end = min(self._anchor + self.future_span, self.day_end)
            if end <= start:
                # Anchor lies outside the rendered day; show the nearest edge.
                start = self.day_start + self._scroll_offset
                end = start + self.window_length
            return TimeWindow(start, end)
        start = self.day_start + self._scroll_offset
        return TimeWindow(start, start + self.window_length)

    # ------------------------------------------------------------------
    def _anchored_offset(self) -> timedelta:
        return self._clamp(self._anchor - self.past_span - self.day_start)

    def _clamp(self, offset: timedelta) -> timedelta:
        return max(timedelta(0), min(offset, self.max_offset))


__all__ = [
    "DEFAULT_FOLLOW_THRESHOLD",
    "DEFAULT_FUTURE_SPAN",
    "DEFAULT_PAST_SPAN",
    "WindowScheduler",
    "WindowState",
]
