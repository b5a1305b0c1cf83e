"""Live-interval detection and the focused interval shown in the status area."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Hashable, Iterable, List, Optional, Sequence, Tuple

from .columns import priority_key
from .normalize import Interval

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FocusState:
    live_interval_ids: Tuple[Hashable, ...]
    focused_interval_id: Optional[Hashable]
    next_upcoming_id: Optional[Hashable] = None


def compute_live(anchor_instant: datetime, intervals: Iterable[Interval]) -> List[Interval]:
    """Return intervals containing ``anchor_instant`` in priority order."""

    live = [interval for interval in intervals if interval.contains(anchor_instant)]
    live.sort(key=priority_key)
    return live


def resolve_focus(
    previous_focus_id: Optional[Hashable],
    live_intervals: Sequence[Interval],
) -> Optional[Hashable]:
    """Keep a still-live focus, else fall back to the first live interval."""

    if not live_intervals:
        return None
    if previous_focus_id is not None and any(
        interval.id == previous_focus_id for interval in live_intervals
    ):
        return previous_focus_id
    return live_intervals[0].id


def next_upcoming(anchor_instant: datetime, intervals: Iterable[Interval]) -> Optional[Interval]:
    """Return the first interval starting strictly after ``anchor_instant``."""

    upcoming = [interval for interval in intervals if interval.start > anchor_instant]
    if not upcoming:
        return None
    return min(upcoming, key=lambda interval: (interval.start, priority_key(interval)))


class LiveFocusSelector:
    """Track the user's focus pin across ticks."""

    def __init__(self) -> None:
        self._pinned: Optional[Hashable] = None
        self._live: Tuple[Hashable, ...] = ()

    @property
    def pinned_id(self) -> Optional[Hashable]:
        return self._pinned

    def pin(self, interval_id: Hashable) -> bool:
        """Pin ``interval_id`` as the focus; only currently live intervals qualify."""

        if interval_id not in self._live:
            LOGGER.debug("Ignoring focus pin on %r: not live", interval_id)
            return False
        self._pinned = interval_id
        return True

    def clear_pin(self) -> None:
        self._pinned = None

    def update(self, anchor_instant: datetime, intervals: Sequence[Interval]) -> FocusState:
        live = compute_live(anchor_instant, intervals)
        self._live = tuple(interval.id for interval in live)
        focused = resolve_focus(self._pinned, live)
        if self._pinned is not None and focused != self._pinned:
            LOGGER.debug("Focus pin %r is no longer live", self._pinned)
            self._pinned = None
        upcoming = next_upcoming(anchor_instant, intervals)
        return FocusState(
            live_interval_ids=self._live,
            focused_interval_id=focused,
            next_upcoming_id=upcoming.id if upcoming is not None else None,
        )


__all__ = [
    "FocusState",
    "LiveFocusSelector",
    "compute_live",
    "next_upcoming",
    "resolve_focus",
]
