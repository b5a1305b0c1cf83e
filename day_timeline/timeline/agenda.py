"""Derived "now & next" figures shown next to the live timeline."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from .columns import priority_key
from .focus import compute_live, resolve_focus
from .normalize import Interval

HIGH_BUFFER = timedelta(minutes=10)
TIGHT_BUFFER = timedelta(minutes=30)


@dataclass(frozen=True)
class AgendaItem:
    interval: Interval
    status: str  # "finished" | "live" | "upcoming"


def format_duration(delta: timedelta) -> str:
    if delta <= timedelta(0):
        return "0m"
    total_minutes = round(delta.total_seconds() / 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def format_time_range(interval: Interval, hour_format: str = "24") -> str:
    if interval.is_all_day:
        return "All day"
    start = _format_clock(interval.local_start, hour_format)
    end = _format_clock(interval.local_end, hour_format)
    return f"{start} - {end}"


def _format_clock(value: datetime, hour_format: str) -> str:
    if hour_format == "12":
        hour = value.hour % 12 or 12
        suffix = "PM" if value.hour >= 12 else "AM"
        return f"{hour}:{value.minute:02d} {suffix}"
    return f"{value.hour:02d}:{value.minute:02d}"


def _percent(part: timedelta, whole: timedelta) -> float:
    if whole <= timedelta(0):
        return 100.0
    return max(0.0, min(100.0, part / whole * 100))


def progress(interval: Interval, now: datetime) -> float:
    """Percentage of ``interval`` elapsed at ``now``."""

    return _percent(now - interval.start, interval.end - interval.start)


def day_progress(now: datetime, day_start: datetime, day_end: datetime) -> float:
    return _percent(now - day_start, day_end - day_start)


def remaining(interval: Interval, now: datetime) -> timedelta:
    return max(timedelta(0), interval.end - now)


def gap_before_next(
    current: Optional[Interval],
    upcoming: Optional[Interval],
    now: datetime,
) -> Optional[timedelta]:
    """Free time before the next event starts.

    Measured from the end of the live event, or from ``now`` when nothing is
    live. ``None`` when there is no next event.
    """

    if upcoming is None:
        return None
    if current is not None:
        return upcoming.start - current.end
    return upcoming.start - now


def buffer_label(gap: Optional[timedelta]) -> Optional[str]:
    if gap is None:
        return None
    if gap <= HIGH_BUFFER:
        return "High"
    if gap <= TIGHT_BUFFER:
        return "Tight"
    return "Clear"


def agenda_items(
    intervals: Iterable[Interval],
    now: datetime,
    focus_id: Optional[Hashable] = None,
    *,
    past_limit: int = 3,
    upcoming_limit: int = 5,
) -> List[AgendaItem]:
    """Recent finished events, the focused live event, then what comes next."""

    ordered = sorted(intervals, key=lambda item: (item.start, priority_key(item)))
    finished = [item for item in ordered if item.end <= now]
    upcoming = [item for item in ordered if item.start > now]
    live = compute_live(now, ordered)

    items = [AgendaItem(item, "finished") for item in finished[-past_limit:]] if past_limit else []
    focused_id = resolve_focus(focus_id, live)
    if focused_id is not None:
        focused = next(item for item in live if item.id == focused_id)
        items.append(AgendaItem(focused, "live"))
    items.extend(AgendaItem(item, "upcoming") for item in upcoming[:upcoming_limit])
    return items


def parallel_counts(intervals: Sequence[Interval]) -> Dict[Hashable, int]:
    """Map each interval id to the number of intervals with the identical span."""

    spans: Counter[Tuple[datetime, datetime]] = Counter(
        (item.start, item.end) for item in intervals
    )
    return {item.id: spans[(item.start, item.end)] for item in intervals}


__all__ = [
    "AgendaItem",
    "agenda_items",
    "buffer_label",
    "day_progress",
    "format_duration",
    "format_time_range",
    "gap_before_next",
    "parallel_counts",
    "progress",
    "remaining",
]
