"""Pixel-independent layout model for a single day."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Hashable, Iterable, List, Optional, Tuple

from .clusters import build_clusters
from .columns import assign_columns
from .normalize import Interval, to_local, to_utc


@dataclass(frozen=True)
class TimeWindow:
    """Half-open ``[start, end)`` slice of the day axis."""

    start: datetime
    end: datetime

    @property
    def length(self) -> timedelta:
        return self.end - self.start

    def intersects(self, start: datetime, end: datetime) -> bool:
        return start < self.end and self.start < end


@dataclass(frozen=True)
class LaidOutInterval:
    """An interval with its column and its position along the day axis.

    ``offset``/``length`` are measured from the start of the day; the
    ``*_fraction`` properties express the same rectangle in ``[0, 1]`` units
    so a renderer can scale them to any pixel size.
    """

    interval: Interval
    column: int
    column_count: int
    offset: timedelta
    length: timedelta
    render_length: timedelta
    day_length: timedelta

    @property
    def id(self) -> Hashable:
        return self.interval.id

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end

    @property
    def top_fraction(self) -> float:
        return self.offset / self.day_length

    @property
    def height_fraction(self) -> float:
        return self.render_length / self.day_length

    @property
    def left_fraction(self) -> float:
        return self.column / self.column_count

    @property
    def width_fraction(self) -> float:
        return 1 / self.column_count


@dataclass(frozen=True)
class DayLayout:
    """Layout of every interval of one day, sorted by start.

    ``day_start`` and ``day_end`` are UTC instants; ``tz`` is the zone the day
    was cut in and is only used to present times.
    """

    day_start: datetime
    day_end: datetime
    items: Tuple[LaidOutInterval, ...]
    cluster_count: int
    tz: Optional[tzinfo] = None

    @property
    def local_day_start(self) -> datetime:
        return to_local(self.day_start, self.tz)

    @property
    def day_length(self) -> timedelta:
        return self.day_end - self.day_start

    @property
    def intervals(self) -> List[Interval]:
        return [item.interval for item in self.items]

    def get(self, interval_id: Hashable) -> Optional[LaidOutInterval]:
        for item in self.items:
            if item.id == interval_id:
                return item
        return None

    def visible(self, window: TimeWindow) -> List[LaidOutInterval]:
        """Return the items that intersect ``window``."""

        return [item for item in self.items if window.intersects(item.start, item.end)]

    def offset_of(self, instant: datetime) -> timedelta:
        """Offset of ``instant`` from the start of the day, clamped to the day."""

        return min(max(instant, self.day_start), self.day_end) - self.day_start


def layout_day(intervals: Iterable[Interval], day_start: datetime, day_end: datetime) -> DayLayout:
    """Cluster ``intervals``, assign their columns and compute axis offsets."""

    tz = day_start.tzinfo
    day_start, day_end = to_utc(day_start), to_utc(day_end)
    if day_end <= day_start:
        raise ValueError("day_end must be after day_start")

    day_length = day_end - day_start
    items: List[LaidOutInterval] = []
    clusters = build_clusters(intervals)
    for cluster in clusters:
        for interval, placement in zip(cluster.intervals, assign_columns(cluster.intervals)):
            items.append(
                LaidOutInterval(
                    interval=interval,
                    column=placement.column,
                    column_count=placement.column_count,
                    offset=interval.start - day_start,
                    length=interval.end - interval.start,
                    render_length=interval.render_end - interval.start,
                    day_length=day_length,
                )
            )

    return DayLayout(
        day_start=day_start,
        day_end=day_end,
        items=tuple(items),
        cluster_count=len(clusters),
        tz=tz,
    )


__all__ = ["DayLayout", "LaidOutInterval", "TimeWindow", "layout_day"]
