"""Group intervals into maximal sets of transitively overlapping ranges."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Tuple

from .columns import priority_key
from .normalize import Interval


@dataclass(frozen=True)
class Cluster:
    """Intervals connected by overlap, sorted by start, with their combined span."""

    intervals: Tuple[Interval, ...]
    start: datetime
    end: datetime

    def __len__(self) -> int:
        return len(self.intervals)

    def __iter__(self):
        return iter(self.intervals)


def build_clusters(intervals: Iterable[Interval]) -> List[Cluster]:
    """Partition ``intervals`` into overlap clusters with a single sweep.

    An interval joins the running cluster when it starts before the cluster's
    end watermark; touching ranges (``start == watermark``) open a new one.
    """

    ordered = sorted(intervals, key=lambda item: (item.start, item.end, priority_key(item)))
    clusters: List[Cluster] = []
    current: List[Interval] = []
    watermark: datetime | None = None

    for interval in ordered:
        if current and watermark is not None and interval.start < watermark:
            current.append(interval)
            watermark = max(watermark, interval.end)
            continue
        if current:
            clusters.append(Cluster(tuple(current), current[0].start, watermark))  # type: ignore[arg-type]
        current = [interval]
        watermark = interval.end

    if current:
        clusters.append(Cluster(tuple(current), current[0].start, watermark))  # type: ignore[arg-type]
    return clusters


__all__ = ["Cluster", "build_clusters"]
