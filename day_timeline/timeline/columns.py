"""Rank-aware column assignment for one overlap cluster."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Hashable, List, Sequence, Tuple

from .normalize import Interval

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    """Column chosen for one interval and the column count of its cluster."""

    interval_id: Hashable
    column: int
    column_count: int


def _sortable(value: Any) -> Tuple[int, Any]:
    # Opaque ids may be ints or strings; keep numbers in numeric order and
    # never compare across types.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    if value is None:
        return (1, "")
    return (2, str(value))


def priority_key(interval: Interval) -> Tuple[int, Tuple[int, Any], Tuple[int, Any], datetime]:
    """Order by rank descending, then group id, id and start ascending."""

    return (
        -interval.rank,
        _sortable(interval.group_id),
        _sortable(interval.id),
        interval.start,
    )


def assign_columns(cluster: Sequence[Interval]) -> List[Placement]:
    """Assign every interval of ``cluster`` a column.

    Intervals are placed in priority order. Each one lands to the right of
    every higher-priority interval it overlaps, in the first column whose
    occupants it does not overlap; a new column is opened when none fits.
    Placements are returned in the order of ``cluster``.
    """

    if not cluster:
        return []

    columns: List[List[Interval]] = []
    chosen: dict[int, int] = {}

    ordered = sorted(range(len(cluster)), key=lambda idx: priority_key(cluster[idx]))
    for idx in ordered:
        candidate = cluster[idx]
        floor = 0
        for col, occupants in enumerate(columns):
            if any(candidate.overlaps(other) for other in occupants):
                floor = col + 1

        col = floor
        while col < len(columns) and any(candidate.overlaps(other) for other in columns[col]):
            col += 1
        if col == len(columns):
            columns.append([])
        columns[col].append(candidate)
        chosen[idx] = col

    column_count = len(columns)
    LOGGER.debug("Placed %d intervals into %d columns", len(cluster), column_count)
    return [
        Placement(interval_id=interval.id, column=chosen[idx], column_count=column_count)
        for idx, interval in enumerate(cluster)
    ]


__all__ = ["Placement", "assign_columns", "priority_key"]
