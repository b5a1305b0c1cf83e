from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from zoneinfo import ZoneInfo

from day_timeline.timeline.layout import TimeWindow, layout_day
from day_timeline.timeline.normalize import Interval, day_bounds, normalize

UTC = ZoneInfo("UTC")
DAY_START = datetime(2024, 1, 15, tzinfo=UTC)
DAY_END = DAY_START + timedelta(days=1)


def at(hour: int, minute: int = 0) -> datetime:
    return DAY_START.replace(hour=hour, minute=minute)


def make(interval_id, start: datetime, end: datetime, render_end: datetime | None = None) -> Interval:
    return Interval(id=interval_id, start=start, end=end, render_end=render_end or end)


def test_axis_metrics_are_relative_to_the_day() -> None:
    layout = layout_day(
        [make("morning", at(6), at(12)), make("blip", at(18), at(18, 1), render_end=at(18, 4))],
        DAY_START,
        DAY_END,
    )

    morning = layout.get("morning")
    blip = layout.get("blip")
    assert morning is not None and blip is not None
    assert morning.offset == timedelta(hours=6)
    assert morning.top_fraction == pytest.approx(0.25)
    assert morning.height_fraction == pytest.approx(0.25)
    assert blip.length == timedelta(minutes=1)
    assert blip.render_length == timedelta(minutes=4)


def test_column_fractions_split_the_width() -> None:
    layout = layout_day(
        [make("a", at(9), at(10)), make("b", at(9), at(10)), make("c", at(9, 30), at(11))],
        DAY_START,
        DAY_END,
    )

    fractions = {item.id: (item.left_fraction, item.width_fraction) for item in layout.items}
    assert fractions["a"] == (0.0, pytest.approx(1 / 3))
    assert fractions["b"][0] == pytest.approx(1 / 3)
    assert fractions["c"][0] == pytest.approx(2 / 3)
    assert layout.cluster_count == 1


def test_items_are_sorted_by_start() -> None:
    layout = layout_day(
        [make("late", at(15), at(16)), make("early", at(8), at(9)), make("mid", at(11), at(12))],
        DAY_START,
        DAY_END,
    )

    assert [item.id for item in layout.items] == ["early", "mid", "late"]
    assert layout.cluster_count == 3


def test_visible_returns_intervals_intersecting_the_window() -> None:
    layout = layout_day(
        [make("before", at(7), at(8)), make("edge", at(8), at(9, 30)), make("inside", at(10), at(11)), make("after", at(12), at(13))],
        DAY_START,
        DAY_END,
    )

    visible = layout.visible(TimeWindow(at(9), at(12)))

    assert [item.id for item in visible] == ["edge", "inside"]


def test_offset_of_clamps_to_the_day() -> None:
    layout = layout_day([], DAY_START, DAY_END)

    assert layout.offset_of(DAY_START - timedelta(hours=2)) == timedelta(0)
    assert layout.offset_of(at(13)) == timedelta(hours=13)
    assert layout.offset_of(DAY_END + timedelta(hours=1)) == timedelta(days=1)


def test_rejects_inverted_day() -> None:
    with pytest.raises(ValueError):
        layout_day([], DAY_END, DAY_START)


def test_fall_back_day_lays_out_the_repeated_hour_side_by_side_in_time() -> None:
    tz = ZoneInfo("America/New_York")
    day = date(2024, 11, 3)
    raws = [
        {"id": "edt", "start": "2024-11-03T01:00:00-04:00", "end": "2024-11-03T01:30:00-04:00"},
        {"id": "est", "start": "2024-11-03T01:00:00-05:00", "end": "2024-11-03T01:30:00-05:00"},
        {"id": "noon", "startDate": "2024-11-03", "startTime": "12:00", "endTime": "13:00"},
    ]

    layout = layout_day(normalize(raws, day, tz), *day_bounds(day, tz))

    assert layout.day_length == timedelta(hours=25)
    assert layout.cluster_count == 3
    assert [item.column_count for item in layout.items] == [1, 1, 1]
    assert layout.get("edt").offset == timedelta(hours=1)
    assert layout.get("est").offset == timedelta(hours=2)
    assert layout.get("noon").offset == timedelta(hours=13)
    assert layout.local_day_start == datetime(2024, 11, 3, tzinfo=tz)
