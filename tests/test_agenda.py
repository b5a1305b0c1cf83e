from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from zoneinfo import ZoneInfo

from day_timeline.timeline.agenda import (
    agenda_items,
    buffer_label,
    day_progress,
    format_duration,
    format_time_range,
    gap_before_next,
    parallel_counts,
    progress,
    remaining,
)
from day_timeline.timeline.normalize import Interval

UTC = ZoneInfo("UTC")


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, 15, hour, minute, tzinfo=UTC)


def make(interval_id, start: datetime, end: datetime, **kwargs) -> Interval:
    return Interval(id=interval_id, start=start, end=end, render_end=end, **kwargs)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(0), "0m"),
        (timedelta(minutes=-5), "0m"),
        (timedelta(minutes=45), "45m"),
        (timedelta(hours=2), "2h"),
        (timedelta(hours=1, minutes=30), "1h 30m"),
        (timedelta(seconds=89), "1m"),
    ],
)
def test_format_duration(delta: timedelta, expected: str) -> None:
    assert format_duration(delta) == expected


@pytest.mark.parametrize(
    "gap, expected",
    [
        (None, None),
        (timedelta(minutes=-5), "High"),
        (timedelta(minutes=10), "High"),
        (timedelta(minutes=11), "Tight"),
        (timedelta(minutes=30), "Tight"),
        (timedelta(minutes=31), "Clear"),
    ],
)
def test_buffer_label(gap, expected) -> None:
    assert buffer_label(gap) == expected


def test_gap_before_next_measures_from_the_live_event_or_now() -> None:
    current = make("current", at(9), at(10))
    upcoming = make("next", at(10, 20), at(11))

    assert gap_before_next(current, upcoming, at(9, 30)) == timedelta(minutes=20)
    assert gap_before_next(None, upcoming, at(9, 30)) == timedelta(minutes=50)
    assert gap_before_next(current, None, at(9, 30)) is None


def test_progress_and_remaining() -> None:
    meeting = make("m", at(9), at(10))

    assert progress(meeting, at(9, 15)) == pytest.approx(25.0)
    assert progress(meeting, at(8)) == 0.0
    assert progress(meeting, at(11)) == 100.0
    assert remaining(meeting, at(9, 45)) == timedelta(minutes=15)
    assert remaining(meeting, at(11)) == timedelta(0)
    assert day_progress(at(12), at(0), at(0) + timedelta(days=1)) == pytest.approx(50.0)


def test_format_time_range() -> None:
    meeting = make("m", at(13, 5), at(14))
    holiday = make("h", at(0), at(0) + timedelta(days=1), is_all_day=True)

    assert format_time_range(meeting) == "13:05 - 14:00"
    assert format_time_range(meeting, "12") == "1:05 PM - 2:00 PM"
    assert format_time_range(make("e", at(0, 30), at(1)), "12") == "12:30 AM - 1:00 AM"
    assert format_time_range(holiday) == "All day"


def test_format_time_range_uses_the_display_timezone() -> None:
    tokyo = ZoneInfo("Asia/Tokyo")
    meeting = make("m", at(0), at(1, 30), tz=tokyo)

    assert format_time_range(meeting) == "09:00 - 10:30"


def test_agenda_items_keep_recent_past_live_and_upcoming() -> None:
    finished = [make(f"past-{idx}", at(idx), at(idx, 30)) for idx in range(1, 6)]
    live_low = make("live-low", at(8), at(9))
    live_high = make("live-high", at(8, 15), at(9), rank=3)
    upcoming = [make(f"next-{idx}", at(idx), at(idx, 30)) for idx in range(10, 17)]

    items = agenda_items([*upcoming, live_low, *finished, live_high], at(8, 30))

    assert [(item.interval.id, item.status) for item in items] == [
        ("past-3", "finished"),
        ("past-4", "finished"),
        ("past-5", "finished"),
        ("live-high", "live"),
        ("next-10", "upcoming"),
        ("next-11", "upcoming"),
        ("next-12", "upcoming"),
        ("next-13", "upcoming"),
        ("next-14", "upcoming"),
    ]

    pinned = agenda_items([live_low, live_high], at(8, 30), "live-low")
    assert [(item.interval.id, item.status) for item in pinned] == [("live-low", "live")]


def test_parallel_counts_group_identical_spans() -> None:
    intervals = [
        make("a", at(9), at(10)),
        make("b", at(9), at(10)),
        make("c", at(9), at(10, 30)),
    ]

    assert parallel_counts(intervals) == {"a": 2, "b": 2, "c": 1}
