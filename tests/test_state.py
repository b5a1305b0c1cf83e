from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from zoneinfo import ZoneInfo

from day_timeline.config import TimelineSettings
from day_timeline.timeline import (
    ClearPin,
    DayTimeline,
    InvalidTimezone,
    PinFocus,
    ScrollBy,
    ScrollTo,
    SnapToNow,
    Tick,
    TimeWindow,
)

UTC = ZoneInfo("UTC")
DAY = date(2024, 1, 15)

RAW_EVENTS = [
    {"id": "standup", "title": "Standup", "startDate": "2024-01-15", "startTime": "09:00", "endTime": "10:00", "calendarRank": 2},
    {"id": "review", "title": "Design review", "startDate": "2024-01-15", "startTime": "09:30", "endTime": "10:00"},
    {"id": "lunch", "title": "Lunch", "startDate": "2024-01-15", "startTime": "12:00", "endTime": "13:00"},
    {"id": "late", "title": "Late call", "startDate": "2024-01-15", "startTime": "21:00", "endTime": "22:00"},
    {"id": "other-day", "startDate": "2024-01-16", "startTime": "09:00"},
]


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, 15, hour, minute, tzinfo=UTC)


def make_timeline(now: datetime) -> DayTimeline:
    settings = TimelineSettings(
        timezone="UTC",
        past_span=timedelta(hours=1),
        future_span=timedelta(hours=3),
    )
    return DayTimeline.from_events(RAW_EVENTS, DAY, now=now, settings=settings)


def visible_ids(snapshot) -> list:
    return [item.id for item in snapshot.visible]


def test_initial_snapshot_follows_now() -> None:
    timeline = make_timeline(at(9, 40))
    snapshot = timeline.snapshot

    assert [item.id for item in snapshot.layout.items] == ["standup", "review", "lunch", "late"]
    assert snapshot.visible_window == TimeWindow(at(8, 40), at(12, 40))
    assert visible_ids(snapshot) == ["standup", "review", "lunch"]
    assert snapshot.focus.live_interval_ids == ("standup", "review")
    assert snapshot.focused is not None and snapshot.focused.id == "standup"
    assert snapshot.next_upcoming is not None and snapshot.next_upcoming.id == "lunch"
    assert snapshot.window.is_following


def test_pin_then_tick_out_of_the_live_range() -> None:
    timeline = make_timeline(at(9, 40))

    pinned = timeline.dispatch(PinFocus("review"))
    assert pinned.focus.focused_interval_id == "review"

    still_live = timeline.dispatch(Tick(at(9, 45)))
    assert still_live.focus.focused_interval_id == "review"

    later = timeline.dispatch(Tick(at(10, 1)))
    assert later.focus.live_interval_ids == ()
    assert later.focus.focused_interval_id is None
    assert later.next_upcoming is not None and later.next_upcoming.id == "lunch"


def test_clear_pin_returns_to_the_default_focus() -> None:
    timeline = make_timeline(at(9, 40))
    timeline.dispatch(PinFocus("review"))

    snapshot = timeline.dispatch(ClearPin())

    assert snapshot.focus.focused_interval_id == "standup"


def test_scroll_away_and_snap_back() -> None:
    timeline = make_timeline(at(9, 40))

    scrolled = timeline.dispatch(ScrollTo(timedelta(hours=19)))
    assert not scrolled.window.is_following
    assert scrolled.visible_window == TimeWindow(at(19), at(23))
    assert visible_ids(scrolled) == ["late"]

    ticked = timeline.dispatch(Tick(at(10)))
    assert ticked.visible_window == TimeWindow(at(19), at(23))
    assert ticked.now == at(10)

    snapped = timeline.dispatch(SnapToNow())
    assert snapped.window.is_following
    assert snapped.visible_window == TimeWindow(at(9), at(13))


def test_scroll_by_moves_relative_to_the_current_offset() -> None:
    timeline = make_timeline(at(9, 40))

    snapshot = timeline.dispatch(ScrollBy(timedelta(hours=-2)))

    assert snapshot.window.scroll_offset == timedelta(hours=6, minutes=40)


def test_naive_ticks_are_read_in_the_day_timezone() -> None:
    timeline = make_timeline(at(9, 40))

    snapshot = timeline.dispatch(Tick(datetime(2024, 1, 15, 12, 30)))

    assert snapshot.now == at(12, 30)
    assert snapshot.focus.live_interval_ids == ("lunch",)


def test_unknown_action_is_rejected() -> None:
    timeline = make_timeline(at(9, 40))

    with pytest.raises(TypeError):
        timeline.dispatch("tick")  # type: ignore[arg-type]


def test_invalid_timezone_propagates() -> None:
    with pytest.raises(InvalidTimezone):
        DayTimeline.from_events(RAW_EVENTS, DAY, now=at(9), timezone="Atlantis/Capital")


def test_timezone_argument_overrides_settings() -> None:
    tz = ZoneInfo("America/New_York")
    timeline = DayTimeline.from_events(
        [{"id": "x", "startDate": "2024-01-15T14:00:00Z"}],
        DAY,
        now=at(14),
        timezone="America/New_York",
    )

    (item,) = timeline.layout.items
    assert item.start == datetime(2024, 1, 15, 9, tzinfo=tz)
    assert timeline.snapshot.now.tzinfo == tz
