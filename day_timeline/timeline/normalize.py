"""Turn raw event records into clipped ``[start, end)`` intervals for one day.

Intervals are stored in UTC so overlap checks and axis offsets measure real
elapsed time, including on daylight-saving transition days. ``Interval.tz``
keeps the display zone for :attr:`Interval.local_start` and friends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time as time_, timedelta, timezone, tzinfo
from typing import Any, Hashable, Iterable, List, Mapping, Optional, Union

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

UTC = timezone.utc
DEFAULT_DURATION = timedelta(hours=1)
MIN_VISUAL_DURATION = timedelta(minutes=4)

DateValue = Union[str, date, datetime]

_TRUE_STRINGS = frozenset({"true", "yes", "1"})


class InvalidTimezone(ValueError):
    """Raised when the caller supplies an unknown or malformed IANA timezone."""


@dataclass(frozen=True)
class RawEvent:
    """Event record as delivered by the surrounding application.

    Dates are ``date``/``datetime`` objects, ``YYYY-MM-DD`` strings or full ISO
    timestamps (``T`` or space separated); times are ``HH:MM`` or ``HH:MM:SS``
    and replace the clock of the matching date. Everything except ``id`` and
    ``start_date`` is optional.
    """

    id: Hashable
    start_date: Optional[DateValue]
    start_time: Optional[str] = None
    end_date: Optional[DateValue] = None
    end_time: Optional[str] = None
    is_all_day: bool = False
    calendar_rank: Optional[int] = None
    calendar_id: Optional[str] = None
    title: str = ""
    location: Optional[str] = None
    calendar_name: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "RawEvent":
        calendar = payload.get("calendar")
        calendar = calendar if isinstance(calendar, Mapping) else {}
        rank = payload.get("calendarRank", calendar.get("rank"))
        calendar_id = payload.get("calendarId", calendar.get("id"))
        return cls(
            id=payload.get("id"),
            start_date=_optional_date(payload.get("startDate") or payload.get("start")),
            start_time=_optional_str(payload.get("startTime")),
            end_date=_optional_date(payload.get("endDate") or payload.get("end")),
            end_time=_optional_str(payload.get("endTime")),
            is_all_day=_optional_bool(payload.get("isAllDay")),
            calendar_rank=_optional_int(rank),
            calendar_id=str(calendar_id) if calendar_id is not None else None,
            title=str(payload.get("title") or ""),
            location=_optional_str(payload.get("location")),
            calendar_name=_optional_str(payload.get("calendarName") or calendar.get("name")),
            color=_optional_str(payload.get("color") or calendar.get("color")),
        )


@dataclass(frozen=True)
class Interval:
    """Normalized, immutable time range derived from one event instance.

    ``render_end`` only exists for sizing: short events are stretched to a
    minimum visual length there, while ``end`` stays the logical end used for
    every overlap decision.
    """

    id: Hashable
    start: datetime
    end: datetime
    render_end: datetime
    is_all_day: bool = False
    rank: int = 0
    group_id: Optional[str] = None
    title: str = field(default="", compare=False)
    location: Optional[str] = field(default=None, compare=False)
    calendar_name: Optional[str] = field(default=None, compare=False)
    color: Optional[str] = field(default=None, compare=False)
    tz: Optional[tzinfo] = field(default=None, compare=False, repr=False)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def local_start(self) -> datetime:
        return to_local(self.start, self.tz)

    @property
    def local_end(self) -> datetime:
        return to_local(self.end, self.tz)

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def to_utc(moment: datetime) -> datetime:
    """Return an aware ``moment`` in UTC; naive values are returned unchanged."""

    if moment.tzinfo is None:
        return moment
    return moment.astimezone(UTC)


def to_local(moment: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(tz)


def resolve_timezone(timezone: Union[str, ZoneInfo]) -> ZoneInfo:
    """Return a :class:`ZoneInfo` for ``timezone`` or raise :class:`InvalidTimezone`."""

    if isinstance(timezone, ZoneInfo):
        return timezone
    name = str(timezone or "").strip()
    if not name:
        raise InvalidTimezone("Timezone name must not be empty.")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezone(f"Unknown timezone: {name!r}") from exc


def day_bounds(reference_day: Union[date, datetime], tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return the local midnight that opens ``reference_day`` and the one that closes it.

    Both values carry ``tz``; convert them with :func:`to_utc` before measuring
    the day, which lasts 23 or 25 hours across a daylight-saving change.
    """

    if isinstance(reference_day, datetime):
        if reference_day.tzinfo is not None:
            reference_day = reference_day.astimezone(tz)
        reference_day = reference_day.date()
    start = datetime.combine(reference_day, time_.min, tzinfo=tz)
    end = datetime.combine(reference_day + timedelta(days=1), time_.min, tzinfo=tz)
    return start, end


def normalize(
    raw_events: Iterable[Union[RawEvent, Mapping[str, Any]]],
    reference_day: Union[date, datetime],
    timezone: Union[str, ZoneInfo],
    *,
    default_duration: timedelta = DEFAULT_DURATION,
    min_visual_duration: timedelta = MIN_VISUAL_DURATION,
) -> List[Interval]:
    """Convert raw events into intervals clipped to ``reference_day``.

    Missing or inverted end times are repaired with ``default_duration``,
    all-day events span the whole day of their start date, and events that do
    not touch the reference day are dropped. Input records are not modified.

    Raises:
        InvalidTimezone: if ``timezone`` cannot be resolved.
    """

    tz = resolve_timezone(timezone)
    day_start, day_end = (to_utc(bound) for bound in day_bounds(reference_day, tz))

    intervals: List[Interval] = []
    for item in raw_events:
        event = item if isinstance(item, RawEvent) else RawEvent.from_mapping(item)
        interval = _normalize_event(
            event,
            tz,
            day_start,
            day_end,
            default_duration=default_duration,
            min_visual_duration=min_visual_duration,
        )
        if interval is not None:
            intervals.append(interval)
    return intervals


def _normalize_event(
    event: RawEvent,
    tz: ZoneInfo,
    day_start: datetime,
    day_end: datetime,
    *,
    default_duration: timedelta,
    min_visual_duration: timedelta,
) -> Optional[Interval]:
    start = _parse_instant(event.start_date, event.start_time, tz)
    if start is None:
        logger.warning("Skipping event %r: start %r is not a valid date", event.id, event.start_date)
        return None

    if event.is_all_day:
        start, end = (to_utc(bound) for bound in day_bounds(start, tz))
    else:
        end_date = event.end_date if event.end_date is not None else event.start_date
        end = _parse_instant(end_date, event.end_time, tz)
        if end is None or end <= start:
            end = start + default_duration

    if end <= day_start or start >= day_end:
        logger.debug("Event %r falls outside %s", event.id, to_local(day_start, tz).date().isoformat())
        return None

    start = max(start, day_start)
    end = min(end, day_end)
    render_end = min(max(end, start + min_visual_duration), day_end)

    return Interval(
        id=event.id,
        start=start,
        end=end,
        render_end=render_end,
        is_all_day=event.is_all_day,
        rank=event.calendar_rank if event.calendar_rank is not None else 0,
        group_id=event.calendar_id,
        title=event.title,
        location=event.location,
        calendar_name=event.calendar_name,
        color=event.color,
        tz=tz,
    )


def _parse_instant(
    date_value: Optional[DateValue],
    time_value: Optional[str],
    tz: ZoneInfo,
) -> Optional[datetime]:
    """Combine a date-ish value and an optional clock time into a UTC instant.

    Naive values are read as wall time in ``tz``.
    """

    if isinstance(date_value, datetime):
        parsed: Optional[datetime] = date_value
    elif isinstance(date_value, date):
        parsed = datetime.combine(date_value, time_.min)
    elif date_value and date_value.strip():
        parsed = _parse_text(date_value.strip())
    else:
        return None
    if parsed is None:
        return None

    clock = _parse_clock(time_value)
    if clock is not None:
        parsed = datetime.combine(parsed.date(), clock, tzinfo=parsed.tzinfo)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(UTC)


def _parse_text(text: str) -> Optional[datetime]:
    # Anything past the date part is a clock time and offset.
    if len(text) > 10:
        parsed = _parse_iso(text)
        if parsed is not None:
            return parsed
    try:
        return datetime.combine(date.fromisoformat(text[:10]), time_.min)
    except ValueError:
        return None


def _parse_iso(value: str) -> Optional[datetime]:
    cleaned = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError:
        return None


def _parse_clock(time_text: Optional[str]) -> Optional[time_]:
    if not time_text or not time_text.strip():
        return None
    try:
        return time_.fromisoformat(time_text.strip()).replace(tzinfo=None)
    except ValueError:
        logger.debug("Ignoring malformed time %r", time_text)
        return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric calendar rank %r", value)
        return None


def _optional_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (bool, int)):
        return bool(value)
    return False


def _optional_date(value: Any) -> Optional[DateValue]:
    if isinstance(value, date):
        return value
    return _optional_str(value)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


__all__ = [
    "DEFAULT_DURATION",
    "MIN_VISUAL_DURATION",
    "UTC",
    "Interval",
    "InvalidTimezone",
    "RawEvent",
    "day_bounds",
    "normalize",
    "resolve_timezone",
    "to_local",
    "to_utc",
]
