"""Command line entry point for the live day timeline."""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import dataclass, replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional

from .config import ConfigError, TimelineSettings, load_env_file
from .rendering import PreviewConfig, TimelinePreviewRenderer
from .scheduler import Scheduler
from .timeline import DayTimeline, InvalidTimezone, Tick, TimelineSnapshot, resolve_timezone
from .timeline.normalize import to_local
from .timeline.agenda import (
    agenda_items,
    buffer_label,
    day_progress,
    format_duration,
    format_time_range,
    gap_before_next,
    remaining,
)

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live day timeline")
    parser.add_argument(
        "events",
        type=Path,
        help="JSON file holding a list of event records for the day.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional path to a .env file loaded before the app starts.",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Reference day (YYYY-MM-DD). Defaults to today in the configured timezone.",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help="IANA timezone name. Overrides TIMELINE_TIMEZONE.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single refresh immediately and exit.",
    )
    parser.add_argument(
        "--immediate",
        action="store_true",
        help="Perform an immediate refresh before entering the timed loop.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    preview_group = parser.add_argument_group("Preview options")
    preview_group.add_argument(
        "--preview-dir",
        type=Path,
        default=None,
        help="Directory where a PNG preview is written on every refresh.",
    )
    preview_group.add_argument(
        "--hour-format",
        choices=("12", "24"),
        default="24",
        help="Clock format used in previews and log lines.",
    )

    return parser


@dataclass
class AppSettings:
    events_path: Path
    reference_day: date | None
    once: bool
    immediate: bool
    preview_dir: Path | None
    hour_format: str
    timeline: TimelineSettings


def load_raw_events(path: Path) -> List[Mapping[str, Any]]:
    """Read the JSON event list, accepting either a bare list or ``{"events": [...]}``."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Events file {path} is not valid JSON: {exc}") from exc
    if isinstance(payload, Mapping):
        payload = payload.get("events", [])
    if not isinstance(payload, list):
        raise ConfigError(f"Events file {path} must contain a list of events")
    return [item for item in payload if isinstance(item, Mapping)]


class AppRuntime:
    """Owns the day timeline, the optional preview renderer and the tick loop."""

    def __init__(
        self,
        *,
        settings: AppSettings,
        scheduler_factory: Callable[..., Scheduler] = Scheduler,
        renderer_factory: Callable[..., TimelinePreviewRenderer] = TimelinePreviewRenderer,
        now_provider: Callable[..., datetime] = datetime.now,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.scheduler_factory = scheduler_factory
        self.renderer_factory = renderer_factory
        self.now_provider = now_provider
        self.logger = logger or LOGGER

        self._timeline: DayTimeline | None = None
        self._renderer: TimelinePreviewRenderer | None = None
        self._scheduler: Scheduler | None = None
        self._started = False

    @property
    def timeline(self) -> DayTimeline | None:
        return self._timeline

    def start(self) -> None:
        """Load events, build the day layout and prepare the tick loop."""

        if self._started:
            return

        try:
            tz = resolve_timezone(self.settings.timeline.timezone)
            now = self.now_provider(tz)
            reference_day = self.settings.reference_day or now.date()
            events = load_raw_events(self.settings.events_path)
            self._timeline = DayTimeline.from_events(
                events,
                reference_day,
                now=now,
                timezone=tz,
                settings=self.settings.timeline,
            )
            self.logger.info(
                "Loaded %d of %d events for %s",
                len(self._timeline.layout.items),
                len(events),
                reference_day.isoformat(),
            )
            if self.settings.preview_dir is not None:
                self._renderer = self.renderer_factory(
                    PreviewConfig(
                        preview_output_dir=self.settings.preview_dir,
                        hour_format=self.settings.hour_format,
                    )
                )
            self._scheduler = self.scheduler_factory(
                self.refresh_once,
                interval_seconds=self.settings.timeline.tick_seconds,
            )
            self._started = True
        except Exception:
            self.close()
            raise

    def run(self, *, immediate: bool = False, iterations: Optional[int] = None) -> None:
        if not self._scheduler:
            raise RuntimeError("Scheduler has not been started")
        self._scheduler.run(immediate=immediate, iterations=iterations)

    def refresh_once(self) -> None:
        if not self._timeline:
            raise RuntimeError("Runtime has not been fully started")

        tz = self._timeline.layout.tz
        snapshot = self._timeline.dispatch(Tick(self.now_provider(tz)))
        self.log_snapshot(snapshot)

        if self._renderer is None:
            return
        try:
            self._renderer.render(snapshot)
        except Exception:
            self.logger.exception("Failed to render timeline preview")

    def log_snapshot(self, snapshot: TimelineSnapshot) -> None:
        now = snapshot.now
        layout = snapshot.layout
        focused = snapshot.focused
        upcoming = snapshot.next_upcoming
        hour_format = self.settings.hour_format

        self.logger.info(
            "Refreshing timeline at %s (%.0f%% of day)",
            now.isoformat(),
            day_progress(now, layout.day_start, layout.day_end),
        )
        if focused is not None:
            self.logger.info(
                "Live: %s (%s, %s left, %d live)",
                focused.interval.title or focused.id,
                format_time_range(focused.interval, hour_format),
                format_duration(remaining(focused.interval, now)),
                len(snapshot.focus.live_interval_ids),
            )
        else:
            self.logger.info("Live: nothing scheduled right now")
        if upcoming is not None:
            gap = gap_before_next(focused.interval if focused else None, upcoming.interval, now)
            self.logger.info(
                "Next: %s in %s (%s buffer)",
                upcoming.interval.title or upcoming.id,
                format_duration(upcoming.start - now),
                buffer_label(gap),
            )
        window = snapshot.visible_window
        self.logger.info(
            "Window %s - %s, %d visible, following=%s",
            to_local(window.start, layout.tz).strftime("%H:%M"),
            to_local(window.end, layout.tz).strftime("%H:%M"),
            len(snapshot.visible),
            snapshot.window.is_following,
        )
        for item in agenda_items(layout.intervals, now, snapshot.focus.focused_interval_id):
            self.logger.debug(
                "Agenda %-8s %s %s",
                item.status,
                format_time_range(item.interval, hour_format),
                item.interval.title or item.interval.id,
            )

    def close(self) -> None:
        self._timeline = None
        self._renderer = None
        self._scheduler = None
        self._started = False


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    load_env_file(args.env_file)
    timeline = TimelineSettings.from_env(os.environ)
    if args.timezone:
        timeline = replace(timeline, timezone=args.timezone)

    return AppSettings(
        events_path=args.events,
        reference_day=args.date,
        once=args.once,
        immediate=args.immediate,
        preview_dir=args.preview_dir,
        hour_format=args.hour_format,
        timeline=timeline,
    )


def main(
    argv: Optional[Iterable[str]] = None,
    *,
    scheduler_factory: Callable[..., Scheduler] = Scheduler,
    renderer_factory: Callable[..., TimelinePreviewRenderer] = TimelinePreviewRenderer,
    now_provider: Callable[..., datetime] = datetime.now,
) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.once and args.immediate:
        parser.error("--once and --immediate are mutually exclusive")

    try:
        settings = resolve_settings(args)
    except ConfigError as exc:
        parser.error(str(exc))

    runtime = AppRuntime(
        settings=settings,
        scheduler_factory=scheduler_factory,
        renderer_factory=renderer_factory,
        now_provider=now_provider,
    )

    try:
        try:
            runtime.start()
        except (ConfigError, InvalidTimezone, OSError) as exc:
            parser.error(str(exc))
        if settings.once:
            runtime.run(immediate=True, iterations=1)
        else:
            runtime.run(immediate=settings.immediate)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
