#!/usr/bin/env python3
"""Generate a sample timeline preview PNG from a built-in set of overlapping events."""

from __future__ import annotations

import argparse
from datetime import date, datetime, time
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from day_timeline.rendering import PreviewConfig, TimelinePreviewRenderer
from day_timeline.timeline import DayTimeline


PREVIEWS_DIR = PROJECT_ROOT / "previews"
SAMPLE_DAY = date(2024, 1, 15)
SAMPLE_EVENTS = [
    {"id": "focus", "title": "Deep work", "startDate": "2024-01-15", "startTime": "08:30", "endTime": "10:00"},
    {"id": "standup", "title": "Team standup", "startDate": "2024-01-15", "startTime": "09:15", "endTime": "09:30", "calendarRank": 5, "calendarId": "work"},
    {"id": "review", "title": "Design review", "startDate": "2024-01-15", "startTime": "09:50", "endTime": "10:40", "calendarId": "work"},
    {"id": "coffee", "title": "Coffee", "startDate": "2024-01-15", "startTime": "10:00", "endTime": "10:05"},
    {"id": "lunch", "title": "Lunch with Sam", "startDate": "2024-01-15", "startTime": "12:00", "endTime": "13:00", "location": "Cafe"},
    {"id": "pairing", "title": "Pairing", "startDate": "2024-01-15", "startTime": "12:30"},
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=PREVIEWS_DIR,
        help="Directory for the preview PNG (defaults to previews/).",
    )
    parser.add_argument(
        "--now",
        type=time.fromisoformat,
        default=time(9, 40),
        help="Clock time on the sample day used as 'now' (HH:MM).",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default="UTC",
        help="IANA timezone for the sample day.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    timeline = DayTimeline.from_events(
        SAMPLE_EVENTS,
        SAMPLE_DAY,
        now=datetime.combine(SAMPLE_DAY, args.now),
        timezone=args.timezone,
    )
    renderer = TimelinePreviewRenderer(PreviewConfig(preview_output_dir=args.output_dir))
    renderer.render(timeline.snapshot, preview_name="timeline_sample")
    print(f"Wrote preview to {args.output_dir / 'timeline_sample.png'}")


if __name__ == "__main__":
    main()
