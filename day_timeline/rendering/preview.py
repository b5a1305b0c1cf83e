"""Greyscale preview renderer for timeline snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Hashable, List, Mapping, Sequence

from PIL import Image, ImageDraw, ImageFont

from ..timeline.agenda import (
    buffer_label,
    format_duration,
    format_time_range,
    gap_before_next,
    parallel_counts,
    progress,
    remaining,
)
from ..timeline.layout import LaidOutInterval, TimeWindow
from ..timeline.normalize import to_local, to_utc
from ..timeline.state import TimelineSnapshot


def _font_length(font: ImageFont.ImageFont, text: str) -> float:
    try:
        return font.getlength(text)  # type: ignore[attr-defined]
    except AttributeError:  # pragma: no cover - fallback for older Pillow
        dummy_img = Image.new("L", (1, 1), color=255)
        draw = ImageDraw.Draw(dummy_img)
        return float(draw.textlength(text, font=font))


def _load_font(path_candidates: Sequence[Path], size: int) -> ImageFont.ImageFont:
    for candidate in path_candidates:
        if candidate and candidate.exists():
            return ImageFont.truetype(str(candidate), size=size)
    return ImageFont.load_default()


def _default_font_candidates(bold: bool) -> List[Path]:
    names = [
        "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf",
        "Arial Bold.ttf" if bold else "Arial.ttf",
    ]
    search_dirs = [
        Path("/usr/share/fonts/truetype/dejavu"),
        Path("/usr/share/fonts"),
        Path("/Library/Fonts"),
        Path.home() / ".fonts",
    ]
    return [directory / name for name in names for directory in search_dirs]


@dataclass
class PreviewConfig:
    """Canvas geometry, colours and fonts for :class:`TimelinePreviewRenderer`."""

    canvas_width: int = 480
    canvas_height: int = 800
    header_height: int = 110
    hour_label_width: int = 64
    right_padding: int = 16
    bottom_padding: int = 16
    column_gap: int = 4
    card_padding: int = 6
    background_color: int = 255
    foreground_color: int = 0
    secondary_color: int = 110
    grid_color: int = 200
    focus_fill: int = 220
    now_line_thickness: int = 3
    title_font_size: int = 22
    body_font_size: int = 14
    hour_font_size: int = 13
    hour_format: str = "24"
    font_regular_path: Path | None = None
    font_bold_path: Path | None = None
    preview_output_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.preview_output_dir is not None:
            self.preview_output_dir = Path(self.preview_output_dir)
            self.preview_output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def timeline_top(self) -> int:
        return self.header_height

    @property
    def timeline_bottom(self) -> int:
        return self.canvas_height - self.bottom_padding

    @property
    def card_left(self) -> int:
        return self.hour_label_width

    @property
    def card_right(self) -> int:
        return self.canvas_width - self.right_padding

    def font(self, size: int, *, bold: bool = False) -> ImageFont.ImageFont:
        provided = self.font_bold_path if bold else self.font_regular_path
        candidates: List[Path] = [Path(provided)] if provided is not None else []
        candidates.extend(_default_font_candidates(bold))
        return _load_font(candidates, size)


class TimelinePreviewRenderer:
    """Draw the visible part of a :class:`TimelineSnapshot`."""

    def __init__(self, config: PreviewConfig | None = None) -> None:
        self.config = config or PreviewConfig()

    def render(self, snapshot: TimelineSnapshot, *, preview_name: str | None = None) -> Image.Image:
        cfg = self.config
        image = Image.new("L", (cfg.canvas_width, cfg.canvas_height), color=cfg.background_color)
        draw = ImageDraw.Draw(image)
        window = snapshot.visible_window

        self._draw_header(draw, snapshot)
        self._draw_hour_grid(draw, window, snapshot.layout.tz)
        self._draw_cards(
            draw,
            snapshot.visible,
            window,
            snapshot.focus.focused_interval_id,
            parallel_counts(snapshot.layout.intervals),
        )
        self._draw_now_line(draw, snapshot.now, window)

        if cfg.preview_output_dir is not None:
            name = preview_name or snapshot.now.strftime("%Y%m%d-%H%M%S")
            image.save(cfg.preview_output_dir / f"{name}.png")
        return image

    # ------------------------------------------------------------------
    def y_for(self, instant: datetime, window: TimeWindow) -> float:
        cfg = self.config
        span = window.length.total_seconds()
        if span <= 0:
            return float(cfg.timeline_top)
        relative = (instant - window.start).total_seconds() / span
        relative = max(0.0, min(1.0, relative))
        return cfg.timeline_top + relative * (cfg.timeline_bottom - cfg.timeline_top)

    def _draw_header(self, draw: ImageDraw.ImageDraw, snapshot: TimelineSnapshot) -> None:
        cfg = self.config
        title_font = cfg.font(cfg.title_font_size, bold=True)
        body_font = cfg.font(cfg.body_font_size)
        now = snapshot.now
        focused = snapshot.focused
        upcoming = snapshot.next_upcoming

        draw.text((12, 10), now.strftime("%A, %B %d  %H:%M"), font=body_font, fill=cfg.secondary_color)
        if focused is not None:
            headline = focused.interval.title or "Untitled event"
            detail = f"{format_duration(remaining(focused.interval, now))} remaining"
        else:
            headline = "No event right now"
            detail = (
                f"Next starts in {format_duration(upcoming.start - now)}"
                if upcoming is not None
                else "Free for now"
            )
        headline = self._truncate(headline, title_font, cfg.canvas_width - 24)
        draw.text((12, 32), headline, font=title_font, fill=cfg.foreground_color)

        gap = gap_before_next(
            focused.interval if focused is not None else None,
            upcoming.interval if upcoming is not None else None,
            now,
        )
        label = buffer_label(gap)
        if label is not None:
            detail = f"{detail} · {label} buffer"
        draw.text((12, 64), detail, font=body_font, fill=cfg.secondary_color)
        if not snapshot.window.is_following:
            draw.text((12, 84), "Scrolled away from now", font=body_font, fill=cfg.secondary_color)
        if focused is not None:
            self._draw_progress_bar(draw, progress(focused.interval, now))

    def _draw_progress_bar(self, draw: ImageDraw.ImageDraw, percent: float) -> None:
        cfg = self.config
        left, right = 12, cfg.canvas_width - 12
        top, bottom = cfg.header_height - 8, cfg.header_height - 4
        draw.rectangle((left, top, right, bottom), outline=cfg.grid_color, fill=cfg.background_color)
        filled = left + (right - left) * percent / 100
        if filled > left:
            draw.rectangle((left, top, filled, bottom), fill=cfg.foreground_color)

    def _draw_hour_grid(self, draw: ImageDraw.ImageDraw, window: TimeWindow, tz: tzinfo | None) -> None:
        cfg = self.config
        font = cfg.font(cfg.hour_font_size)
        local_start = to_local(window.start, tz)
        hour = to_utc(local_start.replace(minute=0, second=0, microsecond=0))
        if hour < window.start:
            hour += timedelta(hours=1)
        # Step in UTC; labels follow the local clock across DST changes.
        while hour <= window.end:
            y = int(round(self.y_for(hour, window)))
            label = to_local(hour, tz).strftime("%H:%M")
            draw.line((cfg.card_left, y, cfg.card_right, y), fill=cfg.grid_color, width=1)
            draw.text((8, y - cfg.hour_font_size // 2), label, font=font, fill=cfg.secondary_color)
            hour += timedelta(hours=1)

    def _draw_cards(
        self,
        draw: ImageDraw.ImageDraw,
        items: Sequence[LaidOutInterval],
        window: TimeWindow,
        focused_id,
        parallel: Mapping[Hashable, int],
    ) -> None:
        cfg = self.config
        body_font = cfg.font(cfg.body_font_size)
        usable = cfg.card_right - cfg.card_left

        for item in items:
            top = self.y_for(item.start, window)
            bottom = self.y_for(item.interval.render_end, window)
            left = cfg.card_left + item.left_fraction * usable
            right = max(left, left + item.width_fraction * usable - cfg.column_gap)
            if bottom - top < 2:
                bottom = top + 2
            draw.rounded_rectangle(
                (left, top + 1, right, bottom - 1),
                radius=6,
                outline=cfg.foreground_color,
                width=2,
                fill=cfg.focus_fill if item.id == focused_id else None,
            )
            max_width = int(right - left) - cfg.card_padding * 2
            if max_width <= 0 or bottom - top < cfg.body_font_size + cfg.card_padding:
                continue
            count = parallel.get(item.id, 1)
            if count > 1:
                badge = f"x{count}"
                badge_width = _font_length(body_font, badge)
                if badge_width + cfg.card_padding < max_width:
                    draw.text(
                        (right - cfg.card_padding - badge_width, top + cfg.card_padding),
                        badge,
                        font=body_font,
                        fill=cfg.secondary_color,
                    )
                    max_width -= int(badge_width) + cfg.card_padding
            text = self._truncate(item.interval.title or "Untitled event", body_font, max_width)
            draw.text((left + cfg.card_padding, top + cfg.card_padding), text, font=body_font, fill=cfg.foreground_color)
            if bottom - top >= (cfg.body_font_size + cfg.card_padding) * 2:
                when = self._truncate(format_time_range(item.interval, cfg.hour_format), body_font, max_width)
                draw.text(
                    (left + cfg.card_padding, top + cfg.card_padding + cfg.body_font_size + 2),
                    when,
                    font=body_font,
                    fill=cfg.secondary_color,
                )

    def _draw_now_line(self, draw: ImageDraw.ImageDraw, now: datetime, window: TimeWindow) -> None:
        cfg = self.config
        if not (window.start <= now <= window.end):
            return
        y = self.y_for(now, window)
        draw.line((cfg.card_left, y, cfg.card_right, y), fill=cfg.foreground_color, width=cfg.now_line_thickness)
        r = 5
        draw.ellipse((cfg.card_left - r, y - r, cfg.card_left + r, y + r), fill=cfg.foreground_color)

    def _truncate(self, line: str, font: ImageFont.ImageFont, max_width: int) -> str:
        if _font_length(font, line) <= max_width:
            return line
        ellipsis = "…"
        current = line
        while current and _font_length(font, current + ellipsis) > max_width:
            current = current[:-1].rstrip()
        return (current + ellipsis) if current else ellipsis


__all__ = ["PreviewConfig", "TimelinePreviewRenderer"]
