"""Environment-driven settings for the day timeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Mapping

__all__ = ["ConfigError", "TimelineSettings", "load_env_file"]


class ConfigError(RuntimeError):
    """Raised when configuration values are malformed."""


def load_env_file(env_file: str | Path | None = None) -> None:
    """Load environment variables from ``env_file`` if provided.

    When ``env_file`` is :data:`None`, the loader looks for a ``.env`` file in the
    current working directory. Existing environment variables are never overwritten.
    """

    path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if not path.exists() or not path.is_file():
        return

    for key, value in _iter_env_entries(path):
        os.environ.setdefault(key, value)


def _iter_env_entries(path: Path) -> Iterable[tuple[str, str]]:
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ConfigError(
                f"Invalid line in {path.name!r}: {raw_line!r}. Expected KEY=VALUE format."
            )
        key, raw_value = line.split("=", 1)
        key = key.strip()
        value = raw_value.strip().strip('"').strip("'")
        if not key:
            raise ConfigError(f"Environment variable key is missing in line: {raw_line!r}")
        yield key, value


@dataclass(frozen=True)
class TimelineSettings:
    """Tunables shared by the normalizer, the window scheduler and the app."""

    timezone: str = "UTC"
    past_span: timedelta = timedelta(minutes=60)
    future_span: timedelta = timedelta(minutes=180)
    follow_threshold: timedelta = timedelta(minutes=5)
    tick_seconds: int = 15
    default_duration: timedelta = timedelta(hours=1)
    min_visual_duration: timedelta = timedelta(minutes=4)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TimelineSettings":
        """Build settings from ``TIMELINE_*`` variables, falling back to defaults."""

        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            timezone=env.get("TIMELINE_TIMEZONE", "").strip() or defaults.timezone,
            past_span=_minutes(env, "TIMELINE_PAST_MINUTES", defaults.past_span),
            future_span=_minutes(env, "TIMELINE_FUTURE_MINUTES", defaults.future_span),
            follow_threshold=timedelta(
                seconds=_positive_int(
                    env,
                    "TIMELINE_FOLLOW_THRESHOLD_SECONDS",
                    int(defaults.follow_threshold.total_seconds()),
                )
            ),
            tick_seconds=_positive_int(env, "TIMELINE_TICK_SECONDS", defaults.tick_seconds),
            default_duration=_minutes(
                env, "TIMELINE_DEFAULT_DURATION_MINUTES", defaults.default_duration
            ),
            min_visual_duration=_minutes(
                env, "TIMELINE_MIN_VISUAL_MINUTES", defaults.min_visual_duration
            ),
        )


def _positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def _minutes(env: Mapping[str, str], key: str, default: timedelta) -> timedelta:
    return timedelta(minutes=_positive_int(env, key, int(default.total_seconds() // 60)))
